import socket
from unittest import mock

from sonoplugins.inventory.network import (
    EXTERNAL_DNS_PROBE_HOST,
    NetworkStatus,
    get_network_status,
)


@mock.patch("socket.getaddrinfo")
def test_external_dns_resolves(getaddrinfo):
    getaddrinfo.return_value = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.1", 0))]
    status = get_network_status()
    assert status.external_dns is True
    assert getaddrinfo.call_args[0][0] == EXTERNAL_DNS_PROBE_HOST


@mock.patch("socket.getaddrinfo", side_effect=socket.gaierror("no name"))
def test_external_dns_fails(getaddrinfo):
    assert get_network_status().external_dns is False


def test_generate_item():
    item = NetworkStatus(external_dns=True).generate_sonobuoy_item()
    assert item.to_dict() == {
        "name": "Network Status",
        "status": "complete",
        "details": {"externalDNS": True},
    }