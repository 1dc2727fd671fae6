"""Network reachability facts about the cluster."""

from __future__ import annotations

import socket
from dataclasses import dataclass

from sonoplugins.inventory.reports import SonobuoyResultsItem

EXTERNAL_DNS_PROBE_HOST = "google.com"


@dataclass
class NetworkStatus:
    """Whether external names resolve from inside the cluster."""

    external_dns: bool = False

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Network Status",
            status="complete",
            details={"externalDNS": self.external_dns},
        )


def get_network_status() -> NetworkStatus:
    """Probe external DNS resolution."""
    try:
        socket.getaddrinfo(EXTERNAL_DNS_PROBE_HOST, None)
    except OSError:
        return NetworkStatus(external_dns=False)
    return NetworkStatus(external_dns=True)