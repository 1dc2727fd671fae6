import json

import pytest

from sonoplugins.inventory.cni import (
    CNIConfigError,
    CNIStatus,
    conf_files,
    get_cni,
    load_conf_list,
)

CONFLIST = {
    "name": "mynet",
    "cniVersion": "0.4.0",
    "plugins": [
        {"type": "bridge", "ipam": {"type": "host-local"}, "dns": {"nameservers": ["10.0.0.10"]}},
        {"type": "portmap", "capabilities": {"portMappings": True}},
    ],
}


def write(path, data):
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


def make_bin(directory, *names):
    directory.mkdir(exist_ok=True)
    for name in names:
        binary = directory / name
        binary.write_text("#!/bin/sh\n")
        binary.chmod(0o755)
    return directory


def test_conf_files_missing_directory(tmp_path):
    assert conf_files(tmp_path / "absent", [".conf"]) == []


def test_conf_files_filters_and_sorts(tmp_path):
    write(tmp_path / "20-b.conflist", CONFLIST)
    write(tmp_path / "10-a.conf", {"type": "bridge"})
    write(tmp_path / "readme.txt", "text")
    (tmp_path / "dir.conf").mkdir()
    found = conf_files(tmp_path, [".conf", ".conflist", ".json"])
    assert found == [str(tmp_path / "10-a.conf"), str(tmp_path / "20-b.conflist")]


def test_load_conf_list_from_conflist(tmp_path):
    conf_list = load_conf_list(write(tmp_path / "a.conflist", CONFLIST))
    assert conf_list["name"] == "mynet"
    assert conf_list["cniVersion"] == "0.4.0"
    assert conf_list["disableCheck"] is False
    assert [plugin["type"] for plugin in conf_list["plugins"]] == ["bridge", "portmap"]


def test_load_conf_list_wraps_single_conf(tmp_path):
    conf = {"name": "single", "cniVersion": "0.3.1", "type": "flannel"}
    conf_list = load_conf_list(write(tmp_path / "a.conf", conf))
    assert conf_list["name"] == "single"
    assert conf_list["cniVersion"] == "0.3.1"
    assert conf_list["plugins"] == [conf]


@pytest.mark.parametrize(
    "filename, data, message",
    [
        ("a.conf", {"name": "x"}, "missing 'type'"),
        ("a.conflist", {"plugins": [{"type": "bridge"}]}, "no name"),
        ("a.conflist", {"name": "x"}, "no 'plugins' key"),
        ("a.conflist", {"name": "x", "plugins": []}, "no plugins in list"),
        ("a.conflist", {"name": "x", "disableCheck": "yes", "plugins": [{"type": "b"}]}, "invalid disableCheck"),
        ("a.conflist", {"name": "x", "plugins": [{"name": "p"}]}, "failed to parse plugin config 0"),
        ("a.json", "{not json", "error parsing configuration"),
    ],
)
def test_load_conf_list_errors(tmp_path, filename, data, message):
    with pytest.raises(CNIConfigError, match=message):
        load_conf_list(write(tmp_path / filename, data))


def test_get_cni_without_files(tmp_path):
    status = get_cni(str(tmp_path), [str(tmp_path)])
    assert isinstance(status.error, CNIConfigError)
    assert "no CNI configuration files found in" in str(status.error)


def test_get_cni_picks_first_valid(tmp_path):
    conf_dir = tmp_path / "net.d"
    conf_dir.mkdir()
    write(conf_dir / "05-broken.conf", "{broken")
    write(conf_dir / "10-net.conflist", CONFLIST)
    write(conf_dir / "20-other.conf", {"name": "other", "type": "bridge"})
    bins = make_bin(tmp_path / "bin", "bridge", "portmap")

    status = get_cni(str(conf_dir), [str(bins)])
    assert status.error is None
    assert status.conf_file == str(conf_dir / "10-net.conflist")
    assert status.name == "mynet"
    assert len(status.plugins) == 2


def test_get_cni_skips_missing_binaries(tmp_path):
    conf_dir = tmp_path / "net.d"
    conf_dir.mkdir()
    write(conf_dir / "10-net.conflist", CONFLIST)
    write(conf_dir / "20-other.conf", {"name": "other", "type": "bridge"})
    bins = make_bin(tmp_path / "bin", "bridge")

    status = get_cni(str(conf_dir), [str(bins)])
    assert status.conf_file == str(conf_dir / "20-other.conf")
    assert status.name == "other"


def test_get_cni_no_valid_configuration(tmp_path):
    conf_dir = tmp_path / "net.d"
    conf_dir.mkdir()
    write(conf_dir / "10-net.conflist", CONFLIST)
    status = get_cni(str(conf_dir), [str(tmp_path / "nobin")])
    assert isinstance(status.error, CNIConfigError)
    assert status.conf_file == ""


def test_generate_item_on_error():
    item = CNIStatus(error=CNIConfigError("bad")).generate_sonobuoy_item()
    assert item.name == "CNI"
    assert item.status == "incomplete"
    assert item.to_dict()["details"] == {"error": "bad"}
    assert item.items == []


def test_generate_item_structure():
    status = CNIStatus(
        conf_file="/etc/cni/net.d/10-net.conflist",
        name="mynet",
        cni_version="0.4.0",
        plugins=CONFLIST["plugins"],
    )
    item = status.generate_sonobuoy_item()
    assert item.status == "complete"
    (net,) = item.items
    assert net.name == "mynet"
    assert net.metadata == {"confFile": "/etc/cni/net.d/10-net.conflist"}
    assert net.details == {"cniVersion": "0.4.0", "disableCheck": False}
    bridge, portmap = net.items
    assert bridge.details["type"] == "bridge"
    assert bridge.details["ipam"] == {"type": "host-local"}
    assert bridge.details["dns"]["nameservers"] == ["10.0.0.10"]
    assert portmap.details["capabilities"] == {"portMappings": True}
    assert portmap.details["ipam"] == {"type": ""}