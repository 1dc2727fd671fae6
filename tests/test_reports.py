import io

import yaml

from sonoplugins.inventory.reports import SonobuoyResultsItem, write_sonobuoy_report


class _Generator:
    def __init__(self, item):
        self.item = item

    def generate_sonobuoy_item(self):
        return self.item


def test_to_dict_omits_empty_fields():
    assert SonobuoyResultsItem(name="Nodes").to_dict() == {"name": "Nodes"}


def test_to_dict_nested_items_and_metadata():
    child = SonobuoyResultsItem(name="child", status="complete", metadata={"kind": "Pod"})
    parent = SonobuoyResultsItem(name="parent", status="complete", items=[child])
    assert parent.to_dict() == {
        "name": "parent",
        "status": "complete",
        "items": [{"name": "child", "status": "complete", "meta": {"kind": "Pod"}}],
    }


def test_details_errors_become_strings_and_keys_sorted():
    item = SonobuoyResultsItem(
        name="CNI", status="incomplete", details={"z": 1, "error": ValueError("no conf")}
    )
    details = item.to_dict()["details"]
    assert details == {"error": "no conf", "z": 1}
    assert list(details) == ["error", "z"]


def test_write_report_simple_yaml():
    stream = io.StringIO()
    write_sonobuoy_report(stream, _Generator(SonobuoyResultsItem(name="CNI", status="complete")))
    assert stream.getvalue() == "name: CNI\nstatus: complete\n"


def test_write_report_round_trip():
    item = SonobuoyResultsItem(
        name="Cluster Inventory",
        status="complete",
        items=[
            SonobuoyResultsItem(
                name="Network Status", status="complete", details={"externalDNS": True}
            )
        ],
    )
    stream = io.StringIO()
    write_sonobuoy_report(stream, _Generator(item))
    assert yaml.safe_load(stream.getvalue()) == item.to_dict()