"""Inventory of the cluster's nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sonoplugins.inventory.kube import KubeError
from sonoplugins.inventory.reports import SonobuoyResultsItem


def _resource_strings(resources: Any) -> dict[str, str]:
    return {str(name): str(quantity) for name, quantity in (resources or {}).items()}


@dataclass
class Node:
    """A node object as returned by the API server."""

    obj: dict = field(default_factory=dict)

    @property
    def metadata(self) -> dict:
        return self.obj.get("metadata") or {}

    @property
    def spec(self) -> dict:
        return self.obj.get("spec") or {}

    @property
    def status(self) -> dict:
        return self.obj.get("status") or {}

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    def status_message(self) -> str:
        """Comma separated list of the conditions that hold, plus scheduling state."""
        status = [
            str(condition.get("type", ""))
            for condition in self.status.get("conditions") or []
            if condition.get("status") == "True"
        ]
        if not status:
            status.append("Unknown")
        if self.spec.get("unschedulable"):
            status.append("SchedulingDisabled")
        return ",".join(status)

    def parse_resources(self) -> dict[str, dict[str, str]]:
        """Allocatable and capacity resources as strings."""
        return {
            "allocatable": _resource_strings(self.status.get("allocatable")),
            "capacity": _resource_strings(self.status.get("capacity")),
        }

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec, status = self.spec, self.status
        item = SonobuoyResultsItem(
            name=self.name,
            status=self.status_message(),
            details={
                "conditions": status.get("conditions"),
                "images": status.get("images"),
                "resources": self.parse_resources(),
                "addresses": status.get("addresses"),
                "volumesInUse": status.get("volumesInUse"),
                "volumesAttached": status.get("volumesAttached"),
                "nodeInfo": status.get("nodeInfo") or {},
                "podCIDR": spec.get("podCIDR", ""),
                "unschedulable": "true" if spec.get("unschedulable") else "false",
            },
        )
        if spec.get("podCIDRs"):
            item.details["podCIDRs"] = spec["podCIDRs"]
        if spec.get("providerID"):
            item.details["providerID"] = spec["providerID"]
        if spec.get("taints"):
            item.details["taints"] = spec["taints"]
        if self.metadata.get("labels"):
            item.details["labels"] = self.metadata["labels"]
        return item


@dataclass
class Nodes:
    """All nodes of the cluster, or the error met while listing them."""

    nodes: list[Node] = field(default_factory=list)
    error: Exception | None = None

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Nodes",
            status="complete",
            items=[node.generate_sonobuoy_item() for node in self.nodes],
        )


def get_nodes(client) -> Nodes:
    """List the cluster's nodes."""
    try:
        items = client.list("v1", "nodes")
    except KubeError as exc:
        return Nodes(error=exc)
    return Nodes(nodes=[Node(obj) for obj in items])