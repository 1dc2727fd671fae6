"""Facts about the cluster's control plane."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sonoplugins.inventory.kube import KubeError
from sonoplugins.inventory.reports import SonobuoyResultsItem

MASTER_ROLE_LABEL = "node-role.kubernetes.io/master"

_PROVIDERS = (("aws://", "AWS"), ("gce://", "GKE"), ("azure://", "Azure"))
_AUDIT_FLAGS = ("audit-log-path", "audit-webhook-config-file")


@dataclass
class ControlPlane:
    """Provider, size and audit logging of the control plane."""

    provider: str = ""
    is_ha: bool = False
    num_nodes: int = 0
    audit_log_enabled: bool = False
    error: Exception | None = None

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        item = SonobuoyResultsItem(name="Control Plane")
        if self.error is not None:
            item.status = "incomplete"
            item.details["error"] = self.error
            return item

        item.status = "complete"
        item.details["auditLogEnabled"] = self.audit_log_enabled
        item.details["isHA"] = self.is_ha
        item.details["numNodes"] = self.num_nodes
        if self.provider:
            item.details["provider"] = self.provider
        return item


def provider_for_node(node: dict) -> str:
    """Name the cloud provider from a node's providerID, or return an empty string."""
    provider_id = ((node or {}).get("spec") or {}).get("providerID", "")
    for marker, provider in _PROVIDERS:
        if marker in provider_id:
            return provider
    return ""


def control_plane_node_count(nodes: Iterable[dict]) -> int:
    """Count the nodes carrying the master role label."""
    return sum(
        1 for node in nodes if MASTER_ROLE_LABEL in ((node.get("metadata") or {}).get("labels") or {})
    )


def audit_logging_enabled(client) -> bool:
    """Whether any API server pod is started with an audit log or webhook backend."""
    try:
        pods = client.list("v1", "pods", "kube-system", "component=kube-apiserver")
    except KubeError:
        return False
    return any(
        flag in param
        for pod in pods
        for container in (pod.get("spec") or {}).get("containers") or []
        for param in container.get("command") or []
        for flag in _AUDIT_FLAGS
    )


def get_control_plane(client) -> ControlPlane:
    """Inspect the nodes and API server pods to describe the control plane."""
    try:
        nodes = client.list("v1", "nodes")
    except KubeError as exc:
        return ControlPlane(error=exc)

    count = control_plane_node_count(nodes)
    return ControlPlane(
        provider=provider_for_node(nodes[0]) if nodes else "",
        is_ha=count > 1,
        num_nodes=count,
        audit_log_enabled=audit_logging_enabled(client),
    )