"""The cluster components gathered into one report section."""

from __future__ import annotations

from dataclasses import dataclass, field

from sonoplugins.inventory.cni import CNIStatus, get_cni
from sonoplugins.inventory.controlplane import ControlPlane, get_control_plane
from sonoplugins.inventory.network import NetworkStatus, get_network_status
from sonoplugins.inventory.nodes import Nodes, get_nodes
from sonoplugins.inventory.reports import SonobuoyResultsItem


@dataclass
class Components:
    """Nodes, control plane, CNI and network facts of the cluster."""

    nodes: Nodes = field(default_factory=Nodes)
    control_plane: ControlPlane = field(default_factory=ControlPlane)
    cni: CNIStatus = field(default_factory=CNIStatus)
    network_status: NetworkStatus = field(default_factory=NetworkStatus)

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Cluster Components",
            status="complete",
            items=[
                self.nodes.generate_sonobuoy_item(),
                self.cni.generate_sonobuoy_item(),
                self.control_plane.generate_sonobuoy_item(),
                self.network_status.generate_sonobuoy_item(),
            ],
        )


def get_components(client) -> Components:
    """Gather every cluster component."""
    return Components(
        nodes=get_nodes(client),
        control_plane=get_control_plane(client),
        cni=get_cni(),
        network_status=get_network_status(),
    )