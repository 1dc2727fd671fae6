"""Run the full cluster inventory and hold its results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sonoplugins.inventory.components import Components, get_components
from sonoplugins.inventory.namespaces import Namespaces, get_namespaces
from sonoplugins.inventory.reports import SonobuoyResultsItem
from sonoplugins.inventory.workloads import NamespacedWorkloads, WorkloadsError, get_workloads


def _with_pods(controller) -> dict:
    return {**controller.obj, "Pods": {name: pod.obj for name, pod in controller.pods.items()}}


def _tree_dict(tree) -> dict[str, Any]:
    return {
        "Deployments": {
            name: {
                **deployment.obj,
                "ReplicaSets": {rs_name: _with_pods(rs) for rs_name, rs in deployment.replica_sets.items()},
            }
            for name, deployment in tree.deployments.items()
        },
        "ReplicaSets": {name: _with_pods(rs) for name, rs in tree.replica_sets.items()},
        "ReplicationControllers": {
            name: _with_pods(rc) for name, rc in tree.replication_controllers.items()
        },
        "StatefulSets": {name: _with_pods(ss) for name, ss in tree.stateful_sets.items()},
        "DaemonSets": {name: _with_pods(ds) for name, ds in tree.daemon_sets.items()},
        "Jobs": {name: _with_pods(job) for name, job in tree.jobs.items()},
        "CronJobs": {
            name: {**cron_job.obj, "Jobs": {job_name: _with_pods(job) for job_name, job in cron_job.jobs.items()}}
            for name, cron_job in tree.cron_jobs.items()
        },
        "Pods": {name: pod.obj for name, pod in tree.pods.items()},
    }


def _components_dict(components: Components) -> dict[str, Any]:
    cni = components.cni
    control_plane = components.control_plane
    return {
        "Nodes": {"Nodes": [node.obj for node in components.nodes.nodes]},
        "ControlPlane": {
            "Provider": control_plane.provider,
            "IsHA": control_plane.is_ha,
            "NumNodes": control_plane.num_nodes,
            "AuditLogEnabled": control_plane.audit_log_enabled,
        },
        "CNI": {}
        if cni.error is not None
        else {
            "name": cni.name,
            "cniVersion": cni.cni_version,
            "disableCheck": cni.disable_check,
            "plugins": cni.plugins,
        },
        "NetworkStatus": {"ExternalDNS": components.network_status.external_dns},
    }


@dataclass
class Results:
    """Everything the inventory found."""

    cluster_components: Components = field(default_factory=Components)
    namespaces: Namespaces = field(default_factory=Namespaces)
    workloads: NamespacedWorkloads = field(default_factory=NamespacedWorkloads)

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Cluster Inventory",
            status="complete",
            items=[
                self.cluster_components.generate_sonobuoy_item(),
                self.namespaces.generate_sonobuoy_item(),
                self.workloads.generate_sonobuoy_item(),
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        """The results as plain data for the JSON report."""
        return {
            "ClusterComponents": _components_dict(self.cluster_components),
            "Namespaces": [namespace.obj for namespace in self.namespaces],
            "Workloads": {name: _tree_dict(tree) for name, tree in self.workloads.items()},
        }


class Collector:
    """Collects the inventory of a cluster through an API client."""

    def __init__(self, client):
        self.client = client

    def run(self) -> Results:
        """Gather components, namespaces and workloads.

        Workloads listed before a listing failure are kept.
        """
        components = get_components(self.client)
        namespaces = get_namespaces(self.client)
        try:
            workloads = get_workloads(self.client)
        except WorkloadsError as exc:
            workloads = exc.workloads
        return Results(cluster_components=components, namespaces=namespaces, workloads=workloads)