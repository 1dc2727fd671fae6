"""Workloads of each namespace, arranged under the controllers that own them."""

from __future__ import annotations

from typing import Callable

from sonoplugins.inventory.controllers import (
    CronJob,
    DaemonSet,
    Deployment,
    Job,
    ReplicaSet,
    ReplicationController,
    StatefulSet,
)
from sonoplugins.inventory.kube import KubeError
from sonoplugins.inventory.pod import Pod
from sonoplugins.inventory.reports import SonobuoyResultsItem


class WorkloadsError(Exception):
    """Raised when the workloads cannot all be listed.

    ``workloads`` holds the namespaces gathered before the failure.
    """

    def __init__(self, message: str, workloads: "NamespacedWorkloads"):
        super().__init__(message)
        self.workloads = workloads


def controller_of(obj: dict) -> dict | None:
    """Return the owner reference marked as the object's controller, if any."""
    references = ((obj or {}).get("metadata") or {}).get("ownerReferences") or []
    for reference in references:
        if reference.get("controller"):
            return reference
    return None


class WorkloadsTree:
    """The workloads of one namespace, each pod and job placed under its controller."""

    def __init__(self, client, namespace: str):
        self.client = client
        self.namespace = namespace
        self.deployments: dict[str, Deployment] = {}
        self.replica_sets: dict[str, ReplicaSet] = {}
        self.replication_controllers: dict[str, ReplicationController] = {}
        self.stateful_sets: dict[str, StatefulSet] = {}
        self.daemon_sets: dict[str, DaemonSet] = {}
        self.jobs: dict[str, Job] = {}
        self.cron_jobs: dict[str, CronJob] = {}
        self.pods: dict[str, Pod] = {}

    def _add(self, group_version: str, resource: str, target: dict, build: Callable) -> None:
        for obj in self.client.list(group_version, resource, self.namespace):
            name = (obj.get("metadata") or {}).get("name", "")
            if name not in target:
                target[name] = build(obj)

    def populate(self) -> None:
        """List every kind of workload in the namespace and link owners to what they own."""
        self._add("v1", "pods", self.pods, Pod)
        self._add("apps/v1", "deployments", self.deployments, Deployment)
        self._add("apps/v1", "replicasets", self.replica_sets, ReplicaSet)
        self._add(
            "v1", "replicationcontrollers", self.replication_controllers, ReplicationController
        )
        self._add("apps/v1", "statefulsets", self.stateful_sets, StatefulSet)
        self._add("apps/v1", "daemonsets", self.daemon_sets, DaemonSet)
        self._add("batch/v1", "jobs", self.jobs, Job)
        self._add("batch/v1beta1", "cronjobs", self.cron_jobs, CronJob)
        self.resolve_controller_owner_references()

    def resolve_controller_owner_references(self) -> None:
        """Move pods, replica sets and jobs under the controller that owns them."""
        pod_owners = {
            "ReplicaSet": self.replica_sets,
            "ReplicationController": self.replication_controllers,
            "DaemonSet": self.daemon_sets,
            "StatefulSet": self.stateful_sets,
            "Job": self.jobs,
        }
        for name, pod in list(self.pods.items()):
            controller = controller_of(pod.obj)
            if controller is None:
                continue
            owners = pod_owners.get(controller.get("kind"))
            if owners is None:
                continue
            owner = owners.get(controller.get("name"))
            if owner is not None and owner.uid == controller.get("uid"):
                owner.pods[name] = pod
                del self.pods[name]

        for name, replica_set in list(self.replica_sets.items()):
            controller = controller_of(replica_set.obj)
            if controller is None or controller.get("kind") != "Deployment":
                continue
            deployment = self.deployments.get(controller.get("name"))
            if deployment is not None and deployment.uid == controller.get("uid"):
                deployment.replica_sets[name] = replica_set
                del self.replica_sets[name]

        for name, job in list(self.jobs.items()):
            controller = controller_of(job.obj)
            if controller is None or controller.get("kind") != "CronJob":
                continue
            cron_job = self.cron_jobs.get(controller.get("name"))
            if cron_job is not None and cron_job.uid == controller.get("uid"):
                cron_job.jobs[name] = job
                del self.jobs[name]

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        item = SonobuoyResultsItem(
            name=self.namespace, status="complete", metadata={"kind": "Namespace"}
        )
        sections = (
            ("Deployments", self.deployments),
            ("Replica Sets", self.replica_sets),
            ("Replication Controllers", self.replication_controllers),
            ("Stateful Sets", self.stateful_sets),
            ("Daemon Sets", self.daemon_sets),
            ("Cron Jobs", self.cron_jobs),
            ("Jobs", self.jobs),
            ("Pods", self.pods),
        )
        for title, members in sections:
            if members:
                item.items.append(
                    SonobuoyResultsItem(
                        name=title,
                        status="complete",
                        items=[member.generate_sonobuoy_item() for member in members.values()],
                    )
                )
        return item


class NamespacedWorkloads(dict):
    """Workload trees keyed by namespace name."""

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Namespaced Workloads",
            status="complete",
            items=[tree.generate_sonobuoy_item() for tree in self.values()],
        )


def get_workloads(client) -> NamespacedWorkloads:
    """Build the workload tree of every namespace in the cluster."""
    workloads = NamespacedWorkloads()
    try:
        namespaces = client.list("v1", "namespaces")
    except KubeError as exc:
        raise WorkloadsError(str(exc), workloads) from exc

    for namespace in namespaces:
        name = (namespace.get("metadata") or {}).get("name", "")
        tree = WorkloadsTree(client, name)
        try:
            tree.populate()
        except KubeError as exc:
            raise WorkloadsError(str(exc), workloads) from exc
        workloads[name] = tree
    return workloads