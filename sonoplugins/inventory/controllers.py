"""Report items for the workload controllers that own pods and jobs."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

from sonoplugins.inventory.pod import Pod
from sonoplugins.inventory.reports import SonobuoyResultsItem


def _format_time(value) -> str:
    """Render a timestamp the way the report's status lines show it."""
    if value is None:
        return "<nil>"
    text = str(value)
    try:
        moment = datetime.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    if moment.utcoffset() == datetime.timedelta(0):
        return moment.strftime("%Y-%m-%d %H:%M:%S +0000 UTC")
    return text


@dataclass
class _KubeObject:
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

    @property
    def uid(self) -> str:
        return self.metadata.get("uid", "")

    @property
    def labels(self) -> dict:
        return self.metadata.get("labels") or {}

    def _template_node_selector(self):
        template = self.spec.get("template") or {}
        return (template.get("spec") or {}).get("nodeSelector")

    def _count(self, section: dict, key: str) -> int:
        return section.get(key) or 0


@dataclass
class Job(_KubeObject):
    """A job and the pods it controls."""

    pods: dict[str, Pod] = field(default_factory=dict)

    def status_message(self) -> str:
        status = self.status
        return (
            f"Running: {self._count(status, 'active')}, "
            f"Succeeded: {self._count(status, 'succeeded')}, "
            f"Failed: {self._count(status, 'failed')}"
        )

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec = self.spec
        item = SonobuoyResultsItem(
            name=self.name,
            status=self.status_message(),
            details={"status": self.status, "selector": spec.get("selector")},
        )
        for key in (
            "parallelism",
            "completions",
            "activeDeadlineSeconds",
            "backoffLimit",
            "ttlSecondsAfterFinished",
        ):
            if spec.get(key) is not None:
                item.details[key] = spec[key]
        item.items.extend(pod.generate_sonobuoy_item() for pod in self.pods.values())
        return item


@dataclass
class CronJob(_KubeObject):
    """A cron job and the jobs it has started."""

    jobs: dict[str, Job] = field(default_factory=dict)

    def status_message(self) -> str:
        status = self.status
        active = len(status.get("active") or [])
        return f"Active: {active}, Last Schedule: {_format_time(status.get('lastScheduleTime'))}"

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec, status = self.spec, self.status
        item = SonobuoyResultsItem(
            name=self.name,
            status=self.status_message(),
            metadata={"kind": "CronJob", "uid": self.uid},
            details={
                "active": len(status.get("active") or []),
                "schedule": spec.get("schedule", ""),
                "suspend": spec.get("suspend"),
                "concurrencyPolicy": spec.get("concurrencyPolicy", ""),
                "lastScheduleTime": status.get("lastScheduleTime"),
                "successfulJobHistoryLimit": spec.get("successfulJobsHistoryLimit"),
                "failedJobHistoryLimit": spec.get("failedJobsHistoryLimit"),
            },
        )
        if self.labels:
            item.details["labels"] = self.labels
        item.items.extend(job.generate_sonobuoy_item() for job in self.jobs.values())
        return item


@dataclass
class Deployment(_KubeObject):
    """A deployment and the replica sets it controls."""

    replica_sets: dict[str, "ReplicaSet"] = field(default_factory=dict)

    def status_message(self) -> str:
        status = self.status
        return (
            f"Desired: {self._count(self.spec, 'replicas')}, "
            f"Up-to-date: {self._count(status, 'updatedReplicas')}, "
            f"Total: {self._count(status, 'replicas')}, "
            f"Available: {self._count(status, 'availableReplicas')}"
        )

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec = self.spec
        item = SonobuoyResultsItem(
            name=self.name,
            metadata={"kind": "Deployment", "uid": self.uid},
            details={
                "status": self.status,
                "deploymentStrategy": spec.get("strategy") or {},
                "minReadySeconds": spec.get("minReadySeconds", 0),
                "paused": bool(spec.get("paused", False)),
            },
        )
        for key in ("replicas", "progressDeadlineSeconds", "revisionHistoryLimit", "selector"):
            if spec.get(key) is not None:
                item.details[key] = spec[key]
        node_selector = self._template_node_selector()
        if node_selector is not None:
            item.details["nodeSelector"] = node_selector
        if self.labels:
            item.details["labels"] = self.labels
        item.items.extend(rs.generate_sonobuoy_item() for rs in self.replica_sets.values())
        return item


@dataclass
class _PodController(_KubeObject):
    pods: dict[str, Pod] = field(default_factory=dict)

    def _add_common(self, item: SonobuoyResultsItem) -> None:
        if self.spec.get("selector") is not None:
            item.details["selector"] = self.spec["selector"]
        node_selector = self._template_node_selector()
        if node_selector is not None:
            item.details["nodeSelector"] = node_selector

    def _add_children(self, item: SonobuoyResultsItem) -> None:
        if self.labels:
            item.details["labels"] = self.labels
        item.items.extend(pod.generate_sonobuoy_item() for pod in self.pods.values())


@dataclass
class _Replicated(_PodController):
    """Shared rendering for replica sets and replication controllers."""

    def _replica_status_message(self) -> str:
        status = self.status
        return (
            f"Desired: {self._count(self.spec, 'replicas')}, "
            f"Current: {self._count(status, 'replicas')}, "
            f"Ready: {self._count(status, 'readyReplicas')}, "
            f"Available: {self._count(status, 'availableReplicas')}"
        )

    def _replica_item(self, kind: str) -> SonobuoyResultsItem:
        spec = self.spec
        item = SonobuoyResultsItem(
            name=self.name,
            status=self._replica_status_message(),
            metadata={"kind": kind, "uid": self.uid},
            details={
                "status": self.status,
                "replicas": spec.get("replicas"),
                "minReadySeconds": spec.get("minReadySeconds", 0),
            },
        )
        self._add_common(item)
        self._add_children(item)
        return item


@dataclass
class ReplicaSet(_Replicated):
    """A replica set and the pods it controls."""

    def status_message(self) -> str:
        return self._replica_status_message()

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return self._replica_item("ReplicaSet")


@dataclass
class ReplicationController(_Replicated):
    """A replication controller and the pods it controls."""

    def status_message(self) -> str:
        return self._replica_status_message()

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return self._replica_item("ReplicationController")


@dataclass
class StatefulSet(_PodController):
    """A stateful set and the pods it controls."""

    def status_message(self) -> str:
        status = self.status
        return (
            f"Desired: {self._count(self.spec, 'replicas')}, "
            f"Total: {self._count(status, 'replicas')}, "
            f"Current: {self._count(status, 'currentReplicas')}, "
            f"Ready: {self._count(status, 'readyReplicas')}"
        )

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec = self.spec
        item = SonobuoyResultsItem(
            name=self.name,
            status=self.status_message(),
            metadata={"kind": "StatefulSet", "uid": self.uid},
            details={
                "status": self.status,
                "replicas": spec.get("replicas"),
                "podManagementPolicy": spec.get("podManagementPolicy", ""),
                "updateStrategy": spec.get("updateStrategy") or {},
                "serviceName": spec.get("serviceName", ""),
            },
        )
        self._add_common(item)
        if spec.get("revisionHistoryLimit") is not None:
            item.details["revisionHistoryLimit"] = spec["revisionHistoryLimit"]
        self._add_children(item)
        return item


@dataclass
class DaemonSet(_PodController):
    """A daemon set and the pods it controls."""

    def status_message(self) -> str:
        status = self.status
        return (
            f"Current: {self._count(status, 'currentNumberScheduled')}, "
            f"Desired: {self._count(status, 'desiredNumberScheduled')}, "
            f"Ready: {self._count(status, 'numberReady')}, "
            f"Up-to-date: {self._count(status, 'updatedNumberScheduled')}, "
            f"Available: {self._count(status, 'numberAvailable')}"
        )

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec = self.spec
        item = SonobuoyResultsItem(
            name=self.name,
            status=self.status_message(),
            metadata={"kind": "DaemonSet", "uid": self.uid},
            details={"status": self.status, "updateStrategy": spec.get("updateStrategy") or {}},
        )
        if spec.get("revisionHistoryLimit") is not None:
            item.details["revisionHistoryLimit"] = spec["revisionHistoryLimit"]
        self._add_common(item)
        self._add_children(item)
        return item