"""Report items for pods and their containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from sonoplugins.inventory.reports import SonobuoyResultsItem

_STATES = (("running", "Running"), ("waiting", "Waiting"), ("terminated", "Terminated"))


def container_item(container: dict, statuses: Iterable[dict] | None, is_init: bool) -> SonobuoyResultsItem:
    """Describe one container, using its entry in ``statuses`` when there is one."""
    name = container.get("name", "")
    item = SonobuoyResultsItem(
        name=name,
        metadata={"kind": "Container"},
        details={"image": container.get("image", "")},
    )
    if is_init:
        item.metadata["init"] = "true"

    for status in statuses or []:
        if status.get("name") != name:
            continue
        state = status.get("state") or {}
        for key, label in _STATES:
            if state.get(key) is not None:
                item.status = label
                item.details["state"] = {key: state[key]}
                break
        item.details["imageID"] = status.get("imageID", "")
        item.details["ready"] = bool(status.get("ready", False))
        item.details["restartCount"] = status.get("restartCount", 0)

    item.details["command"] = container.get("command")
    item.details["args"] = container.get("args")
    item.details["volumeMounts"] = container.get("volumeMounts")
    return item


@dataclass
class Pod:
    """A pod object as returned by the API server."""

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

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        spec, status = self.spec, self.status
        item = SonobuoyResultsItem(
            name=self.name,
            status=status.get("phase", ""),
            metadata={"kind": "Pod", "uid": self.uid},
            details={
                "conditions": status.get("conditions"),
                "hostIP": status.get("hostIP", ""),
                "node": spec.get("nodeName", ""),
                "podIP": status.get("podIP", ""),
                "priority": spec.get("priority"),
                "qos": status.get("qosClass", ""),
                "serviceAccount": spec.get("serviceAccountName", ""),
                "volumes": [dict(volume) for volume in spec.get("volumes") or []],
            },
        )
        if self.metadata.get("labels"):
            item.details["labels"] = self.metadata["labels"]
        if spec.get("tolerations"):
            item.details["tolerations"] = spec["tolerations"]
        if spec.get("nodeSelector"):
            item.details["nodeSelector"] = spec["nodeSelector"]

        item.items.extend(
            container_item(container, status.get("initContainerStatuses"), True)
            for container in spec.get("initContainers") or []
        )
        item.items.extend(
            container_item(container, status.get("containerStatuses"), False)
            for container in spec.get("containers") or []
        )
        return item