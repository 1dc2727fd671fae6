"""Inventory of namespaces with their resource quotas and limit ranges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sonoplugins.inventory.kube import KubeError
from sonoplugins.inventory.reports import SonobuoyResultsItem

logger = logging.getLogger(__name__)

_LIMIT_SECTIONS = ("default", "defaultRequest", "min", "max", "maxLimitRequestRatio")


def _resource_strings(resources: Any) -> dict[str, str]:
    return {str(name): str(quantity) for name, quantity in (resources or {}).items()}


def parse_quota(quota: dict) -> dict[str, dict[str, str]]:
    """Map each resource of a quota to its hard limit and current use."""
    status = (quota or {}).get("status") or {}
    parsed: dict[str, dict[str, str]] = {}
    for name, quantity in (status.get("hard") or {}).items():
        parsed.setdefault(str(name), {})["limit"] = str(quantity)
    for name, quantity in (status.get("used") or {}).items():
        parsed.setdefault(str(name), {})["used"] = str(quantity)
    return parsed


def parse_limit_range(item: dict) -> dict[str, Any]:
    """Describe one limit range entry, leaving out empty resource lists."""
    item = item or {}
    parsed: dict[str, Any] = {"type": item.get("type", "")}
    for section in _LIMIT_SECTIONS:
        if item.get(section):
            parsed[section] = _resource_strings(item[section])
    return parsed


@dataclass
class Namespace:
    """A namespace object with the quotas and limit ranges defined in it."""

    obj: dict = field(default_factory=dict)
    quotas: list[dict] = field(default_factory=list)
    limits: list[dict] = field(default_factory=list)

    @property
    def name(self) -> str:
        return (self.obj.get("metadata") or {}).get("name", "")

    @property
    def phase(self) -> str:
        return (self.obj.get("status") or {}).get("phase", "")

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        item = SonobuoyResultsItem(name=self.name, status=self.phase, details={})
        if self.quotas:
            item.details["resourceQuotas"] = {
                (quota.get("metadata") or {}).get("name", ""): parse_quota(quota)
                for quota in self.quotas
            }
        if self.limits:
            limits: dict[str, list] = {}
            for limit_range in self.limits:
                name = (limit_range.get("metadata") or {}).get("name", "")
                entries = (limit_range.get("spec") or {}).get("limits") or []
                limits[name] = [parse_limit_range(entry) for entry in entries]
            item.details["limitRanges"] = limits
        return item


class Namespaces(list):
    """All namespaces of the cluster."""

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        return SonobuoyResultsItem(
            name="Namespaces",
            status="complete",
            items=[namespace.generate_sonobuoy_item() for namespace in self],
        )


def get_namespaces(client) -> Namespaces:
    """List the namespaces, each with its limit ranges and resource quotas."""
    namespaces = Namespaces()
    try:
        objects = client.list("v1", "namespaces")
    except KubeError as exc:
        logger.warning("could not fetch namespaces: %s", exc)
        return namespaces

    for obj in objects:
        namespace = Namespace(obj=obj)
        name = namespace.name
        try:
            namespace.limits = list(client.list("v1", "limitranges", name))
        except KubeError as exc:
            logger.warning("could not fetch limit ranges for %s: %s", name, exc)
        try:
            namespace.quotas = list(client.list("v1", "resourcequotas", name))
        except KubeError as exc:
            logger.warning("could not fetch resource quotas for %s: %s", name, exc)
        namespaces.append(namespace)
    return namespaces