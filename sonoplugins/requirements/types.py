"""Requirement checks as read from the plugin's JSON input."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class CheckType(str, Enum):
    """The kinds of requirement check; each value matches its JSON section name."""

    K8S_VERSION = "k8s_version"
    PROVIDER = "provider"
    NODE = "node"
    DEPLOYMENT = "deployment"

    def __str__(self) -> str:
        return self.value


@dataclass
class Metadata:
    """Name, description and type of a check."""

    name: str = ""
    description: str = ""
    type: Union[CheckType, str] = ""
    optional: bool = False


@dataclass
class KubernetesVersionSpec:
    """The Kubernetes server version a cluster must have."""

    version: str = ""
    exact: bool = False


@dataclass
class ProviderSpec:
    """Cluster providers that are accepted and rejected."""

    in_: list[str] = field(default_factory=list)
    not_in: list[str] = field(default_factory=list)


@dataclass
class NodeSpec:
    """Resources that labelled nodes must offer."""

    label: str = ""
    memory: str = ""
    cpu: str = ""
    count: int = 0


@dataclass
class DeploymentSpec:
    """A deployment whose annotation must carry at least a given version."""

    name: str = ""
    annotation: str = ""
    version: str = ""


@dataclass
class CheckResult:
    """Outcome of one check."""

    fail: bool = False
    msgs: list[str] = field(default_factory=list)


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"field {key!r} must be an object")
    return value


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _boolean(data: dict, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean")
    return value


def _integer(data: dict, key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer")
    return value


def _strings(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(value)


def _check_type(value: str) -> Union[CheckType, str]:
    try:
        return CheckType(value)
    except ValueError:
        return value


@dataclass
class Check:
    """One requirement check; only the section matching its type is used."""

    meta: Metadata = field(default_factory=Metadata)
    k8s_version: KubernetesVersionSpec = field(default_factory=KubernetesVersionSpec)
    provider: ProviderSpec = field(default_factory=ProviderSpec)
    node: NodeSpec = field(default_factory=NodeSpec)
    deployment: DeploymentSpec = field(default_factory=DeploymentSpec)

    @classmethod
    def from_dict(cls, data: Any) -> "Check":
        """Build a check from its decoded JSON object; missing fields take defaults."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("a check must be a JSON object")
        meta = _section(data, "meta")
        version = _section(data, "k8s_version")
        provider = _section(data, "provider")
        node = _section(data, "node")
        deployment = _section(data, "deployment")
        return cls(
            meta=Metadata(
                name=_string(meta, "name"),
                description=_string(meta, "description"),
                type=_check_type(_string(meta, "type")),
                optional=_boolean(meta, "optional"),
            ),
            k8s_version=KubernetesVersionSpec(
                version=_string(version, "version"),
                exact=_boolean(version, "exact"),
            ),
            provider=ProviderSpec(
                in_=_strings(provider, "in"),
                not_in=_strings(provider, "not_in"),
            ),
            node=NodeSpec(
                label=_string(node, "label"),
                memory=_string(node, "memory"),
                cpu=_string(node, "cpu"),
                count=_integer(node, "count"),
            ),
            deployment=DeploymentSpec(
                name=_string(deployment, "name"),
                annotation=_string(deployment, "annotation"),
                version=_string(deployment, "version"),
            ),
        )


def parse_check_list(data: Any) -> list[Check]:
    """Parse a JSON array of checks, given as text, bytes or already decoded data."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid check list: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("check list must be a JSON array")
    return [Check.from_dict(entry) for entry in data]