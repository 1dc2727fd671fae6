"""Result items in the Sonobuoy report format and writing them as YAML."""

from __future__ import annotations

import dataclasses
import datetime
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

import yaml


def _to_plain(value: Any) -> Any:
    if isinstance(value, SonobuoyResultsItem):
        return value.to_dict()
    if isinstance(value, BaseException):
        return str(value)
    if isinstance(value, enum.Enum):
        return _to_plain(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _to_plain(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {
            str(key): _to_plain(item)
            for key, item in sorted(value.items(), key=lambda pair: str(pair[0]))
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_plain(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


@dataclass
class SonobuoyResultsItem:
    """A node of an inventory report."""

    name: str
    status: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)
    items: list["SonobuoyResultsItem"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return the item as plain data, leaving out empty optional fields."""
        out: dict[str, Any] = {"name": self.name}
        if self.status:
            out["status"] = self.status
        if self.metadata:
            out["meta"] = _to_plain(self.metadata)
        if self.details:
            out["details"] = _to_plain(self.details)
        if self.items:
            out["items"] = [child.to_dict() for child in self.items]
        return out


def write_sonobuoy_report(stream: TextIO, generator) -> None:
    """Write the item produced by ``generator.generate_sonobuoy_item()`` as YAML."""
    item = generator.generate_sonobuoy_item()
    stream.write(
        yaml.safe_dump(item.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True)
    )