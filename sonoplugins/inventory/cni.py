"""Discovery of the node's CNI network configuration."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from sonoplugins.inventory.reports import SonobuoyResultsItem

CNI_CONF_DIR = "/etc/cni/net.d/"
CNI_BIN_DIRS = ("/opt/cni/bin",)
CONF_EXTENSIONS = (".conf", ".conflist", ".json")

logger = logging.getLogger(__name__)


class CNIConfigError(Exception):
    """Raised when a CNI configuration cannot be read or used."""


@dataclass
class CNIStatus:
    """The CNI configuration in use, or the error met while finding it."""

    conf_file: str = ""
    name: str = ""
    cni_version: str = ""
    disable_check: bool = False
    plugins: list[dict] = field(default_factory=list)
    error: Exception | None = None

    def generate_sonobuoy_item(self) -> SonobuoyResultsItem:
        item = SonobuoyResultsItem(name="CNI", status="complete")
        if self.error is not None:
            item.status = "incomplete"
            item.details = {"error": self.error}
            return item

        cni_item = SonobuoyResultsItem(
            name=self.name,
            status="complete",
            metadata={"confFile": self.conf_file},
            details={"cniVersion": self.cni_version, "disableCheck": self.disable_check},
        )
        for plugin in self.plugins:
            ipam = plugin.get("ipam") or {}
            dns = plugin.get("dns") or {}
            cni_item.items.append(
                SonobuoyResultsItem(
                    name=plugin.get("name", ""),
                    details={
                        "version": plugin.get("cniVersion", ""),
                        "type": plugin.get("type", ""),
                        "capabilities": plugin.get("capabilities"),
                        "ipam": {"type": ipam.get("type", "")},
                        "dns": {
                            "nameservers": dns.get("nameservers"),
                            "domain": dns.get("domain", ""),
                            "search": dns.get("search"),
                            "options": dns.get("options"),
                        },
                    },
                )
            )
        item.items.append(cni_item)
        return item


def conf_files(directory, extensions: Iterable[str]) -> list[str]:
    """Paths of the files in ``directory`` with one of the given extensions.

    A missing directory yields an empty list.
    """
    extensions = tuple(extensions)
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise CNIConfigError(str(exc)) from exc
    return [
        os.path.join(directory, entry.name)
        for entry in entries
        if not entry.is_dir() and os.path.splitext(entry.name)[1] in extensions
    ]


def _decode(raw: bytes, what: str) -> dict:
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise CNIConfigError(f"error parsing {what}: {exc}") from exc
    if not isinstance(data, dict):
        raise CNIConfigError(f"error parsing {what}: not a JSON object")
    return data


def _conf_from_dict(data: dict) -> dict:
    if not data.get("type"):
        raise CNIConfigError("error parsing configuration: missing 'type'")
    return data


def _conf_list_from_dict(data: dict) -> dict:
    prefix = "error parsing configuration list"
    name = data.get("name")
    if not isinstance(name, str):
        raise CNIConfigError(f"{prefix}: no name")
    version = data.get("cniVersion", "")
    if not isinstance(version, str):
        raise CNIConfigError(f"{prefix}: invalid cniVersion type {type(version).__name__}")
    disable_check = data.get("disableCheck", False)
    if not isinstance(disable_check, bool):
        raise CNIConfigError(f"{prefix}: invalid disableCheck type {type(disable_check).__name__}")
    if "plugins" not in data:
        raise CNIConfigError(f"{prefix}: no 'plugins' key")
    raw_plugins = data["plugins"]
    if not isinstance(raw_plugins, list):
        raise CNIConfigError(f"{prefix}: invalid 'plugins' type {type(raw_plugins).__name__}")
    if not raw_plugins:
        raise CNIConfigError(f"{prefix}: no plugins in list")

    plugins = []
    for index, plugin in enumerate(raw_plugins):
        try:
            if not isinstance(plugin, dict):
                raise CNIConfigError("error parsing configuration: not a JSON object")
            plugins.append(_conf_from_dict(plugin))
        except CNIConfigError as exc:
            raise CNIConfigError(f"failed to parse plugin config {index}: {exc}") from exc
    return {"name": name, "cniVersion": version, "disableCheck": disable_check, "plugins": plugins}


def load_conf_list(path) -> dict:
    """Load a ``.conflist`` file, or wrap a single-network file as a list of one plugin."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise CNIConfigError(f"error reading {path}: {exc}") from exc

    if os.path.splitext(str(path))[1] == ".conflist":
        return _conf_list_from_dict(_decode(raw, "configuration list"))

    conf = _conf_from_dict(_decode(raw, "configuration"))
    return {
        "name": conf.get("name", ""),
        "cniVersion": conf.get("cniVersion", ""),
        "disableCheck": False,
        "plugins": [conf],
    }


def _validate(conf_list: dict, bin_dirs: Iterable[str]) -> None:
    bin_dirs = list(bin_dirs)
    for plugin in conf_list["plugins"]:
        plugin_type = plugin.get("type", "")
        found = any(
            os.path.isfile(os.path.join(directory, plugin_type))
            and os.access(os.path.join(directory, plugin_type), os.X_OK)
            for directory in bin_dirs
        )
        if not found:
            raise CNIConfigError(f"failed to find plugin {json.dumps(plugin_type)} in path {bin_dirs}")


def get_cni(conf_dir=CNI_CONF_DIR, bin_dirs=CNI_BIN_DIRS) -> CNIStatus:
    """Use the first configuration file, in name order, that loads and validates."""
    try:
        files = conf_files(conf_dir, CONF_EXTENSIONS)
    except CNIConfigError as exc:
        return CNIStatus(error=exc)
    if not files:
        return CNIStatus(error=CNIConfigError(f"no CNI configuration files found in {conf_dir}"))

    for path in sorted(files):
        try:
            conf_list: dict[str, Any] = load_conf_list(path)
        except CNIConfigError as exc:
            logger.warning("error loading CNI configuration file %r: %s", path, exc)
            continue
        if not conf_list["plugins"]:
            logger.warning("CNI conflist %r has no networks, skipping", path)
            continue
        try:
            _validate(conf_list, bin_dirs)
        except CNIConfigError as exc:
            logger.warning("error validating CNI conflist %r: %s", path, exc)
            continue

        logger.info("Using CNI config file %s", path)
        return CNIStatus(
            conf_file=path,
            name=conf_list["name"],
            cni_version=conf_list["cniVersion"],
            disable_check=conf_list["disableCheck"],
            plugins=conf_list["plugins"],
        )

    return CNIStatus(error=CNIConfigError(f"no valid CNI configuration found in {conf_dir}"))