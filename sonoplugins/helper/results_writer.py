"""Collect test results in memory and write them in the Sonobuoy results format."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

from sonoplugins.helper.done import SONOBUOY_RESULTS_DIR_KEY
from sonoplugins.helper.done import done as finish_results

DEFAULT_OUTPUT_FILE_NAME = "sonobuoy_results.yaml"

STATUS_PASSED = "passed"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"
STATUS_UNKNOWN = "unknown"

METADATA_DETAILS_FAILURE = "failure"
METADATA_DETAILS_OUTPUT = "system-out"


class ResultsWriterError(Exception):
    """Raised when results cannot be written."""


@dataclass
class Item:
    """One node of a results tree."""

    name: str = ""
    status: str = ""
    meta: dict[str, str] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)
    items: list["Item"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return the item as plain data, leaving out empty optional fields."""
        out: dict[str, Any] = {"name": self.name, "status": self.status}
        if self.meta:
            out["meta"] = dict(self.meta)
        if self.details:
            out["details"] = dict(self.details)
        if self.items:
            out["items"] = [child.to_dict() for child in self.items]
        return out


def aggregate_status(items: Iterable[Item]) -> str:
    """Aggregate leaf statuses: failures bubble up, otherwise the result passes.

    Branch items have their status replaced by the aggregate of their children.
    """
    items = list(items)
    if not items:
        return STATUS_UNKNOWN
    failed = False
    for item in items:
        if item.items:
            item.status = aggregate_status(item.items)
        if item.status == STATUS_FAILED:
            failed = True
    return STATUS_FAILED if failed else STATUS_PASSED


class SonobuoyResultsWriter:
    """Keeps result items in memory and writes them to results_dir/output_file.

    With an empty results_dir the results go to standard output.
    """

    def __init__(self, results_dir: str = "", output_file: str = DEFAULT_OUTPUT_FILE_NAME):
        self.results_dir = results_dir
        self.output_file = output_file
        self.data = Item()

    @classmethod
    def from_env(cls) -> "SonobuoyResultsWriter":
        """Writer for the results directory named by the environment."""
        return cls(os.environ.get(SONOBUOY_RESULTS_DIR_KEY, ""), DEFAULT_OUTPUT_FILE_NAME)

    def add_test(self, name: str, result: str, error=None, output: str = "") -> Item:
        """Record one test result and return its item."""
        item = Item(name=name, status=result)
        if output:
            item.details[METADATA_DETAILS_OUTPUT] = output
        if error is not None:
            item.details[METADATA_DETAILS_FAILURE] = str(error)
        self.data.items.append(item)
        return item

    def done(self, write_done_file: bool = False):
        """Write the results; optionally archive them and write the done file."""
        self.data.status = aggregate_status(self.data.items)
        text = yaml.safe_dump(
            self.data.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True
        )

        if self.results_dir:
            try:
                os.makedirs(self.results_dir, exist_ok=True)
            except OSError as exc:
                raise ResultsWriterError(f"error creating results directory: {exc}") from exc
            path = os.path.join(self.results_dir, self.output_file)
            try:
                with open(path, "w", encoding="utf-8") as handle:
                    handle.write(text)
            except OSError as exc:
                raise ResultsWriterError(f"error creating results file: {exc}") from exc
        else:
            sys.stdout.write(text)

        if write_done_file:
            return finish_results()
        return None