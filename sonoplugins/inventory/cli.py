"""Command line entry point of the cluster inventory."""

from __future__ import annotations

import argparse
import json
import sys

from sonoplugins.inventory.collector import Collector
from sonoplugins.inventory.kube import get_kube_client
from sonoplugins.inventory.reports import write_sonobuoy_report


class CommandError(Exception):
    """Raised when a command cannot complete."""


def build_parser() -> argparse.ArgumentParser:
    """The argument parser with its ``run`` subcommand."""
    parser = argparse.ArgumentParser(
        prog="cluster-inventory",
        description="Creates reports describing the resources and workloads in your cluster",
    )
    subcommands = parser.add_subparsers(dest="command")
    run = subcommands.add_parser("run", help="Run the cluster inventory and produce reports")
    run.add_argument(
        "--sonobuoy-report",
        default="",
        help="Generate a Sonobuoy results report at the given path",
    )
    run.add_argument("--json-report", default="", help="Generate a JSON report at the given path")
    return parser


def _run(sonobuoy_report: str, json_report: str) -> None:
    try:
        client = get_kube_client()
    except Exception as exc:
        raise CommandError(f"creating Kubernetes Client: {exc}") from exc

    try:
        results = Collector(client).run()
    except Exception as exc:
        raise CommandError(f"error running inventory: {str(exc)!r}") from exc

    if sonobuoy_report:
        try:
            with open(sonobuoy_report, "w", encoding="utf-8") as handle:
                write_sonobuoy_report(handle, results)
        except OSError as exc:
            raise CommandError(f"writing sonobuoy report: {exc}") from exc

    if json_report:
        try:
            with open(json_report, "w", encoding="utf-8") as handle:
                print(json.dumps(results.to_dict(), default=str), file=handle)
        except OSError as exc:
            raise CommandError(f"writing json report: {exc}") from exc


def main(argv=None) -> int:
    """Parse the arguments and run the requested command; returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "run":
        parser.print_help()
        return 0
    try:
        _run(args.sonobuoy_report, args.json_report)
    except CommandError as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())