"""Run the configured requirement checks and report them to Sonobuoy."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Iterable

from sonoplugins.helper.done import DoneError
from sonoplugins.helper.progress import ProgressReporter
from sonoplugins.helper.results_writer import (
    STATUS_FAILED,
    STATUS_PASSED,
    ResultsWriterError,
    SonobuoyResultsWriter,
)
from sonoplugins.requirements.checks import CheckError, UnknownCheckTypeError, get_checker
from sonoplugins.requirements.types import Check, CheckResult, parse_check_list

DEFAULT_INPUT_FILE = "input.json"
PLUGIN_INPUT_DIR = "/tmp/sonobuoy/config"

logger = logging.getLogger(__name__)


def fail_to_status(failed: bool) -> str:
    """Map a failure flag to a result status."""
    return STATUS_FAILED if failed else STATUS_PASSED


def run_checks(
    checks: Iterable[Check], writer: SonobuoyResultsWriter, reporter: ProgressReporter
) -> list[CheckResult]:
    """Run each check, recording its result with the writer and the reporter."""
    results = []
    for check in checks:
        checker = get_checker(check.meta.type)
        name = check.meta.name
        reporter.start_test(name)
        error = None
        try:
            result = checker(check)
        except CheckError as exc:
            error = exc
            result = CheckResult(fail=True, msgs=[str(exc)])

        status = fail_to_status(result.fail)
        logger.debug("Completed test %r, result: %s", name, status)
        writer.add_test(name, status, error, "")
        reporter.stop_test(name, result.fail, False, error)
        results.append(result)
    return results


def main(argv=None) -> int:
    """Read the check list, run it and write the results; returns the exit status."""
    parser = argparse.ArgumentParser(
        prog="requirements-check",
        description="Run cluster requirement checks and report the results to Sonobuoy.",
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG)

    input_file = DEFAULT_INPUT_FILE
    if os.environ.get("SONOBUOY_K8S_VERSION"):
        input_file = os.path.join(PLUGIN_INPUT_DIR, input_file)
    with open(input_file, "rb") as handle:
        checks = parse_check_list(handle.read())

    writer = SonobuoyResultsWriter.from_env()
    reporter = ProgressReporter.from_env(len(checks))

    try:
        run_checks(checks, writer, reporter)
    except UnknownCheckTypeError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        writer.done(True)
    except (ResultsWriterError, DoneError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())