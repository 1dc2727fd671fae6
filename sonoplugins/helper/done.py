"""Archive a plugin's results directory and signal completion to the aggregator."""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path

SONOBUOY_RESULTS_DIR_KEY = "SONOBUOY_RESULTS_DIR"
DONE_FILE_NAME = "done"
DEFAULT_TARBALL_NAME = "results.tar.gz"

logger = logging.getLogger(__name__)


class DoneError(Exception):
    """Raised when the results archive or the done file cannot be written."""


def get_results_dir() -> str:
    """Return the results directory named by the environment, or an empty string."""
    return os.environ.get(SONOBUOY_RESULTS_DIR_KEY, "")


def write_done(results_path: str) -> None:
    """Write the done file, whose content is the path of the results to submit."""
    target = Path(get_results_dir()) / DONE_FILE_NAME
    try:
        target.write_text(str(results_path))
    except OSError as exc:
        raise DoneError(f"failed write done file: {exc}") from exc


def _dir_to_tarball(directory: Path, output: Path) -> None:
    entries = sorted(entry for entry in directory.iterdir() if entry.name != output.name)
    with tarfile.open(output, "w:gz") as archive:
        for entry in entries:
            archive.add(entry, arcname=entry.name)


def done() -> str | None:
    """Tar the results directory and write the done file.

    Returns the path of the archive, or None when no results directory is set.
    """
    results_dir = get_results_dir()
    if not results_dir:
        logger.warning(
            "No %s set, no results directory will be archived and no 'done file' will be written.",
            SONOBUOY_RESULTS_DIR_KEY,
        )
        return None

    output_file = os.path.join(results_dir, DEFAULT_TARBALL_NAME)
    logger.debug("Tarring up directory: %s", results_dir)
    try:
        _dir_to_tarball(Path(results_dir), Path(output_file))
    except (OSError, tarfile.TarError) as exc:
        raise DoneError(f"failed to tar up entire results directory: {exc}") from exc

    logger.debug("Writing done file...")
    write_done(output_file)
    logger.debug("Done file written without error.")
    return output_file