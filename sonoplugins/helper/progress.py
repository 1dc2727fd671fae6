"""Progress updates sent to the aggregator's local progress endpoint."""

from __future__ import annotations

import json
import logging
import os
import threading

import requests

SONOBUOY_PROGRESS_PORT_ENV_KEY = "SONOBUOY_PROGRESS_PORT"
DEFAULT_TIMEOUT = 30.0
_ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"

logger = logging.getLogger(__name__)


class ProgressError(Exception):
    """Raised when a progress update cannot be delivered."""


class ProgressReporter:
    """Tracks test counts and reports them over HTTP.

    A reporter without a port does nothing when asked to send.
    """

    def __init__(self, total: int = 0, port: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.total = total
        self.port = port or None
        self.timeout = timeout
        self.completed = 0
        self.failures: list[str] = []
        self.errors: list[str] = []
        self._session = requests.Session() if self.port else None
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, total: int) -> "ProgressReporter":
        """Build a reporter from the environment; without a port it is a no-op reporter."""
        port = os.environ.get(SONOBUOY_PROGRESS_PORT_ENV_KEY, "")
        if not port:
            logger.debug(
                "No %s env var set; no progress updates will be sent.", SONOBUOY_PROGRESS_PORT_ENV_KEY
            )
            return cls()
        logger.debug(
            "ProgressReporter created with %s total tests expected. "
            "Will send requests to localhost:%s",
            total,
            port,
        )
        return cls(total=total, port=port)

    def start_test(self, name: str) -> None:
        """Report the start of a test."""
        self._send_quietly(f"Test started: {name}")

    def stop_test(self, name: str, failed: bool = False, skipped: bool = False, error=None) -> None:
        """Record the outcome of a test and report it."""
        with self._lock:
            if failed:
                # Failing tests do not count as completed.
                self.failures.append(name)
                message = f"Test failed: {name}"
            elif skipped:
                self.completed += 1
                message = f"Test skipped: {name}"
            elif error is not None:
                self.completed += 1
                self.errors.append(name)
                message = f"Test errored: {name} {error}"
            else:
                self.completed += 1
                message = f"Test completed: {name}"
        self._send_quietly(message)

    def _send_quietly(self, message: str) -> None:
        try:
            self.send_message(message)
        except ProgressError as exc:
            logger.debug("Progress update not delivered: %s", exc)

    def _update(self, message: str) -> dict:
        with self._lock:
            update = {
                "name": "",
                "node": "",
                "timestamp": _ZERO_TIMESTAMP,
                "msg": message,
                "total": self.total,
                "completed": self.completed,
            }
            if self.errors:
                update["errors"] = list(self.errors)
            if self.failures:
                update["failures"] = list(self.failures)
        return update

    def send_message(self, message: str) -> None:
        """Send an arbitrary message and wait for the response."""
        if self._session is None:
            logger.warning("Progress update attempted but no client available.")
            return

        body = json.dumps(self._update(message)).encode()
        url = f"http://localhost:{self.port}/progress"
        try:
            response = self._session.post(url, data=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProgressError(f"failed to POST progress update: {exc}") from exc
        if response.status_code != 200:
            raise ProgressError(
                "unexpected HTTP Status from progress update: "
                f"{response.status_code} {response.reason} ({response.status_code})"
            )

    def send_message_async(self, message: str) -> threading.Thread:
        """Send a message on a background thread and return that thread."""

        def _run() -> None:
            try:
                self.send_message(message)
            except ProgressError as exc:
                logger.error("Failed to send progress update: %s", exc)

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        return thread