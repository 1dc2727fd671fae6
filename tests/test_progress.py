import json

import pytest
import responses

from sonoplugins.helper.progress import ProgressError, ProgressReporter

PORT = "8099"
URL = f"http://localhost:{PORT}/progress"


def _body(call):
    return json.loads(call.request.body)


def test_from_env_without_port_sends_nothing(monkeypatch):
    monkeypatch.delenv("SONOBUOY_PROGRESS_PORT", raising=False)
    reporter = ProgressReporter.from_env(5)
    assert reporter.port is None
    assert reporter.total == 0
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        reporter.start_test("t1")
        reporter.send_message("hello")
        assert len(rsps.calls) == 0


def test_from_env_with_port(monkeypatch):
    monkeypatch.setenv("SONOBUOY_PROGRESS_PORT", PORT)
    reporter = ProgressReporter.from_env(5)
    assert reporter.port == PORT
    assert reporter.total == 5


def test_start_test_message():
    reporter = ProgressReporter(total=3, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=200)
        reporter.start_test("t1")
        assert len(rsps.calls) == 1
        body = _body(rsps.calls[0])
    assert body["msg"] == "Test started: t1"
    assert body["total"] == 3
    assert body["completed"] == 0
    assert reporter.completed == 0
    assert reporter.failures == []
    assert reporter.errors == []


def test_stop_test_failed_not_counted_as_completed():
    reporter = ProgressReporter(total=3, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=200)
        reporter.stop_test("t1", failed=True)
        body = _body(rsps.calls[0])
    assert reporter.completed == 0
    assert reporter.failures == ["t1"]
    assert body["msg"] == "Test failed: t1"
    assert body["failures"] == ["t1"]
    assert "errors" not in body


def test_stop_test_skipped_and_completed_increment():
    reporter = ProgressReporter(total=3, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=200)
        reporter.stop_test("t1", skipped=True)
        reporter.stop_test("t2")
        messages = [_body(call)["msg"] for call in rsps.calls]
    assert reporter.completed == 2
    assert messages == ["Test skipped: t1", "Test completed: t2"]


def test_stop_test_with_error_records_error():
    reporter = ProgressReporter(total=3, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=200)
        reporter.stop_test("t1", error=ValueError("boom"))
        body = _body(rsps.calls[0])
    assert reporter.completed == 1
    assert reporter.errors == ["t1"]
    assert body["msg"] == "Test errored: t1 boom"
    assert body["errors"] == ["t1"]


def test_send_message_bad_status_raises():
    reporter = ProgressReporter(total=1, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=500)
        with pytest.raises(ProgressError, match="unexpected HTTP Status"):
            reporter.send_message("hello")


def test_send_message_connection_error_raises():
    reporter = ProgressReporter(total=1, port=PORT)
    with responses.RequestsMock(assert_all_requests_are_fired=False):
        with pytest.raises(ProgressError, match="failed to POST"):
            reporter.send_message("hello")


def test_stop_test_swallows_delivery_failure():
    reporter = ProgressReporter(total=1, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=500)
        reporter.stop_test("t1")
        assert len(rsps.calls) == 1
    assert reporter.completed == 1


def test_send_message_async():
    reporter = ProgressReporter(total=1, port=PORT)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=200)
        thread = reporter.send_message_async("waiting")
        thread.join(timeout=10)
        assert thread.is_alive() is False
        assert len(rsps.calls) == 1
        assert _body(rsps.calls[0])["msg"] == "waiting"