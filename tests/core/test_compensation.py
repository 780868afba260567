"""Tests for DualWrite and best_effort."""

import pytest
from structlog.testing import capture_logs

from system_model.core.compensation import DualWrite, best_effort
from system_model.core.errors import NotFoundError, StorageError


class Recorder:
    def __init__(self):
        self.calls: list[str] = []

    def step(self, name, result=None, error=None):
        def _run():
            self.calls.append(name)
            if error is not None:
                raise error
            return result

        return _run


def _dual_write(rec, *, primary_error=None, secondary_error=None, compensate_error=None):
    return DualWrite(
        operation="add_widget",
        primary=rec.step("primary", result="widget-1", error=primary_error),
        secondary=rec.step("secondary", error=secondary_error),
        compensate=rec.step("compensate", error=compensate_error),
        context={"organization_id": "acme"},
    )


class TestDualWrite:
    def test_success_returns_primary_result(self):
        rec = Recorder()
        assert _dual_write(rec).run() == "widget-1"
        assert rec.calls == ["primary", "secondary"]

    def test_primary_failure_propagates_without_compensation(self):
        rec = Recorder()
        with pytest.raises(StorageError):
            _dual_write(rec, primary_error=StorageError("primary down")).run()
        assert rec.calls == ["primary"]

    def test_secondary_failure_compensates_and_reraises(self):
        rec = Recorder()
        original = NotFoundError("organization not found")
        with capture_logs() as logs, pytest.raises(NotFoundError) as exc_info:
            _dual_write(rec, secondary_error=original).run()

        assert exc_info.value is original
        assert rec.calls == ["primary", "secondary", "compensate"]
        [entry] = [e for e in logs if e["event"] == "rollback_succeeded"]
        assert entry["log_level"] == "warning"
        assert entry["operation"] == "add_widget"
        assert entry["organization_id"] == "acme"

    def test_failed_compensation_keeps_original_error(self):
        rec = Recorder()
        original = StorageError("index down")
        with capture_logs() as logs, pytest.raises(StorageError) as exc_info:
            _dual_write(rec, secondary_error=original, compensate_error=RuntimeError("store down")).run()

        assert exc_info.value is original
        [entry] = [e for e in logs if e["event"] == "rollback_failed"]
        assert entry["log_level"] == "error"
        assert entry["rollback_error"] == "store down"
        assert not any(e["event"] == "rollback_succeeded" for e in logs)

    def test_compensation_runs_once(self):
        rec = Recorder()
        with pytest.raises(StorageError):
            _dual_write(
                rec, secondary_error=StorageError("x"), compensate_error=StorageError("y")
            ).run()
        assert rec.calls.count("compensate") == 1


class TestBestEffort:
    def test_success(self):
        rec = Recorder()
        assert best_effort("cleanup", rec.step("drop")) is True

    def test_failure_is_logged_not_raised(self):
        with capture_logs() as logs:
            ok = best_effort("remove_instance", Recorder().step("drop", error=StorageError("x")), store="s")
        assert ok is False
        [entry] = logs
        assert entry["event"] == "cleanup_failed"
        assert entry["store"] == "s"
