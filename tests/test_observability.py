"""Tests for logging setup, metrics and tracing."""
import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from nootverse_client.observability import (
    ROOT_LOGGER_NAME,
    MetricsCollector,
    configure_logging,
    is_logging_configured,
    timed_operation,
    traced,
)


@pytest.fixture
def collector():
    collector = MetricsCollector()
    with patch("nootverse_client.observability.metrics", collector):
        yield collector


@pytest.fixture
def restore_logger():
    """Remove handlers configure_logging attaches to the package logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_record_successful_operation(self):
        collector = MetricsCollector()
        collector.record_operation("getStats", 100.0, True)
        stats = collector.get_metrics()["getStats"]
        assert stats["count"] == 1
        assert stats["success_count"] == 1
        assert stats["avg_duration_ms"] == 100.0

    def test_record_failed_operation(self):
        collector = MetricsCollector()
        collector.record_operation("updateNote", 50.0, False, "offline")
        stats = collector.get_metrics()["updateNote"]
        assert stats["error_count"] == 1
        assert stats["last_error"] == "offline"
        assert stats["last_error_time"] is not None

    def test_summary_and_reset(self):
        collector = MetricsCollector()
        collector.record_operation("a", 10.0, True)
        collector.record_operation("b", 30.0, False, "boom")
        summary = collector.get_summary()
        assert summary["total_operations"] == 2
        assert summary["total_errors"] == 1
        assert summary["overall_success_rate"] == 0.5
        assert summary["operations_tracked"] == ["a", "b"]
        collector.reset()
        assert collector.get_metrics() == {}


class TestTimedOperation:
    """Tests for the timed_operation context manager."""

    def test_records_success(self, collector):
        with timed_operation("getMyUniverses") as op:
            op["result_count"] = 3
        assert collector.get_metrics()["getMyUniverses"]["success_count"] == 1

    def test_records_failure_and_reraises(self, collector):
        with pytest.raises(ValueError):
            with timed_operation("deleteUniverse", position=2):
                raise ValueError("Test error")
        assert collector.get_metrics()["deleteUniverse"]["last_error"] == "Test error"


class TestTraced:
    """Tests for the traced decorator."""

    def test_plain_function(self, collector):
        @traced("sum")
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
        assert collector.get_metrics()["sum"]["count"] == 1

    @pytest.mark.anyio
    async def test_coroutine_function(self, collector):
        @traced()
        async def fetch(position=None):
            return [position]

        assert await fetch(position=4) == [4]
        assert collector.get_metrics()["fetch"]["success_count"] == 1

    @pytest.mark.anyio
    async def test_positional_arguments_are_logged(self, collector, caplog):
        class Engine:
            @traced("sync.delete")
            async def delete_at(self, position, record_id):
                return True

        caplog.set_level(logging.DEBUG, logger="nootverse_client.observability")
        assert await Engine().delete_at(3, "n-7") is True
        start = next(r.getMessage() for r in caplog.records if "START sync.delete" in r.getMessage())
        assert "position=3" in start
        assert "record_id=n-7" in start

    @pytest.mark.anyio
    async def test_coroutine_failure(self, collector):
        @traced("explode")
        async def explode():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await explode()
        assert collector.get_metrics()["explode"]["error_count"] == 1


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_creates_directory_and_file_handler(self, tmp_path, restore_logger):
        log_dir = tmp_path / "logs"
        assert configure_logging(log_dir=log_dir, console=False) == log_dir
        assert log_dir.is_dir()
        assert any(isinstance(h, RotatingFileHandler) for h in restore_logger.handlers)
        assert is_logging_configured() is True

    def test_accepts_level_names(self, tmp_path, restore_logger):
        configure_logging(log_dir=tmp_path, level="debug", console=False)
        assert restore_logger.level == logging.DEBUG

    def test_does_not_duplicate_handlers(self, tmp_path, restore_logger):
        configure_logging(log_dir=tmp_path, console=False)
        configure_logging(log_dir=tmp_path, console=False)
        file_handlers = [h for h in restore_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
