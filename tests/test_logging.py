"""Tests for logging setup and helpers."""

from __future__ import annotations

import pytest

from uefi_run import logging as logging_module


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging_module.logger.remove()


def _capture() -> list[dict]:
    records: list[dict] = []
    logging_module.logger.add(lambda message: records.append(message.record), level="TRACE")
    return records


def test_setup_logging_writes_log_file(tmp_path):
    """Test the optional file sink receives DEBUG records."""
    log_file = tmp_path / "logs" / "uefi-run.log"
    logging_module.setup_logging(log_file=log_file)

    log = logging_module.get_logger(source="test")
    log.debug("Debug message")
    log.trace("Trace message")
    logging_module.logger.remove()

    content = log_file.read_text()
    assert "Debug message" in content
    assert "Trace message" not in content


def test_setup_logging_trace_file_level(tmp_path):
    log_file = tmp_path / "trace.log"
    logging_module.setup_logging(trace=True, log_file=log_file)

    logging_module.get_logger().trace("Trace message")
    logging_module.logger.remove()

    assert "Trace message" in log_file.read_text()


def test_setup_logging_console_level(capsys):
    logging_module.setup_logging()

    logging_module.get_logger().debug("hidden")
    logging_module.get_logger().info("shown")

    err = capsys.readouterr().err
    assert "shown" in err
    assert "hidden" not in err


def test_setup_logging_debug_console(capsys):
    logging_module.setup_logging(debug=True)

    logging_module.get_logger().debug("now visible")

    assert "now visible" in capsys.readouterr().err


def test_get_logger_preserves_context_metadata():
    """Test bound logger keeps job_id, tags, and source metadata."""
    logging_module.logger.remove()
    records = _capture()

    log = logging_module.get_logger(job_id="run-123", tags=["image"], source="image")
    log.info("Context test")

    record = records[0]
    assert record["extra"]["job_id"] == "run-123"
    assert record["extra"]["tags"] == ["image"]
    assert record["extra"]["source"] == "image"


def test_logger_factory_sources():
    logging_module.logger.remove()
    records = _capture()

    logging_module.LoggerFactory.for_image().info("a")
    logging_module.LoggerFactory.for_emulator().info("b")
    logging_module.LoggerFactory.for_system().info("c")

    assert [r["extra"]["source"] for r in records] == ["image", "qemu", "system"]
    assert records[1]["extra"]["tags"] == ["qemu", "emulator"]


def test_new_job_id():
    job_id = logging_module.new_job_id("boot")

    assert job_id.startswith("boot-")
    assert len(job_id) == len("boot-") + 8


def test_operation_context_binds_job_id():
    logging_module.logger.remove()
    records = _capture()

    with logging_module.operation_context("boot", binary="app.efi") as log:
        logging_module.LoggerFactory.for_image().info("inside")
        job_id = records[0]["extra"]["job_id"]

    assert job_id.startswith("boot-")
    assert records[0]["message"] == "Boot started"
    inside = next(r for r in records if r["message"] == "inside")
    assert inside["extra"]["job_id"] == job_id
    assert inside["extra"]["source"] == "image"
    assert records[-1]["message"] == "Boot completed"
    assert log is not None


def test_operation_context_reraises():
    logging_module.logger.remove()
    records = _capture()

    with pytest.raises(RuntimeError, match="boom"):
        with logging_module.operation_context("boot"):
            raise RuntimeError("boom")

    assert records[-1]["message"] == "Boot aborted"
    assert records[-1]["extra"]["error_type"] == "RuntimeError"


def test_operation_context_explicit_job_id():
    logging_module.logger.remove()
    records = _capture()

    with logging_module.operation_context("boot", job_id="run-0badf00d"):
        logging_module.LoggerFactory.for_emulator().info("inside")

    assert {r["extra"]["job_id"] for r in records} == {"run-0badf00d"}


def test_new_job_id_default_prefix():
    job_id = logging_module.new_job_id()

    assert job_id.startswith("run-")
    int(job_id[len("run-"):], 16)
