from __future__ import annotations

import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_file: Path | None = None,
) -> Logger:
    """
    Setup logging sinks for a single uefi-run invocation.

    Logging Tiers:
    - ERROR: Tooling failures (bad input, image I/O, launch failures)
    - SUCCESS/INFO: Boot image creation, emulator start and exit status
    - DEBUG: Firmware lookup, full emulator command line, cleanup
    - TRACE: Ultra-verbose (every directory and file created)

    The console sink writes to stderr and is not enqueued, so messages stay
    ordered with the emulator output on the same terminal.

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (very verbose)
        log_file: Optional file receiving DEBUG+ records regardless of console level
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "uefi-run"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr)
    logger.add(
        sys.stderr,
        level=console_level,
        enqueue=False,
        backtrace=False,
        diagnose=False,
        colorize=None,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <8}</cyan> | "
            "{message}"
        ),
    )

    # SINK 2: Optional log file
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="TRACE" if trace else "DEBUG",
            enqueue=False,
            backtrace=True,
            diagnose=False,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <8} | "
                "{extra[job_id]: <12} | "
                "{message}"
            ),
        )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Run identifier
        tags: Tags for filtering (e.g., ["image", "esp"])
        source: Source component (e.g., "image", "qemu")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


def new_job_id(prefix: str = "run") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def operation_context(operation: str, job_id: str | None = None, **details):
    """
    Context manager for tracking an operation with automatic timing.

    Logs start at DEBUG, then completion or failure with duration. The
    exception is re-raised unchanged. Without an explicit ``job_id`` one is
    derived from the operation name.

    Example:
        with operation_context("boot", binary="hello.efi") as log:
            log.debug("Building image")
    """
    if job_id is None:
        job_id = new_job_id(operation)

    with logger.contextualize(job_id=job_id, operation=operation):
        start_time = time.monotonic()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])
        log.debug(f"{operation.capitalize()} started", **details)

        try:
            yield log
        except BaseException as e:
            duration = time.monotonic() - start_time
            log.debug(
                f"{operation.capitalize()} aborted",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise
        duration = time.monotonic() - start_time
        log.debug(
            f"{operation.capitalize()} completed", duration_seconds=round(duration, 2)
        )


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.

    Each factory method returns a logger pre-configured with appropriate
    source and tags for the domain.
    """

    @staticmethod
    def for_image() -> Logger:
        """Logger for boot image construction and cleanup."""
        return get_logger(source="image", tags=["image", "esp"])

    @staticmethod
    def for_emulator() -> Logger:
        """Logger for emulator invocation."""
        return get_logger(source="qemu", tags=["qemu", "emulator"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for startup, configuration and firmware lookup."""
        return get_logger(source="system", tags=["system"])
