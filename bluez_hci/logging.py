from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "BLUEZ_HCI_LOG_DIR",
        Path.home() / ".local" / "state" / "bluez-hci" / "logs",
    )
)


def _should_log_observation(record) -> bool:
    """Filter per-device scan observations - these are noisy outside TRACE mode."""
    tags = record["extra"].get("tags", [])

    # Warnings about a single device still get through
    if "observation" in tags:
        return record["level"].no >= logger.level("WARNING").no

    return True


def _combined_filter(record) -> bool:
    """Combined filter for all console suppression rules."""
    return _should_log_observation(record)


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | None = None,
) -> Logger:
    """
    Setup multi-tier logging with separate sinks for different log levels.

    Log Files:
    - operations.log: INFO+ events (7 day retention)
    - debug.log: DEBUG+ events when debug or trace is enabled (3 day retention)
    - structured.jsonl: Structured JSON logs for analysis (7 day retention)

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (per-device scan observations)
        log_dir: Custom log directory (defaults to ~/.local/state/bluez-hci/logs)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "APP"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    # SINK 1: Console (stderr) - User-facing, filtered
    logger.add(
        sys.stderr,
        level=console_level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        filter=None if trace else _combined_filter,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <12}</cyan> | "
            "{message}"
        ),
    )

    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    # SINK 2: Operations Log - Important events only (INFO+)
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <12} | "
            "{extra[job_id]: <15} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log - Detailed diagnostics
    if debug or trace:
        logger.add(
            log_dir / "debug.log",
            level="TRACE" if trace else "DEBUG",
            rotation="10 MB",
            retention="3 days",
            compression="zip",
            enqueue=True,
            backtrace=True,
            diagnose=True,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <12} | "
                "{extra[job_id]: <15} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    # SINK 4: Structured JSON Log - For analysis tools (INFO+)
    logger.add(
        log_dir / "structured.jsonl",
        level="INFO",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
        enqueue=True,
        serialize=True,
        format="{message}",
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
        job_id: Job identifier for tracking operations
        tags: Tags for filtering (e.g., ["scan", "hci"])
        source: Source component (e.g., "hci0", "cli")

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


@contextmanager
def operation_context(operation: str, log: Logger | None = None, **details):
    """
    Context manager for tracking long-running operations with automatic timing.

    Logs operation start, completion and failure with duration tracking.

    Example:
        with operation_context("lescan", interface="hci0") as log:
            log.debug("Waiting for advertisements")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"
    base = log if log is not None else logger
    log = base.bind(job_id=job_id)

    start_time = time.time()
    log.debug(f"{operation} started", **details)

    try:
        yield log
        duration = time.time() - start_time
        log.debug(f"{operation} completed", duration_seconds=round(duration, 2))
    except Exception as e:
        duration = time.time() - start_time
        log.error(
            f"{operation} failed",
            error=str(e),
            error_type=type(e).__name__,
            duration_seconds=round(duration, 2),
        )
        raise


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.
    """

    @staticmethod
    def for_hci(name: str) -> Logger:
        """Logger for power and discovery control of one adapter."""
        return logger.bind(source=name, tags=["hci", "bluetooth"])

    @staticmethod
    def for_scan(name: str) -> Logger:
        """Logger for LE scans on one adapter."""
        return logger.bind(source=name, tags=["scan", "bluetooth"])

    @staticmethod
    def for_observation(name: str) -> Logger:
        """Logger for per-device scan results (TRACE on the console)."""
        return logger.bind(source=name, tags=["scan", "observation"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for process-level operations (startup, shutdown, config)."""
        return logger.bind(source="system", tags=["system"])
