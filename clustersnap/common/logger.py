"""Logging setup shared by the scheduled job and snapctl."""
from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger


def configure_logging(
    service_name: str,
    level: str = "INFO",
    log_dir: str | None = None,
    serialize: bool = False,
) -> None:
    """Route loguru output to stderr, plus an optional rotating file.

    Stdout is left to command output (``list`` prints one snapshot name per
    line), so log records never interleave with it.
    """

    logger.remove()
    logger.add(
        sink=lambda msg: sys.stderr.write(msg),
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
        f"{service_name} | {{message}}",
        colorize=False,
        backtrace=False,
        diagnose=False,
        serialize=serialize,
    )

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / f"{service_name}.log",
            level=level.upper(),
            rotation="7 days",
            retention="30 days",
            compression="zip",
            enqueue=True,
            serialize=serialize,
        )


def get_log_level_from_env(default: str = "INFO") -> str:
    return os.getenv("CLUSTERSNAP_LOG_LEVEL", default)


__all__ = ["logger", "configure_logging", "get_log_level_from_env"]
