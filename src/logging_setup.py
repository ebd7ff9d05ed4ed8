"""Logging initialization using loguru. Only the CLI calls this; the engine just logs."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def init_logging(log_dir: str | Path | None = None, verbose: bool = False) -> None:
    """Console sink always; rotating file sink under `log_dir` when given."""
    level = "DEBUG" if verbose else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{level: <8}</level> {message}")

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path / "restore_{time:YYYYMMDD}.log"),
            rotation="10 MB",
            retention="10 days",
            compression="zip",
            backtrace=False,
            diagnose=False,
            level=level,
        )
