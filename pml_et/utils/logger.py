"""
Logging helpers for the PML pipeline.

All modules log through the shared loguru ``logger``. ``Logger.setup``
replaces its sinks: a colored stderr sink (stdout is kept free for CLI
output such as ``--json``) and, optionally, a rotating file sink.
"""

import sys
import time
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Optional

from loguru import logger
from tqdm import tqdm

from ..config.settings import LOGGING


class Logger:
    """Sink configuration for the package logger."""

    _configured: dict = {}
    _file_defaults: dict = {
        "rotation": "10 MB",
        "retention": 10,
        "compression": "gz",
    }

    @staticmethod
    def setup(
        name: str = "pml_et",
        log_file: Optional[str] = None,
        level: Optional[str] = None,
        console: bool = True,
        rotation: Optional[str] = None,
        retention: Optional[int] = None
    ) -> None:
        """
        Replace the loguru sinks.

        Args:
            name: Key under which the configuration is remembered
            log_file: Rotating log file; ``LOGGING["log_file"]`` is used when
                ``LOGGING["file_log"]`` is set and no path is given
            level: Minimum level, defaults to ``LOGGING["level"]``
            console: Emit to stderr
            rotation: File rotation size
            retention: Number of rotated files kept
        """
        level = level or LOGGING["level"]
        if log_file is None and LOGGING.get("file_log"):
            log_file = LOGGING["log_file"]

        logger.remove()
        if console:
            logger.add(sys.stderr, format=LOGGING["format"], level=level,
                       colorize=True, backtrace=True, diagnose=False)

        if log_file:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                str(path),
                format=LOGGING["format"],
                level=level,
                rotation=rotation or Logger._file_defaults["rotation"],
                retention=retention or Logger._file_defaults["retention"],
                compression=Logger._file_defaults["compression"],
                backtrace=True,
                diagnose=False
            )

        Logger._configured[name] = {"level": level, "log_file": str(log_file) if log_file else None}

    @staticmethod
    def get_logger(name: str = "pml_et"):
        if name not in Logger._configured:
            Logger.setup(name=name)
        return logger

    @staticmethod
    def info(message: str, **kwargs) -> None:
        logger.opt(depth=1).info(message, **kwargs)

    @staticmethod
    def warning(message: str, **kwargs) -> None:
        logger.opt(depth=1).warning(message, **kwargs)

    @staticmethod
    def error(message: str, **kwargs) -> None:
        logger.opt(depth=1).error(message, **kwargs)

    @staticmethod
    def configure_for_testing() -> None:
        """Drop every sink so test output stays clean."""
        Logger.setup(name="pml_et", level="DEBUG", console=False, log_file=None)


@contextmanager
def log_step(name: str):
    """
    Log start, completion and duration of a pipeline stage.

    A failing stage is logged with its error and the exception re-raised.
    """
    started = time.perf_counter()
    logger.opt(depth=2).debug(f"{name} ...")
    try:
        yield
    except Exception as exc:
        logger.opt(depth=2).error(f"{name} failed after {time.perf_counter() - started:.2f}s: {exc}")
        raise
    logger.opt(depth=2).info(f"{name} done in {time.perf_counter() - started:.2f}s")


def get_progress_bar(total: int, desc: str = "Processing", unit: str = "year"):
    """tqdm bar on stderr, matching the console log sink."""
    return tqdm(total=total, desc=desc, unit=unit, file=sys.stderr)


def log_execution_time(func):
    """Decorator logging the wall time of ``func`` at DEBUG level."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug(f"{func.__qualname__} took {time.perf_counter() - started:.3f}s")

    return wrapper
