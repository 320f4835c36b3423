"""Configure the shared logger for interBATS.

Every record carries the reader that emitted it (``idl``, ``tecplot`` or
``log``) in ``extra["reader"]``, so a sink can filter one format's decode
stages.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger as _logger

if TYPE_CHECKING:
    from loguru import Logger  # only for type checking

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[reader]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class Log:
    """Ensure a single configured logger across the package.

    The first instantiation installs the sinks. Passing arguments later
    reconfigures them, e.g. ``Log(level="DEBUG")`` to trace every decode
    stage or ``Log(log_file="read.log")`` to keep a copy on disk.
    """

    _instance: Optional["Log"] = None

    def __new__(cls: type["Log"], *args: Any, **kwargs: Any) -> "Log":
        """Establish or reconfigure the singleton logger instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._configure(*args, **kwargs)
        elif args or kwargs:
            cls._instance._configure(*args, **kwargs)
        return cls._instance

    def _configure(
        self,
        level: str = "INFO",
        log_file: str | Path | None = None,
    ) -> None:
        """Install a console sink at ``level`` and an optional file sink."""
        _logger.remove()
        _logger.configure(extra={"reader": "interBATS"})
        _logger.add(sys.stdout, level=level, format=_FORMAT, enqueue=False)

        if log_file is not None:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            # file keeps every stage regardless of the console level
            _logger.add(
                path,
                level="DEBUG",
                format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                "{extra[reader]}:{function}:{line} - {message}",
                enqueue=False,
                mode="a",
            )

    @property
    def logger(self) -> "Logger":
        """Return the configured loguru logger for emission."""
        return _logger


def get_logger(reader: str | None = None) -> "Logger":
    """Return the package logger, bound to ``reader`` when given."""
    log = Log().logger
    return log.bind(reader=reader) if reader else log
