"""structlog over stdlib logging, written as JSON lines under ``logs/``.

``sync.log`` receives every INFO event, ``error.log`` only errors, and each
resolved source gets ``sources/<slug>.log`` with its own cycle history.
"""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path

import structlog
from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "insight_sync"
HOME_ENV = "INSIGHT_SYNC_HOME"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def log_dir() -> Path:
    home = os.environ.get(HOME_ENV)
    root = Path(home).expanduser().resolve() if home else Path(__file__).resolve().parents[1]
    return root / "logs"


def source_log_path(source: str) -> Path:
    slug = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in source) or "source"
    return log_dir() / "sources" / f"{slug}.log"


def _file_handler(path: Path, level: str) -> dict:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install the handlers on first call and return the application logger."""

    global _configured
    if not _configured:
        directory = log_dir()
        (directory / "sources").mkdir(parents=True, exist_ok=True)
        console_level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {"json": {"()": JsonFormatter, "fmt": JSON_FORMAT}},
                "handlers": {
                    "console": {"class": "logging.StreamHandler", "level": console_level, "formatter": "json"},
                    "sync_file": _file_handler(directory / "sync.log", "INFO"),
                    "error_file": _file_handler(directory / "error.log", "ERROR"),
                },
                "loggers": {
                    LOGGER_NAME: {
                        "handlers": ["console", "sync_file", "error_file"],
                        "level": console_level,
                        "propagate": False,
                    },
                },
            }
        )
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger(LOGGER_NAME)


def source_logger(source: str, link: str | None = None) -> structlog.BoundLogger:
    """Return a logger for one source, bound to ``source`` and ``link``.

    Events also land in the global files through the parent logger.
    """

    configure_logging()
    path = source_log_path(source)
    py_logger = logging.getLogger(f"{LOGGER_NAME}.source.{path.stem}")
    if not any(getattr(handler, "baseFilename", None) == str(path) for handler in py_logger.handlers):
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(JsonFormatter(JSON_FORMAT))
        handler.setLevel(logging.INFO)
        py_logger.addHandler(handler)
    context = {"source": source}
    if link:
        context["link"] = link
    return structlog.get_logger(py_logger.name).bind(**context)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="replace") as stream:
        return list(deque(stream, maxlen=line_count))


def available_source_logs() -> list[Path]:
    return sorted((log_dir() / "sources").glob("*.log"))


__all__ = [
    "available_source_logs",
    "configure_logging",
    "log_dir",
    "source_log_path",
    "source_logger",
    "tail_log",
]
