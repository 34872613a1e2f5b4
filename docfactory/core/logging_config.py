"""Loguru setup shared by the CLI, the API and every service."""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

# Bound fields rendered in front of each console message when present
CONTEXT_FIELDS = ("project_id", "channel_id", "stage")

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>{extra[context]} | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message} | {extra}"


def _with_context(record: dict) -> None:
    """Collapse the bound job fields into one printable tag."""
    extra = record["extra"]
    extra.setdefault("name", record["name"])
    tags = [str(extra[field]) for field in CONTEXT_FIELDS if extra.get(field)]
    extra["context"] = f" [{' / '.join(tags)}]" if tags else ""


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's default sink with a coloured console sink and,
    optionally, a rotating file sink.

    Args:
        log_level: Minimum level for both sinks
        log_file: File to append JSON-ish lines to (rotated and zipped)
        rotation: Size or interval at which the file rotates
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.configure(patcher=_with_context)

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            enqueue=True,
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Return a logger bound to ``name`` and any job context.

    Binding creates a new logger object, so concurrent jobs each carry
    their own project_id/channel_id while sharing the same sinks.

    Args:
        name: Module name, usually ``__name__``
        **context: Fields such as project_id, channel_id or stage

    Returns:
        Bound loguru logger
    """
    return logger.bind(name=name, **context)


setup_logging()
