"""
logger.py
---------
Application-wide logging configuration for the schema translator.

Design Decisions:
    * A single root logger ("schemaconv") is configured once at import time.
    * All modules obtain a child logger via ``get_logger(__name__)``.
    * Every skipped entity is logged at WARNING as well as being returned
      to the caller, so a console run shows what was dropped without the
      caller having to print the diagnostics list.
    * A conversion run logs through a :class:`RunLogAdapter` carrying its
      run id, so records from concurrent or back-to-back runs stay apart.
    * Optional file handler appends lines with source locations to a
      persistent log file (path set via LOG_FILE env variable).
"""
from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path

from config import CONFIG, get_log_level

_ROOT_LOGGER_NAME = "schemaconv"
_CONSOLE_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(get_log_level())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(get_log_level())
    console_handler.setFormatter(
        logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root.addHandler(console_handler)

    if CONFIG.conversion.log_file:
        log_path = Path(CONFIG.conversion.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT)
            )
            root.addHandler(file_handler)
        except OSError as exc:
            root.warning("Could not create log file '%s': %s", log_path, exc)


_configure_root_logger()


def get_logger(name: str) -> logging.Logger:
    """
    Return a child logger scoped to the given name.

    Args:
        name: Typically ``__name__`` of the calling module.

    Returns:
        A :class:`logging.Logger` under the 'schemaconv' hierarchy.
    """
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


class RunLogAdapter(logging.LoggerAdapter):
    """
    Tags every record with the conversion run that emitted it.

    The run id is prefixed to the message and stored as ``record.run_id``,
    so interleaved output from several runs in one process can be told
    apart in the log file.
    """

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"[run {self.extra['run_id']}] {msg}", kwargs


def get_run_logger(name: str, run_id: str | None = None) -> RunLogAdapter:
    """
    Return a :class:`RunLogAdapter` over ``get_logger(name)``.

    Args:
        name:   Typically ``__name__`` of the calling module.
        run_id: Identifier of the run; a short random id if omitted.
    """
    return RunLogAdapter(get_logger(name), {"run_id": run_id or uuid.uuid4().hex[:8]})
