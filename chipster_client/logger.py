"""Logging helpers for chipster services.

Every source file gets its own logger under the ``chipster`` namespace.
Lines are formatted as::

    [2024-05-01T12:00:00.000Z] INFO: message extra args (in rest_client.py)

Example:
    >>> from chipster_client.logger import get_logger
    >>> log = get_logger(__file__)
    >>> log.info("the answer is", 42)
"""

import json
import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel

ROOT_LOGGER_NAME = "chipster"
LOG_FILE = "logs/chipster.log"


def full_stack(error: BaseException) -> str:
    """Return the traceback of `error` including its chained causes."""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def object_to_string(obj: Any) -> str:
    """Render an object for a log line."""
    if isinstance(obj, BaseException):
        return full_stack(obj) + "\n"
    if isinstance(obj, str):
        return obj
    if isinstance(obj, BaseModel):
        return obj.model_dump_json(by_alias=True, exclude_none=True)
    if isinstance(obj, (dict, list, tuple)):
        return json.dumps(obj, default=str)
    return str(obj)


def render_message(msg: Any, args: Any) -> str:
    """Build a log message from a logging call's message and arguments.

    Arguments are %-interpolated when the message has placeholders and appended
    separated by spaces otherwise.
    """
    if isinstance(msg, BaseException):
        message = object_to_string(msg)
    elif args and isinstance(msg, str) and "%" in msg:
        try:
            return msg % args
        except (TypeError, ValueError):
            message = msg
    else:
        message = "" if msg is None else str(msg)

    if isinstance(args, dict):
        args = (args,)
    extra = " ".join(object_to_string(arg) for arg in args or ())
    return message + (" " + extra if extra else "")


class ChipsterFormatter(logging.Formatter):
    """Formatter producing ``[timestamp] LEVEL: message (in file)`` lines.

    Extra positional arguments are %-interpolated when the message has
    placeholders and appended separated by spaces otherwise, so both
    ``log.info("size %d", n)`` and ``log.info("size", n)`` work.
    """

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format_message(self, record: logging.LogRecord) -> str:
        """Build the message part of the line from `record.msg` and `record.args`."""
        return render_message(record.msg, record.args)

    def format(self, record: logging.LogRecord) -> str:
        message = self.format_message(record)
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        filename = getattr(record, "source_file", None) or record.filename
        return f"[{self.formatTime(record)}] {record.levelname}: {message} (in {filename})"


class SourceFileFilter(logging.Filter):
    """Attach the name of the source file a logger was created for.

    Records with arguments get their message rendered here, so handlers outside
    the chipster namespace see a plain string instead of arguments that don't
    match the placeholders.
    """

    def __init__(self, filename: str) -> None:
        super().__init__()
        self.filename = filename

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "source_file"):
            record.source_file = self.filename
        if record.args:
            record.msg = render_message(record.msg, record.args)
            record.args = ()
        return True


# shared handlers, attached to the namespace logger
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(ChipsterFormatter())

file_handler: Optional[logging.FileHandler] = None

root_logger = logging.getLogger(ROOT_LOGGER_NAME)
root_logger.setLevel(logging.INFO)
root_logger.addHandler(console_handler)

loggers: List[logging.Logger] = []


def get_logger(source_file_path: str, log_file: Optional[str] = None) -> logging.Logger:
    """Return the logger for a source file.

    Args:
        source_file_path: Path of the calling module, usually ``__file__``
        log_file: Optional file this logger writes to in addition to the console

    Returns:
        A logger named ``chipster.<file stem>``
    """
    filename = os.path.basename(source_file_path)
    stem = os.path.splitext(filename)[0]
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{stem}")

    if not any(isinstance(f, SourceFileFilter) for f in logger.filters):
        logger.addFilter(SourceFileFilter(filename))

    if log_file:
        path = os.path.abspath(log_file)
        if not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == path
            for h in logger.handlers
        ):
            handler = logging.FileHandler(log_file)
            handler.setFormatter(ChipsterFormatter())
            logger.addHandler(handler)

    if logger not in loggers:
        loggers.append(logger)
    return logger


def add_log_file(path: str = LOG_FILE) -> logging.FileHandler:
    """Write the output of every chipster logger also to `path`."""
    global file_handler
    if file_handler is None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(ChipsterFormatter())
        root_logger.addHandler(file_handler)
    return file_handler


def set_level(level: str) -> None:
    """Set the level of the chipster loggers and the console by name, e.g. 'debug'."""
    value = getattr(logging, level.upper())
    root_logger.setLevel(value)
    console_handler.setLevel(value)
