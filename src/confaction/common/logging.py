#!/usr/bin/env python3
"""
common/logging.py
=================

Logging setup for `confaction`. Console output is rendered with `rich`, log
files get a plain one-line format, which is what the bootstrap log collectors
of a cluster node expect.

The log level can be set with the `CONFACTION_LOG_LEVEL` environment variable.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import logging
import os
import pathlib

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from .. import LIBRARY_NAME

LOG_LEVEL_ENV_VAR = "CONFACTION_LOG_LEVEL"

# setup theme
_logging_theme = Theme(
    {
        # repr
        "repr.str": "not bold not italic grey39",
        "repr.bool_true": "italic #4585C9",
        "repr.bool_false": "italic #B87961",
        "repr.number": "#598A44",
        "repr.path": "#4585C9",
        "repr.filename": "bold #4585C9",
        "repr.url": "not bold not italic underline #4585C9",
        # logging
        "logging.level.debug": "not dim bold #598A44",
        "logging.level.info": "not dim #FED00B",
        "logging.level.warning": "not dim red3",
        "logging.level.error": "not dim bold red3",
        "logging.level.critical": "not dim bright_white on red3",
        # traceback
        "traceback.error": "bold red3",
        "traceback.border": "#4585C9",
        "traceback.exc_type": "bold red3",
        "traceback.exc_value": "#4585C9",
    }
)

_FILE_LOG_FORMAT = "[%(levelname)s %(asctime)s %(name)s] : %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _RichHandler(RichHandler):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.setFormatter(logging.Formatter("[bold]%(name)s[/] - %(message)s"))


def _console_handler() -> _RichHandler:
    return _RichHandler(
        rich_tracebacks=True,
        console=Console(stderr=True, theme=_logging_theme),
        log_time_format=_DATE_FORMAT,
        show_path=False,
        markup=True,
    )


def _file_handler(log: pathlib.Path | str) -> logging.FileHandler:
    pathlib.Path(log).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log)
    handler.setFormatter(logging.Formatter(_FILE_LOG_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def get_logger(
    name: str | None = None,
    log_level: str | int | None = None,
    log: pathlib.Path | str | bool | None = None,
) -> logging.Logger:
    """
    Get a logger with the given name.

    Parameters
    ----------
    name : str
        The name of the logger.
    log_level : str | int, optional
        The log level of the logger. Defaults to the value of the
        `CONFACTION_LOG_LEVEL` environment variable.
    log : pathlib.Path | str | bool, optional
        Sets the logging behavior. Values may be a path for logs to be written
        to, `True` to log to stderr, or `False` to only show warnings and
        errors. If not given, logging is switched on when a log level is set.

    Returns
    -------
    logging.Logger
        The logger with the given name.
    """
    log_level = log_level or os.getenv(LOG_LEVEL_ENV_VAR)
    log = log if log is not None else log_level is not None

    _logger = logging.getLogger(name or LIBRARY_NAME)
    _logger.propagate = False

    to_file = isinstance(log, str | pathlib.Path)
    _current = _logger.handlers[0] if _logger.handlers else None

    # replace the handler if the requested sink changed
    if (
        _current is None
        or (to_file and not isinstance(_current, logging.FileHandler))
        or (not to_file and not isinstance(_current, _RichHandler))
    ):
        for handler in list(_logger.handlers):
            _logger.removeHandler(handler)
        _logger.addHandler(_file_handler(log) if to_file else _console_handler())

    if not log:
        _logger.setLevel(logging.WARNING)
    else:
        _logger.setLevel(
            log_level.upper() if isinstance(log_level, str) else (log_level or logging.INFO)
        )

    return _logger


def set_verbosity(verbose: int, log: pathlib.Path | str | None = None) -> logging.Logger:
    """
    Reconfigure the package logger from a `-v` count.

    `0` keeps the environment configured level, `1` logs `INFO`, `2` or more
    logs `DEBUG`.
    """
    level = None if verbose <= 0 else ("INFO" if verbose == 1 else "DEBUG")
    return get_logger(LIBRARY_NAME, log_level=level, log=log)
