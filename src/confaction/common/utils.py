#!/usr/bin/env python3
"""
common/utils.py
===============

Implements utility functions
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import subprocess
from collections.abc import Iterable, Sequence
from typing import Any

from .. import logger
from .exceptions import CommandError


def as_iterable(obj: Any | list[Any], type_: object | None = None) -> Iterable:
    """Helper function ensuring the given `obj` is returned as iterable.

    Parameters
    ----------
    obj : Union[Any, List[Any]]
        The object to ensure to be iterable.
    type_ : type, optional
        The type to convert the iterable to, by default `None`

    Returns
    -------
    Iterable
        Iterable object.
    """
    if isinstance(obj, str):
        iterable = [obj]
    else:
        try:
            iter(obj)
            iterable = obj
        except TypeError:
            iterable = [obj]

    return type_(iterable) if type_ is not None else iterable


def run_command(
    args: Sequence[str],
    check: bool = True,
    error: type[CommandError] = CommandError,
) -> subprocess.CompletedProcess:
    """Run an external command and capture its output as text.

    Parameters
    ----------
    args : Sequence[str]
        The command line, program first.
    check : bool, optional
        Raise `error` on a non-zero exit status, by default `True`.
    error : type[CommandError], optional
        The exception class raised on failure, by default `CommandError`.

    Returns
    -------
    subprocess.CompletedProcess
        The finished process with `stdout` and `stderr` as text.

    Raises
    ------
    CommandError
        If `check` is set and the command failed.
    FileNotFoundError
        If the program does not exist.
    """
    args = [str(arg) for arg in args]
    logger.debug(f"Running command: {' '.join(args)}")
    proc = subprocess.run(args, text=True, capture_output=True, check=False)
    logger.debug(f"Command exited with status {proc.returncode}")

    if check and proc.returncode != 0:
        raise error(args, proc.returncode, proc.stdout, proc.stderr)

    return proc
