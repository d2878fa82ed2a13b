#!/usr/bin/env python3
"""
common/permissions.py
=====================

Grants the invoking user full control over a local file, so that a fetched
artifact can be read and executed by the identity running the config action,
whatever permissions it inherited from its parent directory.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import os
import pathlib
import pwd
import stat

from .. import PathType, logger
from .utils import run_command


def _uid(user: str | None) -> int:
    return os.geteuid() if user is None else pwd.getpwnam(user).pw_uid


def grant_full_control(path: PathType, user: str | None = None) -> pathlib.Path:
    """
    Give `user` read, write and execute permission on `path`.

    If `user` owns `path`, the owner permission bits are extended. Otherwise a
    POSIX ACL entry is added with `setfacl`.

    Parameters
    ----------
    path : PathType
        The file or directory to grant access to.
    user : str, optional
        The user name, by default the effective user of the process.

    Returns
    -------
    pathlib.Path
        The path the permission was granted on.

    Raises
    ------
    FileNotFoundError
        If `path` does not exist.
    KeyError
        If `user` is not a known user.
    CommandError
        If `setfacl` fails.
    """
    _path = pathlib.Path(path)
    _stat = _path.stat()
    uid = _uid(user)

    if _stat.st_uid == uid:
        os.chmod(_path, stat.S_IMODE(_stat.st_mode) | stat.S_IRWXU)
        logger.debug(f"Granted owner (uid {uid}) full control on '{_path}'")
    else:
        run_command(["setfacl", "-m", f"u:{user or uid}:rwx", str(_path)])
        logger.debug(f"Added ACL entry granting '{user or uid}' full control on '{_path}'")

    return _path
