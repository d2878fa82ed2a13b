#!/usr/bin/env python3
"""
archive.py
==========

Expands archives shipped with a config action.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import pathlib
import shutil
import tarfile
import zipfile

from . import PathType, logger

_TAR_FORMATS = ("tar", "gztar", "bztar", "xztar")


def _is_tar(archive: pathlib.Path, format: str | None) -> bool:
    if format is not None:
        return format in _TAR_FORMATS
    return not zipfile.is_zipfile(archive) and tarfile.is_tarfile(archive)


def expand_archive(archive: PathType, dest_folder: PathType, format: str | None = None) -> bool:
    """
    Extract all entries of `archive` into `dest_folder`.

    Files of the same name in `dest_folder` are overwritten. If `archive` or
    `dest_folder` does not exist, nothing happens.

    Parameters
    ----------
    archive : PathType
        The archive, any format known to `shutil.unpack_archive` (zip, tar,
        gztar, bztar, xztar).
    dest_folder : PathType
        The existing folder to extract into.
    format : str, optional
        The archive format, by default guessed from the file name.

    Returns
    -------
    bool
        `True` if the archive was extracted, `False` if a path was missing.

    Raises
    ------
    shutil.ReadError
        If the archive format is unknown or the archive is corrupt.
    tarfile.FilterError
        If a tar entry would land outside `dest_folder`, e.g. `../x` or a link
        pointing out of it.
    """
    _archive = pathlib.Path(archive)
    _dest = pathlib.Path(dest_folder)

    if not _archive.exists() or not _dest.exists():
        logger.debug(f"Not expanding '{_archive}' into '{_dest}', a path does not exist")
        return False

    logger.info(f"Expanding '{_archive}' into '{_dest}'")
    if _is_tar(_archive, format):
        # entries stay inside `dest_folder`, no device files or setuid bits
        shutil.unpack_archive(_archive, _dest, format=format, filter="data")
    else:
        # zip entries with absolute or `..` names are skipped by shutil
        shutil.unpack_archive(_archive, _dest, format=format)
    return True
