#!/usr/bin/env python3
"""
hadoop/filesystem.py
====================

Implements the shared config action cache on the cluster file system.

Cache objects live at `<root>/<namespace>/<key>`, `root` defaulting to
`/configactioncache`. Two backends are provided:

- `HadoopShellCacheStore` shells out to `hadoop fs`, which works on every
  node with a Hadoop client installed, whatever file system `fs.defaultFS`
  points to.
- `FileSystemCacheStore` works on any `fsspec` filesystem, e.g. the WebHDFS
  implementation below, or an in-memory filesystem for tests.

The cache is accessed without any coordination. Reads, writes and directory
creation are single best-effort calls and failures propagate.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import abc
import pathlib
import posixpath
import shutil
from functools import wraps
from typing import IO, TYPE_CHECKING, Any

from fsspec.implementations.webhdfs import WebHDFS
from requests import exceptions as request_exceptions

# module imports
from .. import PathType, logger
from ..common.exceptions import CacheStoreError, handle_request_exception
from ..common.utils import run_command

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem

    from ..settings import Settings

DEFAULT_CACHE_ROOT = "/configactioncache"

# marker of a missing path in `hadoop fs -ls` output
_NOT_FOUND_MARKER = "No such file or directory"


class CacheStore(abc.ABC):
    """
    Interface of the shared cache store.

    Parameters
    ----------
    root : str, optional
        Root directory of the cache, by default `"/configactioncache"`.
    """

    def __init__(self, root: str = DEFAULT_CACHE_ROOT):
        self.root = "/" + root.strip("/")

    def namespace_path(self, namespace: str) -> str:
        return posixpath.join(self.root, namespace)

    def object_path(self, namespace: str, key: str) -> str:
        """The path of the cache object `key` in `namespace`."""
        return posixpath.join(self.root, namespace, key)

    @abc.abstractmethod
    def ensure_namespace(self, namespace: str) -> None:
        """Create the namespace directory if it does not exist."""

    @abc.abstractmethod
    def exists(self, namespace: str, key: str) -> bool:
        """Whether the cache object exists."""

    @abc.abstractmethod
    def get(self, namespace: str, key: str, dest: PathType) -> None:
        """Copy the cache object to the local path `dest`."""

    @abc.abstractmethod
    def put(self, namespace: str, key: str, src: PathType) -> None:
        """Copy the local file `src` into the cache, replacing an existing object."""


class HadoopShellCacheStore(CacheStore):
    """
    Cache store using the `hadoop fs` shell.

    Parameters
    ----------
    hadoop_bin : PathType, optional
        The `hadoop` launcher, by default `"hadoop"` from `PATH`.
    root : str, optional
        Root directory of the cache, by default `"/configactioncache"`.
    """

    def __init__(self, hadoop_bin: PathType = "hadoop", root: str = DEFAULT_CACHE_ROOT):
        super().__init__(root)
        self.hadoop_bin = str(hadoop_bin)

    def _fs(self, *args: str, check: bool = True):
        return run_command([self.hadoop_bin, "fs", *args], check=check, error=CacheStoreError)

    def ensure_namespace(self, namespace: str) -> None:
        self._fs("-mkdir", "-p", self.namespace_path(namespace))

    def exists(self, namespace: str, key: str) -> bool:
        # only an explicit not-found report counts as a miss
        proc = self._fs("-ls", self.object_path(namespace, key), check=False)
        return _NOT_FOUND_MARKER not in f"{proc.stdout}\n{proc.stderr}"

    def get(self, namespace: str, key: str, dest: PathType) -> None:
        pathlib.Path(dest).parent.mkdir(parents=True, exist_ok=True)
        self._fs("-copyToLocal", "-f", self.object_path(namespace, key), str(dest))

    def put(self, namespace: str, key: str, src: PathType) -> None:
        self._fs("-copyFromLocal", "-f", str(src), self.object_path(namespace, key))


class FileSystemCacheStore(CacheStore):
    """
    Cache store on an `fsspec` filesystem.

    Parameters
    ----------
    fs : fsspec.AbstractFileSystem
        The filesystem holding the cache.
    root : str, optional
        Root directory of the cache, by default `"/configactioncache"`.
    """

    def __init__(self, fs: AbstractFileSystem, root: str = DEFAULT_CACHE_ROOT):
        super().__init__(root)
        self.fs = fs

    def ensure_namespace(self, namespace: str) -> None:
        self.fs.makedirs(self.namespace_path(namespace), exist_ok=True)

    def exists(self, namespace: str, key: str) -> bool:
        try:
            self.fs.info(self.object_path(namespace, key))
        except FileNotFoundError:
            return False
        return True

    def get(self, namespace: str, key: str, dest: PathType) -> None:
        pathlib.Path(dest).parent.mkdir(parents=True, exist_ok=True)
        with self.fs.open(self.object_path(namespace, key), "rb") as remote, open(
            dest, "wb"
        ) as local:
            shutil.copyfileobj(remote, local)

    def put(self, namespace: str, key: str, src: PathType) -> None:
        with open(src, "rb") as local, self.fs.open(
            self.object_path(namespace, key), "wb"
        ) as remote:
            shutil.copyfileobj(local, remote)


class HDFSFileSystem(WebHDFS):
    """WebHDFS filesystem REST API wrapper based on ffspec's WebHDFS implementation."""

    # to use internal request exception handling
    @wraps(WebHDFS._call)
    def _call(  # noqa: PLR0913
        self,
        op: str,
        method: str = "get",
        path: str | None = None,
        data: dict | list[tuple[str, Any]] | bytes | IO | None = None,
        redirect: bool = True,
        **kwargs,
    ):
        """Patch fsspec WebHDFS `_call` method using exception handling"""
        try:
            return super()._call(
                op=op, method=method, path=path, data=data, redirect=redirect, **kwargs
            )
        except request_exceptions.RequestException as exc:
            handle_request_exception(exc, proxies=self.session.proxies)


def cache_store_from_settings(settings: Settings) -> CacheStore:
    """
    Create the cache store configured in `settings`.

    Parameters
    ----------
    settings : Settings
        The settings; `cache_backend` selects `"shell"` or `"webhdfs"`.

    Returns
    -------
    CacheStore
        The cache store.

    Raises
    ------
    ValueError
        If the `"webhdfs"` backend is selected without a `webhdfs_host`.
    """
    if settings.cache_backend == "webhdfs":
        if not settings.webhdfs_host:
            raise ValueError("The 'webhdfs' cache backend requires the 'webhdfs_host' setting")
        logger.debug(
            f"Using WebHDFS cache store at '{settings.webhdfs_host}:{settings.webhdfs_port}'"
        )
        fs = HDFSFileSystem(
            host=settings.webhdfs_host,
            port=settings.webhdfs_port,
            user=settings.hdfs_user,
            use_https=settings.webhdfs_https,
            session_verify=settings.verify,
        )
        return FileSystemCacheStore(fs, root=settings.cache_root)

    hadoop_bin = (
        settings.hadoop_bin if settings.hadoop_bin.exists() else shutil.which("hadoop") or "hadoop"
    )
    logger.debug(f"Using 'hadoop fs' cache store with '{hadoop_bin}'")
    return HadoopShellCacheStore(hadoop_bin=hadoop_bin, root=settings.cache_root)
