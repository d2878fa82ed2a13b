#!/usr/bin/env python3
"""
fetch.py
========

This module implements the cached fetch of config action artifacts.

When many nodes of a cluster bootstrap at the same time, each of them would
download the same artifacts from the same remote source. To avoid this, the
artifacts are cached on the cluster file system, keyed by a hash of their
source url:

1. An existing destination file is kept, unless a fetch is forced.
2. The node role picks the cache namespace, `headnode` or `workernode`.
3. On a cache hit the artifact is copied out of the cache, the remote source
   is not touched.
4. On a cache miss the artifact is downloaded from its source. The first data
   node and the active head node then write it back into the cache. This
   keeps the number of concurrent writers low, it is not a lock.
5. The invoking user is granted full control on the destination file.

Example
-------

```python
from confaction.fetch import fetch

fetch("https://example.org/packages/tool.zip", "/tmp/tool.zip")
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import hashlib
import pathlib
import shutil
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote, urlparse

import requests

# module imports
from . import PathType, logger
from .common.exceptions import handle_request_exception
from .common.permissions import grant_full_control
from .common.request import make_request
from .hadoop.filesystem import CacheStore, cache_store_from_settings
from .node.roles import RoleClassifier, ServiceRoleClassifier
from .settings import Settings

_CHUNK_SIZE = 1024 * 1024


def cache_key(source: str) -> str:
    """
    Compute the cache key of a source reference.

    The key is the MD5 digest of the UTF-8 encoded source, written as upper
    case hexadecimal byte pairs joined by dashes, e.g. `"9E-10-7D-..."`.

    Parameters
    ----------
    source : str
        The source reference, usually a url.

    Returns
    -------
    str
        The cache key.
    """
    digest = hashlib.md5(source.encode("utf-8"), usedforsecurity=False).digest()
    return "-".join(f"{byte:02X}" for byte in digest)


def _local_source(source: str) -> pathlib.Path | None:
    parsed = urlparse(source)
    if parsed.scheme == "file":
        return pathlib.Path(unquote(parsed.path))
    # plain paths, including windows drive letters
    if len(parsed.scheme) <= 1:
        return pathlib.Path(source)
    return None


def download(
    url: str,
    dest: PathType,
    session: requests.Session | None = None,
    timeout: int | float | None = None,
    chunk_size: int = _CHUNK_SIZE,
    verify: bool | str = True,
) -> pathlib.Path:
    """
    Download `url` to the local file `dest`.

    A single attempt is made, there is no retry. A failed download may leave a
    truncated `dest` behind. `file://` urls and plain paths are copied.

    Parameters
    ----------
    url : str
        The url to download.
    dest : PathType
        The local destination file, missing parent directories are created.
    session : requests.Session, optional
        The session to use, by default a new one.
    timeout : int | float, optional
        Request timeout in seconds, by default `None` (no timeout).
    chunk_size : int, optional
        Size of the chunks written to `dest`, by default 1 MiB.
    verify : bool | str, optional
        SSL verification, or a path to a certificate bundle, by default `True`.

    Returns
    -------
    pathlib.Path
        The destination file.

    Raises
    ------
    RemoteHTTPError
        If the server answers with an HTTP error status.
    RemoteConnectionError
        If the server cannot be reached.
    """
    _dest = pathlib.Path(dest)
    _dest.parent.mkdir(parents=True, exist_ok=True)

    local = _local_source(url)
    if local is not None:
        logger.info(f"Copying '{local}' to '{_dest}'")
        shutil.copyfile(local, _dest)
        return _dest

    logger.info(f"Downloading '{url}' to '{_dest}'")
    _session = session or requests.Session()
    # status checked inside the block, the response is closed on errors too
    with make_request(
        _session, url, timeout=timeout, raise_for_status=False, stream=True, verify=verify
    ) as response:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            handle_request_exception(exc, proxies=_session.proxies)

        with open(_dest, "wb") as fil:
            for chunk in response.iter_content(chunk_size=chunk_size):
                fil.write(chunk)

    return _dest


class CachedFetcher:
    """
    Fetch artifacts through the shared cluster cache.

    Parameters
    ----------
    cache_store : CacheStore
        The shared cache.
    role_classifier : RoleClassifier
        Classifies the local node, queried on every fetch.
    downloader : Callable[[str, pathlib.Path], Any], optional
        Downloads a source to a local path, by default `download`.
    permission_setter : Callable[[pathlib.Path], Any], optional
        Grants the invoking user full control on a path, by default
        `grant_full_control`.
    """

    def __init__(
        self,
        cache_store: CacheStore,
        role_classifier: RoleClassifier,
        downloader: Callable[[str, pathlib.Path], Any] = download,
        permission_setter: Callable[[pathlib.Path], Any] = grant_full_control,
    ):
        self.cache_store = cache_store
        self.role_classifier = role_classifier
        self.downloader = downloader
        self.permission_setter = permission_setter

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CachedFetcher:
        """Create a fetcher with the cache store and service registry of this node."""
        settings = settings or Settings()

        def _download(url: str, dest: pathlib.Path):
            return download(url, dest, verify=settings.verify)

        return cls(
            cache_store=cache_store_from_settings(settings),
            role_classifier=ServiceRoleClassifier(settings=settings),
            downloader=_download,
        )

    def fetch(self, source: str, dest: PathType, force: bool = False) -> pathlib.Path:
        """
        Fetch `source` to `dest`.

        Parameters
        ----------
        source : str
            The source reference, usually a url.
        dest : PathType
            The local destination file.
        force : bool, optional
            Fetch even if `dest` exists, by default `False`.

        Returns
        -------
        pathlib.Path
            The destination file.
        """
        _dest = pathlib.Path(dest)
        if _dest.exists() and not force:
            logger.info(f"'{_dest}' already exists, skipping fetch of '{source}'")
            return _dest

        key = cache_key(source)
        role = self.role_classifier.classify()
        namespace = role.namespace
        self.cache_store.ensure_namespace(namespace)

        cached = self.cache_store.object_path(namespace, key)
        if self.cache_store.exists(namespace, key):
            logger.info(f"Cache hit for '{source}', copying '{cached}' to '{_dest}'")
            self.cache_store.get(namespace, key, _dest)
        else:
            logger.info(f"Cache miss for '{source}'")
            self.downloader(source, _dest)
            if role.may_populate_cache:
                logger.info(f"Writing '{_dest}' to the cache as '{cached}'")
                self.cache_store.put(namespace, key, _dest)
            else:
                logger.debug(f"Not writing to the cache, node is a {role.label}")

        self.permission_setter(_dest)
        return _dest


def fetch(
    source: str,
    dest: PathType,
    force: bool = False,
    settings: Settings | None = None,
) -> pathlib.Path:
    """
    Fetch `source` to `dest` through the shared cache of this node's cluster.

    See `CachedFetcher.fetch`.
    """
    return CachedFetcher.from_settings(settings).fetch(source, dest, force=force)
