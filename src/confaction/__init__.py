#!/usr/bin/env python3
"""
Confaction
==========

`Confaction` is a library and command line tool bundling the helper routines
used by node provisioning scripts ("config actions") while a Hadoop cluster
bootstraps.

Features:
---------
- **Cached Fetcher**: Resolves a remote artifact to a local file through a
  shared, cluster-wide cache on HDFS, so that only one node per cache
  namespace downloads from the remote source.
- **Role Classification**: Tells head nodes, the active head node, data nodes
  and the first data node apart from the locally installed services.
- **Archive Expansion**: Unpacks zip and tar archives into a folder.
- **Config Editing**: Inserts or updates properties in the Hadoop
  `*-site.xml` configuration files.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# version
try:
    from ._version import __version__, __version_tuple__, version
except ImportError:
    __version__ = version = "0.0.0"
    __version_tuple__ = (0, 0, 0)

import pathlib

LIBRARY_NAME = __name__

# set up logging
from .common.logging import get_logger  # noqa: E402

logger = get_logger(__name__)

# type definitions
PathType = str | pathlib.Path
