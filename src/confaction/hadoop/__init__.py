#!/usr/bin/env python3
"""
hadoop
======

Submodule implementing the shared cache on the cluster file system and the
editing of Hadoop `*-site.xml` configuration files.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"
