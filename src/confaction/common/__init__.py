#!/usr/bin/env python3
"""
common
======

Submodule implementing logging, exception handling, HTTP requests, command
execution and file permission helpers shared by the config action helpers.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"
