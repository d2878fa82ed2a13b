#!/usr/bin/env python3
"""
node
====

Submodule implementing the local service queries and the node role
classification of a cluster member.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

from .roles import NodeRole, RoleClassifier, ServiceRoleClassifier, StaticRoleClassifier
from .services import ServiceInfo, ServiceRegistry, StaticServiceRegistry, SystemdServiceRegistry

__all__ = [
    "NodeRole",
    "RoleClassifier",
    "ServiceInfo",
    "ServiceRegistry",
    "ServiceRoleClassifier",
    "StaticRoleClassifier",
    "StaticServiceRegistry",
    "SystemdServiceRegistry",
]
