#!/usr/bin/env python3
"""
node/roles.py
=============

This module classifies the local node of a Hadoop cluster from its installed
and running services:

- a **head node** runs the NameNode service,
- the **active head node** is the head node whose NameNode is running (and,
  if a JMX address is configured, reports the `active` HA state),
- a **data node** runs the DataNode service,
- the **first data node** is the data node with the conventional host name
  `workernode0`.

The classification is recomputed on every call. Nothing is persisted or
cached, as services are started and stopped while a cluster bootstraps.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import abc
import socket

import msgspec

from .. import logger
from ..settings import Settings
from .services import (
    ServiceRegistry,
    StaticServiceRegistry,
    SystemdServiceRegistry,
    namenode_is_active,
)

HEADNODE_NAMESPACE = "headnode"
WORKERNODE_NAMESPACE = "workernode"


class NodeRole(msgspec.Struct, frozen=True, kw_only=True):
    """
    Snapshot of the role of a node.

    Attributes
    ----------
    head_node : bool
        The node is a head node.
    active_head_node : bool
        The node is the active head node.
    data_node : bool
        The node is a data node.
    first_data_node : bool
        The node is the first data node.
    """

    head_node: bool = False
    active_head_node: bool = False
    data_node: bool = False
    first_data_node: bool = False

    @property
    def namespace(self) -> str:
        """The shared cache namespace of the node."""
        return HEADNODE_NAMESPACE if self.head_node else WORKERNODE_NAMESPACE

    @property
    def may_populate_cache(self) -> bool:
        """Whether the node writes downloads back into the shared cache."""
        return self.first_data_node or self.active_head_node

    @property
    def label(self) -> str:
        if self.active_head_node:
            return "active head node"
        if self.head_node:
            return "standby head node"
        if self.first_data_node:
            return "first data node"
        if self.data_node:
            return "data node"
        return "neither head nor data node"


class RoleClassifier(abc.ABC):
    """Capability interface answering role questions about the local node."""

    @abc.abstractmethod
    def is_head_node(self) -> bool:
        """Whether the node is a head node."""

    @abc.abstractmethod
    def is_active_head_node(self) -> bool:
        """Whether the node is the active head node."""

    @abc.abstractmethod
    def is_data_node(self) -> bool:
        """Whether the node is a data node."""

    @abc.abstractmethod
    def is_first_data_node(self) -> bool:
        """Whether the node is the first data node."""

    def classify(self) -> NodeRole:
        """Query all role predicates and return a fresh `NodeRole`."""
        role = NodeRole(
            head_node=self.is_head_node(),
            active_head_node=self.is_active_head_node(),
            data_node=self.is_data_node(),
            first_data_node=self.is_first_data_node(),
        )
        logger.debug(f"Node classified as {role.label}")
        return role


class ServiceRoleClassifier(RoleClassifier):
    """
    Classify the node from the local service registry.

    Parameters
    ----------
    registry : ServiceRegistry, optional
        The service registry to query, by default `SystemdServiceRegistry()`.
    settings : Settings, optional
        Service names, host name convention and NameNode JMX address, by default
        `Settings()`.
    hostname : str, optional
        The host name of the node, by default `socket.gethostname()` queried on
        every call.
    """

    def __init__(
        self,
        registry: ServiceRegistry | None = None,
        settings: Settings | None = None,
        hostname: str | None = None,
    ):
        self.registry = registry or SystemdServiceRegistry()
        self.settings = settings or Settings()
        self._hostname = hostname

    @property
    def hostname(self) -> str:
        """Short, lower-cased host name of the node."""
        return (self._hostname or socket.gethostname()).split(".")[0].lower()

    def classify(self) -> NodeRole:
        """Answer all role predicates from a single listing of the local services."""
        snapshot = ServiceRoleClassifier(
            registry=StaticServiceRegistry(self.registry.services()),
            settings=self.settings,
            hostname=self.hostname,
        )
        return RoleClassifier.classify(snapshot)

    def is_head_node(self) -> bool:
        if self.registry.get(self.settings.headnode_service) is not None:
            return True
        return bool(self.registry.find(self.settings.headnode_display_match))

    def is_active_head_node(self) -> bool:
        namenode = self.registry.get(self.settings.headnode_service)
        if namenode is None or not namenode.running:
            return False
        if self.settings.namenode_jmx_address:
            return namenode_is_active(self.settings.namenode_jmx_address)
        return True

    def is_data_node(self) -> bool:
        return self.registry.get(self.settings.datanode_service) is not None

    def is_first_data_node(self) -> bool:
        return (
            self.is_data_node()
            and self.hostname == self.settings.first_data_node_hostname.lower()
        )


class StaticRoleClassifier(RoleClassifier):
    """
    Role classifier answering from a fixed `NodeRole`.

    Parameters
    ----------
    role : NodeRole
        The role to report.
    """

    def __init__(self, role: NodeRole):
        self.role = role

    def is_head_node(self) -> bool:
        return self.role.head_node

    def is_active_head_node(self) -> bool:
        return self.role.active_head_node

    def is_data_node(self) -> bool:
        return self.role.data_node

    def is_first_data_node(self) -> bool:
        return self.role.first_data_node
