#!/usr/bin/env python3
"""
node/services.py
================

This module provides the local service registry used to classify a node, and
a check of the high availability state of a NameNode through its `/jmx`
endpoint.

Services are looked up by name (`namenode`, `datanode`, ...) or by a substring
of their display name. The registry is queried on every call, nothing is
cached: the role of a node can change while it bootstraps.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import abc
from collections.abc import Iterable
from http import HTTPStatus

import msgspec
import requests

from .. import logger
from ..common.exceptions import CommandError, ConfActionError, ServiceQueryError
from ..common.request import make_request
from ..common.utils import as_iterable, run_command

_RUNNING_STATES = ("running",)


class ServiceInfo(msgspec.Struct, frozen=True):
    """
    A service known to the local service manager.

    Attributes
    ----------
    name : str
        The service name, without the `.service` suffix.
    display_name : str
        The human readable description of the service.
    state : str
        The state reported by the service manager, e.g. `"running"` or `"dead"`.
    """

    name: str
    display_name: str = ""
    state: str = "dead"

    @property
    def running(self) -> bool:
        return self.state.lower() in _RUNNING_STATES


class ServiceRegistry(abc.ABC):
    """Query interface of the local service manager."""

    @abc.abstractmethod
    def services(self) -> list[ServiceInfo]:
        """Return all installed services."""

    def get(self, name: str) -> ServiceInfo | None:
        """Return the service called `name`, or `None` if it is not installed."""
        for service in self.services():
            if service.name == name:
                return service
        return None

    def find(self, display_contains: str) -> list[ServiceInfo]:
        """Return the services whose display name contains `display_contains` (case-insensitive)."""
        _needle = display_contains.lower()
        return [svc for svc in self.services() if _needle in svc.display_name.lower()]


class SystemdServiceRegistry(ServiceRegistry):
    """
    Service registry backed by `systemctl`.

    Loaded units come from `systemctl list-units`. Installed unit files that
    systemd has not loaded, e.g. a disabled and stopped `datanode.service`, are
    added from `systemctl list-unit-files` as `dead` services without a
    display name.

    Parameters
    ----------
    systemctl : str, optional
        The `systemctl` executable, by default `"systemctl"`.
    """

    def __init__(self, systemctl: str = "systemctl"):
        self.systemctl = systemctl

    def _systemctl(self, command: str) -> str:
        try:
            proc = run_command(
                [
                    self.systemctl,
                    command,
                    "--type=service",
                    "--all",
                    "--no-legend",
                    "--plain",
                    "--no-pager",
                ]
            )
        except (CommandError, FileNotFoundError) as exc:
            raise ServiceQueryError(f"Listing local services failed: {exc}") from exc
        return proc.stdout

    def services(self) -> list[ServiceInfo]:
        services = self.parse(self._systemctl("list-units"))
        loaded = {service.name for service in services}
        services.extend(
            service
            for service in self.parse_unit_files(self._systemctl("list-unit-files"))
            if service.name not in loaded
        )
        return services

    @staticmethod
    def parse(output: str) -> list[ServiceInfo]:
        """
        Parse `systemctl list-units --plain --no-legend` output.

        Each row reads `UNIT LOAD ACTIVE SUB DESCRIPTION`, failed units may be
        prefixed with a bullet.
        """
        services = []
        for line in output.splitlines():
            fields = line.strip().lstrip("●*").split(None, 4)
            if len(fields) < 4 or not fields[0].endswith(".service"):
                continue
            services.append(
                ServiceInfo(
                    name=fields[0].removesuffix(".service"),
                    display_name=fields[4] if len(fields) > 4 else "",
                    state=fields[3],
                )
            )
        return services

    @staticmethod
    def parse_unit_files(output: str) -> list[ServiceInfo]:
        """
        Parse `systemctl list-unit-files --no-legend` output.

        Each row reads `UNIT STATE [PRESET]`. Template units (`name@.service`)
        are skipped, they are no installed service of their own.
        """
        services = []
        for line in output.splitlines():
            fields = line.split()
            if len(fields) < 2 or not fields[0].endswith(".service") or "@." in fields[0]:
                continue
            services.append(ServiceInfo(name=fields[0].removesuffix(".service")))
        return services


class StaticServiceRegistry(ServiceRegistry):
    """
    Service registry with a fixed set of services.

    Parameters
    ----------
    services : ServiceInfo | Iterable[ServiceInfo], optional
        The services to report, by default none.
    """

    def __init__(self, services: ServiceInfo | Iterable[ServiceInfo] | None = None):
        self._services = as_iterable(services, list) if services is not None else []

    def services(self) -> list[ServiceInfo]:
        return list(self._services)


def namenode_is_active(
    address: str,
    session: requests.Session | None = None,
    timeout: int | float | None = 10,
) -> bool:
    """
    Check if the NameNode at `address` is the active one of an HA pair.

    The `/jmx` endpoint is asked for the `NameNodeStatus` bean and its `State`
    must read `"active"`. An unreachable NameNode or a malformed answer counts
    as inactive.

    Parameters
    ----------
    address : str
        `http(s)://host:port` of the NameNode web UI.
    session : requests.Session, optional
        The session to use for the request.
    timeout : int | float, optional
        Request timeout in seconds, by default `10`.

    Returns
    -------
    bool
        `True` if the NameNode reports the active state.
    """
    _session = session or requests.Session()
    try:
        response = make_request(
            session=_session,
            url=address,
            path="/jmx",
            params={"qry": "Hadoop:service=NameNode,name=NameNodeStatus"},
            timeout=timeout,
            allow_redirects=False,
            raise_for_status=False,
        )
    except (ConfActionError, requests.RequestException) as err:
        logger.debug(f"NameNode not reachable at '{address}'. Error: {err}")
        return False

    if response is None or response.status_code >= HTTPStatus.MULTIPLE_CHOICES:
        logger.debug(f"NameNode at '{address}' did not answer the JMX query")
        return False

    try:
        state = msgspec.json.decode(response.content)["beans"][0]["State"]
    except (msgspec.DecodeError, IndexError, KeyError, TypeError):
        return False

    logger.debug(f"NameNode at '{address}' reports HA state '{state}'")
    return state == "active"
