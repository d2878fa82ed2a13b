"""Tests for node/roles.py - role classification from local services."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from confaction.node.roles import NodeRole, ServiceRoleClassifier, StaticRoleClassifier
from confaction.node.services import ServiceInfo, StaticServiceRegistry
from confaction.settings import Settings

NAMENODE = ServiceInfo(name="namenode", display_name="Hadoop NameNode", state="running")
STOPPED_NAMENODE = ServiceInfo(name="namenode", display_name="Hadoop NameNode", state="dead")
DATANODE = ServiceInfo(name="datanode", display_name="Hadoop DataNode", state="running")
SSHD = ServiceInfo(name="sshd", display_name="OpenSSH server daemon", state="running")


def _classifier(*services, hostname="hn0-cluster", settings=None):
    return ServiceRoleClassifier(
        registry=StaticServiceRegistry(list(services)),
        settings=settings or Settings(),
        hostname=hostname,
    )


class TestNodeRole:
    def test_namespace(self):
        assert NodeRole(head_node=True).namespace == "headnode"
        assert NodeRole(data_node=True).namespace == "workernode"
        assert NodeRole().namespace == "workernode"

    @pytest.mark.parametrize(
        ("role", "expected"),
        [
            (NodeRole(head_node=True, active_head_node=True), True),
            (NodeRole(head_node=True), False),
            (NodeRole(data_node=True, first_data_node=True), True),
            (NodeRole(data_node=True), False),
            (NodeRole(), False),
        ],
    )
    def test_may_populate_cache(self, role, expected):
        assert role.may_populate_cache is expected


class TestServiceRoleClassifier:
    def test_first_data_node_scenario(self):
        classifier = _classifier(DATANODE, SSHD, hostname="workernode0")
        role = classifier.classify()

        assert role == NodeRole(data_node=True, first_data_node=True)
        assert role.namespace == "workernode"
        assert role.may_populate_cache

    def test_hostname_is_shortened_and_lowercased(self):
        classifier = _classifier(DATANODE, hostname="WorkerNode0.cluster.internal")
        assert classifier.is_first_data_node()

    def test_other_data_node(self):
        classifier = _classifier(DATANODE, hostname="workernode3")
        assert classifier.is_data_node()
        assert not classifier.is_first_data_node()

    def test_first_data_node_requires_datanode_service(self):
        assert not _classifier(SSHD, hostname="workernode0").is_first_data_node()

    def test_active_head_node(self):
        classifier = _classifier(NAMENODE)
        assert classifier.is_head_node()
        assert classifier.is_active_head_node()
        assert classifier.classify().namespace == "headnode"

    def test_standby_head_node(self):
        classifier = _classifier(STOPPED_NAMENODE)
        assert classifier.is_head_node()
        assert not classifier.is_active_head_node()

    def test_head_node_by_display_name(self):
        service = ServiceInfo(name="hadoop-hdfs-nn", display_name="Apache Hadoop NameNode")
        assert _classifier(service).is_head_node()

    def test_neither(self):
        role = _classifier(SSHD).classify()
        assert role == NodeRole()
        assert not role.may_populate_cache

    def test_custom_service_names(self):
        settings = Settings(
            headnode_service="hadoop-hdfs-namenode",
            datanode_service="hadoop-hdfs-datanode",
            first_data_node_hostname="wn0-mycluster",
        )
        classifier = _classifier(
            ServiceInfo(name="hadoop-hdfs-datanode", state="running"),
            hostname="wn0-mycluster",
            settings=settings,
        )
        assert classifier.is_first_data_node()
        assert not classifier.is_head_node()

    def test_jmx_state_decides_active(self, monkeypatch):
        states = {"http://hn0:9870": True, "http://hn1:9870": False}
        monkeypatch.setattr(
            "confaction.node.roles.namenode_is_active", lambda address: states[address]
        )

        active = _classifier(NAMENODE, settings=Settings(namenode_jmx_address="http://hn0:9870"))
        standby = _classifier(NAMENODE, settings=Settings(namenode_jmx_address="http://hn1:9870"))

        assert active.is_active_head_node()
        assert not standby.is_active_head_node()

    def test_classification_is_not_cached(self):
        services = [DATANODE]
        registry = StaticServiceRegistry(services)
        classifier = ServiceRoleClassifier(registry=registry, hostname="workernode0")
        assert classifier.is_data_node()

        registry._services.clear()
        assert not classifier.is_data_node()

    def test_classify_lists_services_once(self):
        listings = iter([[NAMENODE], [], [], [], []])

        class ChangingRegistry(StaticServiceRegistry):
            calls = 0

            def services(self):
                self.calls += 1
                return next(listings)

        registry = ChangingRegistry()
        role = ServiceRoleClassifier(registry=registry, hostname="hn0").classify()

        assert registry.calls == 1
        assert role == NodeRole(head_node=True, active_head_node=True)

    def test_unloaded_datanode_unit_is_data_node(self):
        def _systemctl(args, **kwargs):
            stdout = "datanode.service disabled enabled\n" if args[1] == "list-unit-files" else ""
            return subprocess.CompletedProcess(args=args, returncode=0, stdout=stdout, stderr="")

        with patch("confaction.common.utils.subprocess.run", side_effect=_systemctl):
            role = ServiceRoleClassifier(hostname="workernode0").classify()

        assert role == NodeRole(data_node=True, first_data_node=True)


class TestStaticRoleClassifier:
    def test_reports_fixed_role(self):
        role = NodeRole(head_node=True, active_head_node=True)
        classifier = StaticRoleClassifier(role)

        assert classifier.is_head_node()
        assert classifier.is_active_head_node()
        assert not classifier.is_data_node()
        assert not classifier.is_first_data_node()
        assert classifier.classify() == role
