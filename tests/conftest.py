"""Shared test fixtures.

Provides an in-memory cache store, config file fixtures and recording test
doubles for the downloader and the permission setter. No network, no
`hadoop` or `systemctl` binaries are needed.
"""

from __future__ import annotations

import pathlib
import textwrap

import pytest
from fsspec.implementations.memory import MemoryFileSystem

from confaction.hadoop.config import SiteConfigEditor
from confaction.hadoop.filesystem import FileSystemCacheStore

CORE_SITE = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <configuration>
      <!-- default file system -->
      <property>
        <name>fs.defaultFS</name>
        <value>hdfs://mycluster</value>
        <description>The default file system.</description>
      </property>
      <property>
        <name>fs.trash.interval</name>
        <value>60</value>
      </property>
    </configuration>
    """
)

EMPTY_SITE = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <configuration>
    </configuration>
    """
)


# === FIXTURES: cache ===


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    """A cleared fsspec memory filesystem (its store is process global)."""
    fs = MemoryFileSystem()
    fs.store.clear()
    fs.pseudo_dirs.clear()
    fs.pseudo_dirs.append("")
    yield fs
    fs.store.clear()
    fs.pseudo_dirs.clear()
    fs.pseudo_dirs.append("")


@pytest.fixture
def memory_store(memory_fs) -> FileSystemCacheStore:
    return FileSystemCacheStore(memory_fs)


# === FIXTURES: test doubles ===


class RecordingDownloader:
    """Downloader writing fixed content and recording its calls."""

    def __init__(self, content: bytes = b"remote content"):
        self.content = content
        self.calls: list[tuple[str, pathlib.Path]] = []

    def __call__(self, url: str, dest: pathlib.Path):
        self.calls.append((url, pathlib.Path(dest)))
        pathlib.Path(dest).parent.mkdir(parents=True, exist_ok=True)
        pathlib.Path(dest).write_bytes(self.content)
        return dest


class RecordingPermissionSetter:
    def __init__(self):
        self.calls: list[pathlib.Path] = []

    def __call__(self, path: pathlib.Path):
        self.calls.append(pathlib.Path(path))
        return path


@pytest.fixture
def downloader() -> RecordingDownloader:
    return RecordingDownloader()


@pytest.fixture
def permission_setter() -> RecordingPermissionSetter:
    return RecordingPermissionSetter()


# === FIXTURES: config files ===


@pytest.fixture
def conf_dirs(tmp_path) -> tuple[pathlib.Path, pathlib.Path]:
    """Hadoop and hive config directories with site files."""
    hadoop_conf = tmp_path / "hadoop" / "etc" / "hadoop"
    hive_conf = tmp_path / "hive" / "conf"
    hadoop_conf.mkdir(parents=True)
    hive_conf.mkdir(parents=True)
    (hadoop_conf / "core-site.xml").write_text(CORE_SITE)
    for name in ("hdfs-site.xml", "mapred-site.xml", "yarn-site.xml"):
        (hadoop_conf / name).write_text(EMPTY_SITE)
    (hive_conf / "hive-site.xml").write_text(EMPTY_SITE)
    return hadoop_conf, hive_conf


@pytest.fixture
def editor(conf_dirs) -> SiteConfigEditor:
    hadoop_conf, hive_conf = conf_dirs
    return SiteConfigEditor(
        {
            "core-site.xml": hadoop_conf / "core-site.xml",
            "hdfs-site.xml": hadoop_conf / "hdfs-site.xml",
            "mapred-site.xml": hadoop_conf / "mapred-site.xml",
            "yarn-site.xml": hadoop_conf / "yarn-site.xml",
            "hive-site.xml": hive_conf / "hive-site.xml",
        }
    )
