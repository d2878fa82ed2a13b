#!/usr/bin/env python3
"""
settings.py
===========

This module implements the `Settings` value handed to the config action
helpers. It replaces implicit, process wide lookups of installation
directories with one explicit object, so that every helper can be driven
against temporary files in tests.

Settings can be read from the environment, optionally merged over a `.env`
file:

```python
from confaction.settings import Settings

settings = Settings.from_env(".env")
settings.hadoop_conf_dir
```

or decoded from a YAML or JSON file:

```python
settings = Settings.from_file("/etc/confaction/settings.yaml")
```

Environment variables
---------------------
Every field can be set with a `CONFACTION_<FIELD>` variable, e.g.
`CONFACTION_CACHE_ROOT`. The Hadoop conventions `HADOOP_HOME`,
`HADOOP_CONF_DIR` and `HIVE_HOME` are honoured as fallbacks.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import os
import pathlib
from collections.abc import Mapping

import msgspec
from dotenv import dotenv_values

from . import PathType, logger

ENV_PREFIX = "CONFACTION_"

# hadoop conventions used when no prefixed variable is set
_FALLBACK_ENV_VARS = {
    "hadoop_home": "HADOOP_HOME",
    "hadoop_conf": "HADOOP_CONF_DIR",
    "hive_home": "HIVE_HOME",
    "hive_conf": "HIVE_CONF_DIR",
}

_BOOL_TRUE = ("true", "1", "yes", "on")


class Settings(msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True):
    """
    Settings of the config action helpers.

    Attributes
    ----------
    hadoop_home : str
        Hadoop installation directory, by default `"/usr/lib/hadoop"`.
    hadoop_conf : str, optional
        Hadoop configuration directory. Defaults to `<hadoop_home>/etc/hadoop`.
    hive_home : str
        Hive installation directory, by default `"/usr/lib/hive"`.
    hive_conf : str, optional
        Hive configuration directory. Defaults to `<hive_home>/conf`.
    cache_root : str
        Root directory of the shared cache on the cluster file system.
    cache_backend : str
        `"shell"` to use the `hadoop fs` command, `"webhdfs"` to talk to the
        WebHDFS REST API.
    webhdfs_host : str, optional
        NameNode host for the `"webhdfs"` backend.
    webhdfs_port : int
        NameNode HTTP port for the `"webhdfs"` backend.
    webhdfs_https : bool
        Use `swebhdfs` for the `"webhdfs"` backend.
    hdfs_user : str, optional
        User name for simple authentication against WebHDFS.
    headnode_service : str
        Name of the service that marks a head node.
    headnode_display_match : str
        Display name substring that also marks a head node.
    datanode_service : str
        Name of the service that marks a data node.
    first_data_node_hostname : str
        Short host name of the data node that populates the shared cache.
    namenode_jmx_address : str, optional
        `http(s)://host:port` of the local NameNode web UI. If set, a head node
        is only considered active when the NameNode reports the `active` HA
        state.
    verify : bool
        Verify SSL certificates of download servers.
    """

    hadoop_home: str = "/usr/lib/hadoop"
    hadoop_conf: str | None = None
    hive_home: str = "/usr/lib/hive"
    hive_conf: str | None = None
    cache_root: str = "/configactioncache"
    cache_backend: str = "shell"
    webhdfs_host: str | None = None
    webhdfs_port: int = 9870
    webhdfs_https: bool = False
    hdfs_user: str | None = None
    headnode_service: str = "namenode"
    headnode_display_match: str = "hadoop namenode"
    datanode_service: str = "datanode"
    first_data_node_hostname: str = "workernode0"
    namenode_jmx_address: str | None = None
    verify: bool = True

    def __post_init__(self):
        if self.cache_backend not in ("shell", "webhdfs"):
            raise ValueError(
                f"Unknown cache backend '{self.cache_backend}', expected 'shell' or 'webhdfs'"
            )

    @property
    def hadoop_conf_dir(self) -> pathlib.Path:
        """The directory holding `core-site.xml` and friends."""
        return pathlib.Path(self.hadoop_conf or pathlib.Path(self.hadoop_home) / "etc" / "hadoop")

    @property
    def hive_conf_dir(self) -> pathlib.Path:
        """The directory holding `hive-site.xml`."""
        return pathlib.Path(self.hive_conf or pathlib.Path(self.hive_home) / "conf")

    @property
    def hadoop_bin(self) -> pathlib.Path:
        """The `hadoop` launcher script."""
        return pathlib.Path(self.hadoop_home) / "bin" / "hadoop"

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | None]) -> Settings:
        """
        Create settings from a mapping of environment style variables.

        Parameters
        ----------
        values : Mapping[str, str | None]
            Variables, e.g. `os.environ`. Only `CONFACTION_*` keys and the Hadoop
            fallback variables are considered.

        Returns
        -------
        Settings
            The settings, unset fields keep their defaults.
        """
        kwargs = {}
        for field in cls.__struct_fields__:
            value = values.get(f"{ENV_PREFIX}{field.upper()}")
            if value is None and field in _FALLBACK_ENV_VARS:
                value = values.get(_FALLBACK_ENV_VARS[field])
            if value is None or value == "":
                continue
            kwargs[field] = value

        # environment values are strings, convert them to the field types
        for field in ("webhdfs_https", "verify"):
            if field in kwargs:
                kwargs[field] = kwargs[field].lower() in _BOOL_TRUE
        if "webhdfs_port" in kwargs:
            kwargs["webhdfs_port"] = int(kwargs["webhdfs_port"])

        return cls(**kwargs)

    @classmethod
    def from_env(
        cls,
        env_file: PathType | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """
        Create settings from environment variables.

        Parameters
        ----------
        env_file : PathType, optional
            A `.env` file. Its values are overridden by the process environment.
        environ : Mapping[str, str], optional
            The environment to read, by default `os.environ`.

        Returns
        -------
        Settings
            The settings.
        """
        _values = dotenv_values(env_file) if env_file else {}
        _values = _values | dict(os.environ if environ is None else environ)
        if env_file:
            logger.debug(f"Loaded settings environment from '{env_file}'")
        return cls.from_mapping(_values)

    @classmethod
    def from_file(cls, path: PathType) -> Settings:
        """
        Decode settings from a YAML (`.yaml`, `.yml`) or JSON file.

        Parameters
        ----------
        path : PathType
            Path to the settings file.

        Returns
        -------
        Settings
            The settings.

        Raises
        ------
        msgspec.ValidationError
            If the file holds unknown fields or values of the wrong type.
        """
        _path = pathlib.Path(path)
        content = _path.read_bytes()
        if _path.suffix.lower() == ".json":
            settings = msgspec.json.decode(content, type=cls)
        else:
            settings = msgspec.yaml.decode(content, type=cls)
        logger.debug(f"Loaded settings from '{_path}'")
        return settings
