#!/usr/bin/env python3
"""
hadoop/config.py
================

This module implements the editing of the Hadoop configuration files a config
action is allowed to touch: `core-site.xml`, `hdfs-site.xml`,
`mapred-site.xml`, `yarn-site.xml` and `hive-site.xml`.

Files are addressed by their symbolic key, not by path. The mapping from key to
path is handed to the `SiteConfigEditor` when it is created, by default built
from the installation directories in `Settings`.

Example
-------

```python
from confaction.hadoop.config import SiteConfigEditor

editor = SiteConfigEditor.from_settings()
editor.set_property(
    "core-site.xml",
    "fs.azure.io.retry.max.retries",
    "30",
    description="Maximum number of retries for storage requests",
)
```

Properties are kept unique by name: setting a property a second time updates
the existing entry instead of appending another one. If a file already holds
several entries of the same name, only the first one is updated.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import copy
import pathlib
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from types import MappingProxyType

# module imports
from .. import PathType, logger
from ..settings import Settings

# hadoop config files, in `Settings.hadoop_conf_dir`
HADOOP_CONFIG_FILES = ("core-site.xml", "hdfs-site.xml", "mapred-site.xml", "yarn-site.xml")
# hive config files, in `Settings.hive_conf_dir`
HIVE_CONFIG_FILES = ("hive-site.xml",)

CONFIG_FILE_KEYS = HADOOP_CONFIG_FILES + HIVE_CONFIG_FILES


def default_config_files(settings: Settings | None = None) -> dict[str, pathlib.Path]:
    """
    Map the config file keys to their paths on this node.

    Parameters
    ----------
    settings : Settings, optional
        The installation directories, by default `Settings()`.

    Returns
    -------
    dict[str, pathlib.Path]
        Config file key to path.
    """
    settings = settings or Settings()
    files = {key: settings.hadoop_conf_dir / key for key in HADOOP_CONFIG_FILES}
    files.update({key: settings.hive_conf_dir / key for key in HIVE_CONFIG_FILES})
    return files


def _parse(path: PathType) -> ET.ElementTree:
    # keep comments, hadoop config files are often annotated
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    return ET.parse(str(path), parser=parser)


def _find_property(root: ET.Element, name: str) -> ET.Element | None:
    for prop in root.findall("./property"):
        if (prop.findtext("name") or "").strip() == name:
            return prop
    return None


def _set_child_text(prop: ET.Element, tag: str, text: str) -> None:
    child = prop.find(tag)
    if child is None:
        child = ET.SubElement(prop, tag)
    child.text = text


def _new_property(root: ET.Element) -> ET.Element:
    """Append a property cloned from the first existing one, or a fresh one."""
    template = root.find("./property")

    if template is None:
        prop = ET.SubElement(root, "property")
        ET.SubElement(prop, "name")
        ET.SubElement(prop, "value")
        return prop

    prop = copy.deepcopy(template)
    # keep the layout: the new entry takes the place of the closing whitespace
    last = root[-1]
    prop.tail = last.tail
    last.tail = template.tail
    root.append(prop)
    return prop


class SiteConfigEditor:
    """
    Insert or update properties in registered Hadoop configuration files.

    Parameters
    ----------
    config_files : Mapping[str, PathType]
        Config file key (e.g. `"core-site.xml"`) to path. Only files in this
        mapping can be edited.
    """

    def __init__(self, config_files: Mapping[str, PathType]):
        self._config_files = MappingProxyType(
            {key: pathlib.Path(path) for key, path in config_files.items()}
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SiteConfigEditor:
        """Create an editor for the config files of the installation in `settings`."""
        return cls(default_config_files(settings))

    @property
    def config_files(self) -> Mapping[str, pathlib.Path]:
        """The registered config files."""
        return self._config_files

    def path(self, config_key: str) -> pathlib.Path | None:
        """The path of the config file `config_key`, `None` if it is not registered."""
        return self._config_files.get(config_key)

    def set_property(
        self,
        config_key: str,
        name: str,
        value: str,
        description: str | None = None,
    ) -> bool:
        """
        Insert or update the property `name` in the config file `config_key`.

        An existing property of that name gets the new value (and description,
        if one is given). Otherwise the first property of the file is cloned,
        filled in and appended. The document is written back to the same path.

        Parameters
        ----------
        config_key : str
            The config file key, e.g. `"core-site.xml"`.
        name : str
            The property name.
        value : str
            The property value.
        description : str, optional
            The property description.

        Returns
        -------
        bool
            `True` if the file was written, `False` if `config_key` is not a
            registered config file.

        Raises
        ------
        FileNotFoundError
            If the registered config file does not exist.
        xml.etree.ElementTree.ParseError
            If the config file is not well-formed XML.
        """
        path = self.path(config_key)
        if path is None:
            logger.warning(
                f"'{config_key}' is not a supported config file, expected one of "
                f"{', '.join(self._config_files)}. Skipping property '{name}'."
            )
            return False

        tree = _parse(path)
        root = tree.getroot()

        prop = _find_property(root, name)
        if prop is not None:
            logger.info(f"Updating property '{name}' in '{path}'")
        else:
            logger.info(f"Adding property '{name}' to '{path}'")
            prop = _new_property(root)
            if description is None and prop.find("description") is not None:
                prop.remove(prop.find("description"))

        _set_child_text(prop, "name", name)
        _set_child_text(prop, "value", str(value))
        if description is not None:
            _set_child_text(prop, "description", description)

        tree.write(str(path), encoding="utf-8", xml_declaration=True)
        return True

    def properties(self, config_key: str) -> dict[str, str | None]:
        """
        Read all properties of the config file `config_key`.

        Returns
        -------
        dict[str, str | None]
            Property name to value. Empty if `config_key` is not registered.
        """
        path = self.path(config_key)
        if path is None:
            logger.warning(f"'{config_key}' is not a supported config file")
            return {}

        root = _parse(path).getroot()
        properties = {}
        for prop in root.findall("./property"):
            # first entry wins, matching the entry `set_property` updates
            properties.setdefault((prop.findtext("name") or "").strip(), prop.findtext("value"))
        return properties

    def get_property(self, config_key: str, name: str) -> str | None:
        """Return the value of property `name` in `config_key`, or `None`."""
        return self.properties(config_key).get(name)
