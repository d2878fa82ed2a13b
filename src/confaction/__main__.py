#!/usr/bin/env python3
"""
Confaction
==========

Command line interface of the config action helpers, meant to be called from
the provisioning scripts of a bootstrapping cluster node:

```console
$ confaction fetch https://example.org/tool.zip /tmp/tool.zip
$ confaction expand /tmp/tool.zip /opt/tool
$ confaction set-property core-site.xml fs.trash.interval 360
$ confaction role
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import pathlib

import rich_click as click
from rich.console import Console
from rich.table import Table

from . import __version__
from .archive import expand_archive
from .common.exceptions import ConfActionError
from .common.logging import set_verbosity
from .fetch import CachedFetcher
from .hadoop.config import CONFIG_FILE_KEYS, SiteConfigEditor
from .node.roles import NodeRole, ServiceRoleClassifier, StaticRoleClassifier
from .settings import Settings

# click rich configuration
click.rich_click.USE_RICH_MARKUP = True

# roles selectable with `fetch --role`
_ROLES = {
    "active-head-node": NodeRole(head_node=True, active_head_node=True),
    "head-node": NodeRole(head_node=True),
    "first-data-node": NodeRole(data_node=True, first_data_node=True),
    "data-node": NodeRole(data_node=True),
}


def _validate_log(ctx, param, value):
    if value is None:
        return value
    return pathlib.Path(value).resolve().absolute()


def _settings(ctx: click.Context) -> Settings:
    return ctx.find_object(Settings) or Settings()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be passed multiple times)",
)
@click.option(
    "-e",
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path),
    default=None,
    help="A `.env` file with `CONFACTION_*` settings. The process environment takes precedence.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path),
    default=None,
    help="A YAML or JSON settings file. Replaces settings from the environment.",
)
@click.option(
    "--log",
    type=click.Path(dir_okay=False),
    callback=_validate_log,
    default=None,
    help="Write log lines to this file instead of the console.",
)
@click.version_option(version=__version__, prog_name="confaction")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    env_file: pathlib.Path | None,
    config_file: pathlib.Path | None,
    log: pathlib.Path | None,
):
    """
    Helpers for config actions run while a Hadoop cluster node bootstraps.

    You can try using --help at the top level and also for
    specific subcommands.
    """
    set_verbosity(verbose, log=log)
    try:
        ctx.obj = (
            Settings.from_file(config_file) if config_file else Settings.from_env(env_file)
        )
    except (ValueError, TypeError) as exc:
        raise click.BadParameter(str(exc), param_hint="settings") from exc


@cli.command(name="fetch", help="Fetch SOURCE to DEST through the shared cluster cache.")
@click.argument("source")
@click.argument("dest", type=click.Path(dir_okay=False, path_type=pathlib.Path))
@click.option("-f", "--force", is_flag=True, help="Fetch even if DEST already exists.")
@click.option(
    "--role",
    type=click.Choice(sorted(_ROLES)),
    default=None,
    help="Use this node role instead of classifying the node from its services.",
)
@click.pass_context
def fetch_cmd(
    ctx: click.Context, source: str, dest: pathlib.Path, force: bool, role: str | None
):
    fetcher = CachedFetcher.from_settings(_settings(ctx))
    if role:
        fetcher.role_classifier = StaticRoleClassifier(_ROLES[role])
    try:
        path = fetcher.fetch(source, dest, force=force)
    except ConfActionError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(str(path))


@cli.command(name="expand", help="Expand ARCHIVE into the existing folder DEST.")
@click.argument("archive", type=click.Path(path_type=pathlib.Path))
@click.argument("dest", type=click.Path(path_type=pathlib.Path))
@click.option("--format", "format_", default=None, help="Archive format, e.g. `zip` or `gztar`.")
def expand_cmd(archive: pathlib.Path, dest: pathlib.Path, format_: str | None):
    expand_archive(archive, dest, format=format_)


@cli.command(name="set-property", help="Insert or update property NAME in config file CONFIG.")
@click.argument("config_key", metavar="CONFIG")
@click.argument("name")
@click.argument("value")
@click.option("-d", "--description", default=None, help="The property description.")
@click.pass_context
def set_property_cmd(
    ctx: click.Context, config_key: str, name: str, value: str, description: str | None
):
    """
    CONFIG is one of `core-site.xml`, `hdfs-site.xml`, `mapred-site.xml`,
    `yarn-site.xml` or `hive-site.xml`. Other names are skipped with a warning.
    """
    SiteConfigEditor.from_settings(_settings(ctx)).set_property(
        config_key, name, value, description=description
    )


@cli.command(name="get-property", help="Print the value of property NAME in config file CONFIG.")
@click.argument("config_key", metavar="CONFIG", type=click.Choice(CONFIG_FILE_KEYS))
@click.argument("name")
@click.pass_context
def get_property_cmd(ctx: click.Context, config_key: str, name: str):
    value = SiteConfigEditor.from_settings(_settings(ctx)).get_property(config_key, name)
    if value is None:
        raise click.ClickException(f"Property '{name}' not found in '{config_key}'")
    click.echo(value)


@cli.command(name="role", help="Show the role of this node.")
@click.pass_context
def role_cmd(ctx: click.Context):
    try:
        role = ServiceRoleClassifier(settings=_settings(ctx)).classify()
    except ConfActionError as exc:
        raise click.ClickException(str(exc)) from exc

    table = Table(
        show_header=True,
        header_style="bold deep_sky_blue1",
        box=None,
        title="Node Role",
        title_justify="left",
    )
    table.add_column("Role", style="dim")
    table.add_column("Value")
    for field in NodeRole.__struct_fields__:
        table.add_row(field.replace("_", " "), str(getattr(role, field)))
    table.add_row("cache namespace", role.namespace)
    table.add_row("populates cache", str(role.may_populate_cache))
    Console().print(table)


# main function
main = cli

if __name__ == "__main__":
    main()
