"""Root CLI group for flatstore with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from flatstore import __version__
from flatstore.commands import register_commands
from flatstore.commands._base import FlatGroup
from flatstore.commands._context import AppContext
from flatstore.config.settings import FlatstoreSettings


@click.group(
    cls=FlatGroup,
    invoke_without_command=True,
    examples="""\
  flatstore init --seed
  flatstore login alex@demo.com
  flatstore show
  flatstore --json chore complete chore_5d0c1m2x8a""",
)
@click.version_option(version=__version__, prog_name="flatstore")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-s",
    "--store",
    "store_root",
    type=click.Path(file_okay=False, resolve_path=True, path_type=Path),
    default=None,
    help="Store directory (default: discovered from the working directory).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    store_root: Path | None,
) -> None:
    """flatstore: household store with remote reconciliation."""
    settings = FlatstoreSettings.from_cli(
        config_path=config_path,
        store_root=store_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
