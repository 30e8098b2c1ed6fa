"""Root CLI group for recurctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from recurctl import __version__
from recurctl.commands import register_commands
from recurctl.commands._context import AppContext
from recurctl.config.settings import RecurSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="recurctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--vault",
    "vault_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Vault directory (default: parent of recurctl.toml, or CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    vault_root: Path | None,
) -> None:
    """recurctl: roll completed recurring tasks forward and archive them."""
    settings = RecurSettings.from_cli(
        config_path=config_path,
        vault_root=vault_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
