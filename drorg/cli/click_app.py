"""CLI entrypoint."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Optional

import click

from drorg.cli.commands.cd import cd_command
from drorg.cli.commands.info import info_command
from drorg.cli.commands.list_cmd import list_command
from drorg.cli.commands.login import login_command
from drorg.cli.commands.ls import ls_command
from drorg.cli.commands.open_cmd import open_command
from drorg.cli.commands.recent import recent_command
from drorg.cli.commands.resync import resync_command
from drorg.cli.commands.sync import sync_command
from drorg.cli.helpers import report_error
from drorg.cli.types import AppEnv
from drorg.errors import DrorgError
from drorg.lib.log import configure_logging
from drorg.sync import SyncOption
from drorg.ui import create_ui


def _should_use_plain(*, plain: bool) -> bool:
    if plain:
        return True
    env_force = os.environ.get("DRORG_FORCE_PLAIN")
    if env_force and env_force.lower() not in {"0", "false", "no"}:
        return True
    return not sys.stdout.isatty()


class DrorgGroup(click.Group):
    """Reports drorg errors, with their chained causes, and exits 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except DrorgError as exc:
            report_error(exc)
            ctx.exit(1)


@click.group(cls=DrorgGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--sync",
    "sync_mode",
    type=click.Choice([option.value for option in SyncOption]),
    default=None,
    help="Whether to synchronize with the Google Drive servers (default from config: auto)",
)
@click.option("--plain", is_flag=True, help="Force non-interactive plain output")
@click.option("--verbose", "-v", is_flag=True, help="Log sync activity to stderr")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config.json")
@click.pass_context
def cli(
    ctx: click.Context,
    sync_mode: Optional[str],
    plain: bool,
    verbose: bool,
    json_logs: bool,
    config_path: Optional[Path],
) -> None:
    """Organize Google Drive documents from the command line."""
    configure_logging(verbose=verbose, json_logs=json_logs)
    env = AppEnv(
        ui=create_ui(_should_use_plain(plain=plain)),
        config_path=config_path,
        sync_option=SyncOption(sync_mode) if sync_mode else None,
    )
    ctx.obj = env
    ctx.call_on_close(env.close)


cli.add_command(login_command)
cli.add_command(resync_command)
cli.add_command(sync_command)
cli.add_command(list_command)
cli.add_command(info_command)
cli.add_command(ls_command)
cli.add_command(cd_command)
cli.add_command(open_command)
cli.add_command(recent_command)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
