"""Resync command: rebuild the mirror from full listings."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("resync")
@click.pass_obj
def resync_command(env: AppEnv) -> None:
    """Re-synchronize every account from scratch."""
    env.app.engine.resync_all(notify=env.ui.print)
