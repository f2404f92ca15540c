"""Sync command: replay change feeds now."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv
from drorg.sync import SyncOption


@click.command("sync")
@click.pass_obj
def sync_command(env: AppEnv) -> None:
    """Synchronize every account with its change feed, regardless of when it last ran."""
    count = env.app.engine.maybe_sync_all_accounts(SyncOption.YES)
    noun = "account" if count == 1 else "accounts"
    env.ui.print(f"Synchronized {count} {noun}.")
