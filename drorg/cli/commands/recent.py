"""Recent command."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("recent")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_obj
def recent_command(env: AppEnv, limit: int) -> None:
    """List the most recently modified documents."""
    app = env.app
    app.maybe_sync_all_accounts()
    app.print_doc_list(app.store.recent_documents(limit))
