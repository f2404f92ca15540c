"""List command."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("list")
@click.option("--all", "include_trashed", is_flag=True, help="Include trashed documents")
@click.pass_obj
def list_command(env: AppEnv, include_trashed: bool) -> None:
    """List documents, most recently modified first.

    Stars are flagged with ``*`` and trashed documents with ``T``.
    """
    app = env.app
    app.maybe_sync_all_accounts()
    for doc in app.store.all_documents(include_trashed=include_trashed):
        env.ui.print(app.doc_line(doc))
