"""Open command: show a document in the browser."""

from __future__ import annotations

import webbrowser

import click

from drorg.cli.helpers import fail
from drorg.cli.types import AppEnv


@click.command("open")
@click.argument("spec")
@click.pass_obj
def open_command(env: AppEnv, spec: str) -> None:
    """Open the document matching SPEC in a web browser."""
    app = env.app
    app.maybe_sync_all_accounts()
    doc = app.resolver.process_one(spec)
    if not webbrowser.open(doc.open_url):
        fail("open", f"could not launch a browser; visit {doc.open_url}")
    env.ui.print(f"Opened {doc.name}")
