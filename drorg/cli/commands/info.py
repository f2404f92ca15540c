"""Info command: details and folder paths of one document."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("info")
@click.argument("spec")
@click.pass_obj
def info_command(env: AppEnv, spec: str) -> None:
    """Show details about the document matching SPEC."""
    app = env.app
    app.maybe_sync_all_accounts()
    doc = app.resolver.process_one(spec)

    lines = [
        f"ID: {doc.id}",
        f"MIME type: {doc.mime_type}",
        f"Modified: {doc.modified_time.isoformat(timespec='seconds')}",
        f"Starred: {'yes' if doc.starred else 'no'}",
        f"Trashed: {'yes' if doc.trashed else 'no'}",
        f"Open URL: {doc.open_url}",
    ]
    for account, paths in app.describe_paths(doc):
        if not paths:
            lines.append(f"Path ({account.email}): (not in any folder)")
        for path in paths:
            lines.append(f"Path ({account.email}): {path}")
    env.ui.summary(doc.name, lines)
