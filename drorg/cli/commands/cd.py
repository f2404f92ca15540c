"""cd command: change the virtual CWD."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("cd")
@click.argument("spec")
@click.pass_obj
def cd_command(env: AppEnv, spec: str) -> None:
    """Set the virtual CWD to the folder matching SPEC (``..`` goes up)."""
    app = env.app
    app.maybe_sync_all_accounts()
    folder = app.resolver.process_one(spec)
    app.set_cwd(folder)
    env.ui.print(f"Now in {folder.name}")
