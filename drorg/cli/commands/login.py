"""Login command: add a Google account to be mirrored."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("login")
@click.pass_obj
def login_command(env: AppEnv) -> None:
    """Add a Google account to be monitored.

    Opens the Google consent page, records the account, then scans every
    document it can see. Run it again to add further accounts.
    """
    env.app.login()
    env.ui.print("Done.")
