"""ls command: list a folder and make it the virtual CWD."""

from __future__ import annotations

import click

from drorg.cli.types import AppEnv


@click.command("ls")
@click.argument("spec", default=".")
@click.pass_obj
def ls_command(env: AppEnv, spec: str) -> None:
    """List the contents of a folder (default: the virtual CWD).

    The folder becomes the new virtual CWD, and its children can then be
    referred to as %1, %2, ...
    """
    app = env.app
    app.maybe_sync_all_accounts()
    folder = app.resolver.process_one(spec)
    app.set_cwd(folder)
    children = sorted(app.store.children_of(folder.id), key=lambda d: d.modified_time, reverse=True)
    if not children:
        env.ui.print(f'"{folder.name}" is empty.')
        return
    app.print_doc_list(children)
