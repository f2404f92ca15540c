"""CLI helper functions."""

from __future__ import annotations

from typing import NoReturn

import click

from drorg.errors import DrorgError, SpecifierError


def fail(command: str, message: str) -> NoReturn:
    raise SystemExit(f"{command}: {message}")


def iter_causes(exc: BaseException) -> list[BaseException]:
    """The exception followed by every exception chained beneath it."""
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def report_error(exc: DrorgError) -> None:
    if isinstance(exc, SpecifierError):
        click.echo(f"error: {exc}", err=True)
        return
    click.echo("fatal error in drorg", err=True)
    for cause in iter_causes(exc):
        click.echo(f"  caused by: {cause}", err=True)
