"""Terminal output.

Interactive mode renders through a themed rich Console; plain mode (``--plain``
or a non-TTY stdout) prints unstyled text so output can be piped and tested.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from rich.console import Console
from rich.text import Text
from rich.theme import Theme

THEME = Theme(
    {
        "doc.trashed": "red",
        "doc.starred": "yellow",
        "doc.folder": "bold blue",
        "doc.plain": "",
        "listing.tag": "cyan",
        "listing.age": "dim",
        "summary.title": "bold #c4e0ff",
        "summary.text": "#d6dee8",
        "status.error": "bold #ff6b6b",
        "status.info": "bold #38bdf8",
    }
)


class ConsoleLike(Protocol):
    def print(self, *objects: object, **kwargs: object) -> None:
        ...


class PlainConsole:
    """Minimal Console shim for non-interactive mode."""

    def __init__(self, *_: object, **__: object) -> None:
        pass

    def print(self, *objects: object, **_: object) -> None:
        text = " ".join(obj.plain if isinstance(obj, Text) else str(obj) for obj in objects)
        print(text)


@dataclass
class UI:
    plain: bool
    console: ConsoleLike = field(init=False)

    def __post_init__(self) -> None:
        if self.plain:
            self.console = PlainConsole()
        else:
            self.console = Console(theme=THEME, highlight=False)

    def print(self, *objects: object) -> None:
        self.console.print(*objects)

    def info(self, message: str) -> None:
        if self.plain:
            self.console.print(f"info: {message}")
            return
        self.console.print(Text.assemble(("info: ", "status.info"), message))

    def error(self, message: str) -> None:
        if self.plain:
            print(f"error: {message}", file=sys.stderr)
            return
        Console(theme=THEME, stderr=True, highlight=False).print(
            Text.assemble(("error: ", "status.error"), message)
        )

    def summary(self, title: str, lines: Iterable[str]) -> None:
        if self.plain:
            self.console.print(f"-- {title} --")
            for line in lines:
                self.console.print(f"  {line}")
            return
        self.console.print(Text(title, style="summary.title"))
        for line in lines:
            self.console.print(Text(f"  {line}", style="summary.text"))

    def input(self, prompt: str, *, default: Optional[str] = None) -> Optional[str]:
        suffix = f" [{default}]" if default else ""
        try:
            value = input(f"{prompt}{suffix}: ").strip()
        except EOFError:
            return default
        return value or default


def create_ui(plain: bool) -> UI:
    return UI(plain=plain)


__all__ = ["UI", "THEME", "ConsoleLike", "PlainConsole", "create_ui"]
