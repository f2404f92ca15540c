"""Command modules for the drorg CLI.

Each module exports one click command, registered in ``drorg.cli.click_app``.
"""

from __future__ import annotations

__all__: list[str] = []
