"""CLI types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from drorg.app import Application
from drorg.config import load_config
from drorg.sync import SyncOption
from drorg.ui import UI


@dataclass
class AppEnv:
    ui: UI
    config_path: Path | None = None
    sync_option: SyncOption | None = None
    _app: Application | None = field(default=None, repr=False)

    @property
    def app(self) -> Application:
        """The application, built on first use so ``--help`` never touches disk."""
        if self._app is None:
            config = load_config(self.config_path)
            self._app = Application.initialize(config, self.ui, sync_option=self.sync_option)
        return self._app

    def close(self) -> None:
        if self._app is not None:
            self._app.close()
