"""Local mirror of Drive metadata, kept in SQLite."""

from drorg.storage.backend import MirrorStore, like_to_glob

__all__ = ["MirrorStore", "like_to_glob"]
