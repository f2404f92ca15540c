"""drorg: a local mirror of Google Drive metadata, for finding and organizing documents."""

__version__ = "0.1.0"
