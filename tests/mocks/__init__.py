"""Test mocks for external services."""

from .drive_mocks import (
    FOLDER,
    MockDriveFile,
    MockDriveService,
    MockHttpError,
    MockRequest,
    change_entry,
    mock_drive_file,
    mock_folder,
)

__all__ = [
    "FOLDER",
    "MockDriveFile",
    "MockDriveService",
    "MockHttpError",
    "MockRequest",
    "change_entry",
    "mock_drive_file",
    "mock_folder",
]
