"""drorg error hierarchy.

All project exceptions inherit from DrorgError, enabling:
- ``except DrorgError`` at the top-level CLI boundary
- Fine-grained catches deeper in the stack (``except AmbiguousSpecifierError``)

Hierarchy (subclasses defined in their respective modules):
    DrorgError                              # this module
    ├── ConfigError                         # config.py
    ├── AccountError                        # this module
    │   └── AccountNotFoundError
    ├── DriveError                          # this module
    │   ├── DriveAuthError
    │   ├── DriveNotFoundError
    │   └── DriveDataError
    ├── DatabaseError                       # this module
    └── SpecifierError                      # this module
        ├── NoMatchError                    # resolver.py
        ├── AmbiguousSpecifierError         # resolver.py
        ├── CwdUndefinedError               # resolver.py
        ├── InvalidListingReferenceError    # resolver.py
        └── NotAFolderError                 # listing.py
"""

from __future__ import annotations


class DrorgError(Exception):
    """Base class for all drorg errors."""


class DatabaseError(DrorgError):
    """Base class for database errors."""


class AccountError(DrorgError):
    """Problems with stored account state."""


class AccountNotFoundError(AccountError):
    """No credential state is stored for the requested account."""


class DriveError(DrorgError):
    """A call to the Drive API failed."""


class DriveAuthError(DriveError):
    """Credentials are missing, invalid or could not be refreshed."""


class DriveNotFoundError(DriveError):
    """The requested Drive object does not exist or is not visible."""


class DriveDataError(DriveError):
    """The Drive API answered with a payload we cannot make sense of."""


class SpecifierError(DrorgError):
    """A document specifier could not be turned into the requested documents.

    These are user-input errors: the message is always actionable and never
    implies that anything is wrong with the local mirror.
    """
