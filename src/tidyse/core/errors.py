"""
Error taxonomy for the tidy verbs.

Two kinds of failure exist:

1. Hard failures, raised to the caller with the offending column names:
   - ProtectedColumnError: a verb would overwrite or remove a column the
     container needs to be split back apart
   - ReservedKeyError: nesting would group by the sample or feature key
   - NameCollisionError: flattening would merge two distinct columns that
     share a name

2. ReconstructionNotPossible, an internal signal. It is raised when a long
   table can no longer be split back into a SummarizedExperiment and is
   always caught by update_se_from_tibble(), which hands the long table
   back instead.
"""

from __future__ import annotations

from typing import Iterable

__all__ = [
    'TidySEError',
    'ProtectedColumnError',
    'ReservedKeyError',
    'NameCollisionError',
    'ReconstructionNotPossible',
]


class TidySEError(Exception):
    """Base class for all tidyse errors."""
    pass


class ProtectedColumnError(TidySEError, ValueError):
    """Raised when a verb would remove or overwrite a view-only column."""

    def __init__(self, columns: Iterable[str], protected: Iterable[str]):
        self.columns = sorted(columns)
        self.protected = sorted(protected)
        super().__init__(
            "tidyse says: you are trying to rename a column that is view only "
            f"({', '.join(self.columns)}). View-only columns: "
            f"{', '.join(self.protected)}. "
            "If you want to mutate a view-only column, make a copy and mutate that one."
        )


class ReservedKeyError(TidySEError, ValueError):
    """Raised when grouping targets the sample or feature key."""

    def __init__(self, columns: Iterable[str]):
        self.columns = sorted(columns)
        super().__init__(
            "tidyse says: you cannot have the columns "
            f"{', '.join(self.columns)} among the nesting keys"
        )


class NameCollisionError(TidySEError, ValueError):
    """Raised when two distinct columns would end up with the same name."""

    def __init__(self, columns: Iterable[str], message: str | None = None):
        self.columns = sorted(columns)
        if message is None:
            message = f"tidyse says: column names collide: {', '.join(self.columns)}"
        super().__init__(message)


class ReconstructionNotPossible(TidySEError):
    """Internal signal: the long table cannot be split back into a container."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
