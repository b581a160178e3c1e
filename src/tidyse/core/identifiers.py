"""
Reserved key names and the view-only column guard.

The long-table view of a SummarizedExperiment carries two key columns,
`sample` and `transcript`, plus every annotation column of the container.
Those columns are what lets a long table be split back into the container,
so verbs may read them but must not remove or overwrite them.

Examples:
    >>> from tidyse.core.identifiers import protected_columns, assert_mutable
    >>>
    >>> protected = protected_columns(se)
    >>> assert_mutable(['condition_type'], protected, removal_requested=True)  # ok
    >>> assert_mutable(['sample'], protected, removal_requested=True)
    Traceback (most recent call last):
    ...
    tidyse.core.errors.ProtectedColumnError: ...
"""

from __future__ import annotations

from typing import Iterable, Optional

from tidyse.core.errors import ProtectedColumnError
from tidyse.core.experiment import SummarizedExperiment

__all__ = [
    'SAMPLE_KEY',
    'FEATURE_KEY',
    'get_needed_columns',
    'get_special_columns',
    'protected_columns',
    'assert_mutable',
]

SAMPLE_KEY = "sample"
FEATURE_KEY = "transcript"


def get_needed_columns() -> list[str]:
    """Key columns every long table of a container must carry."""
    return [SAMPLE_KEY, FEATURE_KEY]


def get_special_columns(se: SummarizedExperiment) -> list[str]:
    """Columns contributed by the auxiliary per-feature datasets (row ranges)."""
    if se.row_ranges is None:
        return []
    return [str(c) for c in se.row_ranges.columns]


def protected_columns(se: SummarizedExperiment) -> frozenset[str]:
    """
    Snapshot of the column names a verb may not remove from `se`'s long table.

    Includes both key columns and every sample-metadata, feature-metadata
    and range column present at the time of the call.
    """
    return frozenset(
        get_needed_columns()
        + [str(c) for c in se.sample_metadata.columns]
        + [str(c) for c in se.feature_metadata.columns]
        + get_special_columns(se)
    )


def assert_mutable(
    target_columns: Iterable[Optional[str]],
    protected: Iterable[str],
    removal_requested: bool,
) -> None:
    """
    Fail if a removing verb targets a protected column.

    Only removal is blocked: verbs that add derived columns while keeping
    their sources never desynchronize the container.

    Args:
        target_columns: Columns the verb writes or removes (None entries ignored)
        protected: Output of protected_columns()
        removal_requested: Whether the verb was asked to remove its source(s)

    Raises:
        ProtectedColumnError: If removal is requested and a target is protected
    """
    if not removal_requested:
        return
    protected = frozenset(protected)
    offending = {c for c in target_columns if c is not None} & protected
    if offending:
        raise ProtectedColumnError(offending, protected)
