"""
Flatten a SummarizedExperiment into one long table.

The long table has one row per (sample, feature) pair and carries every
annotation of both axes next to the values of every assay:

    sample | <sample metadata> | transcript | <assays> | <feature metadata> | <ranges>

Rows are sample-major: all features of the first sample, then all features
of the second, and so on. The row count is always n_samples × n_features.

Engineering Design:
    The joins are pandas left merges, which preserve the left-hand row
    order. Before each join the overlapping column names are checked: a
    collision raises NameCollisionError instead of letting pandas add
    `_x`/`_y` suffixes, since the guard and the reconstructor rely on exact
    column names.

Examples:
    >>> from tidyse.convert.flatten import as_tibble
    >>>
    >>> long = as_tibble(se)
    >>> long.shape[0] == se.n_samples * se.n_features
    True
"""

from __future__ import annotations

import logging
from functools import reduce
from typing import Optional

import numpy as np
import pandas as pd

from tidyse.core.errors import NameCollisionError
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import FEATURE_KEY, SAMPLE_KEY

__all__ = ['as_tibble', 'flatten', 'show']

logger = logging.getLogger(__name__)


def as_tibble(x: SummarizedExperiment | pd.DataFrame, rownames: Optional[str] = None) -> pd.DataFrame:
    """
    Convert a container (or a plain DataFrame) to a long table.

    Args:
        x: SummarizedExperiment to flatten, or DataFrame to copy
        rownames: DataFrame input only. None drops the index; a string moves
            the index into a column with that name

    Returns:
        New DataFrame with a fresh RangeIndex

    Raises:
        NameCollisionError: If column names collide while flattening, or
            `rownames` names an existing column
        TypeError: For any other input type
    """
    if isinstance(x, SummarizedExperiment):
        return flatten(x)

    if isinstance(x, pd.DataFrame):
        table = x.reset_index(drop=True)
        if rownames is not None:
            if rownames in table.columns:
                raise NameCollisionError([rownames])
            table.insert(0, rownames, x.index.to_numpy())
        return table

    raise TypeError(f"as_tibble expects SummarizedExperiment or pd.DataFrame, got {type(x)}")


def flatten(se: SummarizedExperiment) -> pd.DataFrame:
    """
    Join sample metadata, assays, feature metadata and ranges into one table.

    Args:
        se: Container to flatten

    Returns:
        Long table with n_samples × n_features rows

    Raises:
        NameCollisionError: If two blocks share a column name, or user
            metadata already holds a reserved key column
    """
    sample_info = _keyed_table(se.sample_metadata, SAMPLE_KEY, "sample metadata")
    gene_info = _keyed_table(se.feature_metadata, FEATURE_KEY, "feature metadata")
    count_info = _count_table(se)

    special = _special_datasets(se)
    if special:
        range_info = reduce(lambda left, right: _left_join(left, right, FEATURE_KEY), special)
    else:
        range_info = pd.DataFrame({FEATURE_KEY: pd.Series([], dtype=se.feature_ids.dtype)})

    table = _left_join(sample_info, count_info, SAMPLE_KEY)
    table = _left_join(table, gene_info, FEATURE_KEY, validate="many_to_one")

    # An empty range table is never joined
    if len(range_info) > 0:
        table = _left_join(table, range_info, FEATURE_KEY, validate="many_to_one")

    logger.debug(
        f"Flattened {se.n_features} features × {se.n_samples} samples "
        f"into {len(table)} rows × {table.shape[1]} columns"
    )
    return table


def show(se: SummarizedExperiment, n: int = 10) -> str:
    """
    Render the first rows of the long table, tibble-style.

    Args:
        se: Container to display
        n: Number of rows to render

    Returns:
        Header line plus the rendered rows
    """
    table = flatten(se)
    lines = [
        f"# A SummarizedExperiment-tibble abstraction: {len(table)} × {table.shape[1]}",
        table.head(n).to_string(index=False),
    ]
    if len(table) > n:
        lines.append(f"# … with {len(table) - n} more rows")
    return "\n".join(lines)


def _keyed_table(frame: pd.DataFrame, key: str, block: str) -> pd.DataFrame:
    """Move the index of an annotation block into an explicit key column."""
    if key in frame.columns:
        raise NameCollisionError(
            [key],
            f"tidyse says: the {block} has a column named '{key}', which is reserved. "
            "Call tidy() first to rename it.",
        )
    table = frame.reset_index(drop=True)
    table.insert(0, key, frame.index.to_numpy())
    return table


def _special_datasets(se: SummarizedExperiment) -> list[pd.DataFrame]:
    """Auxiliary per-feature datasets, each keyed by feature id."""
    datasets = []
    if se.row_ranges is not None:
        datasets.append(_keyed_table(se.row_ranges, FEATURE_KEY, "row ranges"))
    return datasets


def _count_table(se: SummarizedExperiment) -> pd.DataFrame:
    """All assays in long form: one row per (sample, feature), one column per assay."""
    n_features, n_samples = se.shape
    table = pd.DataFrame({
        SAMPLE_KEY: np.repeat(se.sample_ids.to_numpy(), n_features),
        FEATURE_KEY: np.tile(se.feature_ids.to_numpy(), n_samples),
    })
    for name, values in se.assays.items():
        if name in table.columns:
            raise NameCollisionError([name], f"tidyse says: assay name '{name}' is reserved")
        # Column-major ravel walks features within each sample
        table[name] = values.ravel(order="F")
    return table


def _left_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str,
    validate: Optional[str] = None,
) -> pd.DataFrame:
    """Left merge on one key, refusing to suffix shared column names."""
    overlap = (set(left.columns) & set(right.columns)) - {on}
    if overlap:
        raise NameCollisionError(
            overlap,
            f"tidyse says: joining on '{on}' would merge distinct columns "
            f"with the same name: {', '.join(sorted(map(str, overlap)))}",
        )
    return left.merge(right, how="left", on=on, validate=validate)
