"""
nest() and unnest() for SummarizedExperiment and plain DataFrames.

Nesting a container groups its long table by one or more annotation columns
and stores, for each group, the original container narrowed to that
group's samples, features and nested columns. The outer table is a
NestedFrame, a DataFrame subclass that marks the result so unnest() knows
to flatten the sub-containers again.

    nest(se, by="condition")
        condition | data
        untreated | <SummarizedExperiment 14599 features × 4 samples>
        treated   | <SummarizedExperiment 14599 features × 3 samples>

Grouping by `sample` or `transcript` is refused with ReservedKeyError:
those keys index the container itself.

A group can only be a sub-container if its rows are exactly the cross
product of its samples and features. That holds for keys that are constant
per sample or per feature. Keys that vary per cell (e.g. an assay value)
produce plain sub-tables for every group instead.

unnest() on a NestedFrame of sub-containers returns one long DataFrame,
never a container: the groups may have different shapes.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from tidyse.convert.flatten import as_tibble
from tidyse.core.errors import NameCollisionError, ReservedKeyError
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import FEATURE_KEY, SAMPLE_KEY, get_needed_columns
from tidyse.verbs.frame import _as_list, _object_series, nest_frame, unnest_frame

__all__ = ['NestedFrame', 'nest', 'unnest']

logger = logging.getLogger(__name__)


class NestedFrame(pd.DataFrame):
    """DataFrame produced by nesting a SummarizedExperiment; pandas operations keep the type."""

    _metadata: list[str] = []

    @property
    def _constructor(self):
        return NestedFrame


def nest(
    data: SummarizedExperiment | pd.DataFrame,
    by: Optional[str | Sequence[str]] = None,
    cols: Optional[str | Sequence[str]] = None,
    name: str = "data",
) -> pd.DataFrame:
    """
    Group rows and store each group as a sub-container or sub-table.

    Args:
        data: SummarizedExperiment or DataFrame
        by: Grouping columns (everything else is nested)
        cols: Columns to nest (everything else groups). Exactly one of
            `by` and `cols` must be given
        name: Name of the column holding the nested values

    Returns:
        NestedFrame for container input, DataFrame otherwise; one row per group

    Raises:
        ReservedKeyError: If `sample` or `transcript` would be a grouping column

    Examples:
        >>> nested = nest(se, by="condition")
        >>> nested["data"].iloc[0].n_samples
        4
    """
    if isinstance(data, SummarizedExperiment):
        return _nest_experiment(data, by, cols, name)

    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"nest expects SummarizedExperiment or pd.DataFrame, got {type(data)}")
    return nest_frame(data, by=by, cols=cols, name=name)


def unnest(
    data: pd.DataFrame,
    cols: str | Sequence[str] = "data",
    keep_empty: bool = False,
    names_sep: Optional[str] = None,
) -> pd.DataFrame:
    """
    Expand nested values back into rows.

    Args:
        data: NestedFrame (from nest on a container) or DataFrame
        cols: Column(s) to unnest
        keep_empty: Keep rows with empty sub-tables as one row of NaN
        names_sep: Prefix inner names with "<col><names_sep>"

    Returns:
        Plain DataFrame when the nested values are containers; a NestedFrame
        when unnesting plain sub-tables of a NestedFrame; otherwise a DataFrame

    Examples:
        >>> long = unnest(nest(se, by="condition"), "data")
        >>> len(long) == se.n_samples * se.n_features
        True
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"unnest expects pd.DataFrame, got {type(data)}")

    if isinstance(data, NestedFrame):
        columns = _as_list(cols)
        containers = [c for c in columns if _holds_experiments(data[c])]
        if containers:
            if len(columns) != 1:
                raise ValueError(
                    f"Sub-containers can only be unnested one column at a time; "
                    f"got {columns}"
                )
            return _unnest_experiments(data, columns[0], keep_empty, names_sep)
        result = unnest_frame(pd.DataFrame(data), cols, keep_empty=keep_empty, names_sep=names_sep)
        return NestedFrame(result)

    return unnest_frame(data, cols, keep_empty=keep_empty, names_sep=names_sep)


def _nest_experiment(se: SummarizedExperiment, by, cols, name: str) -> NestedFrame:
    """Nest a container; sub-containers when every group is a full cross product."""
    if by is not None:
        outer = set(_as_list(by))
    elif cols is not None:
        outer = set(get_needed_columns()) - set(_as_list(cols))
    else:
        raise ValueError("Specify exactly one of `by` or `cols`")

    reserved = outer & {SAMPLE_KEY, FEATURE_KEY}
    if reserved:
        raise ReservedKeyError(reserved)

    nested = nest_frame(as_tibble(se), by=by, cols=cols, name=name)

    narrowed = []
    for sub in nested[name]:
        samples = pd.unique(sub[SAMPLE_KEY])
        features = pd.unique(sub[FEATURE_KEY])
        if len(sub) != len(samples) * len(features):
            logger.info(
                "tidyse says: nesting keys vary within samples and features; "
                "groups are kept as plain tables."
            )
            return NestedFrame(nested)
        narrowed.append(
            se.select_samples(samples)
            .select_features(features)
            .select_columns(sub.columns)
        )

    nested[name] = _object_series(narrowed, index=nested.index)
    logger.debug(f"Nested {se.n_samples} samples into {len(nested)} groups")
    return NestedFrame(nested)


def _holds_experiments(column: pd.Series) -> bool:
    return any(isinstance(cell, SummarizedExperiment) for cell in column)


def _unnest_experiments(
    data: NestedFrame, col: str, keep_empty: bool, names_sep: Optional[str]
) -> pd.DataFrame:
    """Flatten each sub-container and broadcast its group's outer columns."""
    drop = [col] + [key for key in get_needed_columns() if key in data.columns]
    outer = pd.DataFrame(data).drop(columns=drop)

    frames = []
    inner_columns: list = []
    for i, cell in enumerate(data[col]):
        inner = as_tibble(cell) if cell is not None else pd.DataFrame()
        if len(inner) == 0:
            if not keep_empty:
                continue
            inner = pd.DataFrame(index=range(1), columns=inner.columns)
        if names_sep is not None:
            inner = inner.rename(columns=lambda name: f"{col}{names_sep}{name}")
        overlap = set(inner.columns) & set(outer.columns)
        if overlap:
            raise NameCollisionError(overlap)
        inner_columns.extend(c for c in inner.columns if c not in inner_columns)
        broadcast = outer.iloc[np.repeat(i, len(inner))].reset_index(drop=True)
        frames.append(pd.concat([inner, broadcast], axis=1))

    if not frames:
        return pd.DataFrame(columns=list(outer.columns))
    return pd.concat(frames, ignore_index=True)[inner_columns + list(outer.columns)]
