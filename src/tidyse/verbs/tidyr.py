"""
tidyr verbs for SummarizedExperiment and plain DataFrames.

Each verb branches once on its input:

    DataFrame            -> the pandas rendition in tidyse.verbs.frame
    SummarizedExperiment -> guard -> as_tibble -> frame verb -> update_se_from_tibble

The guard runs before any flattening: extract, unite and separate refuse to
remove or overwrite a view-only column (keys, annotations, ranges) when
asked to remove their source. The result is a new SummarizedExperiment when
the long table still fits the container, otherwise the long table.

Examples:
    >>> from tidyse.verbs.tidyr import extract, unite, separate, pivot_longer
    >>>
    >>> se2 = unite(se, "group", ["condition", "type"])
    >>> se3 = separate(se2, "group", into=["condition2", "type2"], remove=False)
    >>> long = pivot_longer(se, ["condition", "type"], names_to="name", values_to="value")
"""

from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd

from tidyse.convert.flatten import as_tibble
from tidyse.convert.reconstruct import update_se_from_tibble
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import assert_mutable, protected_columns
from tidyse.verbs.frame import (
    ALNUM_GROUP,
    NON_ALNUM,
    _as_list,
    extract_frame,
    pivot_longer_frame,
    separate_frame,
    unite_frame,
)

__all__ = ['extract', 'unite', 'separate', 'pivot_longer']


Tidyable = SummarizedExperiment | pd.DataFrame


def extract(
    data: Tidyable,
    col: str,
    into: str | Sequence[Optional[str]],
    regex: str = ALNUM_GROUP,
    remove: bool = True,
    convert: bool = False,
) -> Tidyable:
    """
    Extract regex capture groups of a column into new columns.

    Args:
        data: SummarizedExperiment or DataFrame
        col: Column to match against
        into: New column names, one per group (None skips a group)
        regex: Pattern with one capture group per entry of `into`
        remove: Drop `col` from the output
        convert: Convert new columns to numbers where possible

    Returns:
        Same type as `data` when the result fits the container, else DataFrame

    Raises:
        ProtectedColumnError: If `into` names a view-only column and remove=True

    Examples:
        >>> extract(se, "type", into="sequencing", regex="([a-z]*)_end")
    """
    if isinstance(data, SummarizedExperiment):
        assert_mutable(_as_list(into), protected_columns(data), removal_requested=remove)
        result = extract_frame(as_tibble(data), col, into, regex=regex, remove=remove, convert=convert)
        return update_se_from_tibble(result, data)

    _check_frame(data, "extract")
    return extract_frame(data, col, into, regex=regex, remove=remove, convert=convert)


def unite(
    data: Tidyable,
    col: str,
    cols: Optional[Sequence[str]] = None,
    sep: str = "_",
    remove: bool = True,
    na_rm: bool = False,
) -> Tidyable:
    """
    Paste several columns into one.

    Args:
        data: SummarizedExperiment or DataFrame
        col: Name of the new column
        cols: Columns to unite (all columns when empty)
        sep: Separator between values
        remove: Drop the source columns
        na_rm: Skip missing values instead of writing "NA"

    Raises:
        ProtectedColumnError: If `col` is a view-only column and remove=True

    Examples:
        >>> unite(se, "group", ["condition", "type"])
    """
    if isinstance(data, SummarizedExperiment):
        assert_mutable([col], protected_columns(data), removal_requested=remove)
        result = unite_frame(as_tibble(data), col, cols, sep=sep, remove=remove, na_rm=na_rm)
        return update_se_from_tibble(result, data)

    _check_frame(data, "unite")
    return unite_frame(data, col, cols, sep=sep, remove=remove, na_rm=na_rm)


def separate(
    data: Tidyable,
    col: str,
    into: str | Sequence[Optional[str]],
    sep: str | int | Sequence[int] = NON_ALNUM,
    remove: bool = True,
    convert: bool = False,
    extra: str = "warn",
    fill: str = "warn",
) -> Tidyable:
    """
    Split a column into several by regex or character positions.

    Args:
        data: SummarizedExperiment or DataFrame
        col: Column to split
        into: New column names (None discards a piece)
        sep: Regex, or integer position(s) to cut at
        remove: Drop `col` from the output
        convert: Convert new columns to numbers where possible
        extra: "warn", "drop" or "merge" when there are too many pieces
        fill: "warn", "right" or "left" when there are too few pieces

    Raises:
        ProtectedColumnError: If `col` is a view-only column and remove=True

    Examples:
        >>> un = unite(se, "group", ["condition", "type"])
        >>> separate(un, "group", into=["condition", "type"], remove=False)
    """
    if isinstance(data, SummarizedExperiment):
        assert_mutable([col], protected_columns(data), removal_requested=remove)
        result = separate_frame(
            as_tibble(data), col, into,
            sep=sep, remove=remove, convert=convert, extra=extra, fill=fill,
        )
        return update_se_from_tibble(result, data)

    _check_frame(data, "separate")
    return separate_frame(
        data, col, into,
        sep=sep, remove=remove, convert=convert, extra=extra, fill=fill,
    )


def pivot_longer(
    data: Tidyable,
    cols: str | Sequence[str],
    names_to: str | Sequence[Optional[str]] = "name",
    names_prefix: Optional[str] = None,
    names_sep: Optional[str] = None,
    names_pattern: Optional[str] = None,
    values_to: str = "value",
    values_drop_na: bool = False,
) -> Tidyable:
    """
    Lengthen data: selected columns become name/value rows.

    On a container the row count usually changes, so the result is almost
    always a long DataFrame.

    Examples:
        >>> pivot_longer(se, ["condition", "type"], names_to="name", values_to="value")
    """
    kwargs = dict(
        names_to=names_to,
        names_prefix=names_prefix,
        names_sep=names_sep,
        names_pattern=names_pattern,
        values_to=values_to,
        values_drop_na=values_drop_na,
    )
    if isinstance(data, SummarizedExperiment):
        result = pivot_longer_frame(as_tibble(data), cols, **kwargs)
        return update_se_from_tibble(result, data)

    _check_frame(data, "pivot_longer")
    return pivot_longer_frame(data, cols, **kwargs)


def _check_frame(data, verb: str) -> None:
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"{verb} expects SummarizedExperiment or pd.DataFrame, got {type(data)}")
