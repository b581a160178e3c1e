"""
tidyr verbs for plain DataFrames, written over pandas primitives.

These are the table-level operations the container verbs delegate to once a
SummarizedExperiment has been flattened:

    - extract_frame: regex capture groups -> new columns (Series.str.extract)
    - unite_frame: paste several columns into one
    - separate_frame: split one column by regex or character positions
    - pivot_longer_frame: columns -> name/value rows (DataFrame.melt)
    - nest_frame / unnest_frame: group rows into sub-tables and back

All functions return new DataFrames and never modify their input. Placement
of new columns follows tidyr: results of extract/separate go where the
source column was, the united column goes where its first source was, and
unnested columns replace the list column.
"""

from __future__ import annotations

import re
import warnings
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import pandas as pd

__all__ = [
    'extract_frame',
    'unite_frame',
    'separate_frame',
    'pivot_longer_frame',
    'nest_frame',
    'unnest_frame',
]

ALNUM_GROUP = r"([A-Za-z0-9]+)"
NON_ALNUM = r"[^A-Za-z0-9]+"

_EXTRA_OPTIONS = ("warn", "drop", "merge")
_FILL_OPTIONS = ("warn", "right", "left")


def extract_frame(
    df: pd.DataFrame,
    col: str,
    into: str | Sequence[Optional[str]],
    regex: str = ALNUM_GROUP,
    remove: bool = True,
    convert: bool = False,
) -> pd.DataFrame:
    """
    Turn each capture group of `regex` into a new column.

    Args:
        df: Input table
        col: Column to match against
        into: Names of the new columns, one per group. None skips a group
        regex: Pattern with exactly len(into) capture groups
        remove: Drop `col` from the output
        convert: Convert new columns to numbers where possible

    Returns:
        New DataFrame. Non-matching or missing input gives NaN

    Raises:
        KeyError: If `col` is missing
        ValueError: If the group count does not match `into`
    """
    into = _as_list(into)
    pattern = re.compile(regex)
    if pattern.groups != len(into):
        raise ValueError(f"regex should define {len(into)} groups; {pattern.groups} found.")

    extracted = _string_values(df[col]).str.extract(pattern, expand=True)
    new = pd.DataFrame(
        {name: extracted.iloc[:, i] for i, name in enumerate(into) if name is not None},
        index=df.index,
    )
    if convert:
        new = _convert(new)
    return _splice(df, col, new, remove)


def unite_frame(
    df: pd.DataFrame,
    col: str,
    cols: Optional[Sequence[str]] = None,
    sep: str = "_",
    remove: bool = True,
    na_rm: bool = False,
) -> pd.DataFrame:
    """
    Paste several columns into one string column.

    Args:
        df: Input table
        col: Name of the new column
        cols: Columns to paste, in order (all columns when empty)
        sep: Separator between values
        remove: Drop the source columns
        na_rm: Skip missing values instead of writing "NA"

    Returns:
        New DataFrame with `col` at the position of the first source column
    """
    cols = _as_list(cols) or list(df.columns)
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")

    strings = [_string_values(df[c]) for c in cols]
    if na_rm:
        joined = [sep.join(v for v in values if not pd.isna(v)) for values in zip(*strings)]
    else:
        joined = [sep.join("NA" if pd.isna(v) else v for v in values) for values in zip(*strings)]
    united = pd.DataFrame({col: pd.Series(joined, index=df.index, dtype=object)})

    position = list(df.columns).index(cols[0])
    remaining = [c for c in df.columns if c != col and not (remove and c in cols)]
    before = [c for c in df.columns[:position] if c in remaining]
    after = [c for c in remaining if c not in before]
    return pd.concat([df[before], united, df[after]], axis=1)


def separate_frame(
    df: pd.DataFrame,
    col: str,
    into: str | Sequence[Optional[str]],
    sep: str | int | Sequence[int] = NON_ALNUM,
    remove: bool = True,
    convert: bool = False,
    extra: str = "warn",
    fill: str = "warn",
) -> pd.DataFrame:
    """
    Split one column into several.

    Args:
        df: Input table
        col: Column to split
        into: Names of the new columns. None discards that piece
        sep: Regex to split on, or integer character position(s) (negative
            positions count from the right; len(sep) == len(into) - 1)
        remove: Drop `col` from the output
        convert: Convert new columns to numbers where possible
        extra: Too many pieces: "warn" (drop with warning), "drop", or
            "merge" (split at most len(into) - 1 times)
        fill: Too few pieces: "warn" (pad right with warning), "right", "left"

    Returns:
        New DataFrame with the new columns where `col` was
    """
    into = _as_list(into)
    if extra not in _EXTRA_OPTIONS:
        raise ValueError(f"extra must be one of {_EXTRA_OPTIONS}, got {extra!r}")
    if fill not in _FILL_OPTIONS:
        raise ValueError(f"fill must be one of {_FILL_OPTIONS}, got {fill!r}")

    n = len(into)
    values = _string_values(df[col])

    if isinstance(sep, str):
        rows = _split_by_regex(values, re.compile(sep), n, extra, fill)
    else:
        positions = [int(sep)] if isinstance(sep, (int, np.integer)) else [int(p) for p in sep]
        if len(positions) != n - 1:
            raise ValueError(f"sep must have {n - 1} positions for {n} output columns")
        rows = [
            [np.nan] * n if pd.isna(value) else _split_by_position(value, positions)
            for value in values
        ]

    pieces = pd.DataFrame(rows, columns=range(n), index=df.index, dtype=object)
    new = pd.DataFrame(
        {name: pieces[i] for i, name in enumerate(into) if name is not None},
        index=df.index,
    )
    if convert:
        new = _convert(new)
    return _splice(df, col, new, remove)


def pivot_longer_frame(
    df: pd.DataFrame,
    cols: str | Sequence[str],
    names_to: str | Sequence[Optional[str]] = "name",
    names_prefix: Optional[str] = None,
    names_sep: Optional[str] = None,
    names_pattern: Optional[str] = None,
    values_to: str = "value",
    values_drop_na: bool = False,
) -> pd.DataFrame:
    """
    Lengthen a table: each selected column becomes a (name, value) row.

    Each input row expands into len(cols) consecutive output rows, in
    column order. The kept columns come first, then the name column(s), then
    the value column.

    Args:
        df: Input table
        cols: Columns to pivot into longer format
        names_to: Name column, or several with names_sep/names_pattern.
            None entries discard that component of the name
        names_prefix: Regex removed from the start of each name
        names_sep: Regex splitting names into len(names_to) parts
        names_pattern: Regex with one group per entry of names_to
        values_to: Value column name
        values_drop_na: Drop rows whose value is missing

    Returns:
        New long DataFrame with a fresh RangeIndex
    """
    cols = _as_list(cols)
    if not cols:
        raise ValueError("cols must select at least one column")
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")

    names_to = _as_list(names_to)
    if ".value" in names_to:
        raise ValueError("names_to='.value' is not supported")
    if len(names_to) > 1 and names_sep is None and names_pattern is None:
        raise ValueError("multiple names_to require names_sep or names_pattern")

    id_cols = [c for c in df.columns if c not in cols]
    clashes = [c for c in [*names_to, values_to] if c is not None and c in id_cols]
    if clashes:
        raise ValueError(f"names_to/values_to clash with existing columns: {clashes}")

    name_col = "__tidyse_name__"
    value_col = "__tidyse_value__"
    long = df.melt(
        id_vars=id_cols,
        value_vars=cols,
        var_name=name_col,
        value_name=value_col,
    ).rename(columns={value_col: values_to})
    # melt stacks column by column; reorder so each input row stays together
    origin = np.tile(np.arange(len(df)), len(cols))
    long = long.iloc[np.argsort(origin, kind="stable")].reset_index(drop=True)

    names = long[name_col].astype(str)
    if names_prefix is not None:
        names = names.str.replace(f"^(?:{names_prefix})", "", regex=True)

    if names_sep is not None:
        parts = names.str.split(names_sep, regex=True, expand=True)
    elif names_pattern is not None:
        parts = names.str.extract(names_pattern, expand=True)
    else:
        parts = names.to_frame()
    if parts.shape[1] != len(names_to):
        raise ValueError(
            f"names split into {parts.shape[1]} pieces, expected {len(names_to)}"
        )

    name_frame = pd.DataFrame(
        {name: parts.iloc[:, i] for i, name in enumerate(names_to) if name is not None},
        index=long.index,
    )
    long = pd.concat([long[id_cols], name_frame, long[[values_to]]], axis=1)

    if values_drop_na:
        long = long[long[values_to].notna()].reset_index(drop=True)
    return long


def nest_frame(
    df: pd.DataFrame,
    by: Optional[str | Sequence[str]] = None,
    cols: Optional[str | Sequence[str]] = None,
    name: str = "data",
) -> pd.DataFrame:
    """
    Collapse rows into one row per group, with a sub-table per group.

    Args:
        df: Input table
        by: Grouping columns (everything else is nested)
        cols: Columns to nest (everything else groups). Exactly one of
            `by` and `cols` must be given
        name: Name of the list column holding the sub-tables

    Returns:
        New DataFrame: grouping columns + `name`, one row per distinct
        group in order of first appearance. Missing keys form their own group
    """
    by, nested_cols = _nest_columns(df, by, cols)
    if name in by:
        raise ValueError(f"nested column name '{name}' is also a grouping column")

    if not by:
        return pd.DataFrame({name: _object_series([df[nested_cols].reset_index(drop=True)])})

    codes = df.groupby(by, sort=False, dropna=False).ngroup().to_numpy()
    first = pd.Series(codes).drop_duplicates()
    members = pd.Series(np.arange(len(df))).groupby(codes).indices

    outer = df.iloc[first.index.to_numpy()][by].reset_index(drop=True)
    outer[name] = _object_series(
        [df.iloc[members[code]][nested_cols].reset_index(drop=True) for code in first],
        index=outer.index,
    )
    return outer


def unnest_frame(
    df: pd.DataFrame,
    cols: str | Sequence[str] = "data",
    keep_empty: bool = False,
    names_sep: Optional[str] = None,
) -> pd.DataFrame:
    """
    Expand list columns: each row repeats once per row of its sub-table.

    Args:
        df: Table with list column(s) of DataFrames (or list-likes)
        cols: List column(s) to unnest. Sub-tables of the same row must have
            the same length
        keep_empty: Keep rows whose sub-tables are empty or missing, as one
            row of NaN
        names_sep: If given, inner names become "<col><names_sep><inner>"

    Returns:
        New DataFrame with a fresh RangeIndex
    """
    cols = _as_list(cols)
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")

    sizes = np.zeros(len(df), dtype=int)
    inner: dict[Any, list[pd.DataFrame]] = {c: [] for c in cols}

    for i in range(len(df)):
        cells = [_cell_frame(df[c].iat[i], c) for c in cols]
        lengths = {len(cell) for cell in cells if cell is not None}
        if len(lengths) > 1:
            raise ValueError(f"In row {i}, can't recycle sub-tables of sizes {sorted(lengths)}")
        size = lengths.pop() if lengths else 0

        if size == 0 and keep_empty:
            size = 1
            cells = [pd.DataFrame(index=[0]) for _ in cols]

        for c, cell in zip(cols, cells):
            if cell is None:
                # Every column contributes exactly `size` rows for this outer row
                cell = pd.DataFrame(index=range(size))
            inner[c].append(cell.reset_index(drop=True))
        sizes[i] = size

    repeated = np.repeat(np.arange(len(df)), sizes)
    pieces = []
    for c in df.columns:
        if c not in cols:
            pieces.append(df[[c]].iloc[repeated].reset_index(drop=True))
            continue
        frames = [f for f in inner[c] if len(f) > 0] or inner[c]
        expanded = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(index=range(0))
        if names_sep is not None:
            expanded = expanded.rename(columns=lambda inner_name: f"{c}{names_sep}{inner_name}")
        pieces.append(expanded)

    result = pd.concat(pieces, axis=1) if pieces else pd.DataFrame(index=range(len(repeated)))
    if result.columns.duplicated().any():
        dupes = result.columns[result.columns.duplicated()].unique()
        raise ValueError(f"unnesting would duplicate column names: {list(dupes)}")
    return result


def _as_list(value) -> list:
    """Normalize a column selection (None, a name, or several names) to a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _string_values(series: pd.Series) -> pd.Series:
    """Values as str, keeping missing values missing."""
    return series.astype(object).where(series.isna(), series.astype(str))


def _convert(frame: pd.DataFrame) -> pd.DataFrame:
    """Numeric conversion per column; columns that do not convert are kept as they are."""
    converted = {}
    for column in frame.columns:
        try:
            converted[column] = pd.to_numeric(frame[column])
        except (ValueError, TypeError):
            converted[column] = frame[column]
    return pd.DataFrame(converted, index=frame.index)


def _splice(df: pd.DataFrame, col: str, new: pd.DataFrame, remove: bool) -> pd.DataFrame:
    """Insert `new` where `col` is, replacing same-named columns."""
    position = df.columns.get_loc(col)
    replaced = set(new.columns)
    before = [c for c in df.columns[:position] if c not in replaced]
    after = [c for c in df.columns[position + 1:] if c not in replaced]
    source = [] if remove or col in replaced else [col]
    return pd.concat([df[before], df[source], new, df[after]], axis=1)


def _split_by_regex(values: pd.Series, pattern: re.Pattern, n: int, extra: str, fill: str) -> list[list]:
    """Split each value on `pattern` into exactly n pieces, padding or trimming."""
    rows = []
    n_extra = 0
    n_missing = 0
    for value in values:
        if pd.isna(value):
            rows.append([np.nan] * n)
            continue
        pieces = _split_on_matches(value, pattern, n - 1 if extra == "merge" else None)
        if len(pieces) > n:
            n_extra += 1
            pieces = pieces[:n]
        elif len(pieces) < n:
            n_missing += 1
            padding = [np.nan] * (n - len(pieces))
            pieces = padding + pieces if fill == "left" else pieces + padding
        rows.append(pieces)

    if n_extra and extra == "warn":
        warnings.warn(
            f"Expected {n} pieces. Additional pieces discarded in {n_extra} rows.",
            UserWarning,
        )
    if n_missing and fill == "warn":
        warnings.warn(
            f"Expected {n} pieces. Missing pieces filled with NA in {n_missing} rows.",
            UserWarning,
        )
    return rows


def _split_on_matches(value: str, pattern: re.Pattern, maxsplit: Optional[int]) -> list[str]:
    """
    Split at the matches of `pattern`, at most `maxsplit` times (None = no limit).

    Unlike re.split, capture groups in the separator never become pieces,
    and maxsplit=0 means no split at all. Empty matches are not separators.
    """
    pieces = []
    start = 0
    for match in pattern.finditer(value):
        if maxsplit is not None and len(pieces) >= maxsplit:
            break
        if match.end() == match.start():
            continue
        pieces.append(value[start:match.start()])
        start = match.end()
    pieces.append(value[start:])
    return pieces


def _split_by_position(value: str, positions: list[int]) -> list[str]:
    """Cut a string at character positions (negative = from the right)."""
    cuts = [max(0, min(len(value), p if p >= 0 else len(value) + p)) for p in positions]
    bounds = [0, *cuts, len(value)]
    return [value[start:end] for start, end in zip(bounds[:-1], bounds[1:])]


def _nest_columns(df: pd.DataFrame, by, cols) -> tuple[list, list]:
    """Resolve (grouping columns, nested columns) from exactly one of by/cols."""
    if (by is None) == (cols is None):
        raise ValueError("Specify exactly one of `by` or `cols`")
    if by is not None:
        by = _as_list(by)
        missing = [c for c in by if c not in df.columns]
        nested = [c for c in df.columns if c not in by]
    else:
        nested = _as_list(cols)
        missing = [c for c in nested if c not in df.columns]
        by = [c for c in df.columns if c not in nested]
    if missing:
        raise KeyError(f"Columns not found: {missing}")
    return by, nested


def _object_series(items: Iterable, index: Optional[pd.Index] = None) -> pd.Series:
    """Series of arbitrary objects (DataFrames, containers) without array coercion."""
    items = list(items)
    cells = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        cells[i] = item
    return pd.Series(cells, index=index, dtype=object)


def _cell_frame(cell, col) -> Optional[pd.DataFrame]:
    """One list-column cell as a DataFrame; None for missing cells."""
    if cell is None:
        return None
    if isinstance(cell, pd.DataFrame):
        return cell
    if isinstance(cell, (pd.Series, np.ndarray, list, tuple)):
        return pd.DataFrame({col: list(cell)})
    if pd.isna(cell):
        return None
    return pd.DataFrame({col: [cell]})
