"""
Rebuild a SummarizedExperiment from a long table.

After a verb has run on the long table, the result is split back into the
container's blocks:

    - sample metadata: columns constant within each sample
    - feature metadata / ranges: columns constant within each feature
    - assays: everything else, pivoted wide (features × samples)

This only works while the table still holds exactly one row per (sample,
feature) pair of the original container. Verbs that change cardinality
(pivot_longer, dropped rows, duplicated pairs) produce tables that cannot
fit a fixed-shape matrix. In that case update_se_from_tibble() returns the
long table as-is. This fallback is expected and is not an error.

Column Provenance:
    Columns the template container already had keep their block as long as
    they still fit it (an assay stays an assay even when it happens to be
    constant per sample). New columns go to the sample metadata if they are
    constant per sample, else to the feature metadata if constant per
    feature, else they become a new assay.

Examples:
    >>> from tidyse.convert.flatten import as_tibble
    >>> from tidyse.convert.reconstruct import update_se_from_tibble
    >>>
    >>> long = as_tibble(se)
    >>> long['condition_upper'] = long['condition'].str.upper()
    >>> updated = update_se_from_tibble(long, se)
    >>> 'condition_upper' in updated.sample_metadata.columns
    True
"""

from __future__ import annotations

import logging

import pandas as pd

from tidyse.core.errors import ReconstructionNotPossible
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import (
    FEATURE_KEY,
    SAMPLE_KEY,
    get_needed_columns,
    get_special_columns,
)

__all__ = ['update_se_from_tibble', 'reconstruct', 'DATA_FRAME_RETURNED_MESSAGE']

logger = logging.getLogger(__name__)

DATA_FRAME_RETURNED_MESSAGE = (
    "tidyse says: A data frame is returned for independent data analysis."
)


def update_se_from_tibble(
    long_table: pd.DataFrame,
    template: SummarizedExperiment,
) -> SummarizedExperiment | pd.DataFrame:
    """
    Split a long table back into a container, or hand the table back.

    Args:
        long_table: Output of a verb run on as_tibble(template)
        template: Container the long table was derived from

    Returns:
        New SummarizedExperiment, or `long_table` itself when the table no
        longer has the container's shape
    """
    try:
        return reconstruct(long_table, template)
    except ReconstructionNotPossible as e:
        logger.info(f"{DATA_FRAME_RETURNED_MESSAGE} ({e.reason})")
        return long_table


def reconstruct(long_table: pd.DataFrame, template: SummarizedExperiment) -> SummarizedExperiment:
    """
    Split a long table into sample metadata, feature metadata, ranges and assays.

    Args:
        long_table: Table keyed by `sample` and `transcript`
        template: Container giving the expected samples, features and orders

    Returns:
        New SummarizedExperiment aligned to the template's sample and feature order

    Raises:
        ReconstructionNotPossible: If keys are missing or duplicated, the
            key sets differ from the template, the table is not a full cross
            product, or a per-cell column is not numeric
    """
    _check_shape(long_table, template)

    template_samples = set(template.sample_metadata.columns)
    template_features = set(template.feature_metadata.columns)
    template_ranges = set(get_special_columns(template))

    sample_cols: list = []
    feature_cols: list = []
    range_cols: list = []
    assay_cols: list = []

    for column in long_table.columns:
        if column in (SAMPLE_KEY, FEATURE_KEY):
            continue
        if column in template.assays:
            assay_cols.append(column)
            continue

        by_sample = _constant_within(long_table, SAMPLE_KEY, column)
        by_feature = _constant_within(long_table, FEATURE_KEY, column)

        if column in template_samples and by_sample:
            sample_cols.append(column)
        elif column in template_ranges and by_feature:
            range_cols.append(column)
        elif column in template_features and by_feature:
            feature_cols.append(column)
        elif by_sample:
            sample_cols.append(column)
        elif by_feature:
            feature_cols.append(column)
        else:
            assay_cols.append(column)

    assays = {}
    for column in assay_cols:
        if not isinstance(column, str) or not column:
            raise ReconstructionNotPossible(f"column {column!r} cannot name an assay")
        if not pd.api.types.is_numeric_dtype(long_table[column]):
            raise ReconstructionNotPossible(
                f"column '{column}' varies per (sample, transcript) but is not numeric"
            )
        wide = long_table.pivot(index=FEATURE_KEY, columns=SAMPLE_KEY, values=column)
        assays[column] = wide.reindex(
            index=template.feature_ids, columns=template.sample_ids
        ).to_numpy()

    row_ranges = None
    if template.row_ranges is not None and range_cols:
        row_ranges = _axis_table(long_table, FEATURE_KEY, range_cols, template.row_ranges.index)

    logger.debug(
        f"Reconstructed {len(sample_cols)} sample, {len(feature_cols)} feature, "
        f"{len(range_cols)} range columns and {len(assays)} assays"
    )

    return SummarizedExperiment(
        assays=assays,
        sample_metadata=_axis_table(long_table, SAMPLE_KEY, sample_cols, template.sample_ids),
        feature_metadata=_axis_table(long_table, FEATURE_KEY, feature_cols, template.feature_ids),
        row_ranges=row_ranges,
    )


def _check_shape(long_table: pd.DataFrame, template: SummarizedExperiment) -> None:
    """Raise ReconstructionNotPossible unless the table covers the template exactly once."""
    missing = [key for key in get_needed_columns() if key not in long_table.columns]
    if missing:
        raise ReconstructionNotPossible(f"key columns missing: {', '.join(missing)}")

    if long_table.columns.duplicated().any():
        dupes = long_table.columns[long_table.columns.duplicated()].unique()
        raise ReconstructionNotPossible(f"duplicated column names: {list(dupes)}")

    if long_table.duplicated(subset=[SAMPLE_KEY, FEATURE_KEY]).any():
        raise ReconstructionNotPossible("duplicated (sample, transcript) pairs")

    for key, expected in ((SAMPLE_KEY, template.sample_ids), (FEATURE_KEY, template.feature_ids)):
        observed = pd.Index(long_table[key].unique())
        if len(observed) != len(expected) or not observed.isin(expected).all():
            raise ReconstructionNotPossible(
                f"'{key}' values no longer match the container "
                f"({len(observed)} observed, {len(expected)} expected)"
            )

    expected_rows = template.n_samples * template.n_features
    if len(long_table) != expected_rows:
        raise ReconstructionNotPossible(
            f"{len(long_table)} rows, expected {expected_rows}"
        )


def _constant_within(table: pd.DataFrame, key: str, column) -> bool:
    """Whether `column` takes a single value (NaN included) within each `key` group."""
    try:
        counts = table.groupby(key, sort=False)[column].nunique(dropna=False)
    except TypeError:
        # Unhashable cells (lists, frames) are never constant
        return False
    return bool(counts.le(1).all())


def _axis_table(table: pd.DataFrame, key: str, columns: list, order: pd.Index) -> pd.DataFrame:
    """Distinct rows of `key` + `columns`, indexed like `order`."""
    projected = (
        table[[key] + columns]
        .drop_duplicates(subset=key)
        .set_index(key)
        .reindex(order)
    )
    projected.index = order
    return projected
