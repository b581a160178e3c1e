"""
Prepare a SummarizedExperiment for the tidy verbs.

The long table names its key columns `sample` and `transcript`. User
metadata that already has a column with one of those names would collide
with the key, so tidy() resolves the clash according to the configured
collision policy. By default it renames the user column (`sample` ->
`sample_`) with a warning.

Examples:
    >>> from tidyse.convert.tidy import tidy
    >>> from tidyse.config import TidyConfig
    >>>
    >>> se = tidy(se)  # warns if colData had a 'sample' column
    >>> se = tidy(se, config=TidyConfig(collision_policy="reject"))
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

import pandas as pd

from tidyse.config import TidyConfig
from tidyse.core.errors import NameCollisionError
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import FEATURE_KEY, SAMPLE_KEY

__all__ = ['tidy']

logger = logging.getLogger(__name__)


def tidy(se: SummarizedExperiment, config: Optional[TidyConfig] = None) -> SummarizedExperiment:
    """
    Return a copy of `se` whose metadata does not clash with the reserved keys.

    Args:
        se: Container to prepare
        config: Collision settings (default TidyConfig())

    Returns:
        New SummarizedExperiment (arrays and frames are shared when nothing
        had to be renamed)

    Raises:
        TypeError: If `se` is not a SummarizedExperiment
        NameCollisionError: If the policy is "reject" and a reserved name is
            taken, or the renamed column name is taken too
    """
    if not isinstance(se, SummarizedExperiment):
        raise TypeError(f"tidy expects a SummarizedExperiment, got {type(se)}")

    config = config or TidyConfig()

    sample_metadata = _resolve_collision(se.sample_metadata, SAMPLE_KEY, "sample metadata", config)
    feature_metadata = _resolve_collision(se.feature_metadata, FEATURE_KEY, "feature metadata", config)

    return SummarizedExperiment(
        assays=dict(se.assays),
        sample_metadata=sample_metadata,
        feature_metadata=feature_metadata,
        row_ranges=se.row_ranges,
    )


def _resolve_collision(
    frame: pd.DataFrame,
    key: str,
    block: str,
    config: TidyConfig,
) -> pd.DataFrame:
    """Apply the collision policy to one annotation block."""
    if key not in frame.columns:
        return frame

    if config.collision_policy == "reject":
        raise NameCollisionError(
            [key],
            f"tidyse says: column {key} in your {block} is a reserved column name.",
        )

    renamed = f"{key}{config.rename_suffix}"
    if renamed in frame.columns:
        raise NameCollisionError(
            [key, renamed],
            f"tidyse says: cannot rename column {key} in your {block} to {renamed}, "
            "which already exists.",
        )

    if config.collision_policy == "warn":
        warnings.warn(
            f"tidyse says: column {key} in your {block} has been renamed as {renamed}, "
            "since is a reserved column name.",
            UserWarning,
        )
    else:
        logger.debug(f"Renamed reserved column {key} in {block} to {renamed}")

    return frame.rename(columns={key: renamed})
