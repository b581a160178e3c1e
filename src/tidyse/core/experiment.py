"""
Core data structure for annotated count matrices.

SummarizedExperiment keeps one or more value matrices (counts, normalized
counts, ...) aligned with the annotations of both axes: sample metadata on
the columns, feature metadata (and optional genomic ranges) on the rows.

Biological Context:
    Expression experiments produce matrices shaped features × samples:
    - Rows = features (genes, transcripts, proteins)
    - Columns = samples (patients, conditions, replicates)
    - Values = measurements (counts, intensities), possibly several per cell
      (raw counts next to normalized counts)

    Each axis carries its own annotations (condition and batch per sample,
    gene symbol and biotype per feature, chromosome coordinates per feature).
    The three blocks are only meaningful together and must stay aligned.

Engineering Design:
    - Immutable: operations return new instances (functional style)
    - Explicit: four owned fields, no hidden attachments
    - Validated: constructor checks shape and index consistency
    - Positional: matrix row i is feature_metadata row i, column j is
      sample_metadata row j

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from tidyse.core.experiment import SummarizedExperiment
    >>>
    >>> counts = np.array([[10, 20], [30, 40]])
    >>> samples = pd.DataFrame(
    ...     {'condition': ['untreated', 'treated']},
    ...     index=pd.Index(['s1', 's2']),
    ... )
    >>> features = pd.DataFrame(
    ...     {'symbol': ['TP53', 'MYC']},
    ...     index=pd.Index(['ENSG001', 'ENSG002']),
    ... )
    >>> se = SummarizedExperiment(
    ...     assays={'counts': counts},
    ...     sample_metadata=samples,
    ...     feature_metadata=features,
    ... )
    >>>
    >>> # Subset samples
    >>> treated = se.select_samples(se.sample_metadata['condition'] == 'treated')
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Collection, Mapping, Optional

import numpy as np
import pandas as pd

__all__ = ['SummarizedExperiment']


class SummarizedExperiment:
    """
    Immutable container for value matrices + sample and feature annotations.

    Attributes:
        assays: Read-only mapping of matrix name -> array (features × samples)
        sample_metadata: Sample annotations, index = sample ids
        feature_metadata: Feature annotations, index = feature ids
        row_ranges: Optional per-feature range/position table, index = feature ids

    Shape Invariants:
        - every assay has shape (len(feature_metadata), len(sample_metadata))
        - sample ids and feature ids are unique
        - row_ranges.index equals feature ids (same order) when present

    Design Principles:
        1. Immutability: all operations return new instances
        2. Validation: constructor ensures consistency
        3. Zero assays allowed: shape then comes from the metadata
    """

    def __init__(
        self,
        assays: Mapping[str, np.ndarray],
        sample_metadata: pd.DataFrame,
        feature_metadata: pd.DataFrame,
        row_ranges: Optional[pd.DataFrame] = None,
    ):
        """
        Initialize SummarizedExperiment with validation.

        Args:
            assays: Mapping of matrix name -> 2D array (features × samples)
            sample_metadata: DataFrame with one row per sample, indexed by sample id
            feature_metadata: DataFrame with one row per feature, indexed by feature id
            row_ranges: Optional DataFrame of genomic ranges, indexed by feature id
                in the same order as feature_metadata

        Raises:
            TypeError: If a component has the wrong type
            ValueError: If shapes are inconsistent or indices don't match
        """
        # Type validation
        if not isinstance(assays, Mapping):
            raise TypeError(f"assays must be a Mapping, got {type(assays)}")
        if not isinstance(sample_metadata, pd.DataFrame):
            raise TypeError(f"sample_metadata must be pd.DataFrame, got {type(sample_metadata)}")
        if not isinstance(feature_metadata, pd.DataFrame):
            raise TypeError(f"feature_metadata must be pd.DataFrame, got {type(feature_metadata)}")
        if row_ranges is not None and not isinstance(row_ranges, pd.DataFrame):
            raise TypeError(f"row_ranges must be pd.DataFrame or None, got {type(row_ranges)}")

        n_features = len(feature_metadata)
        n_samples = len(sample_metadata)

        # Index validation
        if not sample_metadata.index.is_unique:
            dupes = sample_metadata.index[sample_metadata.index.duplicated()].unique()
            raise ValueError(f"sample ids must be unique, duplicated: {list(dupes)}")
        if not feature_metadata.index.is_unique:
            dupes = feature_metadata.index[feature_metadata.index.duplicated()].unique()
            raise ValueError(f"feature ids must be unique, duplicated: {list(dupes)}")
        if row_ranges is not None and not row_ranges.index.equals(feature_metadata.index):
            raise ValueError(
                "row_ranges.index must match feature ids exactly. "
                f"Got {len(row_ranges)} range rows for {n_features} features."
            )

        # Assay validation
        validated: dict[str, np.ndarray] = {}
        for name, values in assays.items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"assay names must be non-empty strings, got {name!r}")
            if not isinstance(values, np.ndarray):
                raise TypeError(f"assay '{name}' must be np.ndarray, got {type(values)}")
            if values.ndim != 2:
                raise ValueError(f"assay '{name}' must be 2D, got shape {values.shape}")
            if values.shape != (n_features, n_samples):
                raise ValueError(
                    f"assay '{name}' shape {values.shape} must match "
                    f"(n_features, n_samples) = ({n_features}, {n_samples})"
                )
            validated[name] = values

        # Store as private attributes (immutability by convention)
        self._assays = validated
        self._sample_metadata = sample_metadata
        self._feature_metadata = feature_metadata
        self._row_ranges = row_ranges

    @property
    def assays(self) -> Mapping[str, np.ndarray]:
        """Read-only mapping of assay name -> matrix (features × samples)."""
        return MappingProxyType(self._assays)

    @property
    def assay_names(self) -> list[str]:
        """Assay names in insertion order."""
        return list(self._assays)

    def assay(self, name: str) -> np.ndarray:
        """Return one value matrix by name."""
        try:
            return self._assays[name]
        except KeyError:
            raise KeyError(f"assay '{name}' not found. Available: {self.assay_names}") from None

    @property
    def sample_metadata(self) -> pd.DataFrame:
        """Annotations for samples (columns of the matrices)."""
        return self._sample_metadata

    @property
    def feature_metadata(self) -> pd.DataFrame:
        """Annotations for features (rows of the matrices)."""
        return self._feature_metadata

    @property
    def row_ranges(self) -> Optional[pd.DataFrame]:
        """Genomic ranges of the features, if any."""
        return self._row_ranges

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers."""
        return self._sample_metadata.index

    @property
    def feature_ids(self) -> pd.Index:
        """Row identifiers."""
        return self._feature_metadata.index

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return (self.n_features, self.n_samples)

    @property
    def n_features(self) -> int:
        return len(self._feature_metadata)

    @property
    def n_samples(self) -> int:
        return len(self._sample_metadata)

    def select_samples(self, selector: np.ndarray | pd.Series | Collection) -> SummarizedExperiment:
        """
        Subset by samples (matrix columns).

        Args:
            selector: Boolean mask of length n_samples, or a collection of
                sample ids (kept in container order)

        Returns:
            New SummarizedExperiment with the selected samples

        Raises:
            ValueError: If a boolean mask has the wrong length
            KeyError: If a sample id is unknown

        Examples:
            >>> treated = se.select_samples(se.sample_metadata['condition'] == 'treated')
            >>> first_two = se.select_samples(['s1', 's2'])
        """
        positions = _resolve_selector(selector, self.sample_ids, "samples")
        return SummarizedExperiment(
            assays={name: values[:, positions] for name, values in self._assays.items()},
            sample_metadata=self._sample_metadata.iloc[positions],
            feature_metadata=self._feature_metadata,
            row_ranges=self._row_ranges,
        )

    def select_features(self, selector: np.ndarray | pd.Series | Collection) -> SummarizedExperiment:
        """
        Subset by features (matrix rows).

        Args:
            selector: Boolean mask of length n_features, or a collection of
                feature ids (kept in container order)

        Returns:
            New SummarizedExperiment with the selected features

        Examples:
            >>> coding = se.select_features(se.feature_metadata['biotype'] == 'protein_coding')
        """
        positions = _resolve_selector(selector, self.feature_ids, "features")
        return SummarizedExperiment(
            assays={name: values[positions, :] for name, values in self._assays.items()},
            sample_metadata=self._sample_metadata,
            feature_metadata=self._feature_metadata.iloc[positions],
            row_ranges=None if self._row_ranges is None else self._row_ranges.iloc[positions],
        )

    def select_columns(self, keep: Collection[str]) -> SummarizedExperiment:
        """
        Project every block onto the given column names.

        Metadata columns, range columns and assays whose names are not in
        `keep` are dropped. Row ranges left without columns become None.

        Args:
            keep: Column/assay names to retain

        Returns:
            New SummarizedExperiment with the same samples and features
        """
        keep = set(keep)
        row_ranges = self._row_ranges
        if row_ranges is not None:
            row_ranges = row_ranges[[c for c in row_ranges.columns if c in keep]]
            if row_ranges.shape[1] == 0:
                row_ranges = None
        return SummarizedExperiment(
            assays={name: values for name, values in self._assays.items() if name in keep},
            sample_metadata=self._sample_metadata[
                [c for c in self._sample_metadata.columns if c in keep]
            ],
            feature_metadata=self._feature_metadata[
                [c for c in self._feature_metadata.columns if c in keep]
            ],
            row_ranges=row_ranges,
        )

    def copy(self, deep: bool = True) -> SummarizedExperiment:
        """
        Create a copy of this container.

        Args:
            deep: If True, copy all arrays and frames. If False, share them

        Returns:
            New SummarizedExperiment instance
        """
        if deep:
            return SummarizedExperiment(
                assays={name: values.copy() for name, values in self._assays.items()},
                sample_metadata=self._sample_metadata.copy(),
                feature_metadata=self._feature_metadata.copy(),
                row_ranges=None if self._row_ranges is None else self._row_ranges.copy(),
            )
        else:
            return SummarizedExperiment(
                assays=dict(self._assays),
                sample_metadata=self._sample_metadata,
                feature_metadata=self._feature_metadata,
                row_ranges=self._row_ranges,
            )

    def __repr__(self) -> str:
        """String representation for debugging."""
        ranges = [] if self._row_ranges is None else list(self._row_ranges.columns)
        return (
            f"SummarizedExperiment({self.n_features} features × {self.n_samples} samples)\n"
            f"  Assays: {self.assay_names}\n"
            f"  Sample metadata columns: {list(self._sample_metadata.columns)}\n"
            f"  Feature metadata columns: {list(self._feature_metadata.columns)}\n"
            f"  Range columns: {ranges}"
        )

    def __str__(self) -> str:
        """Human-readable string representation."""
        return self.__repr__()


def _resolve_selector(selector, index: pd.Index, axis_name: str) -> np.ndarray:
    """Turn a boolean mask or a collection of ids into integer positions."""
    if isinstance(selector, pd.Series):
        selector = selector.values
    values = np.asarray(list(selector) if not isinstance(selector, np.ndarray) else selector)

    if values.dtype == bool:
        if len(values) != len(index):
            raise ValueError(
                f"mask length ({len(values)}) must match n_{axis_name} ({len(index)})"
            )
        return np.flatnonzero(values)

    wanted = pd.Index(values) if len(values) else pd.Index([], dtype=index.dtype)
    missing = wanted.difference(index)
    if len(missing) > 0:
        raise KeyError(f"unknown {axis_name}: {list(missing)}")
    # Keep container order
    return np.flatnonzero(index.isin(wanted))
