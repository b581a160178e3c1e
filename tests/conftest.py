"""
Pytest configuration and shared fixtures.

This module provides synthetic SummarizedExperiment generators and shared
fixtures for all test suites.
"""

import numpy as np
import pandas as pd
import pytest

from tidyse.core.experiment import SummarizedExperiment


def generate_synthetic_experiment(
    n_features: int,
    n_samples: int,
    n_assays: int = 1,
    with_ranges: bool = True,
    seed: int = 42,
) -> SummarizedExperiment:
    """
    Generate a synthetic RNA-seq-like container.

    Args:
        n_features: Number of transcripts
        n_samples: Number of samples
        n_assays: 1 for raw counts only, 2 to add log-normalized counts
        with_ranges: Attach genomic ranges to the features
        seed: Random seed for reproducibility

    Returns:
        SummarizedExperiment with:
        - counts: Poisson counts (features × samples)
        - sample metadata: condition (alternating untreated/treated),
          type (first half single_end, second half paired_end), batch (0..2)
        - feature metadata: symbol, biotype
        - ranges: seqnames, start, end, strand (if with_ranges)
    """
    rng = np.random.RandomState(seed)

    counts = rng.poisson(lam=50, size=(n_features, n_samples)).astype(np.int64)
    assays = {"counts": counts}
    if n_assays > 1:
        assays["logcounts"] = np.log2(counts + 1.0)

    sample_ids = pd.Index([f"S{i:02d}" for i in range(n_samples)])
    sample_metadata = pd.DataFrame({
        "condition": ["untreated" if i % 2 == 0 else "treated" for i in range(n_samples)],
        "type": ["single_end" if i < n_samples // 2 else "paired_end" for i in range(n_samples)],
        "batch": [i % 3 for i in range(n_samples)],
    }, index=sample_ids)

    feature_ids = pd.Index([f"FBgn{i:07d}" for i in range(n_features)])
    feature_metadata = pd.DataFrame({
        "symbol": [f"gene{i}" for i in range(n_features)],
        "biotype": ["lncRNA" if i % 3 == 0 else "protein_coding" for i in range(n_features)],
    }, index=feature_ids)

    row_ranges = None
    if with_ranges:
        starts = np.arange(n_features, dtype=np.int64) * 1000 + 1
        row_ranges = pd.DataFrame({
            "seqnames": ["chr2L" if i % 2 == 0 else "chr3R" for i in range(n_features)],
            "start": starts,
            "end": starts + 499,
            "strand": ["+" if i % 4 < 2 else "-" for i in range(n_features)],
        }, index=feature_ids)

    return SummarizedExperiment(
        assays=assays,
        sample_metadata=sample_metadata,
        feature_metadata=feature_metadata,
        row_ranges=row_ranges,
    )


def list_column(items, index=None) -> pd.Series:
    """Object Series holding DataFrames/lists as-is (no array coercion)."""
    cells = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        cells[i] = item
    return pd.Series(cells, index=index, dtype=object)


@pytest.fixture
def tiny_se():
    """2 features × 2 samples, one assay, no ranges."""
    return SummarizedExperiment(
        assays={"counts": np.array([[1, 2], [3, 4]], dtype=np.int64)},
        sample_metadata=pd.DataFrame(
            {"condition": ["untreated", "treated"]},
            index=pd.Index(["s1", "s2"]),
        ),
        feature_metadata=pd.DataFrame(
            {"symbol": ["TP53", "MYC"]},
            index=pd.Index(["f1", "f2"]),
        ),
    )


@pytest.fixture
def small_se():
    """12 features × 6 samples, two assays, with ranges."""
    return generate_synthetic_experiment(n_features=12, n_samples=6, n_assays=2, with_ranges=True)


@pytest.fixture
def plain_se():
    """8 features × 4 samples, counts only, no ranges."""
    return generate_synthetic_experiment(n_features=8, n_samples=4, n_assays=1, with_ranges=False)
