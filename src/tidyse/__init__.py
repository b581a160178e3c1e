"""
tidyse - tidyverse-style verbs for SummarizedExperiment

Treats a SummarizedExperiment (count matrices + sample and feature
annotations) as one long table with a row per (sample, transcript) pair,
runs tidyr verbs on it, and splits the result back into the container
whenever its shape allows.
"""

__version__ = "0.1.0"

from tidyse.config import TidyConfig, load_config, load_tidy_config
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.errors import (
    TidySEError,
    ProtectedColumnError,
    ReservedKeyError,
    NameCollisionError,
)
from tidyse.core.identifiers import SAMPLE_KEY, FEATURE_KEY, protected_columns
from tidyse.convert import as_tibble, show, tidy, update_se_from_tibble
from tidyse.verbs import (
    NestedFrame,
    extract,
    nest,
    pivot_longer,
    separate,
    unite,
    unnest,
)

__all__ = [
    "SummarizedExperiment",
    "NestedFrame",
    "TidyConfig",
    "load_config",
    "load_tidy_config",
    "SAMPLE_KEY",
    "FEATURE_KEY",
    "protected_columns",
    "as_tibble",
    "show",
    "tidy",
    "update_se_from_tibble",
    "extract",
    "unite",
    "separate",
    "pivot_longer",
    "nest",
    "unnest",
    "TidySEError",
    "ProtectedColumnError",
    "ReservedKeyError",
    "NameCollisionError",
]
