"""
Core data structures and abstractions for the tidy verbs.

This module provides the foundational types that all other modules build upon:

1. SummarizedExperiment: value matrices with sample and feature annotations
2. Identifier registry: reserved key names and the view-only column guard
3. Errors: the failures the verbs raise, plus the internal
   ReconstructionNotPossible signal

Design Philosophy:
    - Immutability: all operations return new instances (functional style)
    - Explicit keys: the long table is always keyed by `sample` and `transcript`
    - Fail fast: hard errors name the offending columns

Examples:
    >>> from tidyse.core import SummarizedExperiment, protected_columns
    >>>
    >>> se = SummarizedExperiment(assays={...}, sample_metadata=..., feature_metadata=...)
    >>> 'sample' in protected_columns(se)
    True
"""

from tidyse.core.errors import (
    TidySEError,
    ProtectedColumnError,
    ReservedKeyError,
    NameCollisionError,
    ReconstructionNotPossible,
)
from tidyse.core.experiment import SummarizedExperiment
from tidyse.core.identifiers import (
    SAMPLE_KEY,
    FEATURE_KEY,
    get_needed_columns,
    get_special_columns,
    protected_columns,
    assert_mutable,
)

__all__ = [
    'SummarizedExperiment',
    'SAMPLE_KEY',
    'FEATURE_KEY',
    'get_needed_columns',
    'get_special_columns',
    'protected_columns',
    'assert_mutable',
    'TidySEError',
    'ProtectedColumnError',
    'ReservedKeyError',
    'NameCollisionError',
    'ReconstructionNotPossible',
]
