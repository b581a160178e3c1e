"""
tidyr verbs over SummarizedExperiment and plain DataFrames.

Key Functions:
    - extract, unite, separate: guarded verbs that rebuild the container
      when the result still fits it
    - pivot_longer: lengthening verb, usually returns a long DataFrame
    - nest, unnest: group into sub-containers / sub-tables and back

The *_frame functions in tidyse.verbs.frame hold the DataFrame renditions
the container verbs delegate to.
"""

from tidyse.verbs.frame import (
    extract_frame,
    unite_frame,
    separate_frame,
    pivot_longer_frame,
    nest_frame,
    unnest_frame,
)
from tidyse.verbs.nesting import NestedFrame, nest, unnest
from tidyse.verbs.tidyr import extract, unite, separate, pivot_longer

__all__ = [
    'extract',
    'unite',
    'separate',
    'pivot_longer',
    'nest',
    'unnest',
    'NestedFrame',
    'extract_frame',
    'unite_frame',
    'separate_frame',
    'pivot_longer_frame',
    'nest_frame',
    'unnest_frame',
]
