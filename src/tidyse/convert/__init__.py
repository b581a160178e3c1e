"""
Conversion between a SummarizedExperiment and its long-table view.

Key Functions:
    - as_tibble / flatten: container -> long table
    - update_se_from_tibble: long table -> container, or the table itself
      when it no longer fits the container's shape
    - tidy: resolve clashes with the reserved key names
    - show: tibble-style preview of a container
"""

from tidyse.convert.flatten import as_tibble, flatten, show
from tidyse.convert.reconstruct import (
    update_se_from_tibble,
    reconstruct,
    DATA_FRAME_RETURNED_MESSAGE,
)
from tidyse.convert.tidy import tidy

__all__ = [
    'as_tibble',
    'flatten',
    'show',
    'update_se_from_tibble',
    'reconstruct',
    'DATA_FRAME_RETURNED_MESSAGE',
    'tidy',
]
