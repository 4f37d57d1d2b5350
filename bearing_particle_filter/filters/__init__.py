"""
Filtering algorithms.
"""

from .base import FilterResult
from .particle import SequentialImportanceSampler

__all__ = [
    "FilterResult",
    "SequentialImportanceSampler",
]
