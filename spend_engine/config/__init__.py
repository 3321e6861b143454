"""
Configuration module for the Spend Categorisation Engine.

This module contains the category keyword configuration, scoring thresholds
and the loader for externally tuned keyword sets.
"""

from .categorization_config import (
    CATEGORY_CONFIG,
    CATEGORIZATION_CONFIG,
    AMOUNT_HEURISTICS,
    AMOUNT_FALLBACK,
)

__all__ = [
    "CATEGORY_CONFIG",
    "CATEGORIZATION_CONFIG",
    "AMOUNT_HEURISTICS",
    "AMOUNT_FALLBACK",
]
