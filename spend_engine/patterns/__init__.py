"""
Pattern Definitions for the Spend Categorisation Engine.

Contains the hand-authored tables used alongside the configurable keywords:
- High-confidence merchant rules
- UPI handle short-circuit patterns
- UPI description merchant templates
- UPI ID format and handle hints
"""

from .category_patterns import (
    MERCHANT_RULES,
    UPI_HANDLE_PATTERNS,
    UPI_DESCRIPTION_PATTERNS,
    UPI_ID_PATTERN,
    UPI_HANDLE_HINTS,
)

__all__ = [
    "MERCHANT_RULES",
    "UPI_HANDLE_PATTERNS",
    "UPI_DESCRIPTION_PATTERNS",
    "UPI_ID_PATTERN",
    "UPI_HANDLE_HINTS",
]
