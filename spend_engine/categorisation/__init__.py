"""
Categorisation Module for the Spend Engine.

Orchestrates transaction categorization through:
- Preprocessing (scoring text construction)
- Pattern matching (weighted keywords, UPI handle short-circuit)
- Confidence derivation and reason text
- UPI description parsing and UPI ID helpers
"""

from .models import (
    Category,
    CategorizationRule,
    CategorizationResult,
    CategorizationDebugInfo,
    UpiPatternEntry,
    ParsedUpiDescription,
    InvalidRuleError,
)
from .engine import (
    CategorizationService,
    get_categorization_service,
    reset_categorization_service,
    UPI_MATCH_REASON,
    LOW_CONFIDENCE_REASON,
)
from .preprocess import build_scoring_text, normalize_text
from .pattern_matching import (
    match_keywords,
    calculate_category_scores,
    calculate_confidence,
    select_best_category,
    match_upi_pattern,
)
from .upi import parse_upi_description, validate_upi_id, estimate_category_from_upi

__all__ = [
    # Main categorizer
    "CategorizationService",
    "get_categorization_service",
    "reset_categorization_service",
    "UPI_MATCH_REASON",
    "LOW_CONFIDENCE_REASON",
    # Data model
    "Category",
    "CategorizationRule",
    "CategorizationResult",
    "CategorizationDebugInfo",
    "UpiPatternEntry",
    "ParsedUpiDescription",
    "InvalidRuleError",
    # Preprocessing utilities
    "build_scoring_text",
    "normalize_text",
    # Pattern matching utilities
    "match_keywords",
    "calculate_category_scores",
    "calculate_confidence",
    "select_best_category",
    "match_upi_pattern",
    # UPI helpers
    "parse_upi_description",
    "validate_upi_id",
    "estimate_category_from_upi",
]
