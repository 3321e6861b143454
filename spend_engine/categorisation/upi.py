"""
UPI helpers for spend categorisation.

Parses merchant names out of UPI transaction-log descriptions, validates UPI
IDs and estimates a category from a bare UPI ID and amount.
"""

import re
from typing import Optional, Sequence, Tuple

from .models import Category, CategorizationResult, ParsedUpiDescription
from ..config.categorization_config import AMOUNT_HEURISTICS, AMOUNT_FALLBACK
from ..patterns.category_patterns import (
    UPI_DESCRIPTION_PATTERNS,
    UPI_ID_PATTERN,
    UPI_HANDLE_HINTS,
)


def parse_upi_description(
    description: Optional[str],
    patterns: Sequence[re.Pattern] = UPI_DESCRIPTION_PATTERNS
) -> ParsedUpiDescription:
    """
    Extract a merchant token from a UPI transaction description.

    Templates are tried in order; the first one with a non-empty capture wins.

    Args:
        description: Raw description, e.g. "UPI-ZOMATO-998877 to FOOD_PARTNER"
        patterns: Ordered merchant templates

    Returns:
        ParsedUpiDescription; empty when no template matches

    Example:
        >>> parse_upi_description("UPI-ZOMATO-998877 to FOOD_PARTNER").merchant_name
        'FOOD_PARTNER'
    """
    if not description:
        return ParsedUpiDescription()

    for pattern in patterns:
        match = pattern.search(description)
        if match and match.group(1) and match.group(1).strip():
            return ParsedUpiDescription(
                merchant_name=match.group(1).strip(),
                transaction_type="UPI",
            )

    return ParsedUpiDescription()


def validate_upi_id(upi_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate UPI ID format (handle@provider).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not upi_id or not upi_id.strip():
        return False, "UPI ID is required"

    if not UPI_ID_PATTERN.match(upi_id):
        return False, "Invalid UPI ID format"

    return True, None


def estimate_category_from_upi(upi_id: str, amount: float) -> CategorizationResult:
    """
    Estimate a category from a UPI ID and amount when no description exists.

    Handle substrings are checked first, then amount bands.
    """
    lower_upi_id = (upi_id or "").lower()

    for hint in UPI_HANDLE_HINTS:
        for substring in hint["substrings"]:
            if substring in lower_upi_id:
                return CategorizationResult(
                    category=Category.parse(hint["category"]),
                    confidence=hint["confidence"],
                    reason=f"UPI handle hint: {substring}",
                )

    for band in AMOUNT_HEURISTICS:
        if "min_amount" in band and amount >= band["min_amount"]:
            break
        if "max_amount" in band and amount <= band["max_amount"]:
            break
    else:
        band = AMOUNT_FALLBACK

    return CategorizationResult(
        category=Category.parse(band["category"]),
        confidence=band["confidence"],
        reason="Amount-based estimate",
    )
