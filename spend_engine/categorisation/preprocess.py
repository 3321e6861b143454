"""
Preprocessing utilities for transaction categorization.
Builds the lower-cased scoring text from the free-text transaction signals.
"""

from typing import Optional


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text for matching.

    Args:
        text: Raw text to normalize

    Returns:
        Lower-cased text, empty string for missing values
    """
    if not text:
        return ""
    return str(text).lower()


def build_scoring_text(
    description: Optional[str],
    merchant_name: Optional[str] = None,
    upi_handle: Optional[str] = None
) -> str:
    """
    Combine description, merchant name and UPI handle for keyword matching.

    Fields are joined with single spaces even when empty, so the text for
    ``("lunch", None, None)`` is ``"lunch  "``.

    Args:
        description: Transaction description
        merchant_name: Optional merchant name
        upi_handle: Optional UPI handle / transaction id

    Returns:
        Lower-cased scoring text
    """
    return " ".join(
        normalize_text(part) for part in (description, merchant_name, upi_handle)
    )
