"""
Spend Engine - rule-based UPI transaction categorisation.

A deterministic categorizer for student spending: weighted keyword rules,
UPI handle short-circuits, confidence tiers and readable reasons.

Main Components:
    - patterns: Merchant rules and UPI pattern tables
    - config: Category keyword configuration and scoring thresholds
    - categorisation: Categorization engine and UPI helpers
    - recategorization: Write-path categorization and bulk re-scoring
"""

from typing import Dict, List, Mapping, Optional, Sequence

# Core categorisation components
from .categorisation.engine import (
    CategorizationService,
    get_categorization_service,
    reset_categorization_service,
)
from .categorisation.models import (
    Category,
    CategorizationRule,
    CategorizationResult,
    CategorizationDebugInfo,
    ParsedUpiDescription,
    InvalidRuleError,
)
from .categorisation.upi import parse_upi_description, validate_upi_id

# Workflows
from .recategorization.workflow import (
    TransactionStore,
    InMemoryTransactionStore,
    TransactionRecategorizer,
    RecategorizationReport,
    categorize_new_transaction,
    categorization_fields,
)

# Configuration
from .config.categorization_config import (
    CATEGORY_CONFIG,
    CATEGORIZATION_CONFIG,
)
from .config.keyword_config_loader import load_category_keywords_csv


__version__ = "1.0.0"
__all__ = [
    # Categorisation
    "CategorizationService",
    "get_categorization_service",
    "reset_categorization_service",
    "Category",
    "CategorizationRule",
    "CategorizationResult",
    "CategorizationDebugInfo",
    "ParsedUpiDescription",
    "InvalidRuleError",
    "parse_upi_description",
    "validate_upi_id",
    # Workflows
    "TransactionStore",
    "InMemoryTransactionStore",
    "TransactionRecategorizer",
    "RecategorizationReport",
    "categorize_new_transaction",
    # Configuration
    "CATEGORY_CONFIG",
    "CATEGORIZATION_CONFIG",
    "load_category_keywords_csv",
    "get_category_display",
    # Main function
    "run_categorization",
]


def get_category_display(category) -> Dict:
    """Display metadata (name, icon, color) for a category."""
    settings = CATEGORY_CONFIG[Category.parse(category).value]
    return {key: settings[key] for key in ("name", "icon", "color")}


def run_categorization(
    transactions: Sequence[Mapping],
    service: Optional[CategorizationService] = None,
) -> Dict:
    """
    Categorize a list of transactions and summarise the outcome.

    Manually categorized transactions are passed through unchanged.

    Args:
        transactions: List of transaction dictionaries with keys:
            - id: Transaction identifier
            - description: Transaction description
            - merchant_name: (Optional) Merchant name
            - upi_transaction_id: (Optional) UPI handle
            - is_manual_category: (Optional) True when set by the user

    Returns:
        Dictionary containing:
            - categorized_transactions: transaction dicts with category fields
            - category_summary: {category: {"count", "average_confidence"}}

    Example:
        >>> result = run_categorization([
        ...     {"id": "t1", "description": "Zomato lunch"},
        ... ])
        >>> result["categorized_transactions"][0]["category"]
        'FOOD'
    """
    service = service or get_categorization_service()
    # batch results follow input order with manual records removed
    results = iter(service.batch_categorize(transactions))

    categorized: List[Dict] = []
    for txn in transactions:
        row = dict(txn)
        if not txn.get("is_manual_category"):
            row.update(categorization_fields(next(results)["result"]))
        categorized.append(row)

    summary: Dict[str, Dict] = {}
    for row in categorized:
        category = row.get("category")
        if category is None:
            continue
        category = getattr(category, "value", category)
        entry = summary.setdefault(category, {"count": 0, "total_confidence": 0.0})
        entry["count"] += 1
        confidence = row.get("category_confidence")
        if confidence is None and row.get("is_manual_category"):
            confidence = CATEGORIZATION_CONFIG["manual_confidence"]
        entry["total_confidence"] += float(confidence or 0.0)

    category_summary = {
        category: {
            "count": entry["count"],
            "average_confidence": entry["total_confidence"] / entry["count"],
        }
        for category, entry in summary.items()
    }

    return {
        "categorized_transactions": categorized,
        "category_summary": category_summary,
    }
