"""
Spend Categorizer for UPI transactions.
Assigns an expense category, a confidence and a reason to a transaction
from its description, merchant name and UPI handle.
"""

import logging
import threading
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    Category,
    CategorizationDebugInfo,
    CategorizationResult,
    CategorizationRule,
    ParsedUpiDescription,
    ScoreBreakdown,
    UpiPatternEntry,
    normalize_category_keywords,
)
from .preprocess import build_scoring_text
from .pattern_matching import (
    calculate_category_scores,
    calculate_confidence,
    generate_reason,
    match_upi_pattern,
    select_best_category,
)
from .upi import estimate_category_from_upi, parse_upi_description
from ..config.categorization_config import CATEGORY_CONFIG, CATEGORIZATION_CONFIG
from ..patterns.category_patterns import MERCHANT_RULES, UPI_HANDLE_PATTERNS

logger = logging.getLogger(__name__)

UPI_MATCH_REASON = "UPI handle pattern match"
LOW_CONFIDENCE_REASON = "Default category (low confidence match)"


class CategorizationService:
    """Rule-weighted categorizer for spend transactions.

    Rules are held in an immutable tuple. ``add_custom_rule`` publishes a new
    tuple under a write lock, and every call works on the single snapshot it
    read, so concurrent callers never see a partially-extended rule list.
    """

    def __init__(
        self,
        category_keywords: Optional[Mapping] = None,
        merchant_rules: Optional[Sequence[Union[CategorizationRule, Dict]]] = None,
        upi_patterns: Optional[Sequence[Tuple]] = None,
        config: Optional[Dict] = None,
    ):
        """Initialize the categorizer with rule and pattern tables.

        Args:
            category_keywords: Base {category: keywords[]} mapping. Replaces
                the keywords from CATEGORY_CONFIG when given.
            merchant_rules: High-confidence rules added after the base rules
            upi_patterns: Ordered (regex, category) short-circuit table
            config: Scoring configuration (defaults to CATEGORIZATION_CONFIG)
        """
        self.config = config or CATEGORIZATION_CONFIG
        self.categories: Tuple[Category, ...] = tuple(Category)
        self.default_category = Category.parse(self.config["default_category"])

        if category_keywords is None:
            category_keywords = {
                name: settings["keywords"] for name, settings in CATEGORY_CONFIG.items()
            }

        self._rules: Tuple[CategorizationRule, ...] = self._build_rules(
            normalize_category_keywords(category_keywords),
            MERCHANT_RULES if merchant_rules is None else merchant_rules,
        )
        self.upi_patterns: Tuple[UpiPatternEntry, ...] = tuple(
            UpiPatternEntry(pattern=pattern, category=Category.parse(category))
            for pattern, category in (UPI_HANDLE_PATTERNS if upi_patterns is None else upi_patterns)
        )
        self._write_lock = threading.Lock()

        logger.debug(
            "Initialized categorizer: %d rules, %d UPI patterns",
            len(self._rules), len(self.upi_patterns)
        )

    def _build_rules(
        self,
        category_keywords: Dict[Category, List[str]],
        merchant_rules: Sequence[Union[CategorizationRule, Dict]]
    ) -> Tuple[CategorizationRule, ...]:
        """Base keyword rules in category order, then merchant rules."""
        rules = [
            CategorizationRule(
                keywords=tuple(category_keywords[category]),
                category=category,
                weight=self.config["base_rule_weight"],
            )
            for category in self.categories
            if category in category_keywords
        ]
        rules.extend(self._coerce_rule(rule) for rule in merchant_rules)
        return tuple(rules)

    @staticmethod
    def _coerce_rule(rule: Union[CategorizationRule, Dict]) -> CategorizationRule:
        if isinstance(rule, CategorizationRule):
            return rule
        return CategorizationRule.from_dict(rule)

    @property
    def rules(self) -> Tuple[CategorizationRule, ...]:
        """Current rule snapshot."""
        return self._rules

    def categorize(
        self,
        description: Optional[str],
        merchant_name: Optional[str] = None,
        upi_handle: Optional[str] = None
    ) -> CategorizationResult:
        """
        Categorize a transaction from its free-text signals.

        Args:
            description: Transaction description
            merchant_name: Optional merchant name
            upi_handle: Optional UPI handle / transaction id

        Returns:
            CategorizationResult with confidence in [0.3, 0.95]
        """
        _, _, result = self._evaluate(self._rules, description, merchant_name, upi_handle)
        return result

    def batch_categorize(self, transactions: Sequence[Mapping]) -> List[Dict]:
        """
        Re-categorize stored transactions, skipping manual categorizations.

        Args:
            transactions: Transaction dicts with 'id', 'description' and optional
                'merchant_name', 'upi_transaction_id', 'is_manual_category'

        Returns:
            List of {"id": ..., "result": CategorizationResult} in input order
        """
        rules = self._rules
        results = []

        for txn in transactions:
            if txn.get("is_manual_category"):
                continue

            _, _, result = self._evaluate(
                rules,
                txn.get("description", ""),
                txn.get("merchant_name"),
                txn.get("upi_transaction_id"),
            )
            results.append({"id": txn.get("id"), "result": result})

        logger.debug(
            "Batch categorized %d of %d transactions", len(results), len(transactions)
        )
        return results

    def get_categorization_debug(
        self,
        description: Optional[str],
        merchant_name: Optional[str] = None,
        upi_handle: Optional[str] = None
    ) -> CategorizationDebugInfo:
        """
        Expose the scoring text, per-category scores and matched keywords.

        The result is produced by the same scoring pass as ``categorize``.
        """
        rules = self._rules
        text, breakdown, result = self._evaluate(rules, description, merchant_name, upi_handle)

        if breakdown is None:
            # UPI short-circuit skipped scoring; compute it for display only
            breakdown = calculate_category_scores(text, rules, self.categories)

        return CategorizationDebugInfo(
            normalized_text=text,
            scores=dict(breakdown.scores),
            matched_keywords=list(breakdown.matched_keywords),
            result=result,
        )

    def add_custom_rule(self, rule: Union[CategorizationRule, Dict]) -> None:
        """
        Append a rule to the live rule set.

        Raises:
            InvalidRuleError: Empty keyword list, blank keyword, non-positive
                weight or unknown category
        """
        rule = self._coerce_rule(rule)

        with self._write_lock:
            self._rules = self._rules + (rule,)

        logger.info(
            "Added custom rule for %s (weight=%.2f, keywords=%s)",
            rule.category.value, rule.weight, ", ".join(rule.keywords)
        )

    def parse_upi_description(self, description: Optional[str]) -> ParsedUpiDescription:
        """Extract merchant info from a UPI transaction-log description."""
        return parse_upi_description(description)

    def estimate_category(
        self,
        upi_id: str,
        amount: float,
        description: Optional[str] = None
    ) -> CategorizationResult:
        """
        Estimate a category for a payment before it is recorded.

        Uses full categorization when a description is available, otherwise
        UPI handle hints and amount bands.
        """
        if description:
            return self.categorize(description, None, upi_id)
        return estimate_category_from_upi(upi_id, amount)

    def _evaluate(
        self,
        rules: Tuple[CategorizationRule, ...],
        description: Optional[str],
        merchant_name: Optional[str],
        upi_handle: Optional[str]
    ) -> Tuple[str, Optional[ScoreBreakdown], CategorizationResult]:
        """Shared scoring routine for categorize, batch and debug calls."""
        text = build_scoring_text(description, merchant_name, upi_handle)
        bounds = self.config["confidence"]

        # UPI handle patterns are the highest-trust signal
        upi_category = match_upi_pattern(upi_handle, self.upi_patterns)
        if upi_category is not None:
            logger.debug("UPI pattern match for %r -> %s", upi_handle, upi_category.value)
            return text, None, CategorizationResult(
                category=upi_category,
                confidence=bounds["upi_match"],
                reason=UPI_MATCH_REASON,
            )

        breakdown = calculate_category_scores(text, rules, self.categories)
        scores = breakdown.scores

        best_category = select_best_category(scores, self.default_category)
        best_score = scores[best_category]
        total_score = sum(scores.values())

        confidence = calculate_confidence(best_score, total_score, self.config)
        reason = generate_reason(breakdown, best_category, self.config)

        if confidence < bounds["floor"]:
            confidence = bounds["floor"]
            reason = LOW_CONFIDENCE_REASON

        confidence = min(confidence, bounds["ceiling"])

        return text, breakdown, CategorizationResult(
            category=best_category,
            confidence=confidence,
            reason=reason,
        )


_shared_service: Optional[CategorizationService] = None
_shared_service_lock = threading.Lock()


def get_categorization_service() -> CategorizationService:
    """Return the process-wide categorizer, building it on first use."""
    global _shared_service

    if _shared_service is None:
        with _shared_service_lock:
            if _shared_service is None:
                _shared_service = CategorizationService()
    return _shared_service


def reset_categorization_service() -> None:
    """Drop the shared categorizer. Useful for testing."""
    global _shared_service

    with _shared_service_lock:
        _shared_service = None
