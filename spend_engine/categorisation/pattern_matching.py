"""
Keyword and Pattern Matching for Spend Categorization.

Provides the scoring pass shared by categorisation and debugging, the UPI
handle short-circuit, confidence tiers and reason text.
"""

from typing import Dict, List, Optional, Sequence

from .models import (
    Category,
    CategorizationRule,
    ScoreBreakdown,
    UpiPatternEntry,
    ordered_zero_scores,
)
from ..config.categorization_config import CATEGORIZATION_CONFIG


def match_keywords(text: str, keywords: Sequence[str]) -> List[str]:
    """
    Return every keyword that appears as a substring of text.

    Example:
        >>> match_keywords("zomato lunch order", ["zomato", "swiggy", "lunch"])
        ['zomato', 'lunch']
    """
    return [keyword for keyword in keywords if keyword in text]


def rule_applies(rule: CategorizationRule, text: str) -> bool:
    """Check the rule's optional regex qualifier."""
    return rule.pattern is None or rule.pattern.search(text) is not None


def calculate_category_scores(
    text: str,
    rules: Sequence[CategorizationRule],
    categories: Sequence[Category] = tuple(Category)
) -> ScoreBreakdown:
    """
    Accumulate rule scores per category.

    Args:
        text: Lower-cased scoring text
        rules: Rule snapshot to evaluate
        categories: Known categories, in tie-break order

    Returns:
        ScoreBreakdown with an entry for every category and the matched
        keywords (de-duplicated, in rule order)
    """
    breakdown = ScoreBreakdown(
        scores=ordered_zero_scores(categories),
        category_keywords={category: [] for category in categories},
    )

    for rule in rules:
        if not rule_applies(rule, text):
            continue
        matched = match_keywords(text, rule.keywords)
        if not matched:
            continue

        breakdown.scores[rule.category] += (len(matched) / len(rule.keywords)) * rule.weight

        owned = breakdown.category_keywords[rule.category]
        for keyword in matched:
            if keyword not in breakdown.matched_keywords:
                breakdown.matched_keywords.append(keyword)
            if keyword not in owned:
                owned.append(keyword)

    return breakdown


def select_best_category(
    scores: Dict[Category, float],
    default: Category = Category.FOOD
) -> Category:
    """
    Pick the category with the strictly highest score.

    Scores are visited in declaration order, so ties go to the earlier
    category and a zero-signal map returns ``default``.
    """
    best_category = default
    best_score = 0.0
    for category, score in scores.items():
        if score > best_score:
            best_category = category
            best_score = score
    return best_category


def calculate_confidence(
    best_score: float,
    total_score: float,
    config: Optional[Dict] = None
) -> float:
    """
    Derive confidence from the winning score and the total across categories.

    Clear winners in absolute terms get a boost; weak winners are clamped.
    The top tiers may return less than the floor when the ratio is small;
    callers apply the floor.
    """
    config = config or CATEGORIZATION_CONFIG
    bounds = config["confidence"]

    if total_score <= 0:
        return bounds["no_signal"]

    ratio = best_score / total_score

    for tier in config["confidence_tiers"]:
        if best_score > tier["min_score"]:
            return min(tier["cap"], ratio * tier["multiplier"])

    return max(bounds["floor"], min(config["unboosted_cap"], ratio))


def generate_reason(
    breakdown: ScoreBreakdown,
    category: Category,
    config: Optional[Dict] = None
) -> str:
    """Explain the pick: matched keywords first, then the score, then a weak-match note."""
    config = config or CATEGORIZATION_CONFIG
    owned = set(breakdown.category_keywords.get(category, ()))
    keywords = [keyword for keyword in breakdown.matched_keywords if keyword in owned]

    if keywords:
        return f"Matched keywords: {', '.join(keywords[:config['reason_keyword_limit']])}"

    score = breakdown.scores.get(category, 0.0)
    if score > config["score_reason_threshold"]:
        return f"Category pattern match (score: {score:.2f})"

    return "Weak pattern match"


def match_upi_pattern(
    upi_handle: Optional[str],
    upi_patterns: Sequence[UpiPatternEntry]
) -> Optional[Category]:
    """
    Match a UPI handle against the ordered short-circuit table.

    Returns:
        Category of the first matching entry, or None
    """
    if not upi_handle:
        return None
    for entry in upi_patterns:
        if entry.matches(upi_handle):
            return entry.category
    return None
