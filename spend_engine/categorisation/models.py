"""
Data model for spend categorisation.

Categories, weighted keyword rules, UPI short-circuit entries and the
result/debug records returned by the engine.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union


class InvalidRuleError(ValueError):
    """Raised when a categorisation rule or keyword configuration is malformed."""
    pass


class Category(Enum):
    """Spending buckets. Declaration order is the tie-break order."""
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    HOSTEL = "HOSTEL"
    BOOKS = "BOOKS"
    ENTERTAINMENT = "ENTERTAINMENT"
    EMERGENCY = "EMERGENCY"

    @classmethod
    def parse(cls, value: Union["Category", str]) -> "Category":
        """Resolve a Category from a member or a (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidRuleError(
            f"Unknown category {value!r}. Available: {[c.value for c in cls]}"
        )


def _compile_pattern(pattern, allow_none: bool = False) -> Optional[re.Pattern]:
    """Compile a regex string case-insensitively; pass compiled patterns through."""
    if pattern is None and allow_none:
        return None
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise InvalidRuleError(f"Pattern must be a regex string, got {pattern!r}")
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidRuleError(f"Invalid pattern {pattern!r}: {e}") from e


@dataclass(frozen=True)
class CategorizationRule:
    """
    Weighted keyword evidence for one category.

    Keywords are stored lower-cased and de-duplicated in their original order.
    When ``pattern`` is set the rule only contributes if the pattern also
    matches the scoring text.
    """
    keywords: Tuple[str, ...]
    category: Category
    weight: float = 1.0
    pattern: Optional[re.Pattern] = None

    def __post_init__(self):
        if isinstance(self.keywords, str) or not isinstance(self.keywords, (list, tuple)):
            raise InvalidRuleError("Rule keywords must be a list of strings")

        normalized: List[str] = []
        for keyword in self.keywords:
            if not isinstance(keyword, str):
                raise InvalidRuleError(f"Rule keyword {keyword!r} is not a string")
            cleaned = keyword.strip().lower()
            if not cleaned:
                raise InvalidRuleError("Rule keywords must not be blank")
            if cleaned not in normalized:
                normalized.append(cleaned)
        if not normalized:
            raise InvalidRuleError("Rule keyword list must not be empty")

        if isinstance(self.weight, bool) or not isinstance(self.weight, (int, float)):
            raise InvalidRuleError(f"Rule weight must be a number, got {self.weight!r}")
        if not math.isfinite(self.weight) or self.weight <= 0:
            raise InvalidRuleError(f"Rule weight must be positive, got {self.weight}")

        pattern = _compile_pattern(self.pattern, allow_none=True)

        # frozen dataclass: normalise fields in place
        object.__setattr__(self, "keywords", tuple(normalized))
        object.__setattr__(self, "category", Category.parse(self.category))
        object.__setattr__(self, "weight", float(self.weight))
        object.__setattr__(self, "pattern", pattern)

    @classmethod
    def from_dict(cls, data: Dict) -> "CategorizationRule":
        """Build a rule from a {keywords, category, weight, pattern} dict."""
        return cls(
            keywords=data.get("keywords") or (),
            category=data.get("category"),
            weight=data.get("weight", 1.0),
            pattern=data.get("pattern"),
        )


@dataclass(frozen=True)
class UpiPatternEntry:
    """UPI handle pattern that maps straight to a category."""
    pattern: re.Pattern
    category: Category

    def __post_init__(self):
        object.__setattr__(self, "pattern", _compile_pattern(self.pattern))
        object.__setattr__(self, "category", Category.parse(self.category))

    def matches(self, upi_handle: str) -> bool:
        return self.pattern.search(upi_handle) is not None


@dataclass(frozen=True)
class CategorizationResult:
    """Result of transaction categorization."""
    category: Category
    confidence: float
    reason: str
    is_manual: bool = False

    def to_dict(self) -> Dict:
        return {
            "category": self.category.value,
            "confidence": self.confidence,
            "reason": self.reason,
            "is_manual": self.is_manual,
        }


@dataclass(frozen=True)
class CategorizationDebugInfo:
    """Introspection view of a categorisation call."""
    normalized_text: str
    scores: Dict[Category, float]
    matched_keywords: List[str]
    result: CategorizationResult


@dataclass
class ParsedUpiDescription:
    """Fields extracted from a UPI transaction-log description.

    ``amount`` is reserved; no description template extracts it.
    """
    merchant_name: Optional[str] = None
    transaction_type: Optional[str] = None
    amount: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.merchant_name is None and self.transaction_type is None and self.amount is None

    def to_dict(self) -> Dict:
        return {
            key: value
            for key, value in (
                ("merchant_name", self.merchant_name),
                ("transaction_type", self.transaction_type),
                ("amount", self.amount),
            )
            if value is not None
        }


@dataclass
class ScoreBreakdown:
    """Per-category scores plus keyword matches from one scoring pass."""
    scores: Dict[Category, float]
    matched_keywords: List[str] = field(default_factory=list)
    # keywords matched per category, in rule order
    category_keywords: Dict[Category, List[str]] = field(default_factory=dict)


def ordered_zero_scores(categories: Sequence[Category] = tuple(Category)) -> Dict[Category, float]:
    """Score map with every category present, in declaration order."""
    return {category: 0.0 for category in categories}


def normalize_category_keywords(
    mapping: Mapping[object, Iterable[str]]
) -> Dict[Category, List[str]]:
    """
    Validate a {category: keywords} mapping and key it by Category.

    Keys may be Category members or category names (any case).

    Raises:
        InvalidRuleError: Unknown category or empty keyword list
    """
    result: Dict[Category, List[str]] = {}
    for key, keywords in mapping.items():
        category = Category.parse(key)
        if isinstance(keywords, str):
            raise InvalidRuleError(
                f"Keywords for {category.value} must be a list, not a string"
            )
        keyword_list = list(keywords)
        if not keyword_list:
            raise InvalidRuleError(f"Keyword list for {category.value} is empty")
        result.setdefault(category, []).extend(keyword_list)
    return result
