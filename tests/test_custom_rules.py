"""
Test suite for categorization rules.

Tests cover:
- Rule validation (keywords, weight, category)
- Runtime custom rules and their effect on scoring
- Optional regex qualifiers on rules
- Snapshot publishing under concurrent use
"""

import re
import threading
import unittest

from spend_engine.categorisation.engine import CategorizationService
from spend_engine.categorisation.models import (
    Category,
    CategorizationRule,
    InvalidRuleError,
    UpiPatternEntry,
)


class TestRuleValidation(unittest.TestCase):
    """Test construction-time rule validation."""

    def test_keywords_are_normalized(self):
        """Keywords are lower-cased, stripped and de-duplicated in order."""
        rule = CategorizationRule(
            keywords=["  Canteen ", "MESS", "canteen"],
            category="food",
            weight=2,
        )

        self.assertEqual(rule.keywords, ("canteen", "mess"))
        self.assertEqual(rule.category, Category.FOOD)
        self.assertEqual(rule.weight, 2.0)

    def test_empty_keywords_rejected(self):
        with self.assertRaises(InvalidRuleError):
            CategorizationRule(keywords=[], category=Category.FOOD, weight=1.0)

    def test_blank_keyword_rejected(self):
        with self.assertRaises(InvalidRuleError):
            CategorizationRule(keywords=["pizza", "  "], category=Category.FOOD)

    def test_string_keywords_rejected(self):
        """A bare string is not a keyword list."""
        with self.assertRaises(InvalidRuleError):
            CategorizationRule(keywords="pizza", category=Category.FOOD)

    def test_non_positive_weight_rejected(self):
        for weight in (0, -1.5, float("nan"), float("inf")):
            with self.subTest(weight=weight):
                with self.assertRaises(InvalidRuleError):
                    CategorizationRule(keywords=["pizza"], category=Category.FOOD, weight=weight)

    def test_unknown_category_rejected(self):
        with self.assertRaises(InvalidRuleError):
            CategorizationRule(keywords=["milk"], category="GROCERIES")

    def test_invalid_rule_error_is_value_error(self):
        self.assertTrue(issubclass(InvalidRuleError, ValueError))

    def test_string_pattern_is_compiled(self):
        rule = CategorizationRule(keywords=["fee"], category=Category.BOOKS, pattern=r"semester")

        self.assertIsInstance(rule.pattern, re.Pattern)
        self.assertTrue(rule.pattern.search("SEMESTER FEE"))

    def test_non_string_pattern_rejected(self):
        """Only regex strings and compiled patterns are accepted."""
        for pattern in (5, ["semester"], b"semester"):
            with self.subTest(pattern=pattern):
                with self.assertRaises(InvalidRuleError):
                    CategorizationRule(keywords=["fee"], category=Category.BOOKS, pattern=pattern)

    def test_malformed_regex_rejected(self):
        with self.assertRaises(InvalidRuleError):
            CategorizationRule(keywords=["fee"], category=Category.BOOKS, pattern="(")

    def test_bad_pattern_rule_not_added(self):
        """A rejected rule leaves the service able to categorize."""
        service = CategorizationService()
        before = service.rules

        with self.assertRaises(InvalidRuleError):
            service.add_custom_rule({"keywords": ["fee"], "category": "BOOKS", "pattern": 5})
        with self.assertRaises(InvalidRuleError):
            service.add_custom_rule({"keywords": ["fee"], "category": "BOOKS", "pattern": "("})

        self.assertEqual(service.rules, before)
        self.assertEqual(service.categorize("semester fee").category, Category.FOOD)

    def test_upi_pattern_entry_validation(self):
        entry = UpiPatternEntry(pattern=r"canteen.*@ybl", category="FOOD")
        self.assertTrue(entry.matches("CANTEEN01@ybl"))

        for pattern in (None, 5, "(unclosed"):
            with self.subTest(pattern=pattern):
                with self.assertRaises(InvalidRuleError):
                    UpiPatternEntry(pattern=pattern, category="FOOD")

    def test_service_rejects_bad_upi_table(self):
        with self.assertRaises(InvalidRuleError):
            CategorizationService(upi_patterns=[("[", "FOOD")])


class TestAddCustomRule(unittest.TestCase):
    """Test runtime rule extension."""

    def setUp(self):
        self.service = CategorizationService()

    def test_custom_rule_selects_category(self):
        """A custom keyword drives the category and shows in the reason."""
        self.service.add_custom_rule(
            CategorizationRule(keywords=["xyz123"], category=Category.BOOKS, weight=5.0)
        )
        result = self.service.categorize("bought xyz123 today")

        self.assertEqual(result.category, Category.BOOKS)
        self.assertIn("xyz123", result.reason)
        self.assertAlmostEqual(result.confidence, 0.95)

    def test_custom_rule_from_dict(self):
        self.service.add_custom_rule(
            {"keywords": ["gym membership"], "category": "EMERGENCY", "weight": 3.0}
        )
        result = self.service.categorize("Gym Membership renewal")

        self.assertEqual(result.category, Category.EMERGENCY)

    def test_invalid_custom_rule_not_added(self):
        before = self.service.rules

        with self.assertRaises(InvalidRuleError):
            self.service.add_custom_rule({"keywords": [], "category": "FOOD", "weight": 1.0})
        with self.assertRaises(InvalidRuleError):
            self.service.add_custom_rule({"keywords": ["tea"], "category": "FOOD", "weight": 0})

        self.assertEqual(self.service.rules, before)

    def test_add_publishes_new_snapshot(self):
        """Earlier snapshots are left untouched."""
        before = self.service.rules
        rule = CategorizationRule(keywords=["tuition"], category=Category.BOOKS, weight=1.0)

        self.service.add_custom_rule(rule)

        self.assertEqual(len(self.service.rules), len(before) + 1)
        self.assertIs(self.service.rules[-1], rule)
        self.assertNotIn(rule, before)

    def test_rules_are_independent_per_service(self):
        other = CategorizationService()
        self.service.add_custom_rule(
            CategorizationRule(keywords=["xyz123"], category=Category.BOOKS, weight=5.0)
        )

        self.assertEqual(len(other.rules), len(self.service.rules) - 1)
        self.assertEqual(other.categorize("bought xyz123 today").reason, "Weak pattern match")

    def test_pattern_qualifier_gates_rule(self):
        """A rule with a pattern only scores when the pattern matches too."""
        self.service.add_custom_rule(
            CategorizationRule(
                keywords=["fee"],
                category=Category.BOOKS,
                weight=3.0,
                pattern=r"semester",
            )
        )
        without = self.service.get_categorization_debug("library fee")
        with_pattern = self.service.get_categorization_debug("semester library fee")

        self.assertAlmostEqual(without.scores[Category.BOOKS], 1 / 12)
        self.assertAlmostEqual(with_pattern.scores[Category.BOOKS], 1 / 12 + 3.0)
        self.assertNotIn("fee", without.matched_keywords)
        self.assertIn("fee", with_pattern.matched_keywords)

    def test_concurrent_adds_and_reads(self):
        """Concurrent readers and writers never lose rules or fail."""
        base_count = len(self.service.rules)
        errors = []

        def writer(index):
            try:
                self.service.add_custom_rule(
                    CategorizationRule(keywords=[f"kw{index}"], category=Category.FOOD)
                )
            except Exception as e:  # pragma: no cover - surfaced by assertion
                errors.append(e)

        def reader():
            try:
                for _ in range(50):
                    self.service.categorize("canteen kw1 kw2", None, None)
            except Exception as e:  # pragma: no cover - surfaced by assertion
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(20)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(self.service.rules), base_count + 20)


if __name__ == "__main__":
    unittest.main()
