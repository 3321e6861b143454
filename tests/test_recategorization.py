"""
Test suite for the categorization workflows.

Tests cover:
- Categorizing a transaction on write (automatic and manual)
- Bulk re-categorization of stored transactions
- The in-memory transaction store
- run_categorization summaries
"""

import unittest

from spend_engine import run_categorization
from spend_engine.categorisation.engine import CategorizationService
from spend_engine.categorisation.models import Category, InvalidRuleError
from spend_engine.recategorization.workflow import (
    InMemoryTransactionStore,
    MANUAL_REASON,
    RecategorizationReport,
    TransactionRecategorizer,
    TransactionStoreError,
    categorize_new_transaction,
)


class FailingStore(InMemoryTransactionStore):
    """Store whose writes fail for selected ids."""

    def __init__(self, transactions, failing_ids):
        super().__init__(transactions)
        self.failing_ids = set(failing_ids)

    def update(self, transaction_id, changes):
        if transaction_id in self.failing_ids:
            raise TransactionStoreError(f"Write rejected for {transaction_id}")
        return super().update(transaction_id, changes)


class TestCategorizeNewTransaction(unittest.TestCase):
    """Test the transaction write path."""

    def setUp(self):
        self.service = CategorizationService()

    def test_automatic_categorization(self):
        record = {"id": "t1", "description": "Zomato lunch", "amount": 240.0}
        categorized = categorize_new_transaction(self.service, record)

        self.assertEqual(categorized["category"], "FOOD")
        self.assertAlmostEqual(categorized["category_confidence"], 0.8)
        self.assertEqual(categorized["categorization_reason"], "Matched keywords: zomato, lunch")
        self.assertFalse(categorized["is_manual_category"])
        self.assertEqual(categorized["amount"], 240.0)
        # input record is not modified
        self.assertNotIn("category", record)

    def test_upi_handle_is_used(self):
        record = {
            "id": "t2",
            "description": "Paid",
            "upi_transaction_id": "uber_trip@paytm",
        }
        categorized = categorize_new_transaction(self.service, record)

        self.assertEqual(categorized["category"], "TRANSPORT")
        self.assertEqual(categorized["category_confidence"], 0.95)

    def test_manual_category_is_kept(self):
        record = {"id": "t3", "description": "Zomato lunch"}
        categorized = categorize_new_transaction(self.service, record, manual_category="HOSTEL")

        self.assertEqual(categorized["category"], "HOSTEL")
        self.assertEqual(categorized["category_confidence"], 1.0)
        self.assertEqual(categorized["categorization_reason"], MANUAL_REASON)
        self.assertTrue(categorized["is_manual_category"])

    def test_invalid_manual_category(self):
        with self.assertRaises(InvalidRuleError):
            categorize_new_transaction(self.service, {"id": "t4"}, manual_category="SHOPPING")


class TestTransactionRecategorizer(unittest.TestCase):
    """Test bulk re-categorization."""

    def setUp(self):
        self.service = CategorizationService()
        self.transactions = [
            # category changes
            {"id": "t1", "user_id": "u1", "description": "Zomato lunch",
             "category": "BOOKS", "category_confidence": 0.4},
            # same category and confidence
            {"id": "t2", "user_id": "u1", "description": "Uber ride",
             "category": "TRANSPORT", "category_confidence": 0.8},
            # manual, never touched
            {"id": "t3", "user_id": "u1", "description": "Netflix",
             "category": "FOOD", "category_confidence": 1.0, "is_manual_category": True},
            # same category, confidence improves by 0.3
            {"id": "t4", "user_id": "u1", "description": "Uber ride",
             "category": "TRANSPORT", "category_confidence": 0.5},
            # other user
            {"id": "t5", "user_id": "u2", "description": "Zomato lunch",
             "category": "BOOKS", "category_confidence": 0.3},
        ]
        self.store = InMemoryTransactionStore(self.transactions)

    def test_report_counts(self):
        report = TransactionRecategorizer(self.service, self.store).recategorize_user_transactions("u1")

        self.assertEqual(report, RecategorizationReport(processed=3, updated=2, failed=0))

    def test_changed_category_is_persisted(self):
        TransactionRecategorizer(self.service, self.store).recategorize_user_transactions("u1")
        stored = self.store.get("t1")

        self.assertEqual(stored["category"], "FOOD")
        self.assertAlmostEqual(stored["category_confidence"], 0.8)
        self.assertEqual(stored["categorization_reason"], "Matched keywords: zomato, lunch")
        self.assertFalse(stored["is_manual_category"])

    def test_unchanged_and_manual_records_untouched(self):
        TransactionRecategorizer(self.service, self.store).recategorize_user_transactions("u1")

        self.assertNotIn("categorization_reason", self.store.get("t2"))
        manual = self.store.get("t3")
        self.assertEqual(manual["category"], "FOOD")
        self.assertTrue(manual["is_manual_category"])
        self.assertEqual(self.store.get("t5")["category"], "BOOKS")

    def test_confidence_improvement_is_persisted(self):
        TransactionRecategorizer(self.service, self.store).recategorize_user_transactions("u1")

        self.assertAlmostEqual(self.store.get("t4")["category_confidence"], 0.8)

    def test_small_improvement_is_ignored(self):
        store = InMemoryTransactionStore([
            {"id": "a", "user_id": "u1", "description": "Uber ride",
             "category": "TRANSPORT", "category_confidence": 0.75},
        ])
        report = TransactionRecategorizer(self.service, store).recategorize_user_transactions("u1")

        self.assertEqual(report.updated, 0)
        self.assertEqual(store.get("a")["category_confidence"], 0.75)

    def test_unknown_stored_category_is_rewritten(self):
        store = InMemoryTransactionStore([
            {"id": "a", "user_id": "u1", "description": "Uber ride", "category": "OTHER"},
        ])
        report = TransactionRecategorizer(self.service, store).recategorize_user_transactions("u1")

        self.assertEqual(report.updated, 1)
        self.assertEqual(store.get("a")["category"], "TRANSPORT")

    def test_store_failures_are_counted(self):
        store = FailingStore(self.transactions, failing_ids=["t1"])
        report = TransactionRecategorizer(self.service, store).recategorize_user_transactions("u1")

        self.assertEqual(report, RecategorizationReport(processed=3, updated=1, failed=1))
        self.assertEqual(store.get("t1")["category"], "BOOKS")

    def test_custom_rule_triggers_update(self):
        """Rules added after the first pass are picked up on the next run."""
        recategorizer = TransactionRecategorizer(self.service, self.store)
        recategorizer.recategorize_user_transactions("u1")

        self.service.add_custom_rule(
            {"keywords": ["uber ride"], "category": "ENTERTAINMENT", "weight": 10.0}
        )
        report = recategorizer.recategorize_user_transactions("u1")

        self.assertEqual(report.updated, 2)
        self.assertEqual(self.store.get("t2")["category"], "ENTERTAINMENT")


class TestInMemoryTransactionStore(unittest.TestCase):
    """Test the record store used by the workflows."""

    def setUp(self):
        self.store = InMemoryTransactionStore([
            {"id": "a", "user_id": "u1", "date": "2025-01-05"},
            {"id": "b", "user_id": "u1", "date": "2025-01-20"},
            {"id": "c", "user_id": "u2", "date": "2025-02-01"},
        ])

    def test_crud(self):
        self.store.add({"id": "d", "user_id": "u3"})
        self.assertEqual(len(self.store), 4)

        updated = self.store.update("d", {"category": "FOOD"})
        self.assertEqual(updated["category"], "FOOD")

        self.store.delete("d")
        self.assertIsNone(self.store.get("d"))

    def test_missing_records_raise(self):
        with self.assertRaises(TransactionStoreError):
            self.store.update("zzz", {"category": "FOOD"})
        with self.assertRaises(TransactionStoreError):
            self.store.delete("zzz")
        with self.assertRaises(TransactionStoreError):
            self.store.add({"user_id": "u1"})

    def test_returned_records_are_copies(self):
        record = self.store.get("a")
        record["user_id"] = "changed"

        self.assertEqual(self.store.get("a")["user_id"], "u1")

    def test_queries(self):
        self.assertEqual([r["id"] for r in self.store.get_by_user_id("u1")], ["a", "b"])
        self.assertEqual(
            [r["id"] for r in self.store.get_by_date_range("2025-01-10", "2025-02-01")],
            ["b", "c"],
        )

    def test_clear(self):
        self.store.clear()
        self.assertEqual(len(self.store), 0)


class TestRunCategorization(unittest.TestCase):
    """Test the package-level entry point."""

    def test_categorizes_and_summarises(self):
        transactions = [
            {"id": "a", "description": "Zomato lunch"},
            {"id": "b", "description": "Canteen dinner"},
            {"id": "c", "description": "Bought a bus pass", "category": "HOSTEL",
             "category_confidence": 1.0, "is_manual_category": True},
        ]
        result = run_categorization(transactions, service=CategorizationService())
        rows = result["categorized_transactions"]

        self.assertEqual([row["id"] for row in rows], ["a", "b", "c"])
        self.assertEqual(rows[0]["category"], "FOOD")
        self.assertEqual(rows[1]["category"], "FOOD")
        self.assertEqual(rows[2]["category"], "HOSTEL")

        summary = result["category_summary"]
        self.assertEqual(summary["FOOD"]["count"], 2)
        self.assertEqual(summary["HOSTEL"]["count"], 1)
        self.assertAlmostEqual(summary["HOSTEL"]["average_confidence"], 1.0)

    def test_manual_category_enum_is_summarised_by_value(self):
        result = run_categorization(
            [{"id": "x", "description": "", "category": Category.BOOKS,
              "is_manual_category": True}],
            service=CategorizationService(),
        )

        self.assertEqual(list(result["category_summary"].keys()), ["BOOKS"])

    def test_manual_row_without_confidence_uses_manual_confidence(self):
        transactions = [
            {"id": "a", "description": "", "category": "HOSTEL",
             "category_confidence": 1.0, "is_manual_category": True},
            {"id": "b", "description": "", "category": "HOSTEL",
             "is_manual_category": True},
        ]
        result = run_categorization(transactions, service=CategorizationService())
        summary = result["category_summary"]["HOSTEL"]

        self.assertEqual(summary["count"], 2)
        self.assertAlmostEqual(summary["average_confidence"], 1.0)


if __name__ == "__main__":
    unittest.main()
