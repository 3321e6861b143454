"""
Transaction write path and bulk re-categorisation.

Applies categorizer output to transaction records held in a record store and
re-scores a user's non-manual transactions when rules change.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Union

from ..categorisation.engine import CategorizationService
from ..categorisation.models import Category, CategorizationResult, InvalidRuleError
from ..config.categorization_config import CATEGORIZATION_CONFIG

logger = logging.getLogger(__name__)

MANUAL_REASON = "Manually categorized"


class TransactionStoreError(Exception):
    """Raised when the record store cannot read or write a transaction."""
    pass


class TransactionStore(ABC):
    """Key-indexed transaction record store used by the workflows."""

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> List[Dict]:
        """Return all transaction records for a user."""

    @abstractmethod
    def update(self, transaction_id: str, changes: Mapping) -> Dict:
        """Apply field changes to a stored record and return it."""


class InMemoryTransactionStore(TransactionStore):
    """Dict-backed store with CRUD and date-range queries."""

    def __init__(self, transactions: Optional[List[Mapping]] = None):
        self._records: Dict[str, Dict] = {}
        for txn in transactions or []:
            self.add(txn)

    def add(self, transaction: Mapping) -> Dict:
        if "id" not in transaction:
            raise TransactionStoreError("Transaction record has no 'id'")
        record = dict(transaction)
        self._records[record["id"]] = record
        return copy.deepcopy(record)

    def get(self, transaction_id: str) -> Optional[Dict]:
        record = self._records.get(transaction_id)
        return copy.deepcopy(record) if record is not None else None

    def get_by_user_id(self, user_id: str) -> List[Dict]:
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if record.get("user_id") == user_id
        ]

    def get_by_date_range(self, start_date: str, end_date: str) -> List[Dict]:
        """Records whose ISO 'date' falls within [start_date, end_date]."""
        start = datetime.fromisoformat(start_date)
        end = datetime.fromisoformat(end_date)
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if record.get("date") and start <= datetime.fromisoformat(record["date"]) <= end
        ]

    def update(self, transaction_id: str, changes: Mapping) -> Dict:
        if transaction_id not in self._records:
            raise TransactionStoreError(f"Transaction not found: {transaction_id}")
        self._records[transaction_id].update(changes)
        return copy.deepcopy(self._records[transaction_id])

    def delete(self, transaction_id: str) -> None:
        if self._records.pop(transaction_id, None) is None:
            raise TransactionStoreError(f"Transaction not found: {transaction_id}")

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


@dataclass
class RecategorizationReport:
    """Counts reported back to the caller of a bulk re-categorisation."""
    processed: int = 0
    updated: int = 0
    failed: int = 0


def categorization_fields(result: CategorizationResult) -> Dict:
    """Transaction fields persisted alongside a categorization result."""
    return {
        "category": result.category.value,
        "category_confidence": result.confidence,
        "categorization_reason": result.reason,
        "is_manual_category": result.is_manual,
    }


def categorize_new_transaction(
    service: CategorizationService,
    transaction: Mapping,
    manual_category: Optional[Union[Category, str]] = None
) -> Dict:
    """
    Attach a category to a transaction before it is written.

    Args:
        service: Categorizer to use
        transaction: Record with 'description' and optional 'merchant_name',
            'upi_transaction_id'
        manual_category: Category chosen by the user, kept as-is

    Returns:
        Copy of the record with category fields set

    Raises:
        InvalidRuleError: manual_category is not a known category
    """
    record = dict(transaction)

    if manual_category is not None:
        result = CategorizationResult(
            category=Category.parse(manual_category),
            confidence=CATEGORIZATION_CONFIG["manual_confidence"],
            reason=MANUAL_REASON,
            is_manual=True,
        )
    else:
        result = service.categorize(
            record.get("description", ""),
            record.get("merchant_name"),
            record.get("upi_transaction_id"),
        )

    record.update(categorization_fields(result))
    return record


class TransactionRecategorizer:
    """Re-scores a user's stored, non-manual transactions."""

    def __init__(
        self,
        service: CategorizationService,
        store: TransactionStore,
        min_improvement: Optional[float] = None
    ):
        self.service = service
        self.store = store
        if min_improvement is None:
            min_improvement = CATEGORIZATION_CONFIG["recategorization_min_improvement"]
        self.min_improvement = min_improvement

    def recategorize_user_transactions(self, user_id: str) -> RecategorizationReport:
        """
        Re-run categorization over a user's transactions and persist changes.

        A record is rewritten when its category changes or its confidence
        improves by more than ``min_improvement``. Manual categories are never
        touched.

        Returns:
            RecategorizationReport with processed/updated/failed counts
        """
        transactions = self.store.get_by_user_id(user_id)
        candidates = [txn for txn in transactions if not txn.get("is_manual_category")]
        by_id = {txn["id"]: txn for txn in candidates}

        logger.info(
            "Re-categorizing %d transactions for user %s (%d manual skipped)",
            len(candidates), user_id, len(transactions) - len(candidates)
        )

        report = RecategorizationReport()
        for item in self.service.batch_categorize(candidates):
            report.processed += 1
            txn = by_id[item["id"]]
            result = item["result"]

            if not self._should_update(txn, result):
                continue

            try:
                self.store.update(txn["id"], categorization_fields(result))
                report.updated += 1
            except TransactionStoreError as e:
                report.failed += 1
                logger.error(f"Failed to update transaction {txn['id']}: {e}")

        logger.info(
            "Re-categorization complete for user %s: %d processed, %d updated, %d failed",
            user_id, report.processed, report.updated, report.failed
        )
        return report

    def _should_update(self, transaction: Mapping, result: CategorizationResult) -> bool:
        """Category changed, or confidence improved by more than the threshold."""
        current = transaction.get("category")
        try:
            current_category = Category.parse(current) if current is not None else None
        except InvalidRuleError:
            logger.warning(
                f"Transaction {transaction.get('id')} has unknown category {current!r}"
            )
            current_category = None

        if current_category != result.category:
            return True

        current_confidence = transaction.get("category_confidence") or 0.0
        return result.confidence - current_confidence > self.min_improvement
