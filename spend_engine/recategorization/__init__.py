"""
Re-categorisation workflows: categorizing on write and bulk re-scoring of
stored non-manual transactions.
"""

from .workflow import (
    TransactionStore,
    TransactionStoreError,
    InMemoryTransactionStore,
    TransactionRecategorizer,
    RecategorizationReport,
    categorize_new_transaction,
    categorization_fields,
    MANUAL_REASON,
)

__all__ = [
    "TransactionStore",
    "TransactionStoreError",
    "InMemoryTransactionStore",
    "TransactionRecategorizer",
    "RecategorizationReport",
    "categorize_new_transaction",
    "categorization_fields",
    "MANUAL_REASON",
]
