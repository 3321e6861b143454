"""
Batch Recategorizer for transaction export files.
Categorizes JSON/CSV transaction exports (optionally zipped) with per-file
error handling, and summarises the results as pandas DataFrames.
"""

import io
import json
import logging
import os
import traceback
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from spend_engine.categorisation.engine import CategorizationService
from spend_engine.recategorization.workflow import categorization_fields

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".csv")
TRUE_VALUES = {"true", "1", "yes", "y"}


class InvalidTransactionFileError(Exception):
    """Raised when a file cannot be normalized to a list of transactions."""
    pass


@dataclass
class ProcessingError:
    """Details of a processing error."""
    file_name: str
    error_type: str
    error_message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total_files: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0

    # Transaction counts
    total_transactions: int = 0
    categorized: int = 0
    skipped_manual: int = 0
    low_confidence: int = 0

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.successful / self.total_files) * 100


@dataclass
class FileResult:
    """Categorized rows from one file."""
    file_name: str
    rows: List[Dict]


@dataclass
class BatchResult:
    """Complete result of batch processing."""
    stats: BatchStats
    results: List[FileResult]
    errors: List[ProcessingError]
    error_summary: Dict[str, int] = field(default_factory=dict)


class BatchRecategorizer:
    """Categorizes transaction export files in bulk."""

    def __init__(
        self,
        service: Optional[CategorizationService] = None,
        low_confidence_threshold: float = 0.5
    ):
        """
        Initialize the batch recategorizer.

        Args:
            service: Categorizer to use (a fresh CategorizationService by default)
            low_confidence_threshold: Results below this confidence are counted
                as low confidence in the stats
        """
        self.service = service or CategorizationService()
        self.low_confidence_threshold = low_confidence_threshold

    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process a batch of transaction files.

        Args:
            files: List of (filename, content) tuples
            progress_callback: Optional callback(current, total, message)

        Returns:
            BatchResult with all processing results
        """
        stats = BatchStats(
            total_files=len(files),
            start_time=datetime.now()
        )

        results = []
        errors = []
        error_types: Dict[str, int] = {}

        logger.info(f"Starting batch categorization of {len(files)} files")

        for idx, (filename, content) in enumerate(files):
            if progress_callback:
                progress_callback(idx + 1, len(files), f"Processing: {filename}")

            logger.debug(f"Processing file {idx + 1}/{len(files)}: {filename}")
            stats.processed += 1

            try:
                file_result = self._process_single_file(filename, content, stats)
                results.append(file_result)
                stats.successful += 1
                continue

            except json.JSONDecodeError as e:
                error_type, message = "JSON_PARSE_ERROR", f"Invalid JSON: {str(e)}"
                logger.error(f"JSON parse error in {filename}: {e}")

            except KeyError as e:
                error_type, message = "MISSING_DATA", f"Missing required field: {str(e)}"
                logger.error(f"Missing data in {filename}: {e}")

            except InvalidTransactionFileError as e:
                error_type, message = "INVALID_FILE_STRUCTURE", str(e)
                logger.error(f"Invalid file structure in {filename}: {e}")

            except ValueError as e:
                error_type, message = "DATA_VALIDATION_ERROR", str(e)
                logger.error(f"Data validation error in {filename}: {e}")

            except Exception as e:
                error_type, message = "PROCESSING_ERROR", f"{type(e).__name__}: {str(e)}"
                logger.error(f"Processing error in {filename}: {traceback.format_exc()}")

            errors.append(ProcessingError(
                file_name=filename,
                error_type=error_type,
                error_message=message
            ))
            stats.failed += 1
            error_types[error_type] = error_types.get(error_type, 0) + 1

        stats.end_time = datetime.now()

        logger.info(
            f"Batch categorization complete: {stats.successful}/{stats.total_files} files, "
            f"{stats.categorized} categorized, {stats.skipped_manual} manual kept, "
            f"time: {stats.processing_time:.1f}s"
        )

        return BatchResult(
            stats=stats,
            results=results,
            errors=errors,
            error_summary=error_types
        )

    def _process_single_file(
        self,
        filename: str,
        content: bytes,
        stats: BatchStats
    ) -> FileResult:
        """Process a single transaction file."""
        transactions = self._load_transactions(filename, content)

        if not transactions:
            raise ValueError("No transactions found in file")

        self._validate_transactions(transactions, filename)

        # batch results follow input order with manual records removed
        categorized = iter(self.service.batch_categorize(transactions))

        rows = []
        for txn in transactions:
            row = dict(txn)
            row["source_file"] = filename
            if txn.get("is_manual_category"):
                stats.skipped_manual += 1
            else:
                result = next(categorized)["result"]
                row.update(categorization_fields(result))
                stats.categorized += 1
                if result.confidence < self.low_confidence_threshold:
                    stats.low_confidence += 1
            rows.append(row)

        stats.total_transactions += len(transactions)
        return FileResult(file_name=filename, rows=rows)

    def _load_transactions(self, filename: str, content: bytes) -> List[Dict]:
        """Parse a JSON or CSV file into transaction dicts."""
        suffix = Path(filename).suffix.lower()

        if suffix not in SUPPORTED_EXTENSIONS:
            raise InvalidTransactionFileError(f"Unsupported file type: {filename}")

        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            # latin-1 accepts all byte values
            text = content.decode("latin-1")

        if suffix == ".csv":
            frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
            transactions = frame.to_dict(orient="records")
        else:
            transactions = self._normalize_json_structure(json.loads(text))

        for txn in transactions:
            manual = txn.get("is_manual_category")
            if isinstance(manual, str):
                txn["is_manual_category"] = manual.strip().lower() in TRUE_VALUES
            for key in ("merchant_name", "upi_transaction_id"):
                value = txn.get(key)
                if value == "":
                    txn[key] = None
                elif value is not None and not isinstance(value, str):
                    # numeric UPI references in JSON exports
                    txn[key] = str(value)

        return transactions

    def _normalize_json_structure(self, data) -> List[Dict]:
        """
        Normalize JSON exports to a transaction list.

        Handles a root-level list of transactions or a dict with a
        'transactions' key.

        Raises:
            InvalidTransactionFileError: If structure cannot be normalized
        """
        if isinstance(data, dict):
            data = data.get("transactions")

        if not isinstance(data, list):
            raise InvalidTransactionFileError(
                "Expected a list of transactions or an object with a 'transactions' list"
            )
        if not all(isinstance(item, dict) for item in data):
            raise InvalidTransactionFileError("Every transaction must be a JSON object")

        return [dict(item) for item in data]

    def _validate_transactions(self, transactions: List[Dict], filename: str) -> None:
        """Validate transaction data and fill in missing ids."""
        stem = Path(filename).stem
        for idx, txn in enumerate(transactions):
            # raises KeyError -> MISSING_DATA
            description = txn["description"]
            if description is not None and not isinstance(description, str):
                raise ValueError(
                    f"Transaction {idx} has invalid description: {description!r}"
                )
            if not txn.get("id"):
                txn["id"] = f"{stem}-{idx}"

    def load_files_from_paths(self, paths: List[str]) -> List[Tuple[str, bytes]]:
        """
        Load files from disk.
        Handles JSON/CSV files and ZIP archives.

        Args:
            paths: File paths

        Returns:
            List of (filename, content) tuples
        """
        all_files = []

        for path in paths:
            filename = os.path.basename(path)
            with open(path, "rb") as f:
                content = f.read()

            if filename.lower().endswith(".zip"):
                logger.info(f"Extracting ZIP archive: {filename}")
                zip_files = self._extract_zip(content)
                all_files.extend(zip_files)
                logger.info(f"Extracted {len(zip_files)} files from {filename}")

            elif filename.lower().endswith(SUPPORTED_EXTENSIONS):
                all_files.append((filename, content))

            else:
                logger.warning(f"Skipping unsupported file: {filename}")

        logger.info(f"Total files loaded: {len(all_files)}")
        return all_files

    def _extract_zip(self, content: bytes) -> List[Tuple[str, bytes]]:
        """Extract JSON/CSV files from a ZIP archive."""
        files = []

        with zipfile.ZipFile(io.BytesIO(content), "r") as zf:
            for name in zf.namelist():
                if name.endswith("/"):
                    continue
                if not name.lower().endswith(SUPPORTED_EXTENSIONS):
                    continue
                files.append((os.path.basename(name), zf.read(name)))

        return files

    def results_to_dataframe(self, results: List[FileResult]) -> pd.DataFrame:
        """
        Convert categorized rows to a pandas DataFrame.

        Args:
            results: List of FileResult objects

        Returns:
            pandas DataFrame with one row per transaction
        """
        rows = []
        for file_result in results:
            for row in file_result.rows:
                category = row.get("category")
                rows.append({
                    "Source File": file_result.file_name,
                    "Transaction ID": row.get("id"),
                    "Description": row.get("description"),
                    "Merchant": row.get("merchant_name") or "",
                    "UPI Handle": row.get("upi_transaction_id") or "",
                    "Category": getattr(category, "value", category),
                    "Confidence": row.get("category_confidence"),
                    "Reason": row.get("categorization_reason") or "",
                    "Manual": bool(row.get("is_manual_category")),
                })

        frame = pd.DataFrame(rows, columns=[
            "Source File", "Transaction ID", "Description", "Merchant", "UPI Handle",
            "Category", "Confidence", "Reason", "Manual",
        ])
        # CSV inputs carry manual confidences as text
        frame["Confidence"] = pd.to_numeric(frame["Confidence"], errors="coerce")
        return frame

    def category_summary(self, frame: pd.DataFrame) -> pd.DataFrame:
        """
        Summarise categorized rows per category.

        Returns:
            DataFrame indexed by category with transaction count and mean
            confidence, largest categories first
        """
        if frame.empty:
            return pd.DataFrame(columns=["Transactions", "Average Confidence"])

        summary = (
            frame.groupby("Category")
            .agg(
                Transactions=("Transaction ID", "count"),
                **{"Average Confidence": ("Confidence", "mean")},
            )
            .sort_values("Transactions", ascending=False, kind="stable")
        )
        return summary

    def errors_to_dataframe(self, errors: List[ProcessingError]) -> pd.DataFrame:
        """
        Convert processing errors to a pandas DataFrame.

        Args:
            errors: List of ProcessingError objects

        Returns:
            pandas DataFrame
        """
        rows = []
        for error in errors:
            rows.append({
                "File Name": error.file_name,
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })

        return pd.DataFrame(rows, columns=["File Name", "Error Type", "Error Message", "Timestamp"])

    def export_csv(self, result: BatchResult) -> bytes:
        """Export categorized rows as UTF-8 CSV bytes."""
        frame = self.results_to_dataframe(result.results)
        return frame.to_csv(index=False).encode("utf-8")
