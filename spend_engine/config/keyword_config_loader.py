"""
Category keyword configuration loader.
Loads CSV files containing the tunable category -> keywords base rule set.
"""

import csv
from typing import Dict, List
from pathlib import Path

from ..categorisation.models import Category, InvalidRuleError, normalize_category_keywords


def load_category_keywords_csv(csv_path: str) -> Dict[Category, List[str]]:
    """
    Load a category keyword mapping from a CSV file.

    Args:
        csv_path: Path to CSV file containing keyword rows

    Returns:
        Dictionary mapping each category to its ordered keyword list

    Example CSV format:
        category,keyword
        FOOD,zomato
        FOOD,canteen
        TRANSPORT,metro
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Category keyword file not found: {csv_path}")

    raw: Dict[str, List[str]] = {}
    with open(csv_file, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            category = (row.get('category') or '').strip()
            keyword = (row.get('keyword') or '').strip()
            if not category and not keyword:
                continue
            if not category or not keyword:
                raise InvalidRuleError(
                    f"{csv_file.name}:{line_no}: both 'category' and 'keyword' are required"
                )
            raw.setdefault(category, []).append(keyword)

    return normalize_category_keywords(raw)

