import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from finance_dashboard.parsers.base import RawSnapshot, SnapshotParser

logger = logging.getLogger(__name__)

class ExcelSnapshotParser(SnapshotParser):
    """
    Parser for spreadsheet exports.

    Handles workbooks with:
    - an 'accounts' sheet (id, name, type, current_balance, is_active, ...)
    - a 'transactions' sheet (id, account_id, amount, type, date, ...)
    - an optional 'categories' sheet

    Sheet names are matched case-insensitively. Cells are read as text so
    amounts reach the normalizer without going through a float.
    """

    extensions = (".xlsx", ".xls")
    ACCOUNTS_SHEET = "accounts"
    TRANSACTIONS_SHEET = "transactions"
    CATEGORIES_SHEET = "categories"

    def validate_file(self, filepath):
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() not in self.extensions:
            raise ValueError(f"File must be .xlsx or .xls, got {path.suffix}")

        sheets = self._sheet_names(path)
        missing = [
            name for name in (self.ACCOUNTS_SHEET, self.TRANSACTIONS_SHEET)
            if name not in sheets
        ]
        if missing:
            raise ValueError(f"Workbook is missing required sheets: {missing}")

    def parse(self, filepath) -> RawSnapshot:
        self.validate_file(filepath)

        try:
            frames = pd.read_excel(filepath, sheet_name=None, dtype=str)
        except Exception as e:
            raise ValueError(f"Failed to read Excel file: {e}")

        frames = {str(name).strip().lower(): df for name, df in frames.items()}

        return RawSnapshot(
            accounts=self._records(frames.get(self.ACCOUNTS_SHEET)),
            transactions=self._records(frames.get(self.TRANSACTIONS_SHEET)),
            categories=self._records(frames.get(self.CATEGORIES_SHEET)),
        )

    def _sheet_names(self, path: Path) -> List[str]:
        try:
            with pd.ExcelFile(path) as workbook:
                return [str(name).strip().lower() for name in workbook.sheet_names]
        except Exception as e:
            raise ValueError(f"Failed to open workbook {path}: {e}")

    def _records(self, df: pd.DataFrame | None) -> List[Dict[str, Any]]:
        """Turn a sheet into records, blank cells become None"""
        if df is None:
            return []

        df = df.rename(columns=lambda c: str(c).strip().lower())
        records = []
        for _, row in df.iterrows():
            if row.isna().all():
                continue
            records.append({
                column: self._cell(value)
                for column, value in row.items()
            })

        logger.debug("read %d rows from sheet", len(records))
        return records

    @staticmethod
    def _cell(value: Any) -> Any:
        if pd.isna(value):
            return None
        if isinstance(value, pd.Timestamp):
            return value.date()
        if isinstance(value, date):
            return value
        return str(value).strip()
