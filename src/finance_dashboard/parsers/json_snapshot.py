import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

from finance_dashboard.parsers.base import RawSnapshot, SnapshotParser

class JsonSnapshotParser(SnapshotParser):
    """
    Parser for JSON snapshots saved from the finances API.

    Expected layout, each collection either a bare list or wrapped the way
    the API wraps it:
        {
            "accounts": [...] | {"data": [...]},
            "transactions": [...] | {"data": [...], "current_page": 1, ...},
            "categories": [...]            (optional)
        }
    """

    extensions = (".json",)
    REQUIRED_KEYS = ("accounts", "transactions")

    def validate_file(self, filepath):
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() not in self.extensions:
            raise ValueError(f"File must be .json, got {path.suffix}")

        document = self._load(path)
        if not isinstance(document, dict):
            raise ValueError("Snapshot must be a JSON object")

        missing = [key for key in self.REQUIRED_KEYS if key not in document]
        if missing:
            raise ValueError(f"Snapshot is missing required keys: {missing}")

    def parse(self, filepath) -> RawSnapshot:
        self.validate_file(filepath)
        document = self._load(Path(filepath))

        return RawSnapshot(
            accounts=self._collection(document, "accounts"),
            transactions=self._collection(document, "transactions"),
            categories=self._collection(document, "categories"),
        )

    def _load(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                # Money stays exact
                return json.load(f, parse_float=Decimal)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")

    @staticmethod
    def _collection(document: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        value = document.get(key)
        if value is None:
            return []
        if isinstance(value, dict):
            value = value.get("data", value.get(key))
        if not isinstance(value, list):
            raise ValueError(f"'{key}' must be a list of records")
        return value
