import json
import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd

from finance_dashboard.parsers.excel_snapshot import ExcelSnapshotParser
from finance_dashboard.parsers.factory import ParserFactory
from finance_dashboard.parsers.json_snapshot import JsonSnapshotParser
from finance_dashboard.services.dashboard_service import DashboardService
from finance_dashboard.sources.base import SourceError
from finance_dashboard.sources.file_source import FileSnapshotSource

@pytest.fixture
def json_parser() -> JsonSnapshotParser:
    return JsonSnapshotParser()

@pytest.fixture
def excel_parser() -> ExcelSnapshotParser:
    return ExcelSnapshotParser()

@pytest.fixture
def sample_workbook(tmp_path) -> Path:
    """Write a small workbook the way a spreadsheet export would look"""
    path = tmp_path / "export.xlsx"
    accounts = pd.DataFrame([
        {"id": 1, "name": "Checking", "type": "LIQUID", "current_balance": "1000.00", "is_active": "true"},
        {"id": 2, "name": "Visa", "type": "CREDIT", "current_balance": "-300.00", "is_active": "true"},
    ])
    transactions = pd.DataFrame([
        {"id": 10, "account_id": 1, "category_id": None, "amount": "500.00", "type": "INCOME", "date": "2024-01-05", "description": "Salary"},
        {"id": 11, "account_id": 2, "category_id": "101", "amount": "-200.00", "type": "EXPENSE", "date": "2024-01-10", "description": "Groceries"},
        {"id": 12, "account_id": 1, "category_id": None, "amount": "12.00", "type": "EXPENSE", "date": "someday", "description": "Broken"},
    ])
    categories = pd.DataFrame([
        {"id": 101, "name": "Food", "type": "EXPENSE"},
    ])
    with pd.ExcelWriter(path) as writer:
        accounts.to_excel(writer, sheet_name="Accounts", index=False)
        transactions.to_excel(writer, sheet_name="Transactions", index=False)
        categories.to_excel(writer, sheet_name="Categories", index=False)
    return path

@pytest.mark.integration
class TestJsonSnapshotE2E:
    """End-to-end tests with a real JSON snapshot"""

    def test_parse_fixture(self, json_parser: JsonSnapshotParser, sample_snapshot_file: Path):
        # Act
        snapshot = json_parser.parse(sample_snapshot_file)

        # Assert
        assert len(snapshot.accounts) == 2
        assert len(snapshot.transactions) == 6
        assert len(snapshot.categories) == 2
        assert snapshot.accounts[0]["current_balance"] == Decimal("1000.00")

    def test_bare_lists(self, json_parser: JsonSnapshotParser, tmp_path):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps({"accounts": [{"id": 1}], "transactions": []}))

        snapshot = json_parser.parse(path)

        assert snapshot.accounts == [{"id": 1}]
        assert snapshot.categories == []

    def test_missing_required_key(self, json_parser: JsonSnapshotParser, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"accounts": []}))

        with pytest.raises(ValueError):
            json_parser.parse(path)

    def test_invalid_json(self, json_parser: JsonSnapshotParser, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError):
            json_parser.parse(path)

    def test_missing_file(self, json_parser: JsonSnapshotParser, tmp_path):
        with pytest.raises(FileNotFoundError):
            json_parser.parse(tmp_path / "nope.json")

    def test_dashboard_from_fixture(self, json_parser: JsonSnapshotParser, sample_snapshot_file: Path):
        """Test the full path: file -> records -> dashboard"""
        # Arrange
        service = DashboardService(FileSnapshotSource(sample_snapshot_file, json_parser))

        # Act
        summary = service.build_dashboard(reference_date=date(2024, 1, 15))

        # Assert
        assert summary.liquidity.total_liquidity == Decimal("1000")
        assert summary.liquidity.total_debt == Decimal("-300")
        assert summary.liquidity.net_worth == Decimal("700")
        assert summary.current_month.income == Decimal("500")
        assert summary.current_month.expense == Decimal("200")
        assert [(b.year, b.month) for b in summary.series][0] == (2023, 8)
        assert summary.series[-2].expense == Decimal("80.50")
        assert summary.unparseable_count == 1
        assert summary.orphaned_count == 0


@pytest.mark.integration
class TestExcelSnapshotE2E:
    """End-to-end tests with a workbook written to tmp_path"""

    def test_parse_workbook(self, excel_parser: ExcelSnapshotParser, sample_workbook: Path):
        # Act
        snapshot = excel_parser.parse(sample_workbook)

        # Assert
        assert len(snapshot.accounts) == 2
        assert len(snapshot.transactions) == 3
        assert snapshot.accounts[1]["type"] == "CREDIT"
        assert snapshot.transactions[0]["category_id"] is None

    def test_dashboard_from_workbook(self, excel_parser: ExcelSnapshotParser, sample_workbook: Path):
        service = DashboardService(FileSnapshotSource(sample_workbook, excel_parser))

        summary = service.build_dashboard(reference_date=date(2024, 1, 20))

        assert summary.total_balance == Decimal("700")
        assert summary.current_month.income == Decimal("500")
        assert summary.current_month.expense == Decimal("200")
        assert summary.unparseable_count == 1
        assert [c.name for c in summary.expenses_by_category] == ["Food"]

    def test_missing_sheet(self, excel_parser: ExcelSnapshotParser, tmp_path):
        path = tmp_path / "accounts_only.xlsx"
        pd.DataFrame([{"id": 1}]).to_excel(path, sheet_name="accounts", index=False)

        with pytest.raises(ValueError):
            excel_parser.parse(path)

    def test_wrong_extension(self, excel_parser: ExcelSnapshotParser, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("id\n1\n")

        with pytest.raises(ValueError):
            excel_parser.validate_file(path)


@pytest.mark.integration
class TestFileSnapshotSource:

    def test_unreadable_file_is_a_source_error(self, json_parser: JsonSnapshotParser, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[]")

        source = FileSnapshotSource(path, json_parser)

        with pytest.raises(SourceError):
            source.fetch_accounts()

    def test_factory_loaded_from_config(self, sample_snapshot_file: Path):
        """Test the bundled config registers a parser for the fixture"""
        ParserFactory._registry = {}
        ParserFactory._locked = False
        ParserFactory.load_parsers_from_config()

        parser = ParserFactory.create_parser(ParserFactory.format_for_path(sample_snapshot_file))
        source = FileSnapshotSource(sample_snapshot_file, parser)

        assert len(source.fetch_accounts()) == 2
