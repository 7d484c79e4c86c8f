import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List

from finance_dashboard.domain.enums import AccountType, TransactionType
from finance_dashboard.domain.models import Account, Category, Transaction

FIXTURES_DIR = Path(__file__).parent / "fixtures"

@pytest.fixture
def reference_date() -> date:
    """Fixed 'today' so nothing depends on the wall clock"""
    return date(2024, 1, 15)

@pytest.fixture
def sample_accounts() -> List[Account]:
    """One liquid account and one credit card"""
    return [
        Account(id="1", type=AccountType.LIQUID, current_balance=Decimal("1000"), name="Checking"),
        Account(id="2", type=AccountType.CREDIT, current_balance=Decimal("-300"), name="Visa"),
    ]

@pytest.fixture
def sample_transactions() -> List[Transaction]:
    """Income, a negative expense and a transfer in January 2024"""
    return [
        Transaction(
            id="10",
            account_id="1",
            amount=Decimal("500"),
            type=TransactionType.INCOME,
            date=date(2024, 1, 5),
            description="Salary",
            category_id="100",
        ),
        Transaction(
            id="11",
            account_id="2",
            amount=Decimal("-200"),
            type=TransactionType.EXPENSE,
            date=date(2024, 1, 10),
            description="Groceries",
            category_id="101",
        ),
        Transaction(
            id="12",
            account_id="1",
            amount=Decimal("150"),
            type=TransactionType.TRANSFER,
            date=date(2024, 1, 11),
            description="Card payment",
        ),
    ]

@pytest.fixture
def sample_categories() -> List[Category]:
    return [
        Category(id="100", name="Salary", type=TransactionType.INCOME),
        Category(id="101", name="Food", type=TransactionType.EXPENSE, color="#ef4444"),
    ]

@pytest.fixture
def sample_snapshot_file() -> Path:
    """Provide a path to a JSON snapshot shaped like the API responses"""
    return FIXTURES_DIR / "snapshot.json"
