from dataclasses import dataclass
from decimal import Decimal
from datetime import date
from typing import Optional, Tuple
from finance_dashboard.domain.enums import AccountType, TransactionType

@dataclass(frozen=True)
class Account:
    """
    Snapshot of an account as reported by the finances API.

    `type` is None when the source sent a classification we don't know;
    the original value is kept in `raw_type` so it can be reported.
    """
    id: str
    type: Optional[AccountType]
    current_balance: Decimal
    is_active: bool = True
    name: str = ""
    currency: Optional[str] = None
    raw_type: Optional[str] = None

    @property
    def is_classified(self) -> bool:
        return self.type is not None

    def __repr__(self):
        kind = self.type.value if self.type else f"?{self.raw_type}"
        return f"Account({self.id}, {self.name[:30]}, {kind}, ${self.current_balance})"

@dataclass(frozen=True)
class Transaction:
    """Core domain model representing a single transaction"""
    id: str
    account_id: str
    amount: Decimal
    type: TransactionType
    date: date
    description: str = ""
    category_id: Optional[str] = None
    is_recurring: bool = False
    reference: Optional[str] = None

    @property
    def magnitude(self) -> Decimal:
        """Amount without sign, expenses are stored both ways upstream"""
        return abs(self.amount)

    @property
    def period(self) -> Tuple[int, int]:
        """(year, month) the transaction belongs to"""
        return (self.date.year, self.date.month)

    def __repr__(self):
        return f"Transaction({self.date}, {self.description[:30]}, {self.type.value}, ${self.amount})"

@dataclass(frozen=True)
class Category:
    """Display metadata used to label grouped totals"""
    id: str
    name: str
    type: TransactionType
    color: Optional[str] = None
    icon: Optional[str] = None
