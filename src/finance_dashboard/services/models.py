"""
Service layer models - results of aggregation and dashboard operations.

These models are derived on every computation and never persisted.
Amounts are plain Decimals; formatting is left to whoever renders them.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Tuple

from finance_dashboard.domain.models import Account, Category, Transaction
from finance_dashboard.parsers.records import RejectedRecord, RejectionReason

ZERO = Decimal("0")

@dataclass(frozen=True)
class LiquidityAndDebt:
    """
    Accounts partitioned by classification.

    Accounts whose type wasn't recognized land in the unclassified bucket
    instead of disappearing from both sums.
    """
    total_liquidity: Decimal = ZERO
    total_debt: Decimal = ZERO
    unclassified_total: Decimal = ZERO
    unclassified_ids: Tuple[str, ...] = ()

    @property
    def net_worth(self) -> Decimal:
        """Liquidity plus debt (debt is signed negative)"""
        return self.total_liquidity + self.total_debt

    @property
    def has_unclassified(self) -> bool:
        return len(self.unclassified_ids) > 0

@dataclass(frozen=True)
class MonthlyFlows:
    """Income and expense for a single calendar month"""
    year: int
    month: int
    income: Decimal = ZERO
    expense: Decimal = ZERO
    transaction_count: int = 0

    @property
    def net(self) -> Decimal:
        return self.income - self.expense

@dataclass(frozen=True)
class MonthlyBucket:
    """One (year, month) slot of the cash-flow series"""
    year: int
    month: int
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def month_index(self) -> int:
        """Zero-based month (0 = January) for renderers that index month names"""
        return self.month - 1

    @property
    def start_date(self) -> date:
        """First day of the month"""
        return date(self.year, self.month, 1)

    @property
    def net(self) -> Decimal:
        return self.income - self.expense

@dataclass(frozen=True)
class CategoryTotal:
    """Expense total for one category"""
    category_id: str | None
    name: str
    total: Decimal
    color: str | None = None

@dataclass(frozen=True)
class ConsistencyReport:
    """
    Contract problems found in a snapshot.

    None of these stop the dashboard from rendering, they are reported so
    the data source can be fixed.
    """
    duplicate_account_ids: Tuple[str, ...] = ()
    orphaned_transaction_ids: Tuple[str, ...] = ()
    credit_sign_anomalies: Tuple[str, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return not (
            self.duplicate_account_ids
            or self.orphaned_transaction_ids
            or self.credit_sign_anomalies
        )

@dataclass
class Snapshot:
    """Everything fetched for one computation"""
    accounts: List[Account] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)
    fetch_errors: List[str] = field(default_factory=list)

@dataclass
class DashboardSummary:
    """
    All the figures a dashboard needs.

    Built fresh from a Snapshot for a given reference date.
    """
    reference_date: date
    total_balance: Decimal
    liquidity: LiquidityAndDebt
    current_month: MonthlyFlows
    series: List[MonthlyBucket]
    expenses_by_category: List[CategoryTotal]
    recent_transactions: List[Transaction]
    accounts: List[Account]
    consistency: ConsistencyReport
    rejected: List[RejectedRecord] = field(default_factory=list)
    fetch_errors: List[str] = field(default_factory=list)

    @property
    def unparseable_count(self) -> int:
        """Records dropped because their date couldn't be read"""
        return sum(1 for r in self.rejected if r.reason == RejectionReason.UNPARSEABLE_DATE)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def orphaned_count(self) -> int:
        return len(self.consistency.orphaned_transaction_ids)

    @property
    def is_degraded(self) -> bool:
        """Some input was missing or dropped, figures may be partial"""
        return bool(self.rejected or self.fetch_errors or not self.consistency.is_consistent)
