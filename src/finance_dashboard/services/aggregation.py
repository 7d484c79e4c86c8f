"""
Aggregation engine - dashboard KPIs from account and transaction snapshots.

Every function here is pure: same inputs, same outputs, no clock reads.
Callers pass the reference date explicitly (usually today).
"""
from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from finance_dashboard.domain.enums import AccountType, TransactionType
from finance_dashboard.domain.models import Account, Category, Transaction
from finance_dashboard.services.models import (
    ZERO,
    CategoryTotal,
    ConsistencyReport,
    LiquidityAndDebt,
    MonthlyBucket,
    MonthlyFlows,
)

SERIES_LENGTH = 6
UNCATEGORIZED = "Uncategorized"


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """
    Move a (year, month) pair by `offset` calendar months.

    Example:
        shift_month(2024, 1, -5) -> (2023, 8)
    """
    months = year * 12 + (month - 1) + offset
    return months // 12, months % 12 + 1


def total_balance(accounts: Iterable[Account]) -> Decimal:
    """Sum of every account balance, whatever its type or active flag"""
    return sum((account.current_balance for account in accounts), ZERO)


def liquidity_and_debt(accounts: Iterable[Account]) -> LiquidityAndDebt:
    """
    Partition balances into liquidity (LIQUID) and debt (CREDIT).

    Credit balances are expected signed negative, so net worth is
    liquidity + debt.
    """
    liquidity = ZERO
    debt = ZERO
    unclassified = ZERO
    unclassified_ids: List[str] = []

    for account in accounts:
        if account.type == AccountType.LIQUID:
            liquidity += account.current_balance
        elif account.type == AccountType.CREDIT:
            debt += account.current_balance
        else:
            unclassified += account.current_balance
            unclassified_ids.append(account.id)

    return LiquidityAndDebt(
        total_liquidity=liquidity,
        total_debt=debt,
        unclassified_total=unclassified,
        unclassified_ids=tuple(unclassified_ids),
    )


def _flows(transactions: Iterable[Transaction]) -> Tuple[Decimal, Decimal, int]:
    income = ZERO
    expense = ZERO
    count = 0
    for txn in transactions:
        count += 1
        if txn.type == TransactionType.INCOME:
            income += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            expense += txn.magnitude
    return income, expense, count


def current_month_flows(transactions: Iterable[Transaction], reference_date: date) -> MonthlyFlows:
    """
    Income and expense for the calendar month of `reference_date`.

    Both month and year have to match. Expenses are summed by absolute
    value, transfers are left out of both sums.
    """
    period = (reference_date.year, reference_date.month)
    income, expense, count = _flows(t for t in transactions if t.period == period)

    return MonthlyFlows(
        year=reference_date.year,
        month=reference_date.month,
        income=income,
        expense=expense,
        transaction_count=count,
    )


def six_month_series(transactions: Iterable[Transaction], reference_date: date) -> List[MonthlyBucket]:
    """
    Cash flow for the reference month and the five months before it.

    Always returns six buckets, oldest first. Months without transactions
    report zero income and zero expense.
    """
    periods = [
        shift_month(reference_date.year, reference_date.month, -offset)
        for offset in range(SERIES_LENGTH - 1, -1, -1)
    ]

    income: Dict[Tuple[int, int], Decimal] = {p: ZERO for p in periods}
    expense: Dict[Tuple[int, int], Decimal] = {p: ZERO for p in periods}

    for txn in transactions:
        key = txn.period
        if key not in income:
            continue
        if txn.type == TransactionType.INCOME:
            income[key] += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            expense[key] += txn.magnitude

    return [
        MonthlyBucket(year=year, month=month, income=income[(year, month)], expense=expense[(year, month)])
        for year, month in periods
    ]


def expenses_by_category(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    reference_date: date,
) -> List[CategoryTotal]:
    """Current-month expenses grouped by category, largest first"""
    by_id = {category.id: category for category in categories}
    period = (reference_date.year, reference_date.month)

    totals: Dict[str | None, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.type != TransactionType.EXPENSE or txn.period != period:
            continue
        key = txn.category_id if txn.category_id in by_id else None
        totals[key] += txn.magnitude

    result = []
    for category_id, total in totals.items():
        category = by_id.get(category_id) if category_id is not None else None
        result.append(CategoryTotal(
            category_id=category_id,
            name=category.name if category else UNCATEGORIZED,
            total=total,
            color=category.color if category else None,
        ))

    return sorted(result, key=lambda c: (-c.total, c.name))


def recent_transactions(transactions: Iterable[Transaction], limit: int = 5) -> List[Transaction]:
    """Newest transactions first"""
    if limit <= 0:
        return []
    ordered = sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)
    return ordered[:limit]


def check_consistency(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> ConsistencyReport:
    """
    Look for contract problems in a snapshot.

    Reports:
        - account ids that appear more than once
        - transactions pointing at an account that isn't in the snapshot
        - credit accounts with a positive balance (debt should be negative)
    """
    accounts = list(accounts)
    counts = Counter(account.id for account in accounts)
    known_ids = set(counts)

    duplicates = sorted(account_id for account_id, n in counts.items() if n > 1)
    orphaned = [t.id for t in transactions if t.account_id not in known_ids]
    anomalies = [
        a.id for a in accounts
        if a.type == AccountType.CREDIT and a.current_balance > 0
    ]

    return ConsistencyReport(
        duplicate_account_ids=tuple(duplicates),
        orphaned_transaction_ids=tuple(orphaned),
        credit_sign_anomalies=tuple(anomalies),
    )
