"""
Dashboard computations.

The aggregation engine is a set of pure functions over accounts and
transactions; DashboardService wires it to a snapshot source.

Quick Start:
    >>> from finance_dashboard.services import DashboardService
    >>>
    >>> service = DashboardService(source)
    >>> summary = service.build_dashboard(reference_date=date(2024, 1, 15))
    >>> print(summary.liquidity.net_worth)
"""
from finance_dashboard.services.aggregation import (
    check_consistency,
    current_month_flows,
    expenses_by_category,
    liquidity_and_debt,
    recent_transactions,
    shift_month,
    six_month_series,
    total_balance,
)
from finance_dashboard.services.dashboard_service import DashboardService

__all__ = [
    "DashboardService",
    "check_consistency",
    "current_month_flows",
    "expenses_by_category",
    "liquidity_and_debt",
    "recent_transactions",
    "shift_month",
    "six_month_series",
    "total_balance",
]
