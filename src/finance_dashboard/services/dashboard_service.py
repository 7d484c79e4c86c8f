import logging
from datetime import date
from typing import Callable, List, Optional

from finance_dashboard.parsers.records import RecordNormalizer
from finance_dashboard.services import aggregation
from finance_dashboard.services.models import DashboardSummary, Snapshot
from finance_dashboard.sources.base import RawRecord, SnapshotSource, SourceError, UnauthorizedError

logger = logging.getLogger(__name__)

class DashboardService:
    """
    Fetches a snapshot from a source and turns it into dashboard figures.

    Usage:
        service = DashboardService(ApiSnapshotSource(client))
        summary = service.build_dashboard(reference_date=date.today())
    """

    def __init__(
        self,
        source: SnapshotSource,
        normalizer: Optional[RecordNormalizer] = None,
        recent_limit: int = 5,
    ):
        self.source = source
        self._normalizer: Optional[RecordNormalizer] = normalizer
        self.recent_limit = recent_limit

    @property
    def normalizer(self) -> RecordNormalizer:
        """Lazy-load the record normalizer"""
        if self._normalizer is None:
            self._normalizer = RecordNormalizer()
        return self._normalizer

    def load_snapshot(self) -> Snapshot:
        """
        Fetch and normalize every collection.

        Each collection is fetched on its own. If one fails the failure is
        recorded on the snapshot and that collection is treated as empty,
        so the dashboard still renders (with zeros) instead of crashing.

        Raises:
            UnauthorizedError: If the source rejected our credentials
        """
        snapshot = Snapshot()

        raw_accounts = self._fetch("accounts", self.source.fetch_accounts, snapshot)
        raw_transactions = self._fetch("transactions", self.source.fetch_transactions, snapshot)
        raw_categories = self._fetch("categories", self.source.fetch_categories, snapshot)

        accounts = self.normalizer.accounts(raw_accounts)
        transactions = self.normalizer.transactions(raw_transactions)
        categories = self.normalizer.categories(raw_categories)

        snapshot.accounts = accounts.parsed
        snapshot.transactions = transactions.parsed
        snapshot.categories = categories.parsed
        snapshot.rejected = accounts.rejected + transactions.rejected + categories.rejected
        return snapshot

    def summarize(self, snapshot: Snapshot, reference_date: date) -> DashboardSummary:
        """Run every aggregation over an already loaded snapshot"""
        summary = DashboardSummary(
            reference_date=reference_date,
            total_balance=aggregation.total_balance(snapshot.accounts),
            liquidity=aggregation.liquidity_and_debt(snapshot.accounts),
            current_month=aggregation.current_month_flows(snapshot.transactions, reference_date),
            series=aggregation.six_month_series(snapshot.transactions, reference_date),
            expenses_by_category=aggregation.expenses_by_category(
                snapshot.transactions,
                snapshot.categories,
                reference_date,
            ),
            recent_transactions=aggregation.recent_transactions(snapshot.transactions, self.recent_limit),
            accounts=list(snapshot.accounts),
            consistency=aggregation.check_consistency(snapshot.accounts, snapshot.transactions),
            rejected=list(snapshot.rejected),
            fetch_errors=list(snapshot.fetch_errors),
        )

        if summary.is_degraded:
            logger.warning(
                "dashboard built from partial data: %d rejected, %d orphaned, %d fetch errors",
                summary.rejected_count, summary.orphaned_count, len(summary.fetch_errors),
            )
        return summary

    def build_dashboard(self, reference_date: date) -> DashboardSummary:
        """
        Fetch a fresh snapshot and compute the dashboard for it.

        Args:
            reference_date: The 'current' date; decides which month is
                "this month" and where the six-month series ends

        Returns:
            A DashboardSummary
        """
        return self.summarize(self.load_snapshot(), reference_date)

    def _fetch(
        self,
        name: str,
        fetch: Callable[[], List[RawRecord]],
        snapshot: Snapshot,
    ) -> List[RawRecord]:
        try:
            return fetch()
        except UnauthorizedError:
            raise
        except SourceError as e:
            logger.error("could not load %s: %s", name, e)
            snapshot.fetch_errors.append(f"{name}: {e}")
            return []
