import logging
from typing import List, Optional

from finance_dashboard.api.client import FinancesApiClient
from finance_dashboard.sources.base import RawRecord, SnapshotSource

logger = logging.getLogger(__name__)

class ApiSnapshotSource(SnapshotSource):
    """
    Snapshot source backed by the finances API.

    Transactions are paginated upstream. By default only the first page is
    fetched, which is what the dashboard has always shown; raise
    `max_pages` (or set it to None) to walk further back.
    """

    def __init__(
        self,
        client: FinancesApiClient,
        per_page: int = 50,
        max_pages: Optional[int] = 1,
    ):
        self.client = client
        self.per_page = per_page
        self.max_pages = max_pages

    def fetch_accounts(self) -> List[RawRecord]:
        accounts = self.client.get_accounts()
        logger.info("fetched %d accounts", len(accounts))
        return accounts

    def fetch_transactions(self) -> List[RawRecord]:
        transactions = list(self.client.iter_transactions(
            per_page=self.per_page,
            max_pages=self.max_pages,
        ))
        logger.info("fetched %d transactions", len(transactions))
        return transactions

    def fetch_categories(self) -> List[RawRecord]:
        return self.client.get_categories()
