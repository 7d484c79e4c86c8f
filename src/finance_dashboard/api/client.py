import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import httpx

from finance_dashboard.sources.base import RawRecord, SourceError, UnauthorizedError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

@dataclass
class TransactionPage:
    """One page of the paginated /transactions endpoint"""
    records: List[RawRecord] = field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: Optional[int] = None
    total: Optional[int] = None

    @property
    def has_next(self) -> bool:
        return self.current_page < self.last_page


def extract_collection(payload: Any, key: str) -> List[RawRecord]:
    """
    Pull a list of records out of an API payload.

    The API isn't consistent about envelopes, all of these are accepted:
        [...]
        {"data": [...]}
        {"<key>": [...]}
        {"data": {"<key>": [...]}}

    Raises:
        SourceError: If no list could be found
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        for candidate in (payload.get("data"), payload.get(key)):
            if isinstance(candidate, list):
                return candidate
            if isinstance(candidate, dict) and isinstance(candidate.get(key), list):
                return candidate[key]

    raise SourceError(f"Unexpected response shape for '{key}'")


def _int_or(value: Any, default: Optional[int]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class FinancesApiClient:
    """
    Read-only client for the finances API.

    Usage:
        with FinancesApiClient("http://localhost:8000/api", token=token) as client:
            accounts = client.get_accounts()
            page = client.get_transactions_page(per_page=50)

    Token acquisition is not handled here; pass one in if the API needs it.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = dict(DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "FinancesApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self._client.close()

    # ══════════════════════════════════════════════
    # ACCOUNTS
    # ══════════════════════════════════════════════

    def get_accounts(self) -> List[RawRecord]:
        """Fetch every account of the authenticated user"""
        return extract_collection(self._get("/accounts"), "accounts")

    def get_account(self, account_id: int | str) -> RawRecord:
        """
        Fetch a single account.

        Raises:
            SourceError: If the response doesn't contain an account
        """
        payload = self._get(f"/accounts/{account_id}")
        if isinstance(payload, dict):
            record = payload.get("data", payload.get("account", payload))
            if isinstance(record, dict):
                return record
        raise SourceError(f"Unexpected response shape for account {account_id}")

    # ══════════════════════════════════════════════
    # TRANSACTIONS
    # ══════════════════════════════════════════════

    def get_transactions(self, **filters: Any) -> List[RawRecord]:
        """
        Fetch a single page of transactions.

        Args:
            **filters: page, per_page, account_id, category_id, type,
                date_from, date_to

        Returns:
            List of raw transaction records
        """
        return self.get_transactions_page(**filters).records

    def get_transactions_page(self, **filters: Any) -> TransactionPage:
        """Fetch a page of transactions along with its pagination info"""
        payload = self._get("/transactions", params=self._params(filters))
        records = extract_collection(payload, "transactions")

        meta: Dict[str, Any] = payload if isinstance(payload, dict) else {}
        if isinstance(meta.get("meta"), dict):
            meta = meta["meta"]

        current_page = _int_or(meta.get("current_page"), _int_or(filters.get("page"), 1))
        return TransactionPage(
            records=records,
            current_page=current_page,
            last_page=_int_or(meta.get("last_page"), current_page),
            per_page=_int_or(meta.get("per_page"), _int_or(filters.get("per_page"), None)),
            total=_int_or(meta.get("total"), None),
        )

    def iter_transactions(
        self,
        per_page: int = 50,
        max_pages: Optional[int] = None,
        **filters: Any,
    ) -> Iterator[RawRecord]:
        """
        Walk the paginated transactions endpoint.

        Args:
            per_page: Page size to request
            max_pages: Stop after this many pages (None = all of them)
            **filters: Same filters as get_transactions

        Yields:
            Raw transaction records, page by page
        """
        page_number = int(filters.pop("page", 1) or 1)
        fetched = 0
        while True:
            page = self.get_transactions_page(page=page_number, per_page=per_page, **filters)
            fetched += 1
            logger.debug(
                "fetched transactions page %d/%d (%d records)",
                page.current_page, page.last_page, len(page.records),
            )
            yield from page.records

            if not page.has_next or not page.records:
                break
            if max_pages is not None and fetched >= max_pages:
                break
            page_number = page.current_page + 1

    # ══════════════════════════════════════════════
    # CATEGORIES
    # ══════════════════════════════════════════════

    def get_categories(self) -> List[RawRecord]:
        """Fetch every category of the authenticated user"""
        return extract_collection(self._get("/categories"), "categories")

    # ══════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════

    @staticmethod
    def _params(filters: Dict[str, Any]) -> Dict[str, Any]:
        params = {}
        for key, value in filters.items():
            if value is None:
                continue
            if hasattr(value, "value"):  # enums
                value = value.value
            elif hasattr(value, "isoformat"):  # dates
                value = value.isoformat()
            params[key] = value
        return params

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path and decode its JSON body.

        Numbers are decoded straight to Decimal so money never goes
        through a float.

        Raises:
            UnauthorizedError: On HTTP 401
            SourceError: On any other HTTP, transport or decoding failure
        """
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                logger.error("Unauthorized - token invalid or expired")
                raise UnauthorizedError("Unauthorized: token invalid or expired") from e
            raise SourceError(f"GET {path} failed with HTTP {status}") from e
        except httpx.RequestError as e:
            raise SourceError(f"GET {path} failed: {e}") from e

        try:
            return response.json(parse_float=Decimal)
        except ValueError as e:
            raise SourceError(f"GET {path} returned invalid JSON") from e
