"""
Boundary normalization - raw API/snapshot records into domain objects.

Every record is converted on its own. A record that can't be converted is
turned into a RejectedRecord instead of aborting the whole collection, so
the dashboard can still render with partial data.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Generic, Iterable, List, Mapping, Optional, TypeVar

from finance_dashboard.domain.enums import AccountType, CreditBalanceSign, TransactionType
from finance_dashboard.domain.models import Account, Category, Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

class RejectionReason(Enum):
    """Why a record could not be turned into a domain object"""
    MISSING_FIELD = "missing_field"
    MISSING_AMOUNT = "missing_amount"
    INVALID_AMOUNT = "invalid_amount"
    UNPARSEABLE_DATE = "unparseable_date"
    UNKNOWN_TYPE = "unknown_type"

class RecordError(ValueError):
    """Raised when a single record is malformed."""

    def __init__(self, reason: RejectionReason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail

@dataclass(frozen=True)
class RejectedRecord:
    """A record left out of the snapshot, and why"""
    kind: str
    index: int
    record_id: Optional[str]
    reason: RejectionReason
    detail: str

@dataclass
class ParseOutcome(Generic[T]):
    """Result of normalizing one collection of records"""
    parsed: List[T] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.parsed) + len(self.rejected)


def parse_money(value: Any) -> Decimal:
    """
    Convert an API amount into a Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.

    Raises:
        RecordError: MISSING_AMOUNT for None, INVALID_AMOUNT for anything
            that isn't a finite number
    """
    if value is None:
        raise RecordError(RejectionReason.MISSING_AMOUNT, "amount is missing")

    # bool is an int subclass, True is not an amount
    if isinstance(value, bool):
        raise RecordError(RejectionReason.INVALID_AMOUNT, f"invalid amount {value!r}")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise RecordError(RejectionReason.INVALID_AMOUNT, f"invalid amount {value!r}")
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise RecordError(RejectionReason.MISSING_AMOUNT, "amount is empty")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise RecordError(RejectionReason.INVALID_AMOUNT, f"invalid amount {value!r}")
    else:
        raise RecordError(RejectionReason.INVALID_AMOUNT, f"invalid amount {value!r}")

    if not amount.is_finite():
        raise RecordError(RejectionReason.INVALID_AMOUNT, f"invalid amount {value!r}")
    return amount


def parse_calendar_date(value: Any) -> date:
    """
    Read a calendar date from 'YYYY-MM-DD' or an ISO-8601 datetime string.

    The date is taken as written. '2024-01-31T23:30:00-06:00' is January 31st,
    no matter what time zone we run in.

    Raises:
        RecordError: UNPARSEABLE_DATE
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise RecordError(RejectionReason.UNPARSEABLE_DATE, f"unparseable date {value!r}")

    text = value.strip()
    try:
        parsed = date.fromisoformat(text[:10])
        if len(text) > 10:
            if text[10] not in ("T", " "):
                raise ValueError(text)
            # Only validates the time part, the result is discarded
            datetime.fromisoformat(f"{text[:10]}T{text[11:]}".replace("Z", "+00:00"))
    except ValueError:
        raise RecordError(RejectionReason.UNPARSEABLE_DATE, f"unparseable date {value!r}")
    return parsed


def _identifier(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RecordError(RejectionReason.MISSING_FIELD, f"'{key}' is missing")
    if isinstance(value, float) and value.is_integer():
        # spreadsheets hand integer ids back as floats
        value = int(value)
    return str(value).strip()


def _optional_identifier(record: Mapping[str, Any], key: str) -> Optional[str]:
    if record.get(key) is None or str(record.get(key)).strip() == "":
        return None
    return _identifier(record, key)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def _transaction_type(value: Any) -> TransactionType:
    try:
        return TransactionType(_text(value).upper())
    except ValueError:
        raise RecordError(RejectionReason.UNKNOWN_TYPE, f"unknown transaction type {value!r}")


class RecordNormalizer:
    """
    Converts raw records into Accounts, Transactions and Categories.

    The sign convention for credit balances is part of the data contract
    and has to be stated explicitly:
        - NEGATIVE: debt arrives signed negative and is kept as is
        - POSITIVE: debt arrives as a positive amount owed and is negated here

    Usage:
        normalizer = RecordNormalizer(CreditBalanceSign.POSITIVE)
        outcome = normalizer.accounts(records)
        outcome.parsed    # List[Account]
        outcome.rejected  # List[RejectedRecord]
    """

    def __init__(self, credit_balance_sign: CreditBalanceSign = CreditBalanceSign.NEGATIVE):
        self.credit_balance_sign = credit_balance_sign

    def account(self, record: Mapping[str, Any]) -> Account:
        """
        Convert one account record.

        Unknown account types are kept with type=None so the balance is
        still counted and the account can be reported as unclassified.
        """
        account_id = _identifier(record, "id")
        balance = parse_money(record.get("current_balance"))

        raw_type = _text(record.get("type")).upper()
        try:
            account_type: Optional[AccountType] = AccountType(raw_type)
        except ValueError:
            logger.warning("account %s has unknown type %r", account_id, raw_type)
            account_type = None

        if account_type == AccountType.CREDIT and self.credit_balance_sign == CreditBalanceSign.POSITIVE:
            balance = -balance

        return Account(
            id=account_id,
            type=account_type,
            current_balance=balance,
            is_active=_flag(record.get("is_active"), default=True),
            name=_text(record.get("name")),
            currency=_text(record.get("currency")) or None,
            raw_type=raw_type or None,
        )

    def transaction(self, record: Mapping[str, Any]) -> Transaction:
        """Convert one transaction record"""
        return Transaction(
            id=_identifier(record, "id"),
            account_id=_identifier(record, "account_id"),
            amount=parse_money(record.get("amount")),
            type=_transaction_type(record.get("type")),
            date=parse_calendar_date(record.get("date")),
            description=_text(record.get("description")),
            category_id=_optional_identifier(record, "category_id"),
            is_recurring=_flag(record.get("is_recurring"), default=False),
            reference=_text(record.get("reference")) or None,
        )

    def category(self, record: Mapping[str, Any]) -> Category:
        """Convert one category record"""
        return Category(
            id=_identifier(record, "id"),
            name=_text(record.get("name")) or "Unnamed",
            type=_transaction_type(record.get("type")),
            color=_text(record.get("color")) or None,
            icon=_text(record.get("icon")) or None,
        )

    def accounts(self, records: Iterable[Mapping[str, Any]]) -> ParseOutcome[Account]:
        return self._normalize_many("account", records, self.account)

    def transactions(self, records: Iterable[Mapping[str, Any]]) -> ParseOutcome[Transaction]:
        return self._normalize_many("transaction", records, self.transaction)

    def categories(self, records: Iterable[Mapping[str, Any]]) -> ParseOutcome[Category]:
        return self._normalize_many("category", records, self.category)

    def _normalize_many(
        self,
        kind: str,
        records: Iterable[Mapping[str, Any]],
        convert: Callable[[Mapping[str, Any]], T],
    ) -> ParseOutcome[T]:
        outcome: ParseOutcome[T] = ParseOutcome()
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                outcome.rejected.append(RejectedRecord(
                    kind=kind,
                    index=index,
                    record_id=None,
                    reason=RejectionReason.MISSING_FIELD,
                    detail=f"expected an object, got {type(record).__name__}",
                ))
                continue
            try:
                outcome.parsed.append(convert(record))
            except RecordError as e:
                record_id = record.get("id")
                logger.warning("skipping %s #%d (id=%s): %s", kind, index, record_id, e.detail)
                outcome.rejected.append(RejectedRecord(
                    kind=kind,
                    index=index,
                    record_id=None if record_id is None else str(record_id),
                    reason=e.reason,
                    detail=e.detail,
                ))

        logger.debug(
            "normalized %d %s records, %d rejected",
            outcome.total, kind, len(outcome.rejected),
        )
        return outcome
