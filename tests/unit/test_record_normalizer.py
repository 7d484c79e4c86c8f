import pytest
from datetime import date, datetime
from decimal import Decimal

from finance_dashboard.domain.enums import AccountType, CreditBalanceSign, TransactionType
from finance_dashboard.parsers.records import (
    RecordError,
    RecordNormalizer,
    RejectionReason,
    parse_calendar_date,
    parse_money,
)

@pytest.fixture
def normalizer() -> RecordNormalizer:
    return RecordNormalizer()

@pytest.fixture
def transaction_record() -> dict:
    """A transaction as the API sends it"""
    return {
        "id": 10,
        "account_id": 1,
        "category_id": 100,
        "amount": "-200.50",
        "type": "EXPENSE",
        "date": "2024-01-10",
        "description": " Groceries ",
        "is_recurring": False,
    }

@pytest.mark.unit
class TestParseMoney:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (100, Decimal("100")),
            ("-200.50", Decimal("-200.50")),
            (" 12.3 ", Decimal("12.3")),
            (Decimal("0.1"), Decimal("0.1")),
            (0.1, Decimal("0.1")),
        ],
    )
    def test_valid_amounts(self, value, expected):
        assert parse_money(value) == expected

    def test_missing_amount(self):
        with pytest.raises(RecordError) as exc_info:
            parse_money(None)

        assert exc_info.value.reason == RejectionReason.MISSING_AMOUNT

    @pytest.mark.parametrize("value", ["abc", True, float("nan"), "Infinity", [1]])
    def test_invalid_amounts(self, value):
        with pytest.raises(RecordError) as exc_info:
            parse_money(value)

        assert exc_info.value.reason == RejectionReason.INVALID_AMOUNT


@pytest.mark.unit
class TestParseCalendarDate:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-15", date(2024, 1, 15)),
            ("2024-01-15T00:00:00.000000Z", date(2024, 1, 15)),
            ("2024-01-31T23:30:00-06:00", date(2024, 1, 31)),
            ("2024-02-01 08:00:00", date(2024, 2, 1)),
            (date(2024, 3, 1), date(2024, 3, 1)),
            (datetime(2024, 3, 1, 23, 59), date(2024, 3, 1)),
        ],
    )
    def test_calendar_date_as_written(self, value, expected):
        """Test the written date is kept with no time zone shift"""
        assert parse_calendar_date(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "not-a-date", "2024-13-01", "2024-02-30", "15/01/2024", "2024-01-15Xjunk", 20240115],
    )
    def test_unparseable(self, value):
        with pytest.raises(RecordError) as exc_info:
            parse_calendar_date(value)

        assert exc_info.value.reason == RejectionReason.UNPARSEABLE_DATE


@pytest.mark.unit
class TestAccountNormalization:

    def test_account_record(self, normalizer: RecordNormalizer):
        # Arrange
        record = {
            "id": 1,
            "name": "Checking",
            "type": "liquid",
            "current_balance": 1000,
            "currency": "MXN",
            "is_active": True,
        }

        # Act
        account = normalizer.account(record)

        # Assert
        assert account.id == "1"
        assert account.type == AccountType.LIQUID
        assert account.current_balance == Decimal("1000")
        assert account.currency == "MXN"
        assert account.is_active

    def test_unknown_type_kept_as_unclassified(self, normalizer: RecordNormalizer):
        account = normalizer.account({"id": 3, "type": "SAVINGS", "current_balance": "42"})

        assert account.type is None
        assert account.raw_type == "SAVINGS"
        assert not account.is_classified

    def test_negative_convention_keeps_sign(self):
        normalizer = RecordNormalizer(CreditBalanceSign.NEGATIVE)

        account = normalizer.account({"id": 2, "type": "CREDIT", "current_balance": -300})

        assert account.current_balance == Decimal("-300")

    def test_positive_convention_negates_credit(self):
        """Test debt stored as an amount owed is flipped at the boundary"""
        normalizer = RecordNormalizer(CreditBalanceSign.POSITIVE)

        credit = normalizer.account({"id": 2, "type": "CREDIT", "current_balance": 300})
        liquid = normalizer.account({"id": 1, "type": "LIQUID", "current_balance": 300})

        assert credit.current_balance == Decimal("-300")
        assert liquid.current_balance == Decimal("300")

    def test_inactive_flag_from_string(self, normalizer: RecordNormalizer):
        account = normalizer.account({"id": 1, "type": "LIQUID", "current_balance": 0, "is_active": "false"})

        assert account.is_active is False


@pytest.mark.unit
class TestTransactionNormalization:

    def test_transaction_record(self, normalizer: RecordNormalizer, transaction_record: dict):
        txn = normalizer.transaction(transaction_record)

        assert txn.id == "10"
        assert txn.account_id == "1"
        assert txn.category_id == "100"
        assert txn.amount == Decimal("-200.50")
        assert txn.magnitude == Decimal("200.50")
        assert txn.type == TransactionType.EXPENSE
        assert txn.date == date(2024, 1, 10)
        assert txn.description == "Groceries"

    def test_missing_account_reference(self, normalizer: RecordNormalizer, transaction_record: dict):
        del transaction_record["account_id"]

        with pytest.raises(RecordError) as exc_info:
            normalizer.transaction(transaction_record)

        assert exc_info.value.reason == RejectionReason.MISSING_FIELD

    def test_unknown_type(self, normalizer: RecordNormalizer, transaction_record: dict):
        transaction_record["type"] = "REFUND"

        with pytest.raises(RecordError) as exc_info:
            normalizer.transaction(transaction_record)

        assert exc_info.value.reason == RejectionReason.UNKNOWN_TYPE

    def test_bad_records_are_isolated(self, normalizer: RecordNormalizer, transaction_record: dict):
        """Test one bad record doesn't abort the collection"""
        # Arrange
        records = [
            transaction_record,
            {**transaction_record, "id": 11, "date": "not-a-date"},
            {**transaction_record, "id": 12, "amount": None},
            "garbage",
            {**transaction_record, "id": 13},
        ]

        # Act
        outcome = normalizer.transactions(records)

        # Assert
        assert [t.id for t in outcome.parsed] == ["10", "13"]
        assert [(r.index, r.record_id, r.reason) for r in outcome.rejected] == [
            (1, "11", RejectionReason.UNPARSEABLE_DATE),
            (2, "12", RejectionReason.MISSING_AMOUNT),
            (3, None, RejectionReason.MISSING_FIELD),
        ]
        assert outcome.total == 5

    def test_empty_collection(self, normalizer: RecordNormalizer):
        outcome = normalizer.transactions([])

        assert outcome.parsed == []
        assert outcome.rejected == []


@pytest.mark.unit
class TestCategoryNormalization:

    def test_category_record(self, normalizer: RecordNormalizer):
        category = normalizer.category({"id": 101, "name": "Food", "type": "EXPENSE", "color": "#ef4444"})

        assert category.id == "101"
        assert category.name == "Food"
        assert category.type == TransactionType.EXPENSE
        assert category.icon is None
