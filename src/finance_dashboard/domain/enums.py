from enum import Enum

class AccountType(Enum):
    """Represents whether an account holds money or owes it"""
    LIQUID = "LIQUID" # available funds
    CREDIT = "CREDIT" # debt

class TransactionType(Enum):
    """Represents whether money is coming in, going out, or moving between accounts"""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"

class CreditBalanceSign(Enum):
    """How the data source stores the balance of a credit account"""
    NEGATIVE = "negative" # debt arrives as -300
    POSITIVE = "positive" # debt arrives as 300 and is negated on the way in
