from finance_tracker.models.account import Account
from finance_tracker.models.category import Category, Budget
from finance_tracker.models.transaction import Income, Expense, Transfer
from finance_tracker.models.adjustment import Adjustment, InitialBalance
from finance_tracker.models.receivable import Receivable, ReceivablePayment

__all__ = [
    "Account",
    "Category",
    "Budget",
    "Income",
    "Expense",
    "Transfer",
    "Adjustment",
    "InitialBalance",
    "Receivable",
    "ReceivablePayment",
]
