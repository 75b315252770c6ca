"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class LedgerNature(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class LedgerStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class NormalBalance(str, enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class DrCr(str, enum.Enum):
    """Side of an opening balance."""
    DR = "DR"
    CR = "CR"


class PartyType(str, enum.Enum):
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"


class DocumentType(str, enum.Enum):
    """Documents that receive a sequential number, keyed by number code."""
    SALES_ORDER = "SO"
    QUOTATION = "QU"
