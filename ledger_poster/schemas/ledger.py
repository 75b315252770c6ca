"""
Pydantic schemas for ledger reads.
"""

from decimal import Decimal

from pydantic import BaseModel

from ledger_poster.models.enums import LedgerNature


class LedgerBalanceResponse(BaseModel):
    """Balance of one ledger, signed by its nature."""
    ledger_id: str
    ledger_name: str
    nature: LedgerNature
    balance: Decimal


class IntegrityResponse(BaseModel):
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool
