"""
Pydantic schemas for journal vouchers.

A VoucherDraft is what the voucher builder produces and the
journal service persists. Response schemas shape the read API.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator


class EntryLine(BaseModel):
    """A single debit or credit line. Exactly one side is non-zero."""
    account_id: str = Field(min_length=1, max_length=64)
    debit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)

    @model_validator(mode="after")
    def exactly_one_side(self) -> "EntryLine":
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError(
                "entry must carry exactly one non-zero side "
                f"(debit={self.debit}, credit={self.credit})"
            )
        return self


class VoucherDraft(BaseModel):
    """
    A journal voucher ready to be recorded.

    idempotency_key identifies the business event the voucher
    was derived from, e.g. "SALES:inv-17:-" or "PAYROLL:-:2025-06".
    """
    voucher_type: str = Field(min_length=1, max_length=50)
    narration: str = Field(min_length=1, max_length=500)
    voucher_date: date
    idempotency_key: str = Field(min_length=1, max_length=200)
    source_event_id: str | None = None
    period_key: str | None = None
    entries: list[EntryLine] = Field(min_length=2)

    @field_validator("entries")
    @classmethod
    def must_have_debits_and_credits(cls, v: list) -> list:
        if not any(e.debit > 0 for e in v) or not any(e.credit > 0 for e in v):
            raise ValueError(
                "voucher must contain at least one debit and one credit"
            )
        return v

    @property
    def total_debit(self) -> Decimal:
        return sum((e.debit for e in self.entries), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((e.credit for e in self.entries), Decimal("0"))


# --- Response Schemas ---

class VoucherEntryResponse(BaseModel):
    account_id: str
    debit: Decimal
    credit: Decimal

    model_config = {"from_attributes": True}


class JournalVoucherResponse(BaseModel):
    id: str
    voucher_date: date
    narration: str
    voucher_type: str
    idempotency_key: str
    source_event_id: str | None
    period_key: str | None
    entries: list[VoucherEntryResponse]
    created_at: datetime

    model_config = {"from_attributes": True}
