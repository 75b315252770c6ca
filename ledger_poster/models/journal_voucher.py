"""
Journal voucher and voucher entry models.

A voucher is one atomic double-entry posting. Its entries must
net to zero: the sum of debits equals the sum of credits. This
invariant is enforced by the JournalService, not by the model.

Vouchers are immutable once committed. A re-delivered event is
recognised by idempotency_key, never by the narration text.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Integer, Numeric, ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_poster.models.base import Base


def new_voucher_id() -> str:
    return uuid.uuid4().hex


class JournalVoucher(Base):
    __tablename__ = "journal_vouchers"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=new_voucher_id
    )
    voucher_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    narration: Mapped[str] = mapped_column(String(500), nullable=False)
    voucher_type: Mapped[str] = mapped_column(String(50), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(
        String(200), unique=True, nullable=False, index=True
    )
    source_event_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    period_key: Mapped[str | None] = mapped_column(
        String(20), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    entries: Mapped[list["VoucherEntry"]] = relationship(
        back_populates="voucher",
        order_by="VoucherEntry.line_no",
        cascade="all, delete-orphan",
    )

    @property
    def total_debit(self) -> Decimal:
        return sum((e.debit for e in self.entries), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((e.credit for e in self.entries), Decimal("0"))

    def __repr__(self) -> str:
        return f"<JournalVoucher {self.voucher_type} {self.idempotency_key}>"


class VoucherEntry(Base):
    """One debit or credit line of a journal voucher."""

    __tablename__ = "journal_voucher_entries"
    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_entry_non_negative"),
        CheckConstraint(
            "(debit = 0 AND credit > 0) OR (credit = 0 AND debit > 0)",
            name="ck_entry_one_side",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    voucher_id: Mapped[str] = mapped_column(
        ForeignKey("journal_vouchers.id"), nullable=False, index=True
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[str] = mapped_column(
        ForeignKey("coa_ledgers.id"), nullable=False, index=True
    )
    debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )

    voucher: Mapped["JournalVoucher"] = relationship(back_populates="entries")

    def __repr__(self) -> str:
        return f"<VoucherEntry {self.account_id} Dr {self.debit} Cr {self.credit}>"
