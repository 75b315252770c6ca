"""
Ledger model (chart of accounts).

Every account the poster can touch (bank, sales, GST, customer
receivables, supplier payables...) is a ledger. Journal voucher
entries are posted against these ledgers.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, Index, text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base
from ledger_poster.models.enums import (
    DrCr,
    LedgerNature,
    LedgerStatus,
    NormalBalance,
)


def new_ledger_id() -> str:
    return uuid.uuid4().hex


class Ledger(Base):
    """
    A single posting account in the chart of accounts.

    The balance is never stored. It is always derived by
    replaying the journal voucher entries on top of the
    opening balance.
    """

    __tablename__ = "coa_ledgers"
    # Only one ACTIVE ledger may carry a given name. A concurrent
    # duplicate create fails on this index and the posting retries.
    __table_args__ = (
        Index(
            "uq_coa_ledgers_active_name",
            "name",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=new_ledger_id
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    group_id: Mapped[str] = mapped_column(String(20), nullable=False)
    nature: Mapped[LedgerNature] = mapped_column(
        SAEnum(LedgerNature, name="ledger_nature_enum"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="OTHER"
    )
    is_posting: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    normal_balance: Mapped[NormalBalance] = mapped_column(
        SAEnum(NormalBalance, name="normal_balance_enum"),
        nullable=False,
    )
    allow_manual_journal: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    opening_balance_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    opening_balance_dr_cr: Mapped[DrCr] = mapped_column(
        SAEnum(DrCr, name="dr_cr_enum"),
        nullable=False,
    )
    opening_balance_as_of: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    bank_upi_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    status: Mapped[LedgerStatus] = mapped_column(
        SAEnum(LedgerStatus, name="ledger_status_enum"),
        nullable=False,
        default=LedgerStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    @property
    def is_active(self) -> bool:
        return self.status == LedgerStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Ledger {self.id} {self.name!r} ({self.nature.value})>"
