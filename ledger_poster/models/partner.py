"""
Sales partner and commission wallet models.

A partner's commission matrix maps an item category to a
commission rate in percent. The wallet accumulates commission
payable; it is a running balance, not a ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


class Partner(Base):
    __tablename__ = "partners"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    # [{"category": "Solar Panels", "commissionRate": 5}]
    commission_matrix: Mapped[list | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Partner {self.id} {self.name!r}>"


class PartnerWallet(Base):
    __tablename__ = "partner_wallets"

    partner_id: Mapped[str] = mapped_column(
        ForeignKey("partners.id"), primary_key=True
    )
    commission_payable: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<PartnerWallet {self.partner_id} {self.commission_payable}>"
