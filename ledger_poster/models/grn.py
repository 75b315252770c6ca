"""
Goods received note model.

Recorded by procurement when stock arrives against a purchase
order. The poster turns it into a purchase voucher.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


class Grn(Base):
    __tablename__ = "grns"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    purchase_order_id: Mapped[str] = mapped_column(String(64), nullable=False)
    supplier_id: Mapped[str] = mapped_column(String(64), nullable=False)
    supplier_name: Mapped[str] = mapped_column(String(150), nullable=False)
    grn_date: Mapped[date] = mapped_column(Date, nullable=False)
    # [{"productId", "receivedQty", "rate"}]
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_gst: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Grn {self.id} from {self.supplier_name!r}>"
