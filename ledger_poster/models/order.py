"""
Sales order and quotation models.

Both are owned by the sales module. The poster reads them as
snapshots and writes back only the generated reference number
(order_number, quotation_number) and the delivery commission.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_number: Mapped[str | None] = mapped_column(
        String(30), nullable=True, unique=True, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(150), nullable=False)
    customer_email: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="Ordered"
    )
    # [{"productId", "name", "category", "price", "quantity"}]
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    grand_total: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    payment_received: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    assigned_to_uid: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    commission: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 2), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Order {self.id} {self.order_number or 'unnumbered'}>"


class Quotation(Base):
    __tablename__ = "quotations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    quotation_number: Mapped[str | None] = mapped_column(
        String(30), nullable=True, unique=True, index=True
    )
    customer_name: Mapped[str] = mapped_column(
        String(150), nullable=False, default=""
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Quotation {self.id} {self.quotation_number or 'unnumbered'}>"
