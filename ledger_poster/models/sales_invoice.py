"""
Sales invoice model.

Tax figures are captured on the invoice when it is raised.
The poster only reads the invoice; it never writes back to it.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


class SalesInvoice(Base):
    __tablename__ = "sales_invoices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False)
    invoice_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(150), nullable=False)
    customer_email: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    grand_total: Mapped[Decimal] = mapped_column(Numeric(19, 2), nullable=False)
    taxable_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    cgst: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    sgst: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    igst: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    # [{"productId", "quantity"}]
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<SalesInvoice {self.invoice_number} {self.grand_total}>"
