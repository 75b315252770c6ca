"""
Immutable snapshots of business documents.

The poster reads each triggering document once per transaction
attempt and works from these values. Every counterparty-bearing
snapshot exposes the same ``counterparty_id`` field whatever the
source document calls it (user_id, customer_id, supplier_id).
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)


class OrderItemSnapshot(Snapshot):
    product_id: str | None = None
    category: str | None = None
    price: Decimal = Decimal("0")
    quantity: Decimal = Decimal("0")


class OrderSnapshot(Snapshot):
    source_id: str
    order_number: str | None
    counterparty_id: str
    counterparty_name: str
    counterparty_email: str = ""
    status: str
    payment_received: Decimal
    assigned_to_uid: str | None = None
    commission: Decimal | None = None
    items: tuple[OrderItemSnapshot, ...] = ()


class InvoiceItemSnapshot(Snapshot):
    product_id: str
    quantity: Decimal


class InvoiceSnapshot(Snapshot):
    source_id: str
    invoice_number: str
    invoice_date: date
    counterparty_id: str
    counterparty_name: str
    counterparty_email: str = ""
    grand_total: Decimal
    taxable_amount: Decimal
    cgst: Decimal = Decimal("0")
    sgst: Decimal = Decimal("0")
    igst: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    items: tuple[InvoiceItemSnapshot, ...] = ()

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


class GrnItemSnapshot(Snapshot):
    product_id: str
    received_qty: Decimal
    rate: Decimal


class GrnSnapshot(Snapshot):
    source_id: str
    purchase_order_id: str
    grn_date: date
    counterparty_id: str
    counterparty_name: str
    total_gst: Decimal = Decimal("0")
    items: tuple[GrnItemSnapshot, ...] = ()


class ProductCost(Snapshot):
    """Cost and inventory ledger of one product, read in-transaction."""
    product_id: str
    cost: Decimal | None = None
    inventory_ledger_id: str | None = None
