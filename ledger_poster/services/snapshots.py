"""
Loads business documents into immutable snapshots.

This is the boundary between the documents other modules own and
the posting rules. Each document names its counterparty
differently (user_id on orders, customer_id on invoices,
supplier_id on GRNs); snapshots always call it counterparty_id.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_poster.models.company import COMPANY_INFO_ID, CompanyInfo
from ledger_poster.models.grn import Grn
from ledger_poster.models.order import Order
from ledger_poster.models.party import Party
from ledger_poster.models.product import Product
from ledger_poster.models.sales_invoice import SalesInvoice
from ledger_poster.schemas.snapshots import (
    GrnItemSnapshot,
    GrnSnapshot,
    InvoiceItemSnapshot,
    InvoiceSnapshot,
    OrderItemSnapshot,
    OrderSnapshot,
    ProductCost,
)
from ledger_poster.services.chart import (
    FINISHED_GOODS_INVENTORY,
    ChartOfAccounts,
)
from ledger_poster.services.exceptions import SourceDocumentNotFoundError

logger = logging.getLogger(__name__)


def _decimal(value, default="0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    return Decimal(str(value))


class SnapshotLoader:

    def __init__(self, db: Session):
        self.db = db

    def _require(self, model, source_id: str):
        row = self.db.get(model, source_id)
        if row is None:
            raise SourceDocumentNotFoundError(
                f"{model.__name__} {source_id} not found"
            )
        return row

    def order(self, source_id: str) -> OrderSnapshot:
        order = self._require(Order, source_id)
        return OrderSnapshot(
            source_id=order.id,
            order_number=order.order_number,
            counterparty_id=order.user_id,
            counterparty_name=order.customer_name,
            counterparty_email=order.customer_email or "",
            status=order.status,
            payment_received=_decimal(order.payment_received),
            assigned_to_uid=order.assigned_to_uid,
            commission=order.commission,
            items=tuple(
                OrderItemSnapshot(
                    product_id=item.get("productId"),
                    category=item.get("category"),
                    price=_decimal(item.get("price")),
                    quantity=_decimal(item.get("quantity")),
                )
                for item in order.items or []
            ),
        )

    def invoice(self, source_id: str) -> InvoiceSnapshot:
        invoice = self._require(SalesInvoice, source_id)
        return InvoiceSnapshot(
            source_id=invoice.id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            counterparty_id=invoice.customer_id,
            counterparty_name=invoice.customer_name,
            counterparty_email=invoice.customer_email or "",
            grand_total=_decimal(invoice.grand_total),
            taxable_amount=_decimal(invoice.taxable_amount),
            cgst=_decimal(invoice.cgst),
            sgst=_decimal(invoice.sgst),
            igst=_decimal(invoice.igst),
            amount_paid=_decimal(invoice.amount_paid),
            items=tuple(
                InvoiceItemSnapshot(
                    product_id=item["productId"],
                    quantity=_decimal(item.get("quantity")),
                )
                for item in invoice.items or []
                if item.get("productId")
            ),
        )

    def grn(self, source_id: str) -> GrnSnapshot:
        grn = self._require(Grn, source_id)
        return GrnSnapshot(
            source_id=grn.id,
            purchase_order_id=grn.purchase_order_id,
            grn_date=grn.grn_date,
            counterparty_id=grn.supplier_id,
            counterparty_name=grn.supplier_name,
            total_gst=_decimal(grn.total_gst),
            items=tuple(
                GrnItemSnapshot(
                    product_id=item["productId"],
                    received_qty=_decimal(item.get("receivedQty")),
                    rate=_decimal(item.get("rate")),
                )
                for item in grn.items or []
                if item.get("productId")
            ),
        )

    def company(self) -> CompanyInfo | None:
        return self.db.get(CompanyInfo, COMPANY_INFO_ID)

    def party_gstin(self, party_id: str) -> str | None:
        return self.db.execute(
            select(Party.gstin).where(Party.id == party_id)
        ).scalar_one_or_none()

    def product_costs(self, product_ids, costed_only: bool = False) -> dict[str, ProductCost]:
        """
        Cost and inventory ledger for each product id.

        Products without their own active inventory ledger, and ids
        with no product at all, are carried in the default
        finished goods ledger. With costed_only, an inventory ledger
        is resolved only for products with a positive cost; the rest
        get none, and the default ledger is not required for them.
        """
        product_ids = set(product_ids)
        if not product_ids:
            return {}

        products = self.db.execute(
            select(Product).where(Product.id.in_(product_ids))
        ).scalars().all()
        products_by_id = {product.id: product for product in products}

        accounts = ChartOfAccounts(self.db)
        default_ledger_id = None
        costs = {}
        for product_id in sorted(product_ids):
            product = products_by_id.get(product_id)
            if product is None:
                logger.warning("Product %s not found, using default inventory", product_id)
            cost = product.cost if product else None

            ledger_id = None
            if not costed_only or (cost is not None and cost > 0):
                ledger = accounts.get_active(product.coa_account_id if product else None)
                if ledger is None:
                    if default_ledger_id is None:
                        default_ledger_id = accounts.require(FINISHED_GOODS_INVENTORY)
                    ledger_id = default_ledger_id
                else:
                    ledger_id = ledger.id

            costs[product_id] = ProductCost(
                product_id=product_id,
                cost=cost,
                inventory_ledger_id=ledger_id,
            )
        return costs
