"""
Voucher builder: one function per business event.

Builders are pure. They take a document snapshot plus ledger ids
that were already resolved in the current transaction and return
VoucherDrafts. They never read or write the store.

Every draft goes through finalize(), which drops zero-valued
lines and refuses to produce a voucher whose debits and credits
differ.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from ledger_poster.schemas.events import PayrollRun
from ledger_poster.schemas.snapshots import (
    GrnSnapshot,
    InvoiceSnapshot,
    OrderSnapshot,
    ProductCost,
)
from ledger_poster.schemas.voucher import EntryLine, VoucherDraft
from ledger_poster.services import chart
from ledger_poster.services.exceptions import (
    MissingLedgerError,
    PartialTaxDataError,
    UnbalancedVoucherError,
)
from ledger_poster.services.tax_split import ZERO, TaxSplit, to_money

logger = logging.getLogger(__name__)


# --- Voucher kinds, the first segment of every idempotency key ---
ADVANCE_RECEIPT = "ADVANCE_RECEIPT"
SALES = "SALES"
ADVANCE_ADJUSTMENT = "ADVANCE_ADJUSTMENT"
COGS = "COGS"
PURCHASE = "PURCHASE"
PAYROLL = "PAYROLL"

# --- Voucher types as shown in the day book ---
RECEIPT_VOUCHER = "Receipt Voucher"
SALES_VOUCHER = "Sales Voucher"
JOURNAL_VOUCHER = "Journal Voucher"
PURCHASE_VOUCHER = "Purchase Voucher"


def make_idempotency_key(
    kind: str,
    source_id: str | None = None,
    period_key: str | None = None,
) -> str:
    """
    Structured key for the voucher an event produces.

    >>> make_idempotency_key(SALES, "inv-17")
    'SALES:inv-17:-'
    >>> make_idempotency_key(PAYROLL, period_key="2025-06")
    'PAYROLL:-:2025-06'
    """
    return f"{kind}:{source_id or '-'}:{period_key or '-'}"


def debit(account_id: str, amount) -> EntryLine | None:
    amount = to_money(amount)
    if amount == 0:
        return None
    return EntryLine(account_id=account_id, debit=amount)


def credit(account_id: str, amount) -> EntryLine | None:
    amount = to_money(amount)
    if amount == 0:
        return None
    return EntryLine(account_id=account_id, credit=amount)


def finalize(
    voucher_type: str,
    narration: str,
    voucher_date: date,
    idempotency_key: str,
    lines: list[EntryLine | None],
    source_event_id: str | None = None,
    period_key: str | None = None,
) -> VoucherDraft:
    """Drop empty lines, check the balance and build the draft."""
    entries = [line for line in lines if line is not None]
    if not entries:
        raise UnbalancedVoucherError(
            f"{idempotency_key}: voucher has no non-zero lines"
        )

    total_debit = sum((e.debit for e in entries), ZERO)
    total_credit = sum((e.credit for e in entries), ZERO)
    if total_debit != total_credit:
        raise UnbalancedVoucherError(
            f"{idempotency_key}: debits={total_debit}, credits={total_credit}"
        )

    return VoucherDraft(
        voucher_type=voucher_type,
        narration=narration,
        voucher_date=voucher_date,
        idempotency_key=idempotency_key,
        source_event_id=source_event_id,
        period_key=period_key,
        entries=entries,
    )


# --- GST ---

@dataclass(frozen=True)
class GstLedgers:
    """
    Ledger ids for the three GST components on one side of the books.

    An id is None when the named ledger is missing or inactive.
    """
    cgst_id: str | None
    sgst_id: str | None
    igst_id: str | None
    net_id: str | None
    cgst_name: str
    sgst_name: str
    igst_name: str

    @classmethod
    def output(cls, accounts: "chart.ChartOfAccounts") -> "GstLedgers":
        """Tax collected on sales."""
        return cls._lookup(
            accounts, chart.OUTPUT_CGST, chart.OUTPUT_SGST, chart.OUTPUT_IGST
        )

    @classmethod
    def input(cls, accounts: "chart.ChartOfAccounts") -> "GstLedgers":
        """Tax paid on purchases."""
        return cls._lookup(
            accounts, chart.INPUT_CGST, chart.INPUT_SGST, chart.INPUT_IGST
        )

    @classmethod
    def _lookup(cls, accounts, cgst_name, sgst_name, igst_name):
        def ledger_id(name):
            ledger = accounts.find(name)
            return ledger.id if ledger is not None else None

        return cls(
            cgst_id=ledger_id(cgst_name),
            sgst_id=ledger_id(sgst_name),
            igst_id=ledger_id(igst_name),
            net_id=ledger_id(chart.GST_PAYABLE_NET),
            cgst_name=cgst_name,
            sgst_name=sgst_name,
            igst_name=igst_name,
        )


def _gst_line(component, amount, ledger_id, ledger_name, side):
    if ledger_id is None:
        raise PartialTaxDataError(component, amount, ledger_name)
    return side(ledger_id, amount)


def gst_lines(split: TaxSplit, ledgers: GstLedgers, side) -> list[EntryLine | None]:
    """
    Entry lines for a tax split, on the given side (debit or credit).

    A missing CGST or SGST ledger does not stop the posting: that
    amount is booked to GST Payable (Net) instead. Without that
    ledger, or without an IGST ledger for IGST, the posting aborts.
    """
    lines = []
    unposted = ZERO

    for component, amount, ledger_id, ledger_name in (
        ("CGST", split.cgst, ledgers.cgst_id, ledgers.cgst_name),
        ("SGST", split.sgst, ledgers.sgst_id, ledgers.sgst_name),
    ):
        if amount <= 0:
            continue
        try:
            lines.append(_gst_line(component, amount, ledger_id, ledger_name, side))
        except PartialTaxDataError as exc:
            logger.warning("%s, booking to '%s'", exc, chart.GST_PAYABLE_NET)
            unposted += amount

    if split.igst > 0:
        if ledgers.igst_id is None:
            raise MissingLedgerError(ledgers.igst_name)
        lines.append(side(ledgers.igst_id, split.igst))

    if unposted > 0:
        if ledgers.net_id is None:
            raise MissingLedgerError(chart.GST_PAYABLE_NET)
        lines.append(side(ledgers.net_id, unposted))

    return lines


# --- Orders ---

def build_advance_receipt(
    order: OrderSnapshot,
    order_number: str,
    bank_ledger_id: str,
    customer_ledger_id: str,
    voucher_date: date,
) -> VoucherDraft:
    amount = to_money(order.payment_received)
    return finalize(
        RECEIPT_VOUCHER,
        f"Advance for Order #{order_number} via UPI",
        voucher_date,
        make_idempotency_key(ADVANCE_RECEIPT, order.source_id),
        [
            debit(bank_ledger_id, amount),
            credit(customer_ledger_id, amount),
        ],
        source_event_id=order.source_id,
    )


# --- Sales invoices ---

def build_sales_voucher(
    invoice: InvoiceSnapshot,
    customer_ledger_id: str,
    sales_ledger_id: str,
    split: TaxSplit,
    gst_ledgers: GstLedgers,
) -> VoucherDraft:
    grand_total = to_money(invoice.grand_total)
    taxable = to_money(invoice.taxable_amount)
    if grand_total != taxable + split.total:
        raise UnbalancedVoucherError(
            f"Invoice {invoice.invoice_number}: grand total {grand_total} "
            f"!= taxable {taxable} + tax {split.total}"
        )

    return finalize(
        SALES_VOUCHER,
        f"Sales Invoice {invoice.invoice_number} to {invoice.counterparty_name}",
        invoice.invoice_date,
        make_idempotency_key(SALES, invoice.source_id),
        [
            debit(customer_ledger_id, grand_total),
            credit(sales_ledger_id, taxable),
            *gst_lines(split, gst_ledgers, credit),
        ],
        source_event_id=invoice.source_id,
    )


def build_advance_adjustment(
    invoice: InvoiceSnapshot,
    advances_ledger_id: str,
    customer_ledger_id: str,
) -> VoucherDraft:
    """Move an advance already received against the invoice."""
    amount = to_money(invoice.amount_paid)
    return finalize(
        JOURNAL_VOUCHER,
        f"Adjustment of advance for Invoice {invoice.invoice_number}",
        invoice.invoice_date,
        make_idempotency_key(ADVANCE_ADJUSTMENT, invoice.source_id),
        [
            debit(advances_ledger_id, amount),
            credit(customer_ledger_id, amount),
        ],
        source_event_id=invoice.source_id,
    )


def build_cogs_voucher(
    invoice: InvoiceSnapshot,
    cogs_ledger_id: str,
    costs: dict[str, ProductCost],
) -> VoucherDraft | None:
    """
    Recognise the cost of the goods on an invoice.

    Only items whose product has a known positive cost count.
    Returns None when no item does.
    """
    per_product: dict[str, Decimal] = {}
    for item in invoice.items:
        cost = costs.get(item.product_id)
        if cost is None or cost.cost is None or cost.cost <= 0:
            continue
        per_product[item.product_id] = (
            per_product.get(item.product_id, ZERO) + cost.cost * item.quantity
        )

    credits = [
        credit(costs[product_id].inventory_ledger_id, amount)
        for product_id, amount in per_product.items()
    ]
    credits = [line for line in credits if line is not None]
    if not credits:
        return None

    total = sum((line.credit for line in credits), ZERO)
    return finalize(
        JOURNAL_VOUCHER,
        f"Cost of goods sold for Invoice {invoice.invoice_number}",
        invoice.invoice_date,
        make_idempotency_key(COGS, invoice.source_id),
        [debit(cogs_ledger_id, total), *credits],
        source_event_id=invoice.source_id,
    )


# --- Goods receipts ---

def build_purchase_voucher(
    grn: GrnSnapshot,
    supplier_ledger_id: str,
    inventory_ledgers: dict[str, str],
    split: TaxSplit,
    gst_ledgers: GstLedgers,
) -> VoucherDraft:
    """
    Stock and input tax received against a purchase order.

    inventory_ledgers maps each product id on the GRN to the
    ledger its stock is carried in.
    """
    per_product: dict[str, Decimal] = {}
    for item in grn.items:
        per_product[item.product_id] = (
            per_product.get(item.product_id, ZERO) + item.received_qty * item.rate
        )

    lines = [
        debit(inventory_ledgers[product_id], amount)
        for product_id, amount in per_product.items()
    ]
    lines.extend(gst_lines(split, gst_ledgers, debit))
    total = sum((line.debit for line in lines if line is not None), ZERO)
    lines.append(credit(supplier_ledger_id, total))

    return finalize(
        PURCHASE_VOUCHER,
        f"Goods received from {grn.counterparty_name} against PO "
        f"{grn.purchase_order_id} (GRN #{grn.source_id})",
        grn.grn_date,
        make_idempotency_key(PURCHASE, grn.source_id),
        lines,
        source_event_id=grn.source_id,
    )


# --- Payroll ---

@dataclass(frozen=True)
class PayrollLedgers:
    salaries: str
    salary_payable: str
    pf_payable: str
    professional_tax_payable: str
    tds_payable: str


def payroll_narration(period: str) -> str:
    month = datetime.strptime(period, "%Y-%m")
    return f"Salary for the month of {month:%B %Y}"


def build_payroll_voucher(
    run: PayrollRun,
    ledgers: PayrollLedgers,
    voucher_date: date,
) -> VoucherDraft:
    gross = sum((line.gross for line in run.lines), ZERO)
    net = sum((line.net for line in run.lines), ZERO)
    pf = sum((line.pf for line in run.lines), ZERO)
    pt = sum((line.professional_tax for line in run.lines), ZERO)
    tds = sum((line.tds for line in run.lines), ZERO)

    return finalize(
        JOURNAL_VOUCHER,
        payroll_narration(run.period),
        voucher_date,
        make_idempotency_key(PAYROLL, period_key=run.period),
        [
            debit(ledgers.salaries, gross),
            credit(ledgers.salary_payable, net),
            credit(ledgers.pf_payable, pf),
            credit(ledgers.professional_tax_payable, pt),
            credit(ledgers.tds_payable, tds),
        ],
        source_event_id=run.source_id,
        period_key=run.period,
    )
