"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from ledger_poster.models.base import Base
from ledger_poster.models.enums import (
    DocumentType,
    DrCr,
    LedgerNature,
    LedgerStatus,
    NormalBalance,
    PartyType,
)
from ledger_poster.models.ledger import Ledger
from ledger_poster.models.party import Party
from ledger_poster.models.journal_voucher import JournalVoucher, VoucherEntry
from ledger_poster.models.document_sequence import DocumentSequence
from ledger_poster.models.order import Order, Quotation
from ledger_poster.models.sales_invoice import SalesInvoice
from ledger_poster.models.grn import Grn
from ledger_poster.models.product import Product
from ledger_poster.models.partner import Partner, PartnerWallet
from ledger_poster.models.company import CompanyInfo, COMPANY_INFO_ID

__all__ = [
    "Base",
    "DocumentType",
    "DrCr",
    "LedgerNature",
    "LedgerStatus",
    "NormalBalance",
    "PartyType",
    "Ledger",
    "Party",
    "JournalVoucher",
    "VoucherEntry",
    "DocumentSequence",
    "Order",
    "Quotation",
    "SalesInvoice",
    "Grn",
    "Product",
    "Partner",
    "PartnerWallet",
    "CompanyInfo",
    "COMPANY_INFO_ID",
]
