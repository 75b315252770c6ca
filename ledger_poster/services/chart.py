"""
Chart of accounts lookups and the default chart.

Posting rules refer to system ledgers by name ("Sales – Domestic",
"Output GST – CGST" ...). Lookups only ever return ACTIVE
ledgers: an inactive ledger is treated as missing so nothing is
posted to an account that has been retired.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_poster.models.enums import (
    DrCr,
    LedgerNature,
    LedgerStatus,
    NormalBalance,
)
from ledger_poster.models.ledger import Ledger
from ledger_poster.services.exceptions import MissingLedgerError

logger = logging.getLogger(__name__)


# --- System ledger names used by the posting rules ---
BANK_CURRENT_ACCOUNT = "Bank – Current Account"
CASH_IN_HAND = "Cash in Hand"
FINISHED_GOODS_INVENTORY = "Stock-in-Hand – Finished Goods"
INPUT_CGST = "Input GST – CGST"
INPUT_SGST = "Input GST – SGST"
INPUT_IGST = "Input GST – IGST"
OUTPUT_CGST = "Output GST – CGST"
OUTPUT_SGST = "Output GST – SGST"
OUTPUT_IGST = "Output GST – IGST"
GST_PAYABLE_NET = "GST Payable (Net)"
TDS_PAYABLE = "TDS Payable"
PF_PAYABLE = "PF Payable"
PROFESSIONAL_TAX_PAYABLE = "Professional Tax Payable"
SALARY_PAYABLE = "Salary Payable"
CUSTOMER_ADVANCES = "Customer Advances"
SALES_DOMESTIC = "Sales – Domestic"
COGS = "COST OF GOODS SOLD (COGS)"
SALARIES_AND_WAGES = "Salaries & Wages"


@dataclass(frozen=True)
class LedgerSeed:
    id: str
    name: str
    group_id: str
    nature: LedgerNature
    type: str = "OTHER"


DEFAULT_CHART: tuple[LedgerSeed, ...] = (
    LedgerSeed("L-1.1.1-1", CASH_IN_HAND, "1.1.1", LedgerNature.ASSET, "CASH"),
    LedgerSeed("L-1.1.1-2", BANK_CURRENT_ACCOUNT, "1.1.1", LedgerNature.ASSET, "BANK"),
    LedgerSeed("L-1.1.3-3", FINISHED_GOODS_INVENTORY, "1.1.3", LedgerNature.ASSET, "INVENTORY"),
    LedgerSeed("L-1.1.4-1", INPUT_CGST, "1.1.4", LedgerNature.ASSET),
    LedgerSeed("L-1.1.4-2", INPUT_SGST, "1.1.4", LedgerNature.ASSET),
    LedgerSeed("L-1.1.4-3", INPUT_IGST, "1.1.4", LedgerNature.ASSET),
    LedgerSeed("L-2.1.2-1", OUTPUT_CGST, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-2", OUTPUT_SGST, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-3", OUTPUT_IGST, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-4", GST_PAYABLE_NET, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-5", TDS_PAYABLE, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-7", PF_PAYABLE, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.2-9", PROFESSIONAL_TAX_PAYABLE, "2.1.2", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.3-2", SALARY_PAYABLE, "2.1.3", LedgerNature.LIABILITY),
    LedgerSeed("L-2.1.3-4", CUSTOMER_ADVANCES, "2.1.3", LedgerNature.LIABILITY),
    LedgerSeed("L-4.1-1", SALES_DOMESTIC, "4.1", LedgerNature.INCOME),
    LedgerSeed("L-5-10", COGS, "5", LedgerNature.EXPENSE),
    LedgerSeed("L-6.3-1", SALARIES_AND_WAGES, "6.3", LedgerNature.EXPENSE),
)


def normal_side(nature: LedgerNature) -> tuple[NormalBalance, DrCr]:
    """Assets and expenses carry debit balances, everything else credit."""
    if nature in (LedgerNature.ASSET, LedgerNature.EXPENSE):
        return NormalBalance.DEBIT, DrCr.DR
    return NormalBalance.CREDIT, DrCr.CR


def seed_default_chart(db: Session) -> int:
    """
    Insert any missing default ledgers. Returns how many were created.

    Safe to run repeatedly: ledgers are matched by id and never
    overwritten.
    """
    created = 0
    for seed in DEFAULT_CHART:
        if db.get(Ledger, seed.id) is not None:
            continue
        normal_balance, dr_cr = normal_side(seed.nature)
        db.add(Ledger(
            id=seed.id,
            name=seed.name,
            group_id=seed.group_id,
            nature=seed.nature,
            type=seed.type,
            normal_balance=normal_balance,
            opening_balance_amount=Decimal("0"),
            opening_balance_dr_cr=dr_cr,
            opening_balance_as_of=datetime.utcnow(),
            status=LedgerStatus.ACTIVE,
        ))
        created += 1
    db.flush()
    if created:
        logger.info("Seeded %d default ledgers", created)
    return created


class ChartOfAccounts:
    """Read access to ACTIVE ledgers within the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, name: str) -> Ledger | None:
        return self.db.execute(
            select(Ledger).where(
                Ledger.name == name,
                Ledger.status == LedgerStatus.ACTIVE,
            )
        ).scalar_one_or_none()

    def require(self, name: str) -> str:
        """Return the id of the named ledger or raise MissingLedgerError."""
        ledger = self.find(name)
        if ledger is None:
            raise MissingLedgerError(name)
        return ledger.id

    def get_active(self, ledger_id: str | None) -> Ledger | None:
        if not ledger_id:
            return None
        ledger = self.db.get(Ledger, ledger_id)
        if ledger is None or not ledger.is_active:
            return None
        return ledger

    def find_by_upi(self, upi_id: str) -> Ledger | None:
        return self.db.execute(
            select(Ledger).where(
                Ledger.bank_upi_id == upi_id,
                Ledger.status == LedgerStatus.ACTIVE,
            ).limit(1)
        ).scalar_one_or_none()
