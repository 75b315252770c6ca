"""
Journal service: the only writer of journal vouchers.

Rules enforced on every voucher:
1. Debits equal credits
2. Every referenced ledger exists, is ACTIVE and accepts postings
3. One voucher per idempotency key

Vouchers are append-only. Balances are never stored; they are
derived from the opening balance and the entries posted since.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from ledger_poster.models.enums import DrCr, LedgerNature
from ledger_poster.models.journal_voucher import JournalVoucher, VoucherEntry
from ledger_poster.models.ledger import Ledger
from ledger_poster.schemas.voucher import VoucherDraft
from ledger_poster.services.exceptions import (
    MissingLedgerError,
    UnbalancedVoucherError,
)

logger = logging.getLogger(__name__)


class JournalService:
    """
    All voucher writes pass through this service.

    Like every service it works inside the caller's session and
    never commits: the poster decides the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_key(self, idempotency_key: str) -> JournalVoucher | None:
        return self.db.execute(
            select(JournalVoucher).where(
                JournalVoucher.idempotency_key == idempotency_key
            )
        ).scalar_one_or_none()

    def record(self, draft: VoucherDraft) -> JournalVoucher:
        """
        Persist a draft as a journal voucher.

        If a voucher with the same idempotency key exists it is
        returned unchanged. Nothing is written when a check fails.
        """
        existing = self.find_by_key(draft.idempotency_key)
        if existing is not None:
            logger.info("Voucher %s already recorded", draft.idempotency_key)
            return existing

        # --- Validate ledgers ---
        account_ids = {entry.account_id for entry in draft.entries}
        ledgers = self.db.execute(
            select(Ledger).where(Ledger.id.in_(account_ids))
        ).scalars().all()
        ledgers_by_id = {ledger.id: ledger for ledger in ledgers}

        missing = account_ids - set(ledgers_by_id)
        if missing:
            raise MissingLedgerError(", ".join(sorted(missing)))

        for ledger in ledgers_by_id.values():
            if not ledger.is_active:
                raise MissingLedgerError(ledger.name)
            if not ledger.is_posting:
                raise ValueError(f"Ledger '{ledger.name}' does not accept postings")

        # --- Enforce balance rule ---
        if draft.total_debit != draft.total_credit:
            raise UnbalancedVoucherError(
                f"{draft.idempotency_key}: debits={draft.total_debit}, "
                f"credits={draft.total_credit}"
            )

        voucher = JournalVoucher(
            voucher_date=draft.voucher_date,
            narration=draft.narration,
            voucher_type=draft.voucher_type,
            idempotency_key=draft.idempotency_key,
            source_event_id=draft.source_event_id,
            period_key=draft.period_key,
        )
        for line_no, entry in enumerate(draft.entries, start=1):
            voucher.entries.append(VoucherEntry(
                line_no=line_no,
                account_id=entry.account_id,
                debit=entry.debit,
                credit=entry.credit,
            ))
        self.db.add(voucher)
        self.db.flush()

        logger.info(
            "Recorded %s %s for %s",
            voucher.voucher_type, voucher.id, voucher.idempotency_key,
        )
        return voucher

    def get_voucher(self, voucher_id: str) -> JournalVoucher | None:
        return self.db.execute(
            select(JournalVoucher)
            .options(selectinload(JournalVoucher.entries))
            .where(JournalVoucher.id == voucher_id)
        ).scalar_one_or_none()

    def get_ledger_balance(self, ledger_id: str) -> Decimal:
        """
        Opening balance plus every entry posted to the ledger.

        For ASSET and EXPENSE ledgers: balance = debits - credits
        For LIABILITY, EQUITY and INCOME: balance = credits - debits
        """
        ledger = self.db.get(Ledger, ledger_id)
        if ledger is None:
            raise ValueError(f"Ledger {ledger_id} not found")

        total_debits, total_credits = self.db.execute(
            select(
                func.coalesce(func.sum(VoucherEntry.debit), 0),
                func.coalesce(func.sum(VoucherEntry.credit), 0),
            ).where(VoucherEntry.account_id == ledger_id)
        ).one()
        movement = Decimal(str(total_debits)) - Decimal(str(total_credits))

        opening = ledger.opening_balance_amount or Decimal("0")
        if ledger.opening_balance_dr_cr == DrCr.CR:
            opening = -opening

        balance = opening + movement
        if ledger.nature in (LedgerNature.ASSET, LedgerNature.EXPENSE):
            return balance
        return -balance

    def check_integrity(self) -> dict:
        """Global check: all debits across all vouchers equal all credits."""
        total_debits, total_credits = self.db.execute(
            select(
                func.coalesce(func.sum(VoucherEntry.debit), 0),
                func.coalesce(func.sum(VoucherEntry.credit), 0),
            )
        ).one()
        total_debits = Decimal(str(total_debits))
        total_credits = Decimal(str(total_credits))
        difference = total_debits - total_credits

        return {
            "total_debits": total_debits,
            "total_credits": total_credits,
            "difference": difference,
            "is_balanced": difference == 0,
        }
