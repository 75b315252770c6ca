"""
Tests for the JournalService.

Tests cover:
- Balanced voucher recording and line order
- Unbalanced voucher rejection
- Missing, inactive and non-posting ledgers
- Idempotency (duplicate idempotency key)
- Balance calculation for every ledger nature
- Global integrity check
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_poster.models.enums import DrCr, LedgerNature, LedgerStatus, NormalBalance
from ledger_poster.models.journal_voucher import JournalVoucher
from ledger_poster.models.ledger import Ledger
from ledger_poster.schemas.voucher import EntryLine, VoucherDraft
from ledger_poster.services.exceptions import MissingLedgerError, UnbalancedVoucherError
from ledger_poster.services.journal_service import JournalService


BANK = "L-1.1.1-2"
SALES = "L-4.1-1"


# --- Helper to reduce repetition ---

def make_draft(key="SALES:inv-1:-", entries=None):
    if entries is None:
        entries = [
            EntryLine(account_id=BANK, debit=Decimal("1000")),
            EntryLine(account_id=SALES, credit=Decimal("1000")),
        ]
    return VoucherDraft(
        voucher_type="Sales Voucher",
        narration="Sales Invoice INV-0001 to Asha Traders",
        voucher_date=date(2025, 6, 20),
        idempotency_key=key,
        source_event_id="inv-1",
        entries=entries,
    )


def add_ledger(db, ledger_id, nature, opening="0", dr_cr=DrCr.DR, **overrides):
    values = dict(
        id=ledger_id,
        name=f"Ledger {ledger_id}",
        group_id="9",
        nature=nature,
        normal_balance=(
            NormalBalance.DEBIT
            if nature in (LedgerNature.ASSET, LedgerNature.EXPENSE)
            else NormalBalance.CREDIT
        ),
        opening_balance_amount=Decimal(opening),
        opening_balance_dr_cr=dr_cr,
    )
    values.update(overrides)
    db.add(Ledger(**values))
    db.flush()


def voucher_count(db):
    return db.execute(select(func.count(JournalVoucher.id))).scalar()


class TestRecord:

    def test_balanced_voucher_recorded(self, db_session, chart):
        voucher = JournalService(db_session).record(make_draft())
        db_session.commit()

        assert voucher.id is not None
        assert voucher.idempotency_key == "SALES:inv-1:-"
        assert [(e.line_no, e.account_id) for e in voucher.entries] == [
            (1, BANK), (2, SALES),
        ]

    def test_unbalanced_voucher_rejected(self, db_session, chart):
        draft = make_draft(entries=[
            EntryLine(account_id=BANK, debit=Decimal("1000")),
            EntryLine(account_id=SALES, credit=Decimal("999.99")),
        ])

        with pytest.raises(UnbalancedVoucherError, match="debits=1000"):
            JournalService(db_session).record(draft)
        assert voucher_count(db_session) == 0

    def test_unknown_ledger_rejected(self, db_session, chart):
        draft = make_draft(entries=[
            EntryLine(account_id="L-nope", debit=Decimal("10")),
            EntryLine(account_id=SALES, credit=Decimal("10")),
        ])

        with pytest.raises(MissingLedgerError, match="L-nope"):
            JournalService(db_session).record(draft)

    def test_inactive_ledger_rejected(self, db_session, chart):
        db_session.get(Ledger, SALES).status = LedgerStatus.INACTIVE
        db_session.flush()

        with pytest.raises(MissingLedgerError):
            JournalService(db_session).record(make_draft())
        assert voucher_count(db_session) == 0

    def test_non_posting_ledger_rejected(self, db_session, chart):
        db_session.get(Ledger, SALES).is_posting = False
        db_session.flush()

        with pytest.raises(ValueError, match="does not accept postings"):
            JournalService(db_session).record(make_draft())

    def test_same_key_returns_existing_voucher(self, db_session, chart):
        service = JournalService(db_session)
        first = service.record(make_draft())
        second = service.record(make_draft())

        assert second.id == first.id
        assert voucher_count(db_session) == 1

    def test_find_by_key(self, db_session, chart):
        service = JournalService(db_session)
        assert service.find_by_key("SALES:inv-1:-") is None

        voucher = service.record(make_draft())
        assert service.find_by_key("SALES:inv-1:-").id == voucher.id


class TestBalances:

    def test_asset_balance_is_debits_minus_credits(self, db_session, chart):
        JournalService(db_session).record(make_draft())
        assert JournalService(db_session).get_ledger_balance(BANK) == Decimal("1000")

    def test_income_balance_is_credits_minus_debits(self, db_session, chart):
        JournalService(db_session).record(make_draft())
        assert JournalService(db_session).get_ledger_balance(SALES) == Decimal("1000")

    def test_opening_balance_included(self, db_session):
        add_ledger(db_session, "L-loan", LedgerNature.LIABILITY, "2500", DrCr.CR)
        add_ledger(db_session, "L-cash", LedgerNature.ASSET, "4000", DrCr.DR)
        service = JournalService(db_session)
        service.record(make_draft(entries=[
            EntryLine(account_id="L-loan", debit=Decimal("500")),
            EntryLine(account_id="L-cash", credit=Decimal("500")),
        ]))

        assert service.get_ledger_balance("L-loan") == Decimal("2000")
        assert service.get_ledger_balance("L-cash") == Decimal("3500")

    def test_opening_on_the_other_side_is_negative(self, db_session):
        add_ledger(db_session, "L-overdrawn", LedgerNature.ASSET, "300", DrCr.CR)
        balance = JournalService(db_session).get_ledger_balance("L-overdrawn")
        assert balance == Decimal("-300")

    def test_unknown_ledger(self, db_session):
        with pytest.raises(ValueError, match="not found"):
            JournalService(db_session).get_ledger_balance("L-nope")


class TestIntegrity:

    def test_empty_journal_is_balanced(self, db_session):
        result = JournalService(db_session).check_integrity()
        assert result["is_balanced"] is True
        assert result["total_debits"] == Decimal("0")

    def test_totals_across_vouchers(self, db_session, chart):
        service = JournalService(db_session)
        service.record(make_draft("SALES:inv-1:-"))
        service.record(make_draft("SALES:inv-2:-"))

        result = service.check_integrity()
        assert result["total_debits"] == Decimal("2000")
        assert result["total_credits"] == Decimal("2000")
        assert result["difference"] == Decimal("0")
