"""
Journal and ledger read endpoints.

Read-only: vouchers are only ever written by the poster.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ledger_poster.models.base import get_db
from ledger_poster.models.ledger import Ledger
from ledger_poster.schemas.ledger import IntegrityResponse, LedgerBalanceResponse
from ledger_poster.schemas.voucher import JournalVoucherResponse
from ledger_poster.services.journal_service import JournalService

router = APIRouter(tags=["Ledger"])


@router.get("/journal-vouchers/{voucher_id}", response_model=JournalVoucherResponse)
def get_journal_voucher(
    voucher_id: str,
    db: Session = Depends(get_db),
):
    voucher = JournalService(db).get_voucher(voucher_id)
    if voucher is None:
        raise HTTPException(
            status_code=404, detail=f"Journal voucher {voucher_id} not found"
        )
    return voucher


@router.get("/ledgers/{ledger_id}/balance", response_model=LedgerBalanceResponse)
def get_ledger_balance(
    ledger_id: str,
    db: Session = Depends(get_db),
):
    """
    Current balance of a ledger.

    Derived from the opening balance and the posted entries,
    positive on the ledger's normal side.
    """
    service = JournalService(db)
    try:
        balance = service.get_ledger_balance(ledger_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    ledger = db.get(Ledger, ledger_id)

    return LedgerBalanceResponse(
        ledger_id=ledger.id,
        ledger_name=ledger.name,
        nature=ledger.nature,
        balance=balance,
    )


@router.get("/ledger/integrity", response_model=IntegrityResponse)
def check_integrity(db: Session = Depends(get_db)):
    """Total debits and credits across every voucher ever posted."""
    return JournalService(db).check_integrity()
