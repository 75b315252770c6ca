"""
Trigger endpoints.

Each endpoint is called by the module that owns a document once
the document has been stored. The endpoint hands the event to the
transactional poster and returns the outcome. Posting failures
are reported in the PostingResult, not as HTTP errors: the
document was accepted and can be re-posted later.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import sessionmaker

from ledger_poster.models.base import get_session_factory
from ledger_poster.schemas.events import (
    DeliveryRequest,
    GrnReceived,
    OrderCreated,
    OrderDelivered,
    PayrollRun,
    QuotationCreated,
    SalesInvoiceCreated,
)
from ledger_poster.schemas.posting import PostingResult
from ledger_poster.services.poster import TransactionalPoster

router = APIRouter(prefix="/events", tags=["Events"])


def get_poster(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> TransactionalPoster:
    return TransactionalPoster(session_factory)


@router.post(
    "/orders/{order_id}/created",
    response_model=PostingResult,
    status_code=202,
)
def order_created(
    order_id: str = Path(min_length=1, max_length=64),
    poster: TransactionalPoster = Depends(get_poster),
):
    """Number the order and post any advance received with it."""
    return poster.post(OrderCreated(source_id=order_id))


@router.post(
    "/orders/{order_id}/delivered",
    response_model=PostingResult,
    status_code=202,
)
def order_delivered(
    order_id: str = Path(min_length=1, max_length=64),
    request: DeliveryRequest | None = None,
    poster: TransactionalPoster = Depends(get_poster),
):
    """Accrue partner commission for a delivered order."""
    previous_status = request.previous_status if request else None
    return poster.post(
        OrderDelivered(source_id=order_id, previous_status=previous_status)
    )


@router.post(
    "/quotations/{quotation_id}/created",
    response_model=PostingResult,
    status_code=202,
)
def quotation_created(
    quotation_id: str = Path(min_length=1, max_length=64),
    poster: TransactionalPoster = Depends(get_poster),
):
    return poster.post(QuotationCreated(source_id=quotation_id))


@router.post(
    "/sales-invoices/{invoice_id}/created",
    response_model=PostingResult,
    status_code=202,
)
def sales_invoice_created(
    invoice_id: str = Path(min_length=1, max_length=64),
    poster: TransactionalPoster = Depends(get_poster),
):
    """Post the sales, advance adjustment and cost of goods vouchers."""
    return poster.post(SalesInvoiceCreated(source_id=invoice_id))


@router.post(
    "/grns/{grn_id}/received",
    response_model=PostingResult,
    status_code=202,
)
def grn_received(
    grn_id: str = Path(min_length=1, max_length=64),
    poster: TransactionalPoster = Depends(get_poster),
):
    return poster.post(GrnReceived(source_id=grn_id))


@router.post("/payroll-runs", response_model=PostingResult, status_code=202)
def payroll_run(
    run: PayrollRun,
    poster: TransactionalPoster = Depends(get_poster),
):
    """
    Post the salary voucher for a period.

    Running the same period twice is reported as SKIPPED with the
    id of the voucher already posted.
    """
    return poster.post(run)
