"""
Transactional poster.

One call to post() handles one trigger event. Everything the event
causes (party ledger creation, party back-fill, document number,
journal vouchers, reference write-back, wallet increment) happens
in a single database transaction, so either all of it is stored
or none of it is.

A transaction that loses a race with another posting is re-run
from scratch in a fresh session, a bounded number of times. The
transaction body reads its inputs from the store on every attempt
and has no side effects outside the store, so re-running it is
safe.

States:
    RECEIVED -> RESOLVING -> BUILDING -> COMMITTING -> COMMITTED
    any of the above -> ABORTED
    RECEIVED / RESOLVING -> SKIPPED (already posted, nothing to post)
"""

import logging
import time
from datetime import date

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ledger_poster.config import Settings, get_settings
from ledger_poster.models.enums import DocumentType, PartyType
from ledger_poster.models.order import Order, Quotation
from ledger_poster.schemas.events import PayrollRun
from ledger_poster.schemas.posting import PostingResult, PostingState
from ledger_poster.services import chart
from ledger_poster.services import voucher_builder as builder
from ledger_poster.services.chart import ChartOfAccounts
from ledger_poster.services.commission import DELIVERED, CommissionService
from ledger_poster.services.document_sequencer import DocumentSequencer
from ledger_poster.services.exceptions import (
    AccountingError,
    MissingLedgerError,
    SequenceRaceError,
    SourceDocumentNotFoundError,
)
from ledger_poster.services.journal_service import JournalService
from ledger_poster.services.ledger_resolver import LedgerResolver
from ledger_poster.services.snapshots import SnapshotLoader
from ledger_poster.services.tax_split import ZERO, split_tax, to_money

logger = logging.getLogger(__name__)

# Errors that mean "another transaction got there first": lock
# timeouts, serialization failures, unique index violations, and a
# counter row created by a transaction this snapshot cannot see.
CONFLICT_ERRORS = (OperationalError, IntegrityError, SequenceRaceError)


class PostingContext:
    """State of one attempt at posting one event."""

    def __init__(self, event):
        self.event_kind = event.kind
        self.source_id = event.source_id
        self.state = PostingState.RECEIVED
        self.voucher_ids: list[str] = []
        self.reference_number = None
        self.commission = None
        logger.debug("%s %s: %s", self.event_kind, self.source_id, self.state.value)

    def enter(self, state: PostingState) -> None:
        logger.debug(
            "%s %s: %s -> %s",
            self.event_kind, self.source_id, self.state.value, state.value,
        )
        self.state = state

    def skip(self, reason: str) -> None:
        logger.info("%s %s skipped: %s", self.event_kind, self.source_id, reason)
        self.enter(PostingState.SKIPPED)

    def result(self, attempts: int, error: str | None = None) -> PostingResult:
        return PostingResult(
            state=self.state,
            event_kind=self.event_kind,
            source_id=self.source_id,
            voucher_ids=list(self.voucher_ids),
            reference_number=self.reference_number,
            commission=self.commission,
            error=error,
            attempts=attempts,
        )


class TransactionalPoster:
    """
    Posts trigger events.

    Takes a session factory rather than a session because every
    attempt needs a fresh session and transaction.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        settings: Settings | None = None,
        today=date.today,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.today = today
        self._handlers = {
            "order.created": self._order_created,
            "order.delivered": self._order_delivered,
            "quotation.created": self._quotation_created,
            "sales_invoice.created": self._sales_invoice_created,
            "grn.received": self._grn_received,
            "payroll.run": self._payroll_run,
        }

    def post(self, event) -> PostingResult:
        handler = self._handlers[event.kind]
        max_attempts = max(1, self.settings.POSTING_MAX_ATTEMPTS)
        last_error = None

        for attempt in range(1, max_attempts + 1):
            ctx = PostingContext(event)
            session = self.session_factory()
            try:
                with session.begin():
                    handler(session, event, ctx)
                    if ctx.state is not PostingState.SKIPPED:
                        ctx.enter(PostingState.COMMITTING)
            except CONFLICT_ERRORS as e:
                last_error = e
                logger.warning(
                    "%s %s conflicted on attempt %d/%d: %s",
                    event.kind, event.source_id, attempt, max_attempts,
                    e.__class__.__name__,
                )
                if attempt < max_attempts:
                    time.sleep(self.settings.POSTING_RETRY_BACKOFF_SECONDS * attempt)
                continue
            except (AccountingError, ValueError) as e:
                ctx.enter(PostingState.ABORTED)
                logger.error(
                    "%s %s aborted: %s", event.kind, event.source_id, e,
                )
                return ctx.result(attempt, error=str(e))
            finally:
                session.close()

            if ctx.state is PostingState.COMMITTING:
                ctx.enter(PostingState.COMMITTED)
                logger.info(
                    "%s %s committed: vouchers=%s reference=%s",
                    event.kind, event.source_id,
                    ctx.voucher_ids, ctx.reference_number,
                )
            return ctx.result(attempt)

        logger.error(
            "%s %s aborted after %d attempts: %s",
            event.kind, event.source_id, max_attempts, last_error,
        )
        ctx = PostingContext(event)
        ctx.enter(PostingState.ABORTED)
        return ctx.result(
            max_attempts,
            error=f"Gave up after {max_attempts} conflicting attempts: {last_error}",
        )

    # --- Shared lookups ---

    def _bank_ledger(self, db: Session, accounts: ChartOfAccounts) -> str:
        """Bank ledger that receives UPI advances."""
        company = SnapshotLoader(db).company()
        if company is not None and company.primary_upi_id:
            ledger = accounts.find_by_upi(company.primary_upi_id)
            if ledger is not None:
                return ledger.id

        ledger = accounts.get_active(self.settings.DEFAULT_BANK_LEDGER_ID)
        if ledger is None:
            raise MissingLedgerError(self.settings.DEFAULT_BANK_LEDGER_ID)
        return ledger.id

    def _company_gstin(self, db: Session) -> str | None:
        company = SnapshotLoader(db).company()
        return company.gstin if company is not None else None

    # --- Handlers ---

    def _order_created(self, db: Session, event, ctx: PostingContext) -> None:
        order = SnapshotLoader(db).order(event.source_id)
        ctx.enter(PostingState.RESOLVING)

        order_number = order.order_number
        if order_number is None:
            order_number = DocumentSequencer(db).allocate(
                DocumentType.SALES_ORDER, self.today()
            )
            db.get(Order, order.source_id).order_number = order_number
            db.flush()
        ctx.reference_number = order_number

        if order.payment_received <= 0:
            if order.order_number is not None:
                ctx.skip("already numbered, no advance to post")
            return

        journal = JournalService(db)
        key = builder.make_idempotency_key(builder.ADVANCE_RECEIPT, order.source_id)
        if journal.find_by_key(key) is not None:
            ctx.skip(f"{key} already posted")
            return

        accounts = ChartOfAccounts(db)
        customer_ledger_id = LedgerResolver(db).resolve_or_create(
            order.counterparty_id,
            order.counterparty_name,
            order.counterparty_email,
        )
        bank_ledger_id = self._bank_ledger(db, accounts)

        ctx.enter(PostingState.BUILDING)
        draft = builder.build_advance_receipt(
            order, order_number, bank_ledger_id, customer_ledger_id, self.today()
        )
        ctx.voucher_ids.append(journal.record(draft).id)

    def _order_delivered(self, db: Session, event, ctx: PostingContext) -> None:
        order = SnapshotLoader(db).order(event.source_id)

        if order.status != DELIVERED:
            ctx.skip(f"status is {order.status}")
            return
        if event.previous_status == DELIVERED:
            ctx.skip("status did not change")
            return
        if order.commission is not None:
            ctx.skip("commission already accrued")
            return
        if not order.assigned_to_uid:
            ctx.skip("no partner assigned")
            return

        ctx.enter(PostingState.RESOLVING)
        commission = CommissionService(db).accrue(order)
        if commission <= 0:
            ctx.skip("no commission due")
            return
        ctx.commission = commission

    def _quotation_created(self, db: Session, event, ctx: PostingContext) -> None:
        quotation = db.get(Quotation, event.source_id)
        if quotation is None:
            raise SourceDocumentNotFoundError(f"Quotation {event.source_id} not found")

        if quotation.quotation_number:
            ctx.reference_number = quotation.quotation_number
            ctx.skip("already numbered")
            return

        ctx.enter(PostingState.RESOLVING)
        quotation.quotation_number = DocumentSequencer(db).allocate(
            DocumentType.QUOTATION, self.today()
        )
        db.flush()
        ctx.reference_number = quotation.quotation_number

    def _sales_invoice_created(self, db: Session, event, ctx: PostingContext) -> None:
        loader = SnapshotLoader(db)
        invoice = loader.invoice(event.source_id)

        journal = JournalService(db)
        sales_key = builder.make_idempotency_key(builder.SALES, invoice.source_id)
        if journal.find_by_key(sales_key) is not None:
            ctx.skip(f"{sales_key} already posted")
            return

        ctx.enter(PostingState.RESOLVING)
        accounts = ChartOfAccounts(db)
        customer_ledger_id = LedgerResolver(db).resolve_or_create(
            invoice.counterparty_id,
            invoice.counterparty_name,
            invoice.counterparty_email,
        )
        sales_ledger_id = accounts.require(chart.SALES_DOMESTIC)

        split = split_tax(
            self._company_gstin(db),
            loader.party_gstin(invoice.counterparty_id),
            invoice.total_tax,
        )
        if (split.cgst, split.sgst, split.igst) != (
            to_money(invoice.cgst), to_money(invoice.sgst), to_money(invoice.igst)
        ):
            logger.warning(
                "Invoice %s tax split %s differs from recorded cgst=%s sgst=%s igst=%s",
                invoice.invoice_number, tuple(split),
                invoice.cgst, invoice.sgst, invoice.igst,
            )
        gst_ledgers = builder.GstLedgers.output(accounts)

        advances_ledger_id = None
        if invoice.amount_paid > 0:
            advances_ledger_id = accounts.require(chart.CUSTOMER_ADVANCES)

        costs = loader.product_costs(
            (item.product_id for item in invoice.items), costed_only=True
        )
        cogs_ledger_id = None
        if any(cost.cost is not None and cost.cost > 0 for cost in costs.values()):
            cogs_ledger_id = accounts.require(chart.COGS)

        ctx.enter(PostingState.BUILDING)
        drafts = [
            builder.build_sales_voucher(
                invoice, customer_ledger_id, sales_ledger_id, split, gst_ledgers
            )
        ]
        if advances_ledger_id is not None:
            drafts.append(builder.build_advance_adjustment(
                invoice, advances_ledger_id, customer_ledger_id
            ))
        if cogs_ledger_id is not None:
            cogs = builder.build_cogs_voucher(invoice, cogs_ledger_id, costs)
            if cogs is not None:
                drafts.append(cogs)

        for draft in drafts:
            ctx.voucher_ids.append(journal.record(draft).id)

    def _grn_received(self, db: Session, event, ctx: PostingContext) -> None:
        loader = SnapshotLoader(db)
        grn = loader.grn(event.source_id)

        journal = JournalService(db)
        key = builder.make_idempotency_key(builder.PURCHASE, grn.source_id)
        if journal.find_by_key(key) is not None:
            ctx.skip(f"{key} already posted")
            return
        if not grn.items:
            ctx.skip("no items received")
            return

        ctx.enter(PostingState.RESOLVING)
        accounts = ChartOfAccounts(db)
        supplier_ledger_id = LedgerResolver(db).resolve_or_create(
            grn.counterparty_id,
            grn.counterparty_name,
            party_kind=PartyType.SUPPLIER,
        )
        costs = loader.product_costs(item.product_id for item in grn.items)
        inventory_ledgers = {
            product_id: cost.inventory_ledger_id
            for product_id, cost in costs.items()
        }
        split = split_tax(
            self._company_gstin(db),
            loader.party_gstin(grn.counterparty_id),
            grn.total_gst,
        )
        gst_ledgers = builder.GstLedgers.input(accounts)

        ctx.enter(PostingState.BUILDING)
        draft = builder.build_purchase_voucher(
            grn, supplier_ledger_id, inventory_ledgers, split, gst_ledgers
        )
        ctx.voucher_ids.append(journal.record(draft).id)

    def _payroll_run(self, db: Session, event: PayrollRun, ctx: PostingContext) -> None:
        journal = JournalService(db)
        key = builder.make_idempotency_key(builder.PAYROLL, period_key=event.period)
        existing = journal.find_by_key(key)
        if existing is not None:
            ctx.voucher_ids.append(existing.id)
            ctx.skip(f"payroll for {event.period} already processed")
            return
        if not event.lines:
            raise ValueError(f"No salaried employees in payroll run for {event.period}")

        gross = sum((line.gross for line in event.lines), ZERO)
        if gross <= 0:
            ctx.skip("payroll total is zero")
            return

        ctx.enter(PostingState.RESOLVING)
        accounts = ChartOfAccounts(db)
        ledgers = builder.PayrollLedgers(
            salaries=accounts.require(chart.SALARIES_AND_WAGES),
            salary_payable=accounts.require(chart.SALARY_PAYABLE),
            pf_payable=accounts.require(chart.PF_PAYABLE),
            professional_tax_payable=accounts.require(chart.PROFESSIONAL_TAX_PAYABLE),
            tds_payable=accounts.require(chart.TDS_PAYABLE),
        )

        ctx.enter(PostingState.BUILDING)
        draft = builder.build_payroll_voucher(
            event, ledgers, event.run_date or self.today()
        )
        ctx.voucher_ids.append(journal.record(draft).id)
