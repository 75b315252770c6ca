"""
Sequential document numbers.

Numbers look like SO-2506-0007: a document code, the two-digit
year and month, and a four-digit counter that restarts every
month.

The counter lives in its own row and is bumped with an atomic
UPDATE inside the transaction that stores the numbered document.
Two postings can therefore never hand out the same number: the
second one either waits for the first to commit or fails and is
re-run by the poster.
"""

import logging
from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_poster.models.document_sequence import DocumentSequence
from ledger_poster.models.enums import DocumentType
from ledger_poster.models.order import Order, Quotation
from ledger_poster.services.exceptions import SequenceRaceError

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 4

# Where each document type stores its number. Used once per period
# to continue from numbers issued before the counter row existed.
NUMBERED_COLUMNS = {
    DocumentType.SALES_ORDER: Order.order_number,
    DocumentType.QUOTATION: Quotation.quotation_number,
}


def period_prefix(document_type: DocumentType, on_date: date) -> str:
    return f"{document_type.value}-{on_date:%y%m}-"


def format_number(prefix: str, value: int) -> str:
    return f"{prefix}{value:0{SEQUENCE_WIDTH}d}"


def parse_sequence_number(number: str | None) -> int | None:
    """Return the trailing numeric segment of a document number."""
    if not number:
        return None
    tail = number.rsplit("-", 1)[-1]
    if not tail.isdigit():
        return None
    return int(tail)


class DocumentSequencer:
    """
    Allocates document numbers within the caller's transaction.

    The caller owns the transaction: the counter increment is only
    durable if the caller commits, so a rolled-back posting never
    burns a number.
    """

    def __init__(self, db: Session):
        self.db = db

    def allocate(self, document_type: DocumentType, on_date: date) -> str:
        prefix = period_prefix(document_type, on_date)
        self._ensure_counter(document_type, prefix)

        result = self.db.execute(
            update(DocumentSequence)
            .where(
                DocumentSequence.document_type == document_type,
                DocumentSequence.period_prefix == prefix,
            )
            .values(
                last_value=DocumentSequence.last_value + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise SequenceRaceError(
                f"Counter for {prefix} disappeared during allocation"
            )

        value = self.db.execute(
            select(DocumentSequence.last_value).where(
                DocumentSequence.document_type == document_type,
                DocumentSequence.period_prefix == prefix,
            )
        ).scalar_one()

        number = format_number(prefix, value)
        logger.debug("Allocated %s", number)
        return number

    def _counter_exists(self, document_type: DocumentType, prefix: str) -> bool:
        return self.db.execute(
            select(DocumentSequence.last_value).where(
                DocumentSequence.document_type == document_type,
                DocumentSequence.period_prefix == prefix,
            )
        ).first() is not None

    def _ensure_counter(self, document_type: DocumentType, prefix: str) -> None:
        """
        Create the counter row for a new period.

        Creation happens in a savepoint. If another posting created
        the same row first, the savepoint is rolled back and the
        existing row is used instead.
        """
        if self._counter_exists(document_type, prefix):
            return

        start = self._highest_existing(document_type, prefix)
        try:
            with self.db.begin_nested():
                self.db.add(DocumentSequence(
                    document_type=document_type,
                    period_prefix=prefix,
                    last_value=start,
                ))
        except IntegrityError:
            logger.info("Counter %s was created concurrently", prefix)
            if not self._counter_exists(document_type, prefix):
                raise SequenceRaceError(
                    f"Could not create or read counter for {prefix}"
                )
            return

        logger.info("Started counter %s at %d", prefix, start)

    def _highest_existing(self, document_type: DocumentType, prefix: str) -> int:
        """Greatest number already issued for this prefix, or 0."""
        column = NUMBERED_COLUMNS[document_type]
        last = self.db.execute(
            select(column)
            .where(column.like(f"{prefix}%"))
            .order_by(column.desc())
            .limit(1)
        ).scalar_one_or_none()
        return parse_sequence_number(last) or 0
