"""
Document sequence counter.

One row per (document type, period prefix), e.g. ("SO", "SO-2506-").
The row is created on the first allocation of a period and only
ever incremented, inside the same transaction that stores the
numbered document.
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base
from ledger_poster.models.enums import DocumentType


class DocumentSequence(Base):
    __tablename__ = "document_sequences"

    document_type: Mapped[DocumentType] = mapped_column(
        SAEnum(DocumentType, name="document_type_enum"),
        primary_key=True,
    )
    period_prefix: Mapped[str] = mapped_column(String(20), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<DocumentSequence {self.period_prefix} @ {self.last_value}>"
