"""
Party model.

A customer or supplier. Parties are owned by master data;
the poster only reads them and back-fills coa_ledger_id once
the party's ledger has been resolved.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


class Party(Base):
    __tablename__ = "parties"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Customer"
    )
    gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)
    # Weak reference: the ledger may have been removed since.
    coa_ledger_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Party {self.id} {self.name!r}>"
