"""
Company profile.

A single row (id "info") holding the company's GSTIN and the
UPI id customers pay advances into.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_poster.models.base import Base


COMPANY_INFO_ID = "info"


class CompanyInfo(Base):
    __tablename__ = "company_info"

    id: Mapped[str] = mapped_column(
        String(20), primary_key=True, default=COMPANY_INFO_ID
    )
    company_name: Mapped[str] = mapped_column(
        String(150), nullable=False, default=""
    )
    gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)
    primary_upi_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )

    def __repr__(self) -> str:
        return f"<CompanyInfo {self.company_name!r}>"
