"""
Trigger events accepted by the transactional poster.

Events are a tagged union on ``kind``. Document events carry only
the id of the stored document; the poster loads the document
inside its transaction. A payroll run is not a stored document,
so it carries the period and the computed payslip lines.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


class OrderCreated(BaseModel):
    kind: Literal["order.created"] = "order.created"
    source_id: str = Field(min_length=1, max_length=64)


class OrderDelivered(BaseModel):
    kind: Literal["order.delivered"] = "order.delivered"
    source_id: str = Field(min_length=1, max_length=64)
    previous_status: str | None = None


class QuotationCreated(BaseModel):
    kind: Literal["quotation.created"] = "quotation.created"
    source_id: str = Field(min_length=1, max_length=64)


class SalesInvoiceCreated(BaseModel):
    kind: Literal["sales_invoice.created"] = "sales_invoice.created"
    source_id: str = Field(min_length=1, max_length=64)


class GrnReceived(BaseModel):
    kind: Literal["grn.received"] = "grn.received"
    source_id: str = Field(min_length=1, max_length=64)


class PayslipLine(BaseModel):
    """One salaried employee's computed pay for the period."""
    employee_id: str = Field(min_length=1, max_length=64)
    gross: Decimal = Field(ge=0, decimal_places=2)
    net: Decimal = Field(ge=0, decimal_places=2)
    pf: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    professional_tax: Decimal = Field(
        default=Decimal("0"), ge=0, decimal_places=2
    )
    tds: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)

    @model_validator(mode="after")
    def gross_splits_into_net_and_deductions(self) -> "PayslipLine":
        withheld = self.net + self.pf + self.professional_tax + self.tds
        if withheld != self.gross:
            raise ValueError(
                f"payslip for {self.employee_id} does not add up: "
                f"gross={self.gross}, net+deductions={withheld}"
            )
        return self


class PayrollRun(BaseModel):
    kind: Literal["payroll.run"] = "payroll.run"
    period: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    run_date: date | None = None
    lines: list[PayslipLine] = Field(default_factory=list)

    @property
    def source_id(self) -> str:
        return f"payroll-{self.period}"


TriggerEvent = Annotated[
    Union[
        OrderCreated,
        OrderDelivered,
        QuotationCreated,
        SalesInvoiceCreated,
        GrnReceived,
        PayrollRun,
    ],
    Field(discriminator="kind"),
]


class DeliveryRequest(BaseModel):
    """Body of the order delivered webhook."""
    previous_status: str | None = None
