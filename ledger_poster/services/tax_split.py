"""
GST split between central/state and integrated tax.

The first two characters of a GSTIN are the state code. Supplies
within one state carry CGST + SGST in equal halves; supplies
across states carry IGST only.

When either GSTIN is unknown the supply is treated as
intrastate. This mirrors how invoices are raised today and is a
policy decision, not a validation.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Quantize any numeric value to two decimal places."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class TaxSplit(NamedTuple):
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


def state_code(gstin: str | None) -> str | None:
    if not gstin:
        return None
    gstin = gstin.strip()
    if len(gstin) < 2:
        return None
    return gstin[:2]


def is_interstate(company_gstin: str | None, party_gstin: str | None) -> bool:
    company_state = state_code(company_gstin)
    party_state = state_code(party_gstin)
    if company_state is None or party_state is None:
        return False
    return company_state != party_state


def split_tax(
    company_gstin: str | None,
    party_gstin: str | None,
    amount,
) -> TaxSplit:
    """
    Split a gross tax amount into (cgst, sgst, igst).

    The three parts always sum to the quantized amount. An odd
    paisa on an intrastate split goes to SGST.
    """
    amount = to_money(amount)
    if amount < 0:
        raise ValueError(f"Tax amount cannot be negative: {amount}")

    if is_interstate(company_gstin, party_gstin):
        return TaxSplit(cgst=ZERO, sgst=ZERO, igst=amount)

    cgst = to_money(amount / 2)
    if cgst * 2 > amount:
        cgst -= CENTS
    return TaxSplit(cgst=cgst, sgst=amount - cgst, igst=ZERO)
