"""
Partner commission on delivered orders.

Commission is not a journal posting. It increments the partner's
wallet balance and is stamped on the order so it is only ever
accrued once.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from ledger_poster.models.order import Order
from ledger_poster.models.partner import Partner, PartnerWallet
from ledger_poster.schemas.snapshots import OrderItemSnapshot, OrderSnapshot
from ledger_poster.services.tax_split import ZERO, to_money

logger = logging.getLogger(__name__)

DELIVERED = "Delivered"


def calculate_commission(
    items: tuple[OrderItemSnapshot, ...] | list[OrderItemSnapshot],
    matrix: list[dict],
) -> Decimal:
    """
    Sum of price x quantity x rate / 100 over the items.

    The rate comes from the first matrix rule for the item's
    category. Items without a rule, or with a rate of zero or
    less, earn nothing.
    """
    rates = {}
    for rule in matrix:
        category = rule.get("category")
        if category is not None and category not in rates:
            rates[category] = Decimal(str(rule.get("commissionRate") or 0))

    total = Decimal("0")
    for item in items:
        rate = rates.get(item.category, ZERO)
        if rate > 0:
            total += item.price * item.quantity * rate / 100
    return to_money(total)


class CommissionService:

    def __init__(self, db: Session):
        self.db = db

    def accrue(self, order: OrderSnapshot) -> Decimal:
        """
        Credit the assigned partner's wallet for a delivered order.

        Returns the amount accrued, zero when nothing was due. The
        caller checks the status transition and that the order
        carries no commission yet.
        """
        if order.status != DELIVERED or not order.assigned_to_uid:
            return ZERO

        partner = self.db.get(Partner, order.assigned_to_uid)
        if partner is None:
            logger.warning(
                "Order %s is assigned to unknown partner %s",
                order.source_id, order.assigned_to_uid,
            )
            return ZERO
        if not partner.commission_matrix:
            logger.info("Partner %s has no commission matrix", partner.id)
            return ZERO

        commission = calculate_commission(order.items, partner.commission_matrix)
        if commission <= 0:
            return ZERO

        if self.db.get(PartnerWallet, partner.id) is None:
            self.db.add(PartnerWallet(partner_id=partner.id, commission_payable=ZERO))
            self.db.flush()

        self.db.execute(
            update(PartnerWallet)
            .where(PartnerWallet.partner_id == partner.id)
            .values(
                commission_payable=PartnerWallet.commission_payable + commission,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.get(Order, order.source_id).commission = commission
        self.db.flush()

        logger.info(
            "Accrued commission %s to partner %s for order %s",
            commission, partner.id, order.source_id,
        )
        return commission
