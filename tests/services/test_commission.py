"""
Tests for partner commission on delivery.
"""

from decimal import Decimal

from ledger_poster.models.order import Order
from ledger_poster.models.partner import Partner, PartnerWallet
from ledger_poster.schemas.events import OrderDelivered
from ledger_poster.schemas.posting import PostingState
from ledger_poster.schemas.snapshots import OrderItemSnapshot
from ledger_poster.services.commission import calculate_commission


MATRIX = [
    {"category": "Solar Panels", "commissionRate": 5},
    {"category": "Inverters", "commissionRate": 2.5},
    {"category": "Cables", "commissionRate": 0},
]

ITEMS = [
    {"productId": "p-1", "name": "Panel", "category": "Solar Panels", "price": 12000, "quantity": 2},
    {"productId": "p-2", "name": "Inverter", "category": "Inverters", "price": 30000, "quantity": 1},
    {"productId": "p-3", "name": "Cable", "category": "Cables", "price": 500, "quantity": 10},
]


def item(category, price, quantity):
    return OrderItemSnapshot(
        category=category, price=Decimal(str(price)), quantity=Decimal(str(quantity))
    )


def add_delivered_order(db, order_id="o-1", partner_id="partner-1", **overrides):
    values = dict(
        id=order_id,
        order_number="SO-2506-0001",
        user_id="cust-1",
        customer_name="Asha Traders",
        status="Delivered",
        items=ITEMS,
        assigned_to_uid=partner_id,
    )
    values.update(overrides)
    db.add(Order(**values))
    db.flush()


def add_partner(db, partner_id="partner-1", matrix=MATRIX):
    db.add(Partner(id=partner_id, name="Green Energy Partners", commission_matrix=matrix))
    db.flush()


class TestCalculateCommission:

    def test_rate_per_category(self):
        commission = calculate_commission(
            [item("Solar Panels", 12000, 2), item("Inverters", 30000, 1)], MATRIX
        )
        # 24000 * 5% + 30000 * 2.5%
        assert commission == Decimal("1950.00")

    def test_unknown_category_and_zero_rate_earn_nothing(self):
        commission = calculate_commission(
            [item("Batteries", 9000, 1), item("Cables", 500, 10)], MATRIX
        )
        assert commission == Decimal("0.00")

    def test_first_rule_for_category_wins(self):
        matrix = [
            {"category": "Solar Panels", "commissionRate": 5},
            {"category": "Solar Panels", "commissionRate": 50},
        ]
        assert calculate_commission([item("Solar Panels", 100, 1)], matrix) == Decimal("5.00")

    def test_rounded_to_paise(self):
        commission = calculate_commission([item("Inverters", "333.33", 1)], MATRIX)
        assert commission == Decimal("8.33")


class TestOrderDelivered:

    def test_accrues_to_wallet_and_stamps_order(self, db_session, post_event):
        add_partner(db_session)
        add_delivered_order(db_session)

        result = post_event(OrderDelivered(source_id="o-1", previous_status="Dispatched"))

        assert result.state == PostingState.COMMITTED
        assert result.commission == Decimal("1950.00")
        assert db_session.get(PartnerWallet, "partner-1").commission_payable == Decimal("1950.00")
        assert db_session.get(Order, "o-1").commission == Decimal("1950.00")

    def test_existing_wallet_is_incremented(self, db_session, post_event):
        add_partner(db_session)
        db_session.add(PartnerWallet(partner_id="partner-1", commission_payable=Decimal("100")))
        add_delivered_order(db_session)

        post_event(OrderDelivered(source_id="o-1"))

        assert db_session.get(PartnerWallet, "partner-1").commission_payable == Decimal("2050.00")

    def test_accrued_only_once(self, db_session, post_event):
        add_partner(db_session)
        add_delivered_order(db_session)

        post_event(OrderDelivered(source_id="o-1"))
        second = post_event(OrderDelivered(source_id="o-1"))

        assert second.state == PostingState.SKIPPED
        assert db_session.get(PartnerWallet, "partner-1").commission_payable == Decimal("1950.00")

    def test_unchanged_status_is_skipped(self, db_session, post_event):
        add_partner(db_session)
        add_delivered_order(db_session)

        result = post_event(OrderDelivered(source_id="o-1", previous_status="Delivered"))

        assert result.state == PostingState.SKIPPED
        assert db_session.get(PartnerWallet, "partner-1") is None

    def test_not_delivered_is_skipped(self, db_session, post_event):
        add_partner(db_session)
        add_delivered_order(db_session, status="Dispatched")

        result = post_event(OrderDelivered(source_id="o-1"))

        assert result.state == PostingState.SKIPPED

    def test_partner_without_matrix_earns_nothing(self, db_session, post_event):
        add_partner(db_session, matrix=None)
        add_delivered_order(db_session)

        result = post_event(OrderDelivered(source_id="o-1"))

        assert result.state == PostingState.SKIPPED
        assert db_session.get(Order, "o-1").commission is None

    def test_unknown_partner_earns_nothing(self, db_session, post_event):
        add_delivered_order(db_session, partner_id="nobody")

        result = post_event(OrderDelivered(source_id="o-1"))

        assert result.state == PostingState.SKIPPED
