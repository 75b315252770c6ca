"""
Tests for the trigger and ledger read endpoints.

These test the HTTP layer: status codes, response format and
error handling. Posting rules are tested in test_poster.py.

Document numbers carry the current month, so only their shape
is asserted here.
"""

import re
from datetime import date
from decimal import Decimal

from ledger_poster.models.grn import Grn
from ledger_poster.models.order import Order, Quotation
from ledger_poster.models.sales_invoice import SalesInvoice


BANK = "L-1.1.1-2"

PAYROLL = {
    "period": "2025-06",
    "run_date": "2025-06-30",
    "lines": [
        {
            "employee_id": "emp-1",
            "gross": "50000",
            "net": "44000",
            "pf": "1800",
            "professional_tax": "200",
            "tds": "4000",
        },
    ],
}


def send(client, db, url, json=None):
    """POST after releasing the test session's locks."""
    db.commit()
    return client.post(url, json=json)


def add_order(db, order_id="o-1", payment_received="5000", **overrides):
    values = dict(
        id=order_id,
        user_id="cust-1",
        customer_name="Asha Traders",
        payment_received=Decimal(payment_received),
    )
    values.update(overrides)
    db.add(Order(**values))
    db.flush()


class TestOrderEvents:

    def test_order_created_returns_202(self, client, db_session, chart):
        add_order(db_session)

        response = send(client, db_session, "/events/orders/o-1/created")

        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "COMMITTED"
        assert data["event_kind"] == "order.created"
        assert data["source_id"] == "o-1"
        assert re.fullmatch(r"SO-\d{4}-0001", data["reference_number"])
        assert len(data["voucher_ids"]) == 1

    def test_unknown_order_reported_as_aborted(self, client, db_session, chart):
        response = send(client, db_session, "/events/orders/o-404/created")

        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "ABORTED"
        assert "not found" in data["error"]

    def test_overlong_id_returns_422(self, client, db_session, chart):
        long_id = "o" * 65
        for url in (
            f"/events/orders/{long_id}/created",
            f"/events/orders/{long_id}/delivered",
            f"/events/quotations/{long_id}/created",
            f"/events/sales-invoices/{long_id}/created",
            f"/events/grns/{long_id}/received",
        ):
            response = send(client, db_session, url)
            assert response.status_code == 422, url

    def test_delivered_with_unchanged_status_is_skipped(self, client, db_session, chart):
        add_order(db_session, status="Delivered", assigned_to_uid="partner-1")

        response = send(
            client, db_session, "/events/orders/o-1/delivered",
            json={"previous_status": "Delivered"},
        )

        assert response.status_code == 202
        assert response.json()["state"] == "SKIPPED"

    def test_delivered_without_body(self, client, db_session, chart):
        add_order(db_session, status="Dispatched")

        response = send(client, db_session, "/events/orders/o-1/delivered")

        assert response.status_code == 202
        assert response.json()["state"] == "SKIPPED"


class TestDocumentEvents:

    def test_quotation_created(self, client, db_session, chart):
        db_session.add(Quotation(id="q-1", customer_name="Asha Traders"))

        response = send(client, db_session, "/events/quotations/q-1/created")

        data = response.json()
        assert data["state"] == "COMMITTED"
        assert re.fullmatch(r"QU-\d{4}-0001", data["reference_number"])
        assert data["voucher_ids"] == []

    def test_sales_invoice_created(self, client, db_session, chart):
        db_session.add(SalesInvoice(
            id="inv-1",
            invoice_number="INV-0001",
            invoice_date=date(2025, 6, 20),
            customer_id="cust-1",
            customer_name="Asha Traders",
            grand_total=Decimal("11800"),
            taxable_amount=Decimal("10000"),
            cgst=Decimal("900"),
            sgst=Decimal("900"),
            igst=Decimal("0"),
            amount_paid=Decimal("0"),
        ))

        response = send(client, db_session, "/events/sales-invoices/inv-1/created")

        data = response.json()
        assert data["state"] == "COMMITTED"
        assert len(data["voucher_ids"]) == 1

    def test_grn_without_items_is_skipped(self, client, db_session, chart):
        db_session.add(Grn(
            id="grn-1",
            purchase_order_id="po-1",
            supplier_id="sup-1",
            supplier_name="Surya Components",
            grn_date=date(2025, 6, 10),
            items=[],
        ))

        response = send(client, db_session, "/events/grns/grn-1/received")

        assert response.status_code == 202
        assert response.json()["state"] == "SKIPPED"


class TestPayrollEndpoint:

    def test_payroll_run_posts_voucher(self, client, db_session, chart):
        response = send(client, db_session, "/events/payroll-runs", json=PAYROLL)

        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "COMMITTED"
        assert data["source_id"] == "payroll-2025-06"

        voucher = client.get(f"/journal-vouchers/{data['voucher_ids'][0]}").json()
        assert voucher["period_key"] == "2025-06"
        assert voucher["narration"] == "Salary for the month of June 2025"

    def test_second_run_returns_existing_voucher(self, client, db_session, chart):
        first = send(client, db_session, "/events/payroll-runs", json=PAYROLL).json()
        second = send(client, db_session, "/events/payroll-runs", json=PAYROLL).json()

        assert second["state"] == "SKIPPED"
        assert second["voucher_ids"] == first["voucher_ids"]

    def test_payslip_that_does_not_add_up_returns_422(self, client, db_session, chart):
        body = {**PAYROLL, "lines": [{**PAYROLL["lines"][0], "net": "45000"}]}
        response = send(client, db_session, "/events/payroll-runs", json=body)
        assert response.status_code == 422

    def test_bad_period_returns_422(self, client, db_session, chart):
        response = send(
            client, db_session, "/events/payroll-runs", json={**PAYROLL, "period": "2025-13"}
        )
        assert response.status_code == 422


class TestLedgerReads:

    def _post_advance(self, client, db_session):
        add_order(db_session)
        return send(client, db_session, "/events/orders/o-1/created").json()

    def test_get_journal_voucher(self, client, db_session, chart):
        posted = self._post_advance(client, db_session)

        response = client.get(f"/journal-vouchers/{posted['voucher_ids'][0]}")

        assert response.status_code == 200
        data = response.json()
        assert data["voucher_type"] == "Receipt Voucher"
        assert data["idempotency_key"] == "ADVANCE_RECEIPT:o-1:-"
        assert len(data["entries"]) == 2
        bank_line = data["entries"][0]
        assert bank_line["account_id"] == BANK
        assert Decimal(bank_line["debit"]) == Decimal("5000")

    def test_unknown_voucher_returns_404(self, client):
        assert client.get("/journal-vouchers/JV-404").status_code == 404

    def test_balances_follow_normal_side(self, client, db_session, chart):
        posted = self._post_advance(client, db_session)
        voucher = client.get(f"/journal-vouchers/{posted['voucher_ids'][0]}").json()
        customer_ledger = voucher["entries"][1]["account_id"]

        bank = client.get(f"/ledgers/{BANK}/balance").json()
        customer = client.get(f"/ledgers/{customer_ledger}/balance").json()

        assert bank["nature"] == "ASSET"
        assert Decimal(bank["balance"]) == Decimal("5000")
        assert customer["ledger_name"] == "Asha Traders"
        assert Decimal(customer["balance"]) == Decimal("-5000")

    def test_unknown_ledger_returns_404(self, client):
        assert client.get("/ledgers/L-404/balance").status_code == 404

    def test_integrity_after_postings(self, client, db_session, chart):
        self._post_advance(client, db_session)
        send(client, db_session, "/events/payroll-runs", json=PAYROLL)

        data = client.get("/ledger/integrity").json()

        assert data["is_balanced"] is True
        assert Decimal(data["total_debits"]) == Decimal("55000")
        assert Decimal(data["difference"]) == Decimal("0")

