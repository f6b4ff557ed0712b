from decimal import Decimal

import pytest

from cowork.core.config import settings
from cowork.core.exceptions import ValidationError
from cowork.models import Account, Customer
from cowork.schemas import PaymentCreate
from cowork.services.billing_service import InvoiceService, calculate_totals, derive_payment_status

from conftest import FIXED_NOW, auth


def _invoice_payload(customer_id, branch_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "branch_id": branch_id,
        "issue_date": "2030-03-01",
        "due_date": "2030-03-31",
        "tax_rate": "10",
        "items": [
            {"description": "Hot desk", "quantity": "2", "unit_price": "100.00"},
            {"description": "Printing", "quantity": "1", "unit_price": "50.50"},
        ],
    }
    payload.update(overrides)
    return payload


def _create_invoice(client, manager, customer, branch, **overrides):
    resp = client.post(
        "/api/v1/invoices",
        json=_invoice_payload(customer.id, branch.id, **overrides),
        headers=auth(manager),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_calculate_totals_rounds_half_up():
    totals = calculate_totals(
        [{"quantity": Decimal("1.5"), "unit_price": Decimal("0.33")}],
        Decimal("7.5"),
    )
    assert totals["amounts"] == [Decimal("0.50")]
    assert totals["subtotal"] == Decimal("0.50")
    assert totals["tax_amount"] == Decimal("0.04")
    assert totals["total"] == Decimal("0.54")


def test_calculate_totals_takes_inputs_at_cent_precision():
    totals = calculate_totals([{"quantity": Decimal("2.004"), "unit_price": Decimal("10.005")}])
    # 2.00 x 10.01, not 2.004 x 10.005
    assert totals["amounts"] == [Decimal("20.02")]
    assert totals["subtotal"] == Decimal("20.02")


def test_derive_payment_status():
    assert derive_payment_status(Decimal("0"), Decimal("10")) == "PENDING"
    assert derive_payment_status(Decimal("4"), Decimal("10")) == "PARTIAL"
    assert derive_payment_status(Decimal("10"), Decimal("10")) == "PAID"


def test_create_invoice_computes_totals(client, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)

    assert invoice["invoice_number"] == "INV-000001"
    assert invoice["status"] == "DRAFT"
    assert invoice["subtotal"] == 250.5
    assert invoice["tax_amount"] == 25.05
    assert invoice["total"] == 275.55
    assert [item["amount"] for item in invoice["items"]] == [200.0, 50.5]
    assert invoice["customer"]["email"] == customer.email

    second = _create_invoice(client, manager, customer, branch)
    assert second["invoice_number"] == "INV-000002"


def test_stored_items_add_up_to_subtotal(client, manager, customer, branch):
    invoice = _create_invoice(
        client, manager, customer, branch,
        items=[
            {"description": "Day passes", "quantity": "2.5", "unit_price": "12.40"},
            {"description": "Lockers", "quantity": "3", "unit_price": "19.99"},
        ],
    )
    stored = client.get(f"/api/v1/invoices/{invoice['id']}", headers=auth(manager)).json()

    line_total = sum(
        Decimal(str(item["quantity"])) * Decimal(str(item["unit_price"])) for item in stored["items"]
    )
    assert Decimal(str(stored["subtotal"])) == line_total == Decimal("90.97")
    assert stored["tax_amount"] == 9.1
    assert stored["total"] == 100.07


def test_sub_cent_quantity_is_rejected(client, manager, customer, branch):
    resp = client.post(
        "/api/v1/invoices",
        json=_invoice_payload(
            customer.id, branch.id,
            items=[{"description": "Printing", "quantity": "0.004", "unit_price": "1000"}],
        ),
        headers=auth(manager),
    )
    assert resp.status_code == 400
    assert client.get("/api/v1/invoices", headers=auth(manager)).json()["data"] == []


def test_create_invoice_requires_items(client, manager, customer, branch):
    resp = client.post(
        "/api/v1/invoices",
        json=_invoice_payload(customer.id, branch.id, items=[]),
        headers=auth(manager),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required fields"


def test_create_invoice_unknown_customer(client, manager, branch):
    resp = client.post(
        "/api/v1/invoices",
        json=_invoice_payload(999, branch.id),
        headers=auth(manager),
    )
    assert resp.status_code == 404


def test_partial_then_full_payment_posts_to_cash(client, db, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    url = f"/api/v1/invoices/{invoice['id']}/payments"

    resp = client.post(url, json={"amount": "100", "method": "card"}, headers=auth(manager))
    assert resp.status_code == 201, resp.text
    body = resp.json()["data"]
    assert body["invoice"]["status"] == "PARTIAL"
    assert body["invoice"]["amount_paid"] == 100.0
    assert body["invoice"]["paid_at"] is None

    resp = client.post(url, json={"amount": "175.55", "method": "cash"}, headers=auth(manager))
    assert resp.status_code == 201, resp.text
    paid = resp.json()["data"]["invoice"]
    assert paid["status"] == "PAID"
    assert paid["amount_paid"] == 275.55
    assert paid["paid_at"] is not None

    resp = client.get("/api/v1/transactions", headers=auth(manager))
    postings = resp.json()["data"]
    assert len(postings) == 2
    assert {p["transaction_number"] for p in postings} == {"PAY-000001", "PAY-000002"}
    for posting in postings:
        assert posting["type"] == "DEBIT"
        assert posting["category"] == "PAYMENT_RECEIVED"
        assert posting["reference"] == "INV-000001"
        assert posting["invoice_id"] == invoice["id"]

    cash = db.query(Account).filter(Account.branch_id == branch.id, Account.name == "Cash").one()
    db.expire_all()
    assert db.get(Account, cash.id).balance == Decimal("275.55")


def test_payment_and_posting_use_request_clock(client, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    resp = client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"amount": "10", "method": "card"},
        headers=auth(manager),
    )
    assert resp.json()["data"]["payment"]["paid_at"] == FIXED_NOW.isoformat()

    posting = client.get("/api/v1/transactions", headers=auth(manager)).json()["data"][0]
    assert posting["date"] == FIXED_NOW.isoformat()


def test_sub_cent_payment_is_rejected(client, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    url = f"/api/v1/invoices/{invoice['id']}/payments"

    resp = client.post(url, json={"amount": "0.001", "method": "cash"}, headers=auth(manager))
    assert resp.status_code == 400

    stored = client.get(f"/api/v1/invoices/{invoice['id']}", headers=auth(manager)).json()
    assert stored["status"] == "DRAFT"
    assert stored["payments"] == []
    assert client.get("/api/v1/transactions", headers=auth(manager)).json()["data"] == []


def test_payment_rounding_to_zero_is_rejected(client, db, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    # bypasses request validation the way an internal caller would
    payment = PaymentCreate.model_construct(amount=Decimal("0.004"), method="cash", reference=None)

    with pytest.raises(ValidationError, match="at least 0.01"):
        InvoiceService(db).record_payment(invoice["id"], payment)
    db.rollback()


def test_overpayment_is_rejected(client, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    url = f"/api/v1/invoices/{invoice['id']}/payments"
    client.post(url, json={"amount": "100", "method": "card"}, headers=auth(manager))

    resp = client.post(url, json={"amount": "200", "method": "card"}, headers=auth(manager))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment amount exceeds remaining balance of $175.55"

    resp = client.get(url, headers=auth(manager))
    assert len(resp.json()["data"]) == 1


def test_payment_without_cash_account_rolls_back(client, db, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    cash = db.query(Account).filter(Account.branch_id == branch.id, Account.name == "Cash").one()
    cash.is_active = False
    db.commit()

    resp = client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"amount": "50", "method": "card"},
        headers=auth(manager),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "configuration_error"

    resp = client.get(f"/api/v1/invoices/{invoice['id']}", headers=auth(manager))
    assert resp.json()["status"] == "DRAFT"
    assert resp.json()["payments"] == []


def test_issue_cancel_and_delete_rules(client, manager, customer, branch):
    invoice = _create_invoice(client, manager, customer, branch)
    url = f"/api/v1/invoices/{invoice['id']}"

    resp = client.put(url, json={"status": "PENDING"}, headers=auth(manager))
    assert resp.json()["data"]["status"] == "PENDING"

    resp = client.put(url, json={"status": "PENDING"}, headers=auth(manager))
    assert resp.status_code == 400

    resp = client.delete(url, headers=auth(manager))
    assert resp.status_code == 400

    resp = client.put(url, json={"status": "CANCELLED"}, headers=auth(manager))
    assert resp.json()["data"]["status"] == "CANCELLED"

    resp = client.post(f"{url}/payments", json={"amount": "10", "method": "card"}, headers=auth(manager))
    assert resp.status_code == 400

    draft = _create_invoice(client, manager, customer, branch)
    resp = client.delete(f"/api/v1/invoices/{draft['id']}", headers=auth(manager))
    assert resp.json()["success"] is True
    assert client.get(f"/api/v1/invoices/{draft['id']}", headers=auth(manager)).status_code == 404


def test_customer_sees_only_own_invoices(client, db, manager, customer, customer_user, branch):
    other = Customer(name="Other", email="other@cowork.test", branch_id=branch.id)
    db.add(other)
    db.commit()

    own = _create_invoice(client, manager, customer, branch)
    foreign = _create_invoice(client, manager, other, branch)

    resp = client.get("/api/v1/invoices", headers=auth(customer_user))
    assert resp.status_code == 200
    assert [i["id"] for i in resp.json()["data"]] == [own["id"]]
    assert resp.json()["pagination"]["total"] == 1

    assert client.get(f"/api/v1/invoices/{foreign['id']}", headers=auth(customer_user)).status_code == 404
    resp = client.post(
        f"/api/v1/invoices/{own['id']}/payments",
        json={"amount": "1", "method": "card"},
        headers=auth(customer_user),
    )
    assert resp.status_code == 403


def test_staff_cannot_list_invoices(client, staff):
    assert client.get("/api/v1/invoices", headers=auth(staff)).status_code == 403


def test_bill_payment_does_not_touch_ledger(client, manager, branch):
    resp = client.post(
        "/api/v1/vendors",
        json={"name": "Paper Co", "branch_id": branch.id},
        headers=auth(manager),
    )
    vendor_id = resp.json()["data"]["id"]

    resp = client.post(
        "/api/v1/bills",
        json={
            "vendor_id": vendor_id,
            "branch_id": branch.id,
            "issue_date": "2030-03-01",
            "due_date": "2030-03-15",
            "items": [{"description": "A4 paper", "quantity": "10", "unit_price": "4.99"}],
        },
        headers=auth(manager),
    )
    assert resp.status_code == 201, resp.text
    bill = resp.json()["data"]
    assert bill["bill_number"] == "BILL-000001"
    assert bill["total"] == 49.9

    resp = client.post(
        f"/api/v1/bills/{bill['id']}/payments",
        json={"amount": "49.90", "method": "bank"},
        headers=auth(manager),
    )
    assert resp.json()["data"]["bill"]["status"] == "PAID"

    resp = client.get("/api/v1/transactions", headers=auth(manager))
    assert resp.json()["data"] == []


def test_payment_without_cash_account_can_skip_posting(client, db, manager, customer, branch, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_CASH_ACCOUNT", False)
    invoice = _create_invoice(client, manager, customer, branch)
    cash = db.query(Account).filter(Account.branch_id == branch.id, Account.name == "Cash").one()
    cash.is_active = False
    db.commit()

    resp = client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"amount": "50", "method": "card"},
        headers=auth(manager),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["invoice"]["status"] == "PARTIAL"
    assert client.get("/api/v1/transactions", headers=auth(manager)).json()["data"] == []
