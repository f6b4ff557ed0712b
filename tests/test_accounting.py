from decimal import Decimal

import pytest

from cowork.core.numbering import DocumentNumbering, format_document_number
from cowork.models import Account
from cowork.schemas import BranchCreate
from cowork.services.accounting_service import balance_delta, quantize_money
from cowork.services.branch_service import BranchService, DEFAULT_CHART_OF_ACCOUNTS

from conftest import auth


def _account(db, branch_id, name):
    return db.query(Account).filter(Account.branch_id == branch_id, Account.name == name).one()


def _post(client, user, **payload):
    return client.post("/api/v1/transactions", json=payload, headers=auth(user))


def test_format_document_number():
    assert format_document_number("INV", 7) == "INV-000007"
    assert format_document_number("PAYROLL", 123456) == "PAYROLL-123456"


def test_sequences_are_independent_per_prefix(db):
    numbering = DocumentNumbering(db)
    assert numbering.next_number("INV") == "INV-000001"
    assert numbering.next_number("INV") == "INV-000002"
    assert numbering.next_number("BILL") == "BILL-000001"
    assert numbering.next_sequence("INV") == 3


@pytest.mark.parametrize("value, expected", [
    ("10.005", Decimal("10.01")),
    ("10.004", Decimal("10.00")),
    (3, Decimal("3.00")),
])
def test_quantize_money(value, expected):
    assert quantize_money(value) == expected


def test_balance_delta_sign():
    assert balance_delta("DEBIT", Decimal("5")) == Decimal("5")
    assert balance_delta("CREDIT", Decimal("5")) == Decimal("-5")


def test_new_branch_gets_default_chart(client, admin):
    resp = client.post("/api/v1/branches", json={"name": "Riverside"}, headers=auth(admin))
    assert resp.status_code == 201, resp.text
    branch_id = resp.json()["data"]["id"]

    resp = client.get(
        "/api/v1/accounts",
        params={"branch_id": branch_id, "limit": 100},
        headers=auth(admin),
    )
    assert resp.json()["pagination"]["total"] == len(DEFAULT_CHART_OF_ACCOUNTS)
    codes = [a["code"] for a in resp.json()["data"]]
    assert codes[0] == "1000"


def test_account_codes_are_unique_per_branch(client, db, admin, branch):
    resp = client.post(
        "/api/v1/accounts",
        json={"code": "1000", "name": "Petty Cash", "type": "ASSET",
              "category": "Current Asset", "branch_id": branch.id},
        headers=auth(admin),
    )
    assert resp.status_code == 409

    other = BranchService(db).create(BranchCreate(name="Uptown"))
    db.commit()
    assert _account(db, other.id, "Cash").code == "1000"


def test_postings_move_balance_and_reconcile(client, db, manager, branch):
    cash = _account(db, branch.id, "Cash")

    resp = _post(client, manager, branch_id=branch.id, account_id=cash.id, type="DEBIT",
                 amount="500", description="Opening float", category="OPENING")
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["transaction_number"] == "TXN-000001"

    resp = _post(client, manager, branch_id=branch.id, account_id=cash.id, type="CREDIT",
                 amount="200.25", description="Supplies", category="EXPENSE")
    assert resp.json()["data"]["transaction_number"] == "TXN-000002"

    resp = client.get(f"/api/v1/accounts/{cash.id}", headers=auth(manager))
    assert resp.json()["balance"] == 299.75

    resp = client.get(f"/api/v1/accounts/{cash.id}/reconcile", headers=auth(manager))
    report = resp.json()
    assert report["is_balanced"] is True
    assert report["derived_balance"] == 299.75
    assert report["transaction_count"] == 2

    resp = client.get("/api/v1/transactions", params={"type": "CREDIT"}, headers=auth(manager))
    assert [t["amount"] for t in resp.json()["data"]] == [200.25]


def test_reconcile_reports_drift(client, db, manager, branch):
    cash = _account(db, branch.id, "Cash")
    _post(client, manager, branch_id=branch.id, account_id=cash.id, type="DEBIT",
          amount="100", description="Deposit", category="OPENING")

    db.expire_all()
    cash = db.get(Account, cash.id)
    cash.balance = Decimal("90.00")
    db.commit()

    report = client.get(f"/api/v1/accounts/{cash.id}/reconcile", headers=auth(manager)).json()
    assert report["is_balanced"] is False
    assert report["stored_balance"] == 90.0
    assert report["derived_balance"] == 100.0
    assert report["difference"] == -10.0


def test_posting_rejects_foreign_branch_account(client, db, admin, branch):
    other = BranchService(db).create(BranchCreate(name="Uptown"))
    db.commit()
    foreign_cash = _account(db, other.id, "Cash")

    resp = _post(client, admin, branch_id=branch.id, account_id=foreign_cash.id, type="DEBIT",
                 amount="10", description="Wrong branch", category="OPENING")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Account does not belong to this branch"


def test_posting_rejects_non_positive_amount(client, db, manager, branch):
    cash = _account(db, branch.id, "Cash")
    resp = _post(client, manager, branch_id=branch.id, account_id=cash.id, type="DEBIT",
                 amount="0", description="Nothing", category="OPENING")
    assert resp.status_code == 400


def test_unknown_account_is_404(client, manager, branch):
    resp = _post(client, manager, branch_id=branch.id, account_id=9999, type="DEBIT",
                 amount="10", description="Missing", category="OPENING")
    assert resp.status_code == 404


def test_ledger_requires_finance_role(client, staff, customer_user):
    assert client.get("/api/v1/transactions", headers=auth(staff)).status_code == 403
    assert client.get("/api/v1/accounts", headers=auth(customer_user)).status_code == 403
    assert client.get("/api/v1/accounts").status_code == 401
