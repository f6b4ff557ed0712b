from decimal import Decimal

from cowork.models import Account
from cowork.services.payroll_service import calculate_net_pay

from conftest import FIXED_NOW, auth


def _payroll_payload(employee_id, branch_id, **overrides):
    payload = {
        "employee_id": employee_id,
        "branch_id": branch_id,
        "pay_period": "2030-03",
        "base_salary": "1000",
        "overtime": "100",
        "bonus": "50",
        "items": [
            {"type": "tax", "description": "Income tax", "amount": "75", "is_deduction": True},
            {"type": "allowance", "description": "Transport", "amount": "20", "is_deduction": False},
        ],
    }
    payload.update(overrides)
    return payload


def _create(client, manager, staff, branch, **overrides):
    resp = client.post(
        "/api/v1/payroll",
        json=_payroll_payload(staff.id, branch.id, **overrides),
        headers=auth(manager),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_calculate_net_pay_counts_only_deductions():
    deductions, net_pay = calculate_net_pay(
        Decimal("1000"), Decimal("100"), Decimal("50"),
        [{"amount": Decimal("75"), "is_deduction": True},
         {"amount": Decimal("20"), "is_deduction": False}],
    )
    assert deductions == Decimal("75.00")
    assert net_pay == Decimal("1075.00")


def test_create_payroll_computes_net_pay(client, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    assert payroll["deductions"] == 75.0
    assert payroll["net_pay"] == 1075.0
    assert payroll["status"] == "PENDING"
    assert len(payroll["items"]) == 2
    assert payroll["employee"]["email"] == staff.email


def test_duplicate_period_is_rejected(client, manager, staff, branch):
    _create(client, manager, staff, branch)
    resp = client.post(
        "/api/v1/payroll",
        json=_payroll_payload(staff.id, branch.id),
        headers=auth(manager),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Payroll record already exists for this employee and pay period"

    other_period = _create(client, manager, staff, branch, pay_period="2030-04")
    assert other_period["pay_period"] == "2030-04"


def test_update_recomputes_net_pay(client, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    resp = client.put(
        f"/api/v1/payroll/{payroll['id']}",
        json={"bonus": "0", "items": [{"amount": "100", "is_deduction": True}]},
        headers=auth(manager),
    )
    data = resp.json()["data"]
    assert data["deductions"] == 100.0
    assert data["net_pay"] == 1000.0


def test_paying_posts_salary_expense(client, db, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    resp = client.put(
        f"/api/v1/payroll/{payroll['id']}",
        json={"status": "PAID"},
        headers=auth(manager),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["status"] == "PAID"
    assert resp.json()["data"]["paid_at"] == FIXED_NOW.isoformat()

    postings = client.get("/api/v1/transactions", headers=auth(manager)).json()["data"]
    assert len(postings) == 1
    assert postings[0]["transaction_number"] == "PAYROLL-000001"
    assert postings[0]["type"] == "DEBIT"
    assert postings[0]["amount"] == 1075.0
    assert postings[0]["date"] == FIXED_NOW.isoformat()

    expense = db.query(Account).filter(
        Account.branch_id == branch.id, Account.name == "Salaries Expense"
    ).one()
    db.expire_all()
    assert db.get(Account, expense.id).balance == Decimal("1075.00")


def test_paid_payroll_is_frozen(client, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    url = f"/api/v1/payroll/{payroll['id']}"
    client.put(url, json={"status": "PAID"}, headers=auth(manager))

    resp = client.put(url, json={"bonus": "500"}, headers=auth(manager))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payroll already paid"

    resp = client.delete(url, headers=auth(manager))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot delete paid payroll record"


def test_cancelled_payroll_is_frozen(client, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    url = f"/api/v1/payroll/{payroll['id']}"
    resp = client.put(url, json={"status": "CANCELLED"}, headers=auth(manager))
    assert resp.json()["data"]["status"] == "CANCELLED"

    resp = client.put(url, json={"base_salary": "5000"}, headers=auth(manager))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cancelled payroll cannot be edited"

    stored = client.get(url, headers=auth(manager)).json()
    assert stored["base_salary"] == 1000.0
    assert stored["net_pay"] == 1075.0


def test_delete_pending_payroll(client, manager, staff, branch):
    payroll = _create(client, manager, staff, branch)
    url = f"/api/v1/payroll/{payroll['id']}"
    assert client.delete(url, headers=auth(manager)).json()["success"] is True
    assert client.get(url, headers=auth(manager)).status_code == 404


def test_list_filters_by_period(client, manager, staff, branch):
    _create(client, manager, staff, branch)
    _create(client, manager, staff, branch, pay_period="2030-04")

    resp = client.get("/api/v1/payroll", params={"pay_period": "2030-04"}, headers=auth(manager))
    assert [p["pay_period"] for p in resp.json()["data"]] == ["2030-04"]


def test_payroll_is_finance_only(client, staff):
    assert client.get("/api/v1/payroll", headers=auth(staff)).status_code == 403
