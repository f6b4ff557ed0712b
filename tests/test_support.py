from cowork.models import Customer

from conftest import auth, make_user


# ==================== COMPLAINTS ====================

def _raise_complaint(client, customer_user, title="Wi-Fi down"):
    resp = client.post(
        "/api/v1/complaints",
        json={"title": title, "description": "No connection on floor 2"},
        headers=auth(customer_user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_complaint_lifecycle(client, customer_user, customer, staff):
    complaint = _raise_complaint(client, customer_user)
    assert complaint["status"] == "Open"
    assert complaint["branch_id"] == customer.branch_id

    url = f"/api/v1/complaints/{complaint['id']}"
    resp = client.post(f"{url}/feedback", json={"rating": 5}, headers=auth(customer_user))
    assert resp.status_code == 400

    resp = client.put(f"{url}/status", json={"status": "Resolved", "remarks": "Router rebooted"},
                      headers=auth(staff))
    assert resp.json()["data"]["resolved_at"] is not None

    resp = client.post(f"{url}/feedback", json={"rating": 4, "feedback": "Quick fix"},
                       headers=auth(customer_user))
    assert resp.status_code == 200
    assert resp.json()["data"]["rating"] == 4

    inbox = client.get("/api/v1/notifications", headers=auth(customer_user)).json()
    assert inbox["data"][0]["title"] == "Complaint Updated"


def test_feedback_rating_range(client, customer_user, customer):
    complaint = _raise_complaint(client, customer_user)
    resp = client.post(f"/api/v1/complaints/{complaint['id']}/feedback", json={"rating": 6},
                       headers=auth(customer_user))
    assert resp.status_code == 400


def test_customers_only_see_own_complaints(client, db, branch, customer_user, customer, staff):
    other_user = make_user(db, "other@cowork.test", "CUSTOMER", branch.id)
    db.add(Customer(name="Other", email=other_user.email, branch_id=branch.id, user_id=other_user.id))
    db.commit()

    _raise_complaint(client, customer_user, "Mine")
    _raise_complaint(client, other_user, "Theirs")

    mine = client.get("/api/v1/complaints", headers=auth(customer_user)).json()["data"]
    assert [c["title"] for c in mine] == ["Mine"]

    everything = client.get("/api/v1/complaints", headers=auth(staff)).json()
    assert everything["pagination"]["total"] == 2


def test_complaint_stats(client, db, customer_user, customer, staff):
    first = _raise_complaint(client, customer_user, "One")
    _raise_complaint(client, customer_user, "Two")
    client.put(f"/api/v1/complaints/{first['id']}/status", json={"status": "Resolved"}, headers=auth(staff))

    stats = client.get("/api/v1/complaints/stats", headers=auth(staff)).json()
    assert stats["total"] == 2
    assert stats["by_status"]["Open"] == 1
    assert stats["by_status"]["Resolved"] == 1
    assert stats["average_resolution_hours"] >= 0

    assert client.get("/api/v1/complaints/stats", headers=auth(customer_user)).status_code == 403


# ==================== TASKS ====================

def _create_task(client, manager, branch, **extra):
    payload = {"title": "Restock kitchen", "branch_id": branch.id}
    payload.update(extra)
    resp = client.post("/api/v1/tasks", json=payload, headers=auth(manager))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_task_assignment_and_status(client, manager, staff, branch):
    task = _create_task(client, manager, branch, assigned_to=staff.id)
    assert task["status"] == "Assigned"

    unassigned = _create_task(client, manager, branch, title="Fix door")
    assert unassigned["status"] == "Open"

    url = f"/api/v1/tasks/{task['id']}"
    resp = client.put(url, json={"status": "Completed", "priority": "High"}, headers=auth(staff))
    data = resp.json()["data"]
    assert data["status"] == "Completed"
    assert data["completed_at"] is not None
    # assignees cannot reprioritise
    assert data["priority"] == "Medium"

    resp = client.put(f"/api/v1/tasks/{unassigned['id']}", json={"status": "Completed"}, headers=auth(staff))
    assert resp.status_code == 403


def test_staff_only_see_assigned_tasks(client, manager, staff, branch):
    _create_task(client, manager, branch, assigned_to=staff.id, title="Mine")
    _create_task(client, manager, branch, title="Unassigned")

    mine = client.get("/api/v1/tasks", headers=auth(staff)).json()["data"]
    assert [t["title"] for t in mine] == ["Mine"]

    everything = client.get("/api/v1/tasks", headers=auth(manager)).json()
    assert everything["pagination"]["total"] == 2


def test_task_comments(client, manager, staff, branch):
    task = _create_task(client, manager, branch, assigned_to=staff.id)
    resp = client.post(f"/api/v1/tasks/{task['id']}/comments", json={"comment": "On it"}, headers=auth(staff))
    assert resp.status_code == 201

    detail = client.get(f"/api/v1/tasks/{task['id']}", headers=auth(manager)).json()
    assert [c["comment"] for c in detail["comments"]] == ["On it"]


def test_task_stats_count_overdue(client, manager, staff, branch):
    _create_task(client, manager, branch, title="Late", due_date="2030-03-01T12:00:00")
    _create_task(client, manager, branch, title="Later", due_date="2030-04-01T12:00:00")
    done = _create_task(client, manager, branch, title="Done", due_date="2030-03-01T12:00:00")
    client.put(f"/api/v1/tasks/{done['id']}", json={"status": "Completed"}, headers=auth(manager))

    stats = client.get("/api/v1/tasks/stats", headers=auth(manager)).json()
    assert stats == {"total": 3, "completed": 1, "pending": 2, "overdue": 1}


def test_only_managers_create_tasks(client, staff, branch):
    resp = client.post("/api/v1/tasks", json={"title": "x", "branch_id": branch.id}, headers=auth(staff))
    assert resp.status_code == 403


# ==================== CONTRACTS ====================

def test_contract_request_and_upload(client, customer_user, customer, manager):
    resp = client.post("/api/v1/contracts/request", headers=auth(customer_user))
    assert resp.status_code == 201
    contract = resp.json()["data"]
    assert contract["status"] == "Pending"

    resp = client.post("/api/v1/contracts", headers=auth(customer_user))
    assert resp.status_code == 400

    resp = client.put(
        f"/api/v1/contracts/{contract['id']}/upload",
        json={"file_name": "contract.pdf", "file_url": "https://files.cowork.test/contract.pdf"},
        headers=auth(manager),
    )
    assert resp.json()["data"]["status"] == "Completed"
    assert resp.json()["data"]["uploaded_by"] == manager.id

    mine = client.get("/api/v1/contracts", headers=auth(customer_user)).json()["data"]
    assert [c["file_name"] for c in mine] == ["contract.pdf"]

    inbox = client.get("/api/v1/notifications", headers=auth(customer_user)).json()
    assert inbox["data"][0]["title"] == "Contract Ready"


def test_staff_cannot_request_contracts(client, staff):
    assert client.post("/api/v1/contracts/request", headers=auth(staff)).status_code == 403


# ==================== NOTIFICATIONS ====================

def test_mark_notifications_read(client, db, customer_user, customer, staff):
    first = _raise_complaint(client, customer_user, "One")
    second = _raise_complaint(client, customer_user, "Two")
    for complaint in (first, second):
        client.put(f"/api/v1/complaints/{complaint['id']}/status", json={"status": "In Process"},
                   headers=auth(staff))

    inbox = client.get("/api/v1/notifications", headers=auth(customer_user)).json()
    assert inbox["unread_count"] == 2

    resp = client.put("/api/v1/notifications", json={"notification_id": inbox["data"][0]["id"]},
                      headers=auth(customer_user))
    assert resp.json()["updated"] == 1
    assert resp.json()["unread_count"] == 1

    resp = client.put("/api/v1/notifications", json={"mark_all": True}, headers=auth(customer_user))
    assert resp.json()["unread_count"] == 0

    assert client.put("/api/v1/notifications", json={}, headers=auth(customer_user)).status_code == 400


# ==================== TIME TRACKING ====================

def test_check_in_and_out(client, staff, manager):
    resp = client.post("/api/v1/staff/time-tracking/checkin", json={"notes": "Front desk"}, headers=auth(staff))
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["status"] == "Checked In"

    resp = client.post("/api/v1/staff/time-tracking/checkin", json={}, headers=auth(staff))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You are already checked in"

    resp = client.post("/api/v1/staff/time-tracking/checkout", headers=auth(staff))
    assert resp.json()["data"]["status"] == "Checked Out"
    assert resp.json()["data"]["duration"] == 0

    resp = client.post("/api/v1/staff/time-tracking/checkout", headers=auth(staff))
    assert resp.json()["detail"] == "You are not currently checked in"

    entries = client.get(f"/api/v1/staff/time-tracking/entries/{staff.id}", headers=auth(manager)).json()
    assert entries["totals"]["total_entries"] == 1
    assert entries["totals"]["checked_in"] is False


def test_locked_staff_cannot_check_in(client, db, branch):
    locked = make_user(db, "locked@cowork.test", "STAFF", branch.id, account_status="Locked")
    resp = client.post("/api/v1/staff/time-tracking/checkin", json={}, headers=auth(locked))
    assert resp.status_code == 403


def test_staff_cannot_read_others_entries(client, staff, manager):
    resp = client.get(f"/api/v1/staff/time-tracking/entries/{manager.id}", headers=auth(staff))
    assert resp.status_code == 403
    assert client.post("/api/v1/staff/time-tracking/checkin", json={}, headers=auth(manager)).status_code == 403
