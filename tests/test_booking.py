from datetime import date, datetime

import pytest

from cowork.core.exceptions import ValidationError
from cowork.models import Booking, Customer
from cowork.services.booking_service import (
    booking_duration, month_bounds, parse_hhmm, slots_overlap
)

from conftest import auth, make_user


def _book(client, user, room, day, start, end, **extra):
    payload = {
        "room_id": room.id,
        "date": day,
        "start_time": start,
        "end_time": end,
        "purpose": "Team sync",
    }
    payload.update(extra)
    return client.post("/api/v1/meeting-rooms/book", json=payload, headers=auth(user))


@pytest.fixture
def second_member(db, branch):
    user = make_user(db, "second@cowork.test", "CUSTOMER", branch.id)
    customer = Customer(name="Second", email=user.email, branch_id=branch.id, user_id=user.id)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return user, customer


def test_parse_and_duration():
    assert parse_hhmm("09:30") == 570
    assert booking_duration("10:00", "11:30") == 90
    with pytest.raises(ValidationError):
        booking_duration("11:00", "11:00")
    with pytest.raises(ValidationError):
        parse_hhmm("25:00")


def test_slots_overlap_is_half_open():
    assert slots_overlap("10:00", "11:00", "10:30", "11:30")
    assert slots_overlap("10:00", "12:00", "10:30", "11:00")
    assert not slots_overlap("10:00", "11:00", "11:00", "12:00")
    assert not slots_overlap("13:00", "14:00", "10:00", "11:00")


def test_month_bounds():
    assert month_bounds(datetime(2030, 2, 14)) == (date(2030, 2, 1), date(2030, 2, 28))


def test_customer_books_room(client, customer_user, customer, room):
    resp = _book(client, customer_user, room, "2030-03-11", "10:00", "11:30")
    assert resp.status_code == 201, resp.text
    booking = resp.json()["data"]
    assert booking["duration"] == 90
    assert booking["status"] == "Confirmed"
    assert booking["customer_id"] == customer.id

    inbox = client.get("/api/v1/notifications", headers=auth(customer_user)).json()
    assert inbox["unread_count"] == 1
    assert inbox["data"][0]["title"] == "Booking Confirmed"


def test_daily_limit(client, customer_user, customer, room):
    assert _book(client, customer_user, room, "2030-03-11", "10:00", "11:30").status_code == 201

    resp = _book(client, customer_user, room, "2030-03-11", "14:00", "14:40")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Daily booking limit exceeded. Maximum 2 hours per day."

    # exactly filling the day is fine
    assert _book(client, customer_user, room, "2030-03-11", "14:00", "14:30").status_code == 201


def test_past_slot_is_rejected(client, customer_user, customer, room):
    resp = _book(client, customer_user, room, "2030-03-10", "08:00", "08:30")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot book a time slot that has already passed"


def test_end_before_start_is_rejected(client, customer_user, customer, room):
    resp = _book(client, customer_user, room, "2030-03-11", "11:00", "10:00")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "End time must be after start time"


def test_malformed_time_is_rejected(client, customer_user, customer, room):
    resp = _book(client, customer_user, room, "2030-03-11", "9am", "10:00")
    assert resp.status_code == 400


def test_locked_customer_cannot_book(client, db, customer_user, customer, room):
    customer.account_status = "Locked"
    db.commit()

    resp = _book(client, customer_user, room, "2030-03-11", "10:00", "11:00")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Your account is locked. Cannot book meeting rooms."


def test_overlapping_slot_conflicts(client, customer_user, customer, second_member, room):
    other_user, _ = second_member
    assert _book(client, customer_user, room, "2030-03-11", "10:00", "11:00").status_code == 201

    resp = _book(client, other_user, room, "2030-03-11", "10:30", "11:30")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Time slot is not available"

    assert _book(client, other_user, room, "2030-03-11", "11:00", "12:00").status_code == 201


def test_monthly_limit_from_package(client, db, customer_user, customer, package, room):
    customer.package_id = package.id
    db.commit()

    assert _book(client, customer_user, room, "2030-03-11", "10:00", "12:00").status_code == 201
    assert _book(client, customer_user, room, "2030-03-12", "10:00", "11:00").status_code == 201

    resp = _book(client, customer_user, room, "2030-03-13", "10:00", "10:30")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Monthly booking limit exceeded. Limit: 3 hours per month."


def test_bookings_next_month_do_not_count(client, db, customer_user, customer, package, room):
    customer.package_id = package.id
    db.commit()

    assert _book(client, customer_user, room, "2030-04-02", "10:00", "12:00").status_code == 201
    assert _book(client, customer_user, room, "2030-03-11", "10:00", "12:00").status_code == 201


def test_cancel_frees_quota(client, customer_user, customer, room):
    booking = _book(client, customer_user, room, "2030-03-11", "10:00", "12:00").json()["data"]
    assert _book(client, customer_user, room, "2030-03-11", "13:00", "13:30").status_code == 400

    resp = client.delete(
        f"/api/v1/meeting-rooms/customer-bookings/booking/{booking['id']}",
        headers=auth(customer_user),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "Cancelled"

    assert _book(client, customer_user, room, "2030-03-11", "10:00", "12:00").status_code == 201


def test_cannot_cancel_someone_elses_booking(client, customer_user, customer, second_member, room):
    other_user, _ = second_member
    booking = _book(client, customer_user, room, "2030-03-11", "10:00", "11:00").json()["data"]

    resp = client.delete(
        f"/api/v1/meeting-rooms/customer-bookings/booking/{booking['id']}",
        headers=auth(other_user),
    )
    assert resp.status_code == 404


def test_limits_report(client, customer_user, customer, room):
    _book(client, customer_user, room, "2030-03-11", "10:00", "11:00")

    resp = client.get(f"/api/v1/meeting-rooms/limits/{customer.id}", headers=auth(customer_user))
    limits = resp.json()
    assert limits["monthly_minutes"] == 60
    assert limits["daily_minutes"] == 0
    assert limits["daily_limit_minutes"] == 120
    assert limits["monthly_limit_hours"] == 20


def test_customer_cannot_view_other_customers_bookings(client, customer_user, customer, second_member):
    _, other = second_member
    resp = client.get(f"/api/v1/meeting-rooms/customer-bookings/{other.id}", headers=auth(customer_user))
    assert resp.status_code == 403


def test_past_bookings_are_completed_on_read(client, db, customer_user, customer, room):
    db.add(Booking(
        customer_id=customer.id, room_id=room.id, branch_id=room.branch_id,
        booking_date=date(2030, 3, 9), start_time="10:00", end_time="11:00",
        duration=60, status="Confirmed", purpose="Earlier",
    ))
    db.commit()

    resp = client.get(f"/api/v1/meeting-rooms/customer-bookings/{customer.id}", headers=auth(customer_user))
    assert [b["status"] for b in resp.json()] == ["Completed"]


def test_staff_books_on_behalf_of_customer(client, manager, customer, room):
    resp = _book(client, manager, room, "2030-03-11", "10:00", "11:00")
    assert resp.status_code == 400

    resp = _book(client, manager, room, "2030-03-11", "10:00", "11:00", customer_id=customer.id)
    assert resp.status_code == 201
    assert resp.json()["data"]["customer_id"] == customer.id


def test_availability_lists_taken_slots(client, customer_user, customer, room):
    _book(client, customer_user, room, "2030-03-11", "10:00", "11:00")

    resp = client.get(
        "/api/v1/meeting-rooms/available",
        params={"date": "2030-03-11"},
        headers=auth(customer_user),
    )
    rooms = resp.json()
    assert rooms[0]["id"] == room.id
    assert [(s["start_time"], s["end_time"]) for s in rooms[0]["booked_slots"]] == [("10:00", "11:00")]

    resp = client.get(
        "/api/v1/meeting-rooms/available",
        params={"date": "2030-03-12"},
        headers=auth(customer_user),
    )
    assert resp.json()[0]["booked_slots"] == []
