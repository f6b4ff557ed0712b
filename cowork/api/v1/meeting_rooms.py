"""
Meeting Room API Routes - rooms, availability and bookings
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from cowork.core.security import get_current_user, RoleChecker, STAFF_ROLES, FINANCE_ROLES, branch_scope
from cowork.schemas import (
    MeetingRoomCreate, MeetingRoomResponse, RoomAvailability,
    BookingCreate, BookingResponse, BookingLimits
)
from cowork.services.booking_service import MeetingRoomService, BookingService
from cowork.services.crm_service import CustomerService

router = APIRouter(prefix="/meeting-rooms", tags=["Meeting Rooms"])


def _own_customer_id(user, db: Session):
    """Customer id behind a CUSTOMER login, None for staff"""
    if user.role != "CUSTOMER":
        return None
    customer = CustomerService(db).get_for_user(user)
    if customer is None:
        raise NotFoundError("Customer profile not found")
    return customer.id


def _check_customer_access(user, customer_id: int, db: Session):
    own_id = _own_customer_id(user, db)
    if own_id is not None and own_id != customer_id:
        raise AuthorizationError("You can only view your own bookings")
    if own_id is None and user.role not in STAFF_ROLES:
        raise AuthorizationError("Insufficient permissions")


@router.get("", response_model=List[MeetingRoomResponse])
async def list_rooms(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """List active meeting rooms"""
    if current_user.role != "CUSTOMER":
        branch_id = branch_scope(current_user, branch_id)
    return MeetingRoomService(db).get_all(branch_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: MeetingRoomCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Create a meeting room"""
    room = MeetingRoomService(db).create(room_data)
    db.commit()
    db.refresh(room)
    return {"success": True, "data": MeetingRoomResponse.model_validate(room)}


@router.get("/available", response_model=List[RoomAvailability])
async def get_available_rooms(
    date: date,
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Bookable rooms with the slots already taken on a date"""
    result = []
    for entry in MeetingRoomService(db).get_availability(date, branch_id):
        room = MeetingRoomResponse.model_validate(entry["room"]).model_dump()
        result.append(RoomAvailability(**room, booked_slots=entry["booked_slots"]))
    return result


@router.post("/book", status_code=status.HTTP_201_CREATED)
async def book_room(
    booking_data: BookingCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    now: datetime = Depends(get_now)
):
    """
    Book a meeting room.

    Customers book for themselves. Finance staff book on a customer's behalf
    and must name the customer.
    """
    customer_id = _own_customer_id(current_user, db)
    if customer_id is None:
        if current_user.role not in FINANCE_ROLES:
            raise AuthorizationError("Insufficient permissions")
        if booking_data.customer_id is None:
            raise ValidationError("customer_id is required when booking on behalf of a customer")
        customer_id = booking_data.customer_id

    booking = BookingService(db, now).create(booking_data, customer_id, current_user.id)
    db.commit()
    db.refresh(booking)
    return {
        "success": True,
        "message": "Meeting room booked successfully",
        "data": BookingResponse.model_validate(booking),
    }


@router.delete("/customer-bookings/booking/{booking_id}")
async def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    now: datetime = Depends(get_now)
):
    """Cancel a booking; its minutes stop counting toward the quotas"""
    customer_id = _own_customer_id(current_user, db)
    if customer_id is None and current_user.role not in FINANCE_ROLES:
        raise AuthorizationError("Insufficient permissions")

    booking = BookingService(db, now).cancel(booking_id, customer_id, current_user.id)
    db.commit()
    db.refresh(booking)
    return {"success": True, "message": "Booking cancelled", "data": BookingResponse.model_validate(booking)}


@router.get("/customer-bookings/{customer_id}", response_model=List[BookingResponse])
async def get_customer_bookings(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    now: datetime = Depends(get_now)
):
    """A customer's bookings, newest first"""
    _check_customer_access(current_user, customer_id, db)
    bookings = BookingService(db, now).get_customer_bookings(customer_id)
    db.commit()
    return bookings


@router.get("/limits/{customer_id}", response_model=BookingLimits)
async def get_booking_limits(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    now: datetime = Depends(get_now)
):
    """Usage against the daily and monthly booking quotas"""
    _check_customer_access(current_user, customer_id, db)
    return BookingService(db, now).get_limits(customer_id)


@router.get("/{room_id}", response_model=MeetingRoomResponse)
async def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Get meeting room by ID"""
    room = MeetingRoomService(db).get_by_id(room_id)
    if not room:
        raise NotFoundError("Meeting room not found")
    return room
