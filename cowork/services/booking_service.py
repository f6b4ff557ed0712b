"""
Booking Service - meeting rooms, bookings and the per-customer booking quotas
"""
from typing import Optional, List, Dict
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, date, time
import calendar
import logging

from cowork.models import MeetingRoom, Booking, Customer, Branch, BookingStatus
from cowork.schemas import MeetingRoomCreate, BookingCreate
from cowork.core.config import settings
from cowork.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, QuotaExceededError, ValidationError
)
from cowork.services.crm_service import CustomerService
from cowork.services.notification_service import NotificationService
from cowork.services.audit_service import AuditService, AuditAction

logger = logging.getLogger(__name__)

# Bookings that consume quota and occupy their slot
ACTIVE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


def parse_hhmm(value: str) -> int:
    """'09:30' -> 570 minutes after midnight"""
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def booking_duration(start_time: str, end_time: str) -> int:
    """Same-day duration in minutes"""
    duration = parse_hhmm(end_time) - parse_hhmm(start_time)
    if duration <= 0:
        raise ValidationError("End time must be after start time")
    return duration


def slots_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open intervals: back-to-back slots do not overlap"""
    return parse_hhmm(start_a) < parse_hhmm(end_b) and parse_hhmm(start_b) < parse_hhmm(end_a)


def slot_datetime(booking_date: date, hhmm: str) -> datetime:
    minutes = parse_hhmm(hhmm)
    return datetime.combine(booking_date, time(minutes // 60, minutes % 60))


def month_bounds(moment: datetime):
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    return date(moment.year, moment.month, 1), date(moment.year, moment.month, last_day)


def _hours(minutes: int) -> str:
    return f"{minutes / 60:g}"


class MeetingRoomService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, room_id: int, lock: bool = False) -> Optional[MeetingRoom]:
        query = self.db.query(MeetingRoom).filter(MeetingRoom.id == room_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get_all(self, branch_id: int = None, include_inactive: bool = False) -> List[MeetingRoom]:
        query = self.db.query(MeetingRoom)
        if branch_id:
            query = query.filter(MeetingRoom.branch_id == branch_id)
        if not include_inactive:
            query = query.filter(MeetingRoom.is_active == True)
        return query.order_by(MeetingRoom.name, MeetingRoom.id).all()

    def create(self, room_data: MeetingRoomCreate) -> MeetingRoom:
        if not self.db.query(Branch).filter(Branch.id == room_data.branch_id).first():
            raise NotFoundError("Branch not found")
        room = MeetingRoom(**room_data.model_dump())
        self.db.add(room)
        self.db.flush()
        return room

    def get_booked_slots(self, room_id: int, booking_date: date) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.booking_date == booking_date,
            Booking.status == BookingStatus.CONFIRMED.value
        ).order_by(Booking.start_time).all()

    def get_availability(self, booking_date: date, branch_id: int = None) -> List[Dict]:
        """Bookable rooms with the slots already taken on a date"""
        rooms = [room for room in self.get_all(branch_id) if room.is_bookable]
        return [
            {
                "room": room,
                "booked_slots": [
                    {"booking_id": b.id, "start_time": b.start_time, "end_time": b.end_time}
                    for b in self.get_booked_slots(room.id, booking_date)
                ],
            }
            for room in rooms
        ]


class BookingService:
    """
    Admits bookings against the daily and monthly quotas.

    `now` is passed in so the past-slot rule and the monthly window follow
    whatever clock the caller uses.
    """

    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_daily_minutes(self, customer_id: int, booking_date: date) -> int:
        return self.db.query(func.coalesce(func.sum(Booking.duration), 0)).filter(
            Booking.customer_id == customer_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_STATUSES)
        ).scalar()

    def get_monthly_minutes(self, customer_id: int) -> int:
        first_day, last_day = month_bounds(self.now)
        return self.db.query(func.coalesce(func.sum(Booking.duration), 0)).filter(
            Booking.customer_id == customer_id,
            Booking.booking_date >= first_day,
            Booking.booking_date <= last_day,
            Booking.status.in_(ACTIVE_STATUSES)
        ).scalar()

    def get_monthly_limit_hours(self, customer: Customer) -> int:
        if customer.package and customer.package.monthly_hours_limit:
            return customer.package.monthly_hours_limit
        return settings.DEFAULT_MONTHLY_BOOKING_HOURS

    def get_limits(self, customer_id: int) -> Dict:
        customer = CustomerService(self.db).get_by_id(customer_id)
        if not customer:
            raise NotFoundError("Customer not found")

        max_per_day = settings.DEFAULT_MAX_BOOKINGS_PER_DAY
        if customer.package and customer.package.max_bookings_per_day:
            max_per_day = customer.package.max_bookings_per_day

        return {
            "customer_id": customer.id,
            "daily_minutes": self.get_daily_minutes(customer.id, self.now.date()),
            "monthly_minutes": self.get_monthly_minutes(customer.id),
            "daily_limit_minutes": settings.DAILY_BOOKING_LIMIT_MINUTES,
            "monthly_limit_hours": self.get_monthly_limit_hours(customer),
            "max_bookings_per_day": max_per_day,
        }

    def check_quota(self, customer: Customer, booking_date: date, duration: int):
        daily_limit = settings.DAILY_BOOKING_LIMIT_MINUTES
        daily_minutes = self.get_daily_minutes(customer.id, booking_date)
        if daily_minutes + duration > daily_limit:
            logger.warning(f"Daily quota hit for customer {customer.id}: {daily_minutes}+{duration} > {daily_limit}")
            raise QuotaExceededError(
                f"Daily booking limit exceeded. Maximum {_hours(daily_limit)} hours per day."
            )

        monthly_limit_hours = self.get_monthly_limit_hours(customer)
        monthly_minutes = self.get_monthly_minutes(customer.id)
        if monthly_minutes + duration > monthly_limit_hours * 60:
            logger.warning(f"Monthly quota hit for customer {customer.id}: {monthly_minutes}+{duration} "
                           f"> {monthly_limit_hours}h")
            raise QuotaExceededError(
                f"Monthly booking limit exceeded. Limit: {monthly_limit_hours} hours per month."
            )

    def create(self, data: BookingCreate, customer_id: int, user_id: int = None) -> Booking:
        """
        Admit a booking.

        The customer and room rows are locked before the quota and overlap
        checks, so two requests for either one are decided one after the other.
        """
        duration = booking_duration(data.start_time, data.end_time)

        if slot_datetime(data.date, data.start_time) <= self.now:
            raise ValidationError("Cannot book a time slot that has already passed")

        customer = CustomerService(self.db).get_by_id(customer_id, lock=True)
        if not customer:
            raise NotFoundError("Customer not found")
        if customer.is_locked:
            raise AuthorizationError("Your account is locked. Cannot book meeting rooms.")

        room = MeetingRoomService(self.db).get_by_id(data.room_id, lock=True)
        if not room or not room.is_active:
            raise NotFoundError("Meeting room not found")
        if not room.is_bookable:
            raise ValidationError("Meeting room is not available for booking")

        self.check_quota(customer, data.date, duration)

        taken = MeetingRoomService(self.db).get_booked_slots(room.id, data.date)
        if any(slots_overlap(data.start_time, data.end_time, b.start_time, b.end_time) for b in taken):
            raise ConflictError("Time slot is not available")

        booking = Booking(
            customer_id=customer.id,
            room_id=room.id,
            branch_id=room.branch_id,
            booking_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            duration=duration,
            status=BookingStatus.CONFIRMED.value,
            purpose=data.purpose,
        )
        self.db.add(booking)
        self.db.flush()

        NotificationService(self.db).notify(
            customer.id,
            "Booking Confirmed",
            f"{room.name} is booked on {data.date.isoformat()} from {data.start_time} to {data.end_time}.",
            "booking",
        )
        AuditService(self.db).log(
            action=AuditAction.BOOKING_CREATED,
            resource_type="Booking",
            resource_id=booking.id,
            new_values={"room_id": room.id, "date": data.date, "duration": duration},
            user_id=user_id,
            branch_id=room.branch_id,
        )
        return booking

    def cancel(self, booking_id: int, customer_id: int = None, user_id: int = None) -> Booking:
        """customer_id restricts the cancellation to that customer's own bookings"""
        booking = self.get_by_id(booking_id)
        if not booking or (customer_id is not None and booking.customer_id != customer_id):
            raise NotFoundError("Booking not found")
        if booking.status == BookingStatus.CANCELLED.value:
            raise ValidationError("Booking is already cancelled")
        if booking.status == BookingStatus.COMPLETED.value:
            raise ValidationError("Completed bookings cannot be cancelled")

        booking.status = BookingStatus.CANCELLED.value
        self.db.flush()

        AuditService(self.db).log(
            action=AuditAction.BOOKING_CANCELLED,
            resource_type="Booking",
            resource_id=booking.id,
            user_id=user_id,
            branch_id=booking.branch_id,
        )
        return booking

    def get_customer_bookings(self, customer_id: int) -> List[Booking]:
        """A customer's bookings; confirmed ones that have ended are marked completed"""
        bookings = self.db.query(Booking).filter(
            Booking.customer_id == customer_id
        ).order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all()

        for booking in bookings:
            if booking.status == BookingStatus.CONFIRMED.value and \
                    slot_datetime(booking.booking_date, booking.end_time) < self.now:
                booking.status = BookingStatus.COMPLETED.value
        self.db.flush()
        return bookings
