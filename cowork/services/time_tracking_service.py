"""
Time Tracking Service - staff check-in / check-out
"""
from typing import Optional, Dict
from sqlalchemy.orm import Session
from datetime import datetime, date

from cowork.models import StaffTimeEntry, User, AccountStatus, TimeEntryStatus
from cowork.core.exceptions import AuthorizationError, ValidationError


class TimeTrackingService:
    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_open_entry(self, staff_id: int) -> Optional[StaffTimeEntry]:
        return self.db.query(StaffTimeEntry).filter(
            StaffTimeEntry.staff_id == staff_id,
            StaffTimeEntry.check_out_time.is_(None)
        ).first()

    def check_in(self, staff: User, notes: str = None) -> StaffTimeEntry:
        if staff.account_status in (AccountStatus.LOCKED.value, AccountStatus.SUSPENDED.value):
            raise AuthorizationError(f"Your account is {staff.account_status.lower()}. Cannot check in.")
        if self.get_open_entry(staff.id):
            raise ValidationError("You are already checked in")

        entry = StaffTimeEntry(
            staff_id=staff.id,
            branch_id=staff.branch_id,
            entry_date=self.now.date(),
            check_in_time=self.now,
            status=TimeEntryStatus.CHECKED_IN.value,
            notes=notes,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def check_out(self, staff: User) -> StaffTimeEntry:
        entry = self.get_open_entry(staff.id)
        if not entry:
            raise ValidationError("You are not currently checked in")

        entry.check_out_time = self.now
        entry.duration = int((self.now - entry.check_in_time).total_seconds() // 60)
        entry.status = TimeEntryStatus.CHECKED_OUT.value
        self.db.flush()
        return entry

    def list_query(self, staff_id: int, start_date: date = None, end_date: date = None):
        query = self.db.query(StaffTimeEntry).filter(StaffTimeEntry.staff_id == staff_id)
        if start_date:
            query = query.filter(StaffTimeEntry.entry_date >= start_date)
        if end_date:
            query = query.filter(StaffTimeEntry.entry_date <= end_date)
        return query.order_by(StaffTimeEntry.check_in_time.desc(), StaffTimeEntry.id.desc())

    def get_totals(self, staff_id: int, start_date: date = None, end_date: date = None) -> Dict:
        entries = self.list_query(staff_id, start_date, end_date).all()
        total_minutes = sum(e.duration or 0 for e in entries)
        return {
            "total_entries": len(entries),
            "total_minutes": total_minutes,
            "total_hours": round(total_minutes / 60, 2),
            "checked_in": any(e.check_out_time is None for e in entries),
        }
