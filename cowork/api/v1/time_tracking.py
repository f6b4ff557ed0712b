"""
Staff Time Tracking API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import date, datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, STAFF_ROLES
from cowork.schemas import CheckInRequest, TimeEntryResponse
from cowork.services.time_tracking_service import TimeTrackingService

router = APIRouter(prefix="/staff/time-tracking", tags=["Time Tracking"])

clocking_roles = RoleChecker(["STAFF", "TEAM_LEAD"])


@router.post("/checkin", status_code=status.HTTP_201_CREATED)
async def check_in(
    checkin_data: CheckInRequest = None,
    db: Session = Depends(get_db),
    current_user=Depends(clocking_roles),
    now: datetime = Depends(get_now)
):
    """Start a shift"""
    notes = checkin_data.notes if checkin_data else None
    entry = TimeTrackingService(db, now).check_in(current_user, notes)
    db.commit()
    db.refresh(entry)
    return {"success": True, "message": "Checked in", "data": TimeEntryResponse.model_validate(entry)}


@router.post("/checkout")
async def check_out(
    db: Session = Depends(get_db),
    current_user=Depends(clocking_roles),
    now: datetime = Depends(get_now)
):
    """End the open shift"""
    entry = TimeTrackingService(db, now).check_out(current_user)
    db.commit()
    db.refresh(entry)
    return {"success": True, "message": "Checked out", "data": TimeEntryResponse.model_validate(entry)}


@router.get("/entries/{staff_id}")
async def list_time_entries(
    staff_id: int,
    start_date: date = None,
    end_date: date = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(STAFF_ROLES))
):
    """Time entries of a staff member; managers may look at anyone"""
    if staff_id != current_user.id and current_user.role not in ("MANAGER", "ADMIN"):
        raise AuthorizationError("You can only view your own time entries")

    service = TimeTrackingService(db)
    rows, meta = paginate(service.list_query(staff_id, start_date, end_date), page)
    return {
        "data": [TimeEntryResponse.model_validate(e) for e in rows],
        "pagination": meta,
        "totals": service.get_totals(staff_id, start_date, end_date),
    }
