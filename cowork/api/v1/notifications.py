"""
Notification API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cowork.core.database import get_db
from cowork.core.exceptions import ValidationError
from cowork.core.security import get_current_customer
from cowork.schemas import NotificationResponse, NotificationMarkRead
from cowork.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    customer=Depends(get_current_customer)
):
    """Latest 50 notifications and the unread count"""
    service = NotificationService(db)
    notifications = service.list_query(customer.id, unread_only).limit(50).all()
    return {
        "data": [NotificationResponse.model_validate(n) for n in notifications],
        "unread_count": service.unread_count(customer.id),
    }


@router.put("")
async def mark_notifications_read(
    mark_data: NotificationMarkRead,
    db: Session = Depends(get_db),
    customer=Depends(get_current_customer)
):
    """Mark one notification, or all of them, as read"""
    if not mark_data.mark_all and mark_data.notification_id is None:
        raise ValidationError("Provide notification_id or set mark_all")

    service = NotificationService(db)
    updated = service.mark_read(customer.id, mark_data.notification_id, mark_data.mark_all)
    db.commit()
    return {"success": True, "updated": updated, "unread_count": service.unread_count(customer.id)}
