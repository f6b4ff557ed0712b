"""
Notification Service - per-customer inbox
"""
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, update

from cowork.models import Notification
from cowork.core.exceptions import NotFoundError


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    def notify(self, customer_id: int, title: str, message: str, type_: str = "info") -> Notification:
        notification = Notification(customer_id=customer_id, title=title, message=message, type=type_)
        self.db.add(notification)
        return notification

    def list_query(self, customer_id: int, unread_only: bool = False):
        query = self.db.query(Notification).filter(Notification.customer_id == customer_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc())

    def unread_count(self, customer_id: int) -> int:
        return self.db.query(func.count(Notification.id)).filter(
            Notification.customer_id == customer_id,
            Notification.is_read == False
        ).scalar()

    def mark_read(self, customer_id: int, notification_id: Optional[int] = None, mark_all: bool = False) -> int:
        """Returns how many notifications changed"""
        if mark_all:
            result = self.db.execute(
                update(Notification)
                .where(Notification.customer_id == customer_id, Notification.is_read == False)
                .values(is_read=True)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount

        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.customer_id == customer_id
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")
        changed = 0 if notification.is_read else 1
        notification.is_read = True
        self.db.flush()
        return changed
