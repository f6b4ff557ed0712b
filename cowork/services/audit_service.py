"""
Audit Logging Service
Audit trail for financial, HR and booking operations
"""
from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import Optional, List, Dict
import json
import logging

from cowork.models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    """Constants for audit actions"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Financial
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_MADE = "PAYMENT_MADE"
    LEDGER_POSTED = "LEDGER_POSTED"

    # HR
    PAYROLL_CREATED = "PAYROLL_CREATED"
    PAYROLL_PAID = "PAYROLL_PAID"

    # Meeting rooms
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"

    USER_CREATED = "USER_CREATED"
    BRANCH_CREATED = "BRANCH_CREATED"


class AuditService:
    """Service for recording and retrieving audit logs"""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: str,
        resource_type: str,
        resource_id: Optional[int] = None,
        description: Optional[str] = None,
        new_values: Optional[Dict] = None,
        user_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        status: str = "success",
    ) -> AuditLog:
        """
        Add an audit entry to the current transaction.

        The entry commits or rolls back together with the operation it describes.
        """
        audit_log = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            # round-trip through json so Decimal/date values are storable
            new_values=json.loads(json.dumps(new_values, default=str)) if new_values else None,
            user_id=user_id,
            branch_id=branch_id,
            status=status,
        )
        self.db.add(audit_log)
        logger.info(f"AUDIT: {action} on {resource_type}:{resource_id} by user {user_id}")
        return audit_log

    def get_logs(
        self,
        resource_type: Optional[str] = None,
        resource_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        query = self.db.query(AuditLog)
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)
        if resource_id is not None:
            query = query.filter(AuditLog.resource_id == resource_id)
        return query.order_by(desc(AuditLog.created_at), desc(AuditLog.id)).limit(limit).all()
