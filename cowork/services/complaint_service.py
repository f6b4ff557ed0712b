"""
Complaint Service
"""
from typing import Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime

from cowork.models import Complaint, Customer, ComplaintStatus
from cowork.schemas import ComplaintCreate, ComplaintStatusUpdate, ComplaintFeedback
from cowork.core.exceptions import NotFoundError, ValidationError
from cowork.services.notification_service import NotificationService


class ComplaintService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, complaint_id: int) -> Optional[Complaint]:
        return self.db.query(Complaint).filter(Complaint.id == complaint_id).first()

    def list_query(self, customer_id: int = None, branch_id: int = None, status: str = None):
        query = self.db.query(Complaint)
        if customer_id:
            query = query.filter(Complaint.customer_id == customer_id)
        if branch_id:
            query = query.filter(Complaint.branch_id == branch_id)
        if status:
            query = query.filter(Complaint.status == status)
        return query.order_by(Complaint.created_at.desc(), Complaint.id.desc())

    def create(self, customer: Customer, data: ComplaintCreate) -> Complaint:
        complaint = Complaint(
            customer_id=customer.id,
            branch_id=customer.branch_id,
            title=data.title,
            description=data.description,
            image_url=data.image_url,
            status=ComplaintStatus.OPEN.value,
        )
        self.db.add(complaint)
        self.db.flush()
        return complaint

    def update_status(self, complaint_id: int, data: ComplaintStatusUpdate) -> Complaint:
        complaint = self.get_by_id(complaint_id)
        if not complaint:
            raise NotFoundError("Complaint not found")

        new_status = data.status.value
        complaint.status = new_status
        if data.remarks is not None:
            complaint.remarks = data.remarks
        complaint.resolved_at = datetime.utcnow() if new_status == ComplaintStatus.RESOLVED.value else None
        self.db.flush()

        NotificationService(self.db).notify(
            complaint.customer_id,
            "Complaint Updated",
            f"Your complaint '{complaint.title}' is now {new_status}.",
            "complaint",
        )
        return complaint

    def add_feedback(self, complaint_id: int, customer_id: int, data: ComplaintFeedback) -> Complaint:
        complaint = self.get_by_id(complaint_id)
        if not complaint or complaint.customer_id != customer_id:
            raise NotFoundError("Complaint not found")
        if complaint.status != ComplaintStatus.RESOLVED.value:
            raise ValidationError("Feedback can only be given on resolved complaints")

        complaint.rating = data.rating
        complaint.feedback = data.feedback
        self.db.flush()
        return complaint

    def get_stats(self, branch_id: int = None) -> Dict:
        query = self.db.query(Complaint.status, func.count(Complaint.id))
        if branch_id:
            query = query.filter(Complaint.branch_id == branch_id)
        counts = dict(query.group_by(Complaint.status).all())

        resolved_query = self.db.query(Complaint).filter(Complaint.resolved_at.isnot(None))
        if branch_id:
            resolved_query = resolved_query.filter(Complaint.branch_id == branch_id)
        resolved = resolved_query.all()
        average_hours = 0.0
        if resolved:
            total_seconds = sum((c.resolved_at - c.created_at).total_seconds() for c in resolved)
            average_hours = round(total_seconds / len(resolved) / 3600, 2)

        return {
            "total": sum(counts.values()),
            "by_status": {status.value: counts.get(status.value, 0) for status in ComplaintStatus},
            "average_resolution_hours": average_hours,
        }
