"""
Complaint API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError, NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import (
    get_current_user, get_current_customer, RoleChecker, STAFF_ROLES, branch_scope
)
from cowork.schemas import (
    ComplaintCreate, ComplaintStatusUpdate, ComplaintFeedback, ComplaintResponse, ComplaintStatusEnum
)
from cowork.services.complaint_service import ComplaintService
from cowork.services.crm_service import CustomerService

router = APIRouter(prefix="/complaints", tags=["Complaints"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_complaint(
    complaint_data: ComplaintCreate,
    db: Session = Depends(get_db),
    customer=Depends(get_current_customer)
):
    """Raise a complaint"""
    complaint = ComplaintService(db).create(customer, complaint_data)
    db.commit()
    db.refresh(complaint)
    return {"success": True, "data": ComplaintResponse.model_validate(complaint)}


@router.get("")
async def list_complaints(
    status: ComplaintStatusEnum = None,
    branch_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Customers see their own complaints, staff see their branch's"""
    customer_id = None
    if current_user.role == "CUSTOMER":
        customer = CustomerService(db).get_for_user(current_user)
        if customer is None:
            raise NotFoundError("Customer profile not found")
        customer_id = customer.id
        branch_id = None
    elif current_user.role in STAFF_ROLES:
        branch_id = branch_scope(current_user, branch_id)
    else:
        raise AuthorizationError("Insufficient permissions")

    query = ComplaintService(db).list_query(customer_id, branch_id, status.value if status else None)
    rows, meta = paginate(query, page)
    return {"data": [ComplaintResponse.model_validate(c) for c in rows], "pagination": meta}


@router.get("/stats")
async def get_complaint_stats(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(STAFF_ROLES))
):
    """Complaint counts per status and the average time to resolve"""
    return ComplaintService(db).get_stats(branch_scope(current_user, branch_id))


@router.put("/{complaint_id}/status")
async def update_complaint_status(
    complaint_id: int,
    status_data: ComplaintStatusUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(STAFF_ROLES))
):
    """Move a complaint along; the customer is notified"""
    complaint = ComplaintService(db).update_status(complaint_id, status_data)
    db.commit()
    db.refresh(complaint)
    return {"success": True, "data": ComplaintResponse.model_validate(complaint)}


@router.post("/{complaint_id}/feedback")
async def add_complaint_feedback(
    complaint_id: int,
    feedback_data: ComplaintFeedback,
    db: Session = Depends(get_db),
    customer=Depends(get_current_customer)
):
    """Rate the handling of a resolved complaint"""
    complaint = ComplaintService(db).add_feedback(complaint_id, customer.id, feedback_data)
    db.commit()
    db.refresh(complaint)
    return {"success": True, "data": ComplaintResponse.model_validate(complaint)}
