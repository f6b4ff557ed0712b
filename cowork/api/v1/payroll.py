"""
Payroll API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, FINANCE_ROLES, branch_scope
from cowork.schemas import PayrollCreate, PayrollUpdate, PayrollResponse, PayrollStatusEnum
from cowork.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll", tags=["Payroll"])

finance_only = RoleChecker(FINANCE_ROLES)


@router.get("")
async def list_payroll(
    branch_id: int = None,
    employee_id: int = None,
    pay_period: str = None,
    status: PayrollStatusEnum = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """List payroll records"""
    query = PayrollService(db).list_query(
        branch_id=branch_scope(current_user, branch_id),
        employee_id=employee_id,
        pay_period=pay_period,
        status=status.value if status else None,
    )
    rows, meta = paginate(query, page)
    return {"data": [PayrollResponse.model_validate(p) for p in rows], "pagination": meta}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payroll(
    payroll_data: PayrollCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Create a payroll record; net pay is computed from salary, overtime, bonus and deductions"""
    service = PayrollService(db)
    payroll = service.create(payroll_data, current_user.id)
    db.commit()
    return {"success": True, "data": PayrollResponse.model_validate(service.get_by_id(payroll.id))}


@router.get("/{payroll_id}", response_model=PayrollResponse)
async def get_payroll(
    payroll_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Get payroll record by ID"""
    payroll = PayrollService(db).get_by_id(payroll_id)
    if not payroll:
        raise NotFoundError("Payroll record not found")
    return payroll


@router.put("/{payroll_id}")
async def update_payroll(
    payroll_id: int,
    payroll_data: PayrollUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Update a payroll record; marking it PAID posts the salary expense"""
    service = PayrollService(db, now)
    payroll = service.update(payroll_id, payroll_data, current_user.id)
    db.commit()
    return {"success": True, "data": PayrollResponse.model_validate(service.get_by_id(payroll.id))}


@router.delete("/{payroll_id}")
async def delete_payroll(
    payroll_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Delete an unpaid payroll record"""
    PayrollService(db).delete(payroll_id)
    db.commit()
    return {"success": True, "message": "Payroll record deleted"}
