"""
CRM API Routes - Customers and Vendors
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from cowork.core.database import get_db
from cowork.core.exceptions import NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, STAFF_ROLES, FINANCE_ROLES, branch_scope
from cowork.schemas import (
    CustomerCreate, CustomerUpdate, CustomerResponse, VendorCreate, VendorResponse, AccountStatusEnum
)
from cowork.services.crm_service import CustomerService, VendorService

router = APIRouter(tags=["CRM"])


# ==================== CUSTOMERS ====================

@router.get("/customers")
async def list_customers(
    branch_id: int = None,
    status: AccountStatusEnum = None,
    search: str = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(STAFF_ROLES))
):
    """List customers of the caller's branch"""
    query = CustomerService(db).list_query(
        branch_scope(current_user, branch_id),
        status.value if status else None,
        search
    )
    rows, meta = paginate(query, page)
    return {"data": [CustomerResponse.model_validate(c) for c in rows], "pagination": meta}


@router.post("/customers", status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Create a new customer"""
    customer = CustomerService(db).create(customer_data)
    db.commit()
    db.refresh(customer)
    return {"success": True, "data": CustomerResponse.model_validate(customer)}


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(STAFF_ROLES))
):
    """Get customer by ID"""
    customer = CustomerService(db).get_by_id(customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


@router.put("/customers/{customer_id}")
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Update a customer, including locking or suspending the account"""
    customer = CustomerService(db).update(customer_id, customer_data)
    db.commit()
    db.refresh(customer)
    return {"success": True, "data": CustomerResponse.model_validate(customer)}


# ==================== VENDORS ====================

@router.get("/vendors", response_model=List[VendorResponse])
async def list_vendors(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """List vendors"""
    return VendorService(db).get_by_branch(branch_scope(current_user, branch_id))


@router.post("/vendors", status_code=status.HTTP_201_CREATED)
async def create_vendor(
    vendor_data: VendorCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Create a new vendor"""
    vendor = VendorService(db).create(vendor_data)
    db.commit()
    db.refresh(vendor)
    return {"success": True, "data": VendorResponse.model_validate(vendor)}
