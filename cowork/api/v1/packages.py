"""
Package API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from cowork.core.database import get_db
from cowork.core.security import get_current_user, RoleChecker, FINANCE_ROLES
from cowork.schemas import PackageCreate, PackageResponse, PackageAssign, CustomerResponse
from cowork.services.package_service import PackageService

router = APIRouter(prefix="/packages", tags=["Packages"])


@router.get("", response_model=List[PackageResponse])
async def list_packages(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """List active packages"""
    return PackageService(db).get_all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_package(
    package_data: PackageCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Create a membership package"""
    package = PackageService(db).create(package_data)
    db.commit()
    db.refresh(package)
    return {"success": True, "data": PackageResponse.model_validate(package)}


@router.post("/assign/{customer_id}")
async def assign_package(
    customer_id: int,
    assign_data: PackageAssign,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Assign a package to a customer, or clear it with a null package_id"""
    customer = PackageService(db).assign(customer_id, assign_data.package_id)
    db.commit()
    db.refresh(customer)
    return {"success": True, "data": CustomerResponse.model_validate(customer)}
