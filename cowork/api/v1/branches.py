"""
Branch API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from cowork.core.database import get_db
from cowork.core.exceptions import NotFoundError
from cowork.core.security import get_current_user, RoleChecker
from cowork.schemas import BranchCreate, BranchResponse
from cowork.services.branch_service import BranchService
from cowork.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/branches", tags=["Branches"])


@router.get("", response_model=List[BranchResponse])
async def list_branches(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """List active branches"""
    return BranchService(db).get_all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_branch(
    branch_data: BranchCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(["ADMIN"]))
):
    """Create a branch together with its default chart of accounts"""
    branch = BranchService(db).create(branch_data)
    AuditService(db).log(
        action=AuditAction.BRANCH_CREATED,
        resource_type="Branch",
        resource_id=branch.id,
        description=f"Branch '{branch.name}' created",
        user_id=current_user.id,
        branch_id=branch.id,
    )
    db.commit()
    db.refresh(branch)
    return {"success": True, "data": BranchResponse.model_validate(branch)}


@router.get("/{branch_id}", response_model=BranchResponse)
async def get_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Get branch by ID"""
    branch = BranchService(db).get_by_id(branch_id)
    if not branch:
        raise NotFoundError("Branch not found")
    return branch
