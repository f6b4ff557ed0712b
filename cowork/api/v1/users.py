"""
User API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cowork.core.database import get_db
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker
from cowork.schemas import UserCreate, UserResponse, UserRoleEnum
from cowork.services.user_service import UserService
from cowork.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = RoleChecker(["ADMIN"])


@router.get("")
async def list_users(
    role: UserRoleEnum = None,
    branch_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(admin_only)
):
    """List users"""
    query = UserService(db).list_query(role.value if role else None, branch_id)
    rows, meta = paginate(query, page)
    return {"data": [UserResponse.model_validate(u) for u in rows], "pagination": meta}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user=Depends(admin_only)
):
    """Create a login for staff or a customer"""
    user = UserService(db).create(user_data)
    AuditService(db).log(
        action=AuditAction.USER_CREATED,
        resource_type="User",
        resource_id=user.id,
        description=f"User {user.email} created with role {user.role}",
        user_id=current_user.id,
        branch_id=user.branch_id,
    )
    db.commit()
    db.refresh(user)
    return {"success": True, "data": UserResponse.model_validate(user)}
