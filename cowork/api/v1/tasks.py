"""
Task API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError, NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, STAFF_ROLES, branch_scope
from cowork.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, TaskCommentCreate, TaskCommentResponse,
    TaskStatusEnum, TaskPriorityEnum
)
from cowork.services.task_service import TaskService, MANAGING_ROLES

router = APIRouter(prefix="/tasks", tags=["Tasks"])

staff_only = RoleChecker(STAFF_ROLES)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(list(MANAGING_ROLES)))
):
    """Create a task, optionally assigned to a staff member"""
    service = TaskService(db)
    task = service.create(task_data, current_user)
    db.commit()
    return {"success": True, "data": TaskResponse.model_validate(service.get_by_id(task.id))}


@router.get("")
async def list_tasks(
    status: TaskStatusEnum = None,
    priority: TaskPriorityEnum = None,
    department: str = None,
    assigned_to: int = None,
    branch_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """List tasks; plain staff only see the ones assigned to them"""
    if current_user.role not in MANAGING_ROLES:
        assigned_to = current_user.id
    query = TaskService(db).list_query(
        branch_id=branch_scope(current_user, branch_id),
        assigned_to=assigned_to,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        department=department,
    )
    rows, meta = paginate(query, page)
    return {"data": [TaskResponse.model_validate(t) for t in rows], "pagination": meta}


@router.get("/stats")
async def get_task_stats(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only),
    now: datetime = Depends(get_now)
):
    """Total, completed, pending and overdue task counts"""
    return TaskService(db).get_stats(now, branch_scope(current_user, branch_id))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Get task by ID"""
    task = TaskService(db).get_by_id(task_id)
    if not task:
        raise NotFoundError("Task not found")
    if current_user.role not in MANAGING_ROLES and task.assigned_to != current_user.id:
        raise AuthorizationError("You can only view tasks assigned to you")
    return task


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Update a task; assignees may only change its status"""
    service = TaskService(db)
    task = service.update(task_id, task_data, current_user)
    db.commit()
    return {"success": True, "data": TaskResponse.model_validate(service.get_by_id(task.id))}


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_task_comment(
    task_id: int,
    comment_data: TaskCommentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Comment on a task"""
    comment = TaskService(db).add_comment(task_id, current_user, comment_data.comment)
    db.commit()
    db.refresh(comment)
    return {"success": True, "data": TaskCommentResponse.model_validate(comment)}
