"""
Task Service - staff tasks and their comments
"""
from typing import Optional, Dict
from sqlalchemy.orm import Session, joinedload
from datetime import datetime

from cowork.models import Task, TaskComment, User, Branch, TaskStatus
from cowork.schemas import TaskCreate, TaskUpdate
from cowork.core.exceptions import AuthorizationError, NotFoundError

MANAGING_ROLES = ("ADMIN", "MANAGER", "TEAM_LEAD")
CLOSED_STATUSES = (TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value)


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, task_id: int) -> Optional[Task]:
        return self.db.query(Task).options(
            joinedload(Task.comments)
        ).filter(Task.id == task_id).first()

    def list_query(self, branch_id: int = None, assigned_to: int = None, status: str = None,
                   priority: str = None, department: str = None):
        query = self.db.query(Task)
        if branch_id:
            query = query.filter(Task.branch_id == branch_id)
        if assigned_to:
            query = query.filter(Task.assigned_to == assigned_to)
        if status:
            query = query.filter(Task.status == status)
        if priority:
            query = query.filter(Task.priority == priority)
        if department:
            query = query.filter(Task.department == department)
        return query.order_by(Task.created_at.desc(), Task.id.desc())

    def _check_assignee(self, user_id: Optional[int]):
        if user_id is not None and not self.db.query(User).filter(User.id == user_id).first():
            raise NotFoundError("Assignee not found")

    def create(self, data: TaskCreate, creator: User) -> Task:
        if not self.db.query(Branch).filter(Branch.id == data.branch_id).first():
            raise NotFoundError("Branch not found")
        self._check_assignee(data.assigned_to)

        task = Task(
            title=data.title,
            description=data.description,
            department=data.department,
            priority=data.priority.value,
            status=TaskStatus.ASSIGNED.value if data.assigned_to else TaskStatus.OPEN.value,
            assigned_to=data.assigned_to,
            created_by=creator.id,
            branch_id=data.branch_id,
            due_date=data.due_date,
        )
        self.db.add(task)
        self.db.flush()
        return task

    def update(self, task_id: int, data: TaskUpdate, user: User) -> Task:
        task = self.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")

        is_manager = user.role in MANAGING_ROLES
        if not is_manager and task.assigned_to != user.id:
            raise AuthorizationError("Only the assignee or a manager can update this task")

        update_data = data.model_dump(exclude_unset=True)
        if not is_manager:
            # assignees may only move the status along
            update_data = {k: v for k, v in update_data.items() if k == "status"}

        if "assigned_to" in update_data:
            self._check_assignee(update_data["assigned_to"])
            task.assigned_to = update_data.pop("assigned_to")
            if task.assigned_to and task.status == TaskStatus.OPEN.value:
                task.status = TaskStatus.ASSIGNED.value

        new_status = update_data.pop("status", None)
        if new_status is not None:
            task.status = new_status.value
            task.completed_at = datetime.utcnow() if task.status == TaskStatus.COMPLETED.value else None

        if update_data.get("priority") is not None:
            task.priority = update_data.pop("priority").value
        for key, value in update_data.items():
            if key != "priority":
                setattr(task, key, value)

        self.db.flush()
        return task

    def add_comment(self, task_id: int, user: User, comment: str) -> TaskComment:
        task = self.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        if user.role not in MANAGING_ROLES and task.assigned_to != user.id:
            raise AuthorizationError("Only the assignee or a manager can comment on this task")

        task_comment = TaskComment(task_id=task.id, user_id=user.id, comment=comment)
        self.db.add(task_comment)
        self.db.flush()
        return task_comment

    def get_stats(self, now: datetime, branch_id: int = None) -> Dict:
        query = self.db.query(Task)
        if branch_id:
            query = query.filter(Task.branch_id == branch_id)
        tasks = query.all()

        completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED.value)
        overdue = sum(
            1 for t in tasks
            if t.status == TaskStatus.OVERDUE.value
            or (t.status not in CLOSED_STATUSES and t.due_date is not None and t.due_date < now)
        )
        pending = sum(1 for t in tasks if t.status not in CLOSED_STATUSES)
        return {
            "total": len(tasks),
            "completed": completed,
            "pending": pending,
            "overdue": overdue,
        }
