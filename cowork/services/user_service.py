"""
User Service - Business Logic for User Operations
"""
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session
from cowork.models import User, Branch
from cowork.schemas import UserCreate
from cowork.core.security import get_password_hash, verify_password
from cowork.core.exceptions import ConflictError, NotFoundError


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def list_query(self, role: str = None, branch_id: int = None):
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if branch_id:
            query = query.filter(User.branch_id == branch_id)
        return query.order_by(User.id)

    def create(self, user_data: UserCreate) -> User:
        if self.get_by_email(user_data.email):
            raise ConflictError("A user with this email already exists")

        if user_data.branch_id is not None:
            if not self.db.query(Branch).filter(Branch.id == user_data.branch_id).first():
                raise NotFoundError("Branch not found")

        user = User(
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            phone=user_data.phone,
            role=user_data.role.value,
            branch_id=user_data.branch_id,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        user.last_login = datetime.utcnow()
        return user

    def get_employees(self, branch_id: int = None) -> List[User]:
        """Users that can receive payroll"""
        query = self.db.query(User).filter(User.role != "CUSTOMER")
        if branch_id:
            query = query.filter(User.branch_id == branch_id)
        return query.all()

    def ensure_admin(self, email: str, password: str) -> Optional[User]:
        """Create the bootstrap ADMIN unless a user with that email exists"""
        if self.get_by_email(email):
            return None
        user = User(
            email=email.lower(),
            hashed_password=get_password_hash(password),
            full_name="Administrator",
            role="ADMIN",
        )
        self.db.add(user)
        self.db.flush()
        return user
