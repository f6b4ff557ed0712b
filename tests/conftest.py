import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cowork.core.clock import get_now
from cowork.core.database import Base, get_db
from cowork.core.security import create_user_token, get_password_hash, pwd_context
from cowork.main import app
from cowork.models import Customer, MeetingRoom, Package, User
from cowork.schemas import BranchCreate
from cowork.services.branch_service import BranchService

# Keep hashing cheap in tests
pwd_context.update(bcrypt__rounds=4)

# Bookings in tests fall later in the same month
FIXED_NOW = datetime(2030, 3, 10, 9, 0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, role, branch_id=None, password="secret123", full_name=None, **extra):
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        role=role,
        branch_id=branch_id,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def branch(db):
    branch = BranchService(db).create(BranchCreate(name="Downtown Hub"))
    db.commit()
    db.refresh(branch)
    return branch


@pytest.fixture
def admin(db):
    return make_user(db, "admin@cowork.test", "ADMIN", full_name="Ada Admin")


@pytest.fixture
def manager(db, branch):
    return make_user(db, "manager@cowork.test", "MANAGER", branch.id, full_name="Max Manager")


@pytest.fixture
def staff(db, branch):
    return make_user(db, "staff@cowork.test", "STAFF", branch.id, full_name="Sam Staff")


@pytest.fixture
def customer_user(db, branch):
    return make_user(db, "member@cowork.test", "CUSTOMER", branch.id, full_name="Mia Member")


@pytest.fixture
def customer(db, branch, customer_user):
    customer = Customer(
        name="Mia Member",
        email=customer_user.email,
        branch_id=branch.id,
        user_id=customer_user.id,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def package(db):
    package = Package(name="Pro", monthly_hours_limit=3)
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@pytest.fixture
def room(db, branch):
    room = MeetingRoom(name="Board Room", capacity=8, branch_id=branch.id, amenities=["tv"])
    db.add(room)
    db.commit()
    db.refresh(room)
    return room
