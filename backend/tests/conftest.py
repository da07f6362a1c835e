import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["SEED_DEMO"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sitework.db.models  # noqa: F401
from sitework.core.deps import get_db
from sitework.core.security import create_access_token
from sitework.db.base import Base
from sitework.db.models.employee import Employee, Role
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.db.models.task import Task
from sitework.services.notifications import DatabaseDispatcher


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


def _employee(db, login, role, full_name=None):
    e = Employee(login=login, full_name=full_name or login.title(), password_hash="!", role=role.value)
    db.add(e)
    db.commit()
    return e


@pytest.fixture
def admin(db):
    return _employee(db, "boss", Role.admin, "Site Boss")


@pytest.fixture
def worker(db):
    return _employee(db, "ali", Role.employee, "Ali Worker")


@pytest.fixture
def other_worker(db):
    return _employee(db, "omar", Role.employee, "Omar Worker")


@pytest.fixture
def site(db):
    s = Site(name="Marina Tower", location="Dubai", budget=Decimal("500000"))
    db.add(s)
    db.commit()
    return s


@pytest.fixture
def phase(db, site):
    p = Phase(site_id=site.id, name="Foundation", order_num=1, budget=Decimal("10000"))
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def make_task(db):
    def _make(phase, name="Pour slab", status="Not Started", assignees=()):
        t = Task(phase_id=phase.id, site_id=phase.site_id, name=name, status=status, assignees=list(assignees))
        db.add(t)
        db.commit()
        return t
    return _make


@pytest.fixture
def dispatcher():
    return DatabaseDispatcher()


@pytest.fixture
def client(session_factory):
    from sitework.main import app

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    def _headers(employee: Employee) -> dict:
        return {"Authorization": f"Bearer {create_access_token(employee.login, employee.role)}"}
    return _headers
