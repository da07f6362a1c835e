"""Row-lock behaviour of the ledger; needs a real PostgreSQL (SQLite ignores FOR UPDATE)."""
import datetime as dt
import os
import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sitework.db.models  # noqa: F401
from sitework.core.errors import BudgetExceeded
from sitework.db.base import Base
from sitework.db.models.employee import Employee, Role
from sitework.db.models.ledger import LedgerTransaction
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.schemas.ledger import TransactionIn
from sitework.services.ledger import BudgetPolicy, record_transaction

PG_URL = os.environ.get("TEST_POSTGRES_URL")

pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(not PG_URL, reason="TEST_POSTGRES_URL not set"),
]

DAY = dt.date(2026, 4, 1)


@pytest.fixture
def pg_sessions():
    eng = create_engine(PG_URL)
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    yield sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)
    Base.metadata.drop_all(eng)
    eng.dispose()


def test_budget_check_waits_for_concurrent_entry(pg_sessions):
    setup = pg_sessions()
    admin = Employee(login="boss", full_name="Site Boss", password_hash="!", role=Role.admin.value)
    site = Site(name="Marina Tower")
    setup.add_all([admin, site])
    setup.flush()
    phase = Phase(site_id=site.id, name="Foundation", order_num=1, budget=Decimal("10000"))
    setup.add(phase)
    setup.commit()
    admin_id, site_id, phase_id = admin.id, site.id, phase.id
    setup.close()

    # first writer holds the phase row with an uncommitted 8000 entry
    holder = pg_sessions()
    holder.query(Phase).filter(Phase.id == phase_id).with_for_update().one()
    holder.add(LedgerTransaction(
        site_id=site_id, phase_id=phase_id, type="OUT", amount=Decimal("8000"), date=DAY, created_by=admin_id,
    ))
    holder.flush()

    outcome = {}

    def _second_writer():
        s = pg_sessions()
        try:
            data = TransactionIn(type="OUT", amount=Decimal("3000"), date=DAY, phase_id=phase_id)
            outcome["result"] = record_transaction(s, site_id, data, s.get(Employee, admin_id), BudgetPolicy.block)
        except BudgetExceeded as e:
            outcome["error"] = e
        finally:
            s.close()

    t = threading.Thread(target=_second_writer)
    t.start()
    t.join(0.5)
    assert t.is_alive()

    holder.commit()
    holder.close()
    t.join(10)
    assert not t.is_alive()

    # the second check saw the committed 8000, so 11000 > 10000 is refused
    assert isinstance(outcome.get("error"), BudgetExceeded)
    check = pg_sessions()
    assert check.query(LedgerTransaction).count() == 1
    check.close()
