import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from sitework.core.errors import BudgetExceeded, Forbidden, NotFound, ValidationError
from sitework.db.models.ledger import LedgerTransaction
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.schemas.ledger import TransactionIn
from sitework.services.budget import evaluate, phase_financials, phase_usage, set_phase_budget
from sitework.services.ledger import BudgetPolicy, list_transactions, record_transaction, site_totals

DAY = dt.date(2026, 4, 1)


def _out(phase_id, amount, **kw):
    return TransactionIn(type="OUT", amount=Decimal(str(amount)), date=DAY, phase_id=phase_id, **kw)


def _in(amount, **kw):
    return TransactionIn(type="IN", amount=Decimal(str(amount)), date=DAY, **kw)


def test_evaluate_does_not_clamp():
    u = evaluate(1, 100, 80, 30)
    assert u.used == Decimal("110.00")
    assert u.remaining == Decimal("-10.00")
    assert u.over_budget


def test_over_budget_warns_but_records(db, admin, site, phase):
    record_transaction(db, site.id, _out(phase.id, 8000), admin)
    result = record_transaction(db, site.id, _out(phase.id, 3000), admin, BudgetPolicy.warn)

    assert result.transaction.id is not None
    assert result.usage.over_budget
    assert result.warning
    assert result.transaction.budget_override is False

    usage = phase_usage(db, phase.id)
    assert usage.used == Decimal("11000.00")
    assert usage.remaining == Decimal("-1000.00")


def test_block_policy_requires_override(db, admin, site, phase):
    record_transaction(db, site.id, _out(phase.id, 8000), admin, BudgetPolicy.block)
    with pytest.raises(BudgetExceeded):
        record_transaction(db, site.id, _out(phase.id, 3000), admin, BudgetPolicy.block)
    assert db.query(LedgerTransaction).count() == 1

    result = record_transaction(db, site.id, _out(phase.id, 3000, override_budget=True), admin, BudgetPolicy.block)
    assert result.transaction.budget_override is True
    assert phase_usage(db, phase.id).used == Decimal("11000.00")


def test_allow_policy_has_no_warning(db, admin, site, phase):
    result = record_transaction(db, site.id, _out(phase.id, 12000), admin, BudgetPolicy.allow)
    assert result.warning is None
    assert result.usage.over_budget


def test_override_ignored_outside_block(db, admin, site, phase):
    result = record_transaction(db, site.id, _out(phase.id, 12000, override_budget=True), admin)
    assert result.transaction.budget_override is False


@pytest.mark.parametrize("data,message", [
    (TransactionIn(type="XFER", amount=Decimal("5"), date=DAY), "Invalid transaction type"),
    (TransactionIn(type="IN", amount=Decimal("0"), date=DAY), "Invalid amount"),
    (TransactionIn(type="IN", amount=Decimal("-3"), date=DAY), "Invalid amount"),
    (TransactionIn(type="IN", amount=Decimal("5")), "Date is required"),
    (TransactionIn(type="OUT", amount=Decimal("5"), date=DAY), "Phase is required for OUT transactions"),
])
def test_invalid_transactions(db, admin, site, data, message):
    with pytest.raises(ValidationError, match=message):
        record_transaction(db, site.id, data, admin)
    assert db.query(LedgerTransaction).count() == 0


def test_payment_method_only_on_in(db, admin, site, phase):
    with pytest.raises(ValidationError):
        record_transaction(db, site.id, _out(phase.id, 10, payment_method="cash"), admin)
    tx = record_transaction(db, site.id, _in(10, payment_method="cash"), admin).transaction
    assert tx.payment_method == "cash"


def test_only_admin_records(db, worker, site):
    with pytest.raises(Forbidden):
        record_transaction(db, site.id, _in(10), worker)


def test_phase_must_belong_to_site(db, admin, site, phase):
    other = Site(name="Other")
    db.add(other)
    db.commit()
    with pytest.raises(ValidationError):
        record_transaction(db, other.id, _out(phase.id, 10), admin)
    with pytest.raises(NotFound):
        record_transaction(db, site.id, _out(999, 10), admin)


def test_balance_matches_entries(db, admin, site, phase):
    entries = [_in(5000), _out(phase.id, 1200.5), _in(250.25), _out(phase.id, 99.75)]
    for data in entries:
        record_transaction(db, site.id, data, admin)

    rows = list_transactions(db, site.id)
    total_in = sum(r.amount for r in rows if r.type == "IN")
    total_out = sum(r.amount for r in rows if r.type == "OUT")
    totals = site_totals(db, site.id)
    assert totals.total_in == Decimal("5250.25")
    assert totals.total_out == Decimal("1300.25")
    assert totals.balance == total_in - total_out == Decimal("3950.00")


def test_budget_decrease_can_overrun(db, admin, site, phase):
    record_transaction(db, site.id, _out(phase.id, 6000), admin)
    set_phase_budget(db, phase.id, Decimal("5000"), admin)
    usage = phase_usage(db, phase.id)
    assert usage.remaining == Decimal("-1000.00")
    with pytest.raises(ValidationError):
        set_phase_budget(db, phase.id, Decimal("-1"), admin)


def test_usage_preview(db, admin, site, phase):
    record_transaction(db, site.id, _out(phase.id, 9000), admin)
    preview = phase_usage(db, phase.id, Decimal("1500"))
    assert preview.over_budget
    assert preview.pending_amount == Decimal("1500.00")
    assert db.query(LedgerTransaction).count() == 1


def test_phase_financials(db, admin, site, phase):
    second = Phase(site_id=site.id, name="Walls", order_num=2, budget=Decimal("300"))
    db.add(second)
    db.commit()
    record_transaction(db, site.id, _out(phase.id, 2500), admin)

    rows = phase_financials(db, site.id)
    assert [r["name"] for r in rows] == ["Foundation", "Walls"]
    assert rows[0]["used_amount"] == Decimal("2500.00")
    assert rows[0]["remaining"] == Decimal("7500.00")
    assert rows[1]["used_amount"] == Decimal("0.00")
    assert not rows[1]["over_budget"]


def test_transaction_date_formats(db, admin, site):
    assert TransactionIn(type="IN", amount=Decimal("5"), date="01/04/2026").date == DAY
    assert TransactionIn(type="IN", amount=Decimal("5"), date="2026-04-01T09:30:00").date == DAY
    with pytest.raises(PydanticValidationError):
        TransactionIn(type="IN", amount=Decimal("5"), date="April 1st")

    tx = record_transaction(db, site.id, TransactionIn(type="IN", amount=Decimal("5"), date="01/04/2026"), admin).transaction
    assert tx.date == DAY
