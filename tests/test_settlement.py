from datetime import date
from decimal import Decimal

import pytest

from models import Obligation
from services.exceptions import ValidationError
from services.overdue_service import OverdueSweeper
from services.settlement_service import SettlementAggregator
from tests.conftest import TODAY, USER_ID

MARCH = date(2024, 3, 1)


@pytest.fixture
def aggregator(db, directory, policy):
    return SettlementAggregator(db, directory, policy)


@pytest.fixture
def ledger(db, make_obligation, recorder):
    """
    Owner 1: March rent 100000 paid (10%), March expenses 20000 paid,
             April rent 100000 paid.
    Owner 2: March rent 80000 with 30000 paid, overdue.
    """
    rent = make_obligation(amount=Decimal("100000"))
    recorder.apply_payment(rent.id, Decimal("100000"), date(2024, 3, 5))
    expenses = make_obligation(type="expenses", contract_id=None, apartment_id=10, amount=Decimal("20000"))
    recorder.apply_payment(expenses.id, Decimal("20000"), date(2024, 3, 6))
    april = make_obligation(amount=Decimal("100000"), period=date(2024, 4, 1), due_date=date(2024, 4, 10))
    recorder.apply_payment(april.id, Decimal("100000"), date(2024, 3, 30))
    late = make_obligation(contract_id=200, amount=Decimal("80000"), due_date=date(2024, 3, 10))
    recorder.apply_payment(late.id, Decimal("30000"), date(2024, 3, 9))
    OverdueSweeper(db, clock=lambda: TODAY).mark_overdue()
    return {"rent": rent, "expenses": expenses, "april": april, "late": late}


def test_march_figures(ledger, aggregator):
    summary = aggregator.aggregate_settlement(USER_ID, MARCH)

    totals = summary.totals
    assert totals.cobrado == Decimal("90000.00")
    assert totals.ajustes == Decimal("20000.00")
    assert totals.comisiones == Decimal("10000.00")
    assert totals.a_liquidar == Decimal("60000.00")
    assert totals.mora == Decimal("50000.00")
    assert totals.obligations == 2

    owner_1, owner_2 = summary.owners
    assert owner_1.owner_id == 1
    assert owner_1.owner_name == "Laura Gómez"
    assert owner_1.a_liquidar == Decimal("60000.00")
    assert owner_1.mora == Decimal("0")
    assert owner_2.owner_id == 2
    assert owner_2.cobrado == Decimal("0")
    assert owner_2.mora == Decimal("50000.00")
    assert owner_2.balance == Decimal("1500.00")

    assert [m.period for m in summary.monthly] == [MARCH]
    assert summary.discrepancies == []


def test_monthly_buckets_cover_the_whole_range(ledger, aggregator):
    summary = aggregator.aggregate_settlement(USER_ID, date(2024, 2, 1), date(2024, 4, 30))
    assert [m.period for m in summary.monthly] == [date(2024, 2, 1), MARCH, date(2024, 4, 1)]
    feb, march, april = summary.monthly
    assert feb.cobrado == Decimal("0")
    assert march.a_liquidar == Decimal("60000.00")
    assert april.cobrado == Decimal("90000.00")
    assert april.comisiones == Decimal("10000.00")
    assert summary.totals.cobrado == Decimal("180000.00")


def test_mora_ignores_the_period(ledger, aggregator):
    summary = aggregator.aggregate_settlement(USER_ID, date(2023, 1, 1))
    assert summary.totals.cobrado == Decimal("0")
    assert summary.totals.mora == Decimal("50000.00")


def test_owner_and_apartment_filters(ledger, aggregator):
    only_two = aggregator.aggregate_settlement(USER_ID, MARCH, owner_id=2)
    assert [o.owner_id for o in only_two.owners] == [2]
    assert only_two.totals.cobrado == Decimal("0")
    assert only_two.totals.mora == Decimal("50000.00")

    apartment_ten = aggregator.aggregate_settlement(USER_ID, MARCH, apartment_id=10)
    assert [o.owner_id for o in apartment_ten.owners] == [1]
    assert apartment_ten.totals.mora == Decimal("0")
    assert apartment_ten.totals.a_liquidar == Decimal("60000.00")


def test_unowned_apartment_is_grouped_under_none(db, make_obligation, recorder, aggregator):
    repair = make_obligation(type="maintenance", contract_id=None, apartment_id=30, amount=Decimal("5000"))
    recorder.apply_payment(repair.id, Decimal("5000"), date(2024, 3, 3))
    summary = aggregator.aggregate_settlement(USER_ID, MARCH)
    assert [o.owner_id for o in summary.owners] == [None]
    assert summary.owners[0].ajustes == Decimal("5000.00")


def test_repeated_calls_are_identical_and_read_only(ledger, aggregator, db):
    before = {o.id: (o.status, o.version_id) for o in db.query(Obligation).all()}
    first = aggregator.aggregate_settlement(USER_ID, date(2024, 2, 1), date(2024, 4, 1))
    second = aggregator.aggregate_settlement(USER_ID, date(2024, 2, 1), date(2024, 4, 1))
    assert first.model_dump_json() == second.model_dump_json()
    db.expire_all()
    assert {o.id: (o.status, o.version_id) for o in db.query(Obligation).all()} == before


def test_tampered_distribution_is_flagged(ledger, aggregator, db):
    rent = db.get(Obligation, ledger["rent"].id)
    rent.agency_impact = Decimal("12000.00")
    rent.commission_amount = Decimal("12000.00")
    db.commit()

    summary = aggregator.aggregate_settlement(USER_ID, MARCH)
    assert summary.discrepancies == [rent.id]
    # Stored figures are reported as persisted
    assert summary.totals.comisiones == Decimal("12000.00")


def test_other_accounts_are_excluded(ledger, aggregator):
    summary = aggregator.aggregate_settlement(2, MARCH)
    assert summary.owners == []
    assert summary.totals.obligations == 0


def test_range_must_be_ordered(aggregator):
    with pytest.raises(ValidationError):
        aggregator.aggregate_settlement(USER_ID, MARCH, date(2024, 2, 1))
