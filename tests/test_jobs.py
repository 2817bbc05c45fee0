from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

import ledger_jobs
from models import LegacyPayment, Obligation, ObligationStatus, ObligationType, RecurringObligation
from tests.conftest import USER_ID


@pytest.fixture(autouse=True)
def job_sessions(session_factory, monkeypatch):
    @contextmanager
    def session_context():
        session = session_factory()
        try:
            yield session
            session.commit()
        finally:
            session.close()

    monkeypatch.setattr(ledger_jobs, "get_session_context", session_context)


def test_generate_rent_then_mark_overdue(db, capsys):
    assert ledger_jobs.main(["generate-rent", "--month", "2024-03", "--user-id", str(USER_ID)]) == 0
    assert "generated=2 skipped=0 errors=0" in capsys.readouterr().out

    assert ledger_jobs.main(["generate-rent", "--month", "2024-03", "--user-id", str(USER_ID)]) == 0
    assert "generated=0 skipped=2" in capsys.readouterr().out

    # Both rents fell due on 2024-03-10, long before the real today
    assert ledger_jobs.main(["mark-overdue"]) == 0
    assert "2 obligation(s) marked overdue" in capsys.readouterr().out
    assert {o.status for o in db.query(Obligation).all()} == {ObligationStatus.OVERDUE}


def test_migrate_legacy_reports_errors(db, capsys):
    db.add_all([
        LegacyPayment(user_id=USER_ID, contract_id=100, month=date(2024, 3, 1), amount=Decimal("450000"),
                      status="paid", payment_date=date(2024, 3, 10)),
        LegacyPayment(user_id=USER_ID, contract_id=100, month=date(2024, 4, 1), amount=Decimal("450000"),
                      status="cancelled"),
    ])
    db.commit()

    assert ledger_jobs.main(["migrate-legacy"]) == 1
    out = capsys.readouterr().out
    assert "migrated=1 payments_created=1 skipped=0 errors=1" in out
    assert "Unknown legacy status 'cancelled'" in out


def test_bad_month_is_rejected():
    with pytest.raises(SystemExit):
        ledger_jobs.main(["generate-rent", "--month", "March", "--user-id", "1"])


def test_generate_recurring_for_every_account(db, capsys):
    db.add_all([
        RecurringObligation(user_id=USER_ID, apartment_id=30, type=ObligationType.EXPENSES,
                            description="Expensas PB", amount=Decimal("85000"), day_of_month=10,
                            start_date=date(2024, 1, 1), is_active=True),
        RecurringObligation(user_id=2, contract_id=900, type=ObligationType.TAX,
                            description="ABL", amount=Decimal("9000"), day_of_month=31,
                            start_date=date(2024, 1, 1), is_active=True),
    ])
    db.commit()

    assert ledger_jobs.main(["generate-recurring", "--month", "2024-02"]) == 0
    assert "generated=2 skipped=0 errors=0" in capsys.readouterr().out

    assert ledger_jobs.main(["generate-recurring", "--month", "2024-02", "--user-id", str(USER_ID)]) == 0
    assert "generated=0 skipped=1 errors=0" in capsys.readouterr().out

    due_dates = {o.user_id: o.due_date for o in db.query(Obligation).all()}
    assert due_dates == {USER_ID: date(2024, 2, 10), 2: date(2024, 2, 29)}
