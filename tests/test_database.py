from decimal import Decimal

import pytest

import database
from models import Owner
from tests.conftest import USER_ID


@pytest.fixture
def request_session(session_factory, monkeypatch):
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    return database.get_session()


def _stray_owner():
    return Owner(id=3, user_id=USER_ID, name="Sin contrato", commission_percentage=None, balance=Decimal("0"))


def test_request_session_does_not_commit_leftovers(request_session, session_factory):
    session = next(request_session)
    session.add(_stray_owner())
    with pytest.raises(StopIteration):
        next(request_session)

    check = session_factory()
    assert check.get(Owner, 3) is None
    check.close()


def test_request_session_rolls_back_on_error(request_session, session_factory):
    session = next(request_session)
    session.add(_stray_owner())
    session.flush()
    with pytest.raises(RuntimeError):
        request_session.throw(RuntimeError("route failed"))

    check = session_factory()
    assert check.get(Owner, 3) is None
    check.close()


def test_committed_work_survives(request_session, session_factory):
    session = next(request_session)
    session.add(_stray_owner())
    session.commit()
    with pytest.raises(StopIteration):
        next(request_session)

    check = session_factory()
    assert check.get(Owner, 3).name == "Sin contrato"
    check.close()
