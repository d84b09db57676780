import pytest
from sqlalchemy.exc import OperationalError

from couponapp.core.config import settings
from couponapp.core.errors import DependencyError
from couponapp.models import Coupon, CouponStatus
from couponapp.services import ledger

PHONE = "+15551112222"


def test_issue_creates_unused_coupon(db):
    result = ledger.issue(db, PHONE, "Ana", "1 Main St")
    coupon = result.coupon
    assert result.existing is False
    assert coupon.status == CouponStatus.UNUSED
    assert coupon.used_at is None
    assert coupon.fixed_code == settings.FIXED_COUPON_CODE
    assert len(coupon.coupon_id) == 36


def test_issue_is_idempotent_per_phone(db):
    first = ledger.issue(db, PHONE, "Ana", "1 Main St")
    second = ledger.issue(db, PHONE, "Someone Else", "2 Other St")
    assert second.existing is True
    assert second.coupon.coupon_id == first.coupon.coupon_id
    assert second.coupon.holder_name == "Ana"
    assert db.query(Coupon).count() == 1


def test_concurrent_issue_returns_winner(session_factory, monkeypatch):
    winner_session = session_factory()
    loser_session = session_factory()
    try:
        winner = ledger.issue(winner_session, PHONE, "Ana", "1 Main St").coupon

        # The loser read the ledger before the winner committed
        real_find = ledger.find_by_phone
        calls = {"n": 0}

        def stale_find(db, phone_key):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return real_find(db, phone_key)

        monkeypatch.setattr(ledger, "find_by_phone", stale_find)
        result = ledger.issue(loser_session, PHONE, "Ana (tab 2)", "1 Main St")

        assert result.existing is True
        assert result.coupon.coupon_id == winner.coupon_id
        assert loser_session.query(Coupon).count() == 1
    finally:
        winner_session.close()
        loser_session.close()


def test_transient_store_error_is_retried_once(db, monkeypatch):
    real_commit = db.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT INTO coupons", {}, Exception("connection reset"))
        return real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)
    result = ledger.issue(db, PHONE, "Ana", "1 Main St")
    assert result.existing is False
    assert calls["n"] == 2
    assert ledger.find_by_phone(db, PHONE) is not None


def test_persistent_store_error_surfaces_as_dependency_error(db, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT INTO coupons", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(DependencyError):
        ledger.issue(db, PHONE, "Ana", "1 Main St")


def test_list_all_and_find_by_id(db):
    a = ledger.issue(db, "+15550000001", "A", "addr a").coupon
    b = ledger.issue(db, "+15550000002", "B", "addr b").coupon
    ids = {c.coupon_id for c in ledger.list_all(db)}
    assert ids == {a.coupon_id, b.coupon_id}
    assert ledger.find_by_id(db, b.coupon_id).holder_name == "B"
    assert ledger.find_by_id(db, "missing") is None
