from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from couponapp.models import AccessRole, Base, Coupon, CouponStatus
from couponapp.services import ledger
from couponapp.services.access import Principal
from couponapp.services.redemption import RedemptionOutcome, redeem

STAFF = Principal(id="s1", username="scanner1", role=AccessRole.STAFF)
ADMIN = Principal(id="a1", username="boss", role=AccessRole.ADMIN)


class _Guest:
    id = "g1"
    username = "guest"
    role = "GUEST"


def _coupon(db, phone="+15551112222"):
    return ledger.issue(db, phone, "Ana", "1 Main St").coupon


def test_redeem_once_then_already_used(db):
    coupon_id = _coupon(db).coupon_id

    first = redeem(db, coupon_id, STAFF)
    assert first.outcome is RedemptionOutcome.REDEEMED
    assert first.holder_name == "Ana"

    stored = ledger.find_by_id(db, coupon_id)
    assert stored.status == CouponStatus.USED
    used_at = stored.used_at
    assert used_at is not None

    second = redeem(db, coupon_id, ADMIN)
    assert second.outcome is RedemptionOutcome.ALREADY_USED
    assert second.holder_name == "Ana"
    db.expire_all()
    assert ledger.find_by_id(db, coupon_id).used_at == used_at


def test_unknown_coupon(db):
    assert redeem(db, "no-such-coupon", STAFF).outcome is RedemptionOutcome.NOT_FOUND


def test_expired_coupon_is_not_redeemed(db):
    coupon = _coupon(db)
    coupon.status = CouponStatus.EXPIRED
    db.commit()

    result = redeem(db, coupon.coupon_id, STAFF)
    assert result.outcome is RedemptionOutcome.EXPIRED
    db.expire_all()
    stored = ledger.find_by_id(db, coupon.coupon_id)
    assert stored.status == CouponStatus.EXPIRED
    assert stored.used_at is None


def test_other_roles_are_forbidden(db):
    coupon_id = _coupon(db).coupon_id
    assert redeem(db, coupon_id, _Guest()).outcome is RedemptionOutcome.FORBIDDEN
    assert ledger.find_by_id(db, coupon_id).status == CouponStatus.UNUSED


def test_concurrent_scans_redeem_exactly_once(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    setup = Session()
    coupon_id = _coupon(setup).coupon_id
    setup.close()

    def scan(_):
        session = Session()
        try:
            return redeem(session, coupon_id, STAFF).outcome
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(scan, range(8)))

    assert outcomes.count(RedemptionOutcome.REDEEMED) == 1
    assert outcomes.count(RedemptionOutcome.ALREADY_USED) == 7

    check = Session()
    try:
        rows = check.query(Coupon).all()
        assert len(rows) == 1
        assert rows[0].status == CouponStatus.USED
        assert rows[0].used_at is not None
    finally:
        check.close()
        engine.dispose()
