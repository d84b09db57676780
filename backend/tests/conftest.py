import os

# Must be set before couponapp.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OTP_PURGE_INTERVAL_SECONDS", "0")
os.environ.setdefault("OTP_REVEAL_ON_DISPATCH_FAILURE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from couponapp.core.deps import get_db
from couponapp.core.errors import SmsDispatchError
from couponapp.main import app
from couponapp.models import AccessRole, Base
from couponapp.services.access import create_access_user, issue_token
from couponapp.services.sms import SmsAck, SmsDispatcher, get_sms_dispatcher


class FakeSmsDispatcher(SmsDispatcher):
    """Records every code instead of texting it."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send(self, phone_key, code):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((phone_key, code))
        return SmsAck(message_id=f"SM{len(self.sent)}", to=phone_key)

    def last_code(self, phone_key):
        for key, code in reversed(self.sent):
            if key == phone_key:
                return code
        return None

    def fail_trial_account(self):
        self.fail_with = SmsDispatchError("SMS provider rejected the message.", provider_code=21608)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sms():
    return FakeSmsDispatcher()


@pytest.fixture
def client(session_factory, sms):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_sms_dispatcher] = lambda: sms
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def staff_user(db):
    return create_access_user(db, "scanner1", "scanner-pass", AccessRole.STAFF)


@pytest.fixture
def admin_user(db):
    return create_access_user(db, "boss", "boss-password", AccessRole.ADMIN)


@pytest.fixture
def staff_headers(staff_user):
    return {"Authorization": f"Bearer {issue_token(staff_user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {issue_token(admin_user)}"}
