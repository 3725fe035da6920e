"""
Shared fixtures.

MongoDB is replaced by mongomock (with the real indexes created), SMTP by a
MagicMock mailer, and time by a FakeClock so OTP and reset expiry can be
stepped over without sleeping.
"""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

from placement_portal.core.auth import hash_password
from placement_portal.core.config import get_settings
from placement_portal.db.mongodb import COLLECTIONS, init_mongo_indexes
from placement_portal.main import create_app
from placement_portal.services.auth_service import AuthService
from placement_portal.services.mail_service import Mailer
from placement_portal.services.otp_registry import OTPRegistry
from placement_portal.services.user_service import UserService, get_user_service, new_user_doc

PASSWORD = "secret123"


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mongo_db():
    db = mongomock.MongoClient()["placement_portal_test"]
    init_mongo_indexes(db)
    return db


@pytest.fixture
def users(mongo_db):
    return UserService(mongo_db[COLLECTIONS["users"]])


@pytest.fixture
def mailer():
    return MagicMock(spec=Mailer)


@pytest.fixture
def registry(clock):
    return OTPRegistry(ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture
def auth(users, registry, mailer, clock):
    return AuthService(users, registry, mailer, settings=get_settings(), clock=clock)


@pytest.fixture
def app(users, registry, mailer):
    app = create_app()
    app.state.otp_registry = registry
    app.state.mailer = mailer
    app.dependency_overrides[get_user_service] = lambda: users
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(users):
    """Insert an account directly and return its document."""
    def _make(role="student", email="student@nsec.ac.in", password=PASSWORD,
              is_verified=True, **extra):
        if role == "student":
            extra.setdefault("course", "BTech")
            extra.setdefault("branch", "CSE")
            extra.setdefault("admission_year", 2022)
            extra.setdefault("passout_year", 2026)
        doc = new_user_doc(
            role=role,
            name=f"Test {role.title()}",
            email=email,
            phone="+919876543210",
            password_hash=hash_password(password),
            is_verified=is_verified,
            **extra
        )
        users.insert(doc)
        return doc
    return _make


def sent_otp(mailer) -> str:
    """The code passed to the most recent send_otp_email call."""
    return mailer.send_otp_email.call_args.args[1]


def sent_reset_token(mailer) -> str:
    return mailer.send_password_reset_email.call_args.args[1]
