"""Shared fixtures: throwaway SQLite database, captured outgoing email, API client."""
import os
import re
import tempfile
from datetime import datetime, timezone

_tmp_dir = tempfile.mkdtemp(prefix="sourcingscreen-tests-")

# Must be set before app.config is imported (settings are cached)
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["APP_ENV"] = "test"
os.environ.pop("DEBUG", None)
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["OTP_HASH_ROUNDS"] = "4"
os.environ["PENDING_CLEANUP_ENABLED"] = "false"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["FRONTEND_URL"] = "https://app.example.test"

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.user import User, UserRole
from app.services import notifications
from app.services.auth import get_password_hash

OTP_RE = re.compile(r"verification code is: (\d{6})")
RESET_TOKEN_RE = re.compile(r"token=([0-9a-f]{64})")

STRONG_PASSWORD = "Str0ng!Pass"


class Outbox:
    """Stands in for the email provider: records messages, can be told to fail."""

    def __init__(self):
        self.messages = []
        self.fail = False

    def send(self, to_email, subject, html_content, text_content=None):
        if self.fail:
            return False
        self.messages.append({"to": to_email, "subject": subject, "html": html_content, "text": text_content or ""})
        return True

    def to(self, email):
        return [m for m in self.messages if m["to"] == email]

    def last_otp(self, email):
        for message in reversed(self.to(email)):
            match = OTP_RE.search(message["text"])
            if match:
                return match.group(1)
        raise AssertionError(f"no OTP email sent to {email}")

    def last_reset_token(self, email):
        for message in reversed(self.to(email)):
            match = RESET_TOKEN_RE.search(message["text"])
            if match:
                return match.group(1)
        raise AssertionError(f"no reset email sent to {email}")


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(notifications, "send_email", box.send)
    return box


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(outbox):
    return TestClient(app)


def recruiter_payload(**overrides):
    payload = {
        "name": "Rita Recruiter",
        "email": "rita@talentfirm.io",
        "password": STRONG_PASSWORD,
        "phone": "+14155550123",
        "role": "RECRUITER",
        "recruitmentFirmName": "Talent Firm",
    }
    payload.update(overrides)
    return payload


def company_payload(**overrides):
    payload = {
        "name": "Carl Company",
        "email": "carl@acme-corp.com",
        "password": STRONG_PASSWORD,
        "phone": "+442071234567",
        "role": "COMPANY",
        "companyName": "Acme Corp",
        "companySize": "51-200",
        "designation": "Head of Talent",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_user(db):
    def _make_user(email="user@acme-corp.com", password=STRONG_PASSWORD, role=UserRole.COMPANY, is_active=True, **fields):
        user = User(
            name=fields.pop("name", "Existing User"),
            email=email,
            hashed_password=get_password_hash(password),
            phone=fields.pop("phone", "+14155550100"),
            role=role,
            is_primary=True,
            is_active=is_active,
            email_verified=True,
            email_verified_at=datetime.now(timezone.utc),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user
