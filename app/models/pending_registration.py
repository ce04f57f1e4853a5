"""Pending signup data: the user is created only after the emailed OTP is verified."""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.dialects.postgresql import JSONB

from app.database import Base

MAX_OTP_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingRegistration(Base):
    __tablename__ = "pending_registrations"

    id = Column(Integer, primary_key=True, index=True)
    # One record per email; the unique index also settles two concurrent signups for the same address
    email = Column(String(255), nullable=False, unique=True, index=True)
    otp_hash = Column(String(255), nullable=False)

    # Validated signup payload (one member of the registration union, password already hashed)
    user_data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)

    # Swept by the cleanup job once passed
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)

    # Resend throttle anchor; reset on every resend
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
