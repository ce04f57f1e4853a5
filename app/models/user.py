"""Accounts: companies, recruiters, admins and internal staff."""
from sqlalchemy import Column, Integer, String, Enum as SQLEnum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from app.database import Base
import enum


class UserRole(str, enum.Enum):
    COMPANY = "COMPANY"
    RECRUITER = "RECRUITER"
    ADMIN = "ADMIN"
    INTERNAL = "INTERNAL"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)

    # Company hierarchy: team members point at their primary account
    is_primary = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)

    # COMPANY only
    company_name = Column(String(255), nullable=True)
    company_size = Column(String(50), nullable=True)
    designation = Column(String(255), nullable=True)

    # RECRUITER only (independent recruiters leave it empty)
    recruitment_firm_name = Column(String(255), nullable=True)

    # Password-reset grant: SHA-256 of the emailed token, never the token itself
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
