"""Auth schemas: signup union, request bodies and public user shape."""
import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from app.models.user import UserRole

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15

PERSONAL_EMAIL_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "live.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "yandex.com",
    "mail.com",
    "rediffmail.com",
})

_email_adapter = TypeAdapter(EmailStr)


def normalize_phone(value: str | None) -> str:
    if value is None:
        return ""
    return re.sub(r"\D", "", value.strip())


def is_valid_phone(value: str | None) -> bool:
    """International format: leading '+' country code, 10-15 digits in total."""
    s = (value or "").strip()
    if not s.startswith("+"):
        return False
    digits = normalize_phone(s)
    return PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].strip().lower() if "@" in email else ""


def is_personal_email(email: str) -> bool:
    return email_domain(email) in PERSONAL_EMAIL_DOMAINS


def is_valid_email(email: str) -> bool:
    """Syntax check through email-validator (no DNS lookup)."""
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        return False
    return True


class _RegistrationBase(BaseModel):
    """Fields every signup carries. `password` holds the bcrypt hash once stored."""
    name: str
    email: EmailStr
    password: str
    phone: str


class CompanyRegistration(_RegistrationBase):
    role: Literal["COMPANY"] = "COMPANY"
    company_name: str
    company_size: str
    designation: str


class RecruiterRegistration(_RegistrationBase):
    role: Literal["RECRUITER"] = "RECRUITER"
    recruitment_firm_name: str | None = None


class AdminRegistration(_RegistrationBase):
    role: Literal["ADMIN"] = "ADMIN"


class InternalRegistration(_RegistrationBase):
    role: Literal["INTERNAL"] = "INTERNAL"


Registration = Annotated[
    Union[CompanyRegistration, RecruiterRegistration, AdminRegistration, InternalRegistration],
    Field(discriminator="role"),
]
registration_adapter = TypeAdapter(Registration)


class EmailOnlyRequest(BaseModel):
    email: str | None = None


class VerifyOtpRequest(BaseModel):
    email: str | None = None
    otp: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str | None = Field(default=None, alias="currentPassword")
    new_password: str | None = Field(default=None, alias="newPassword")


class OtpSentResponse(BaseModel):
    message: str
    email: str
    expiresIn: int


class UserResponse(BaseModel):
    """Public user fields; role-specific keys are omitted for other roles."""
    id: int
    name: str
    email: str
    role: UserRole
    isPrimary: bool = True
    isActive: bool = True
    emailVerified: bool = False
    companyName: str | None = None
    companySize: str | None = None
    designation: str | None = None
    recruitmentFirmName: str | None = None


def user_to_response(user) -> dict:
    data = UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        isPrimary=bool(user.is_primary),
        isActive=bool(user.is_active),
        emailVerified=bool(user.email_verified),
        companyName=user.company_name,
        companySize=user.company_size,
        designation=user.designation,
        recruitmentFirmName=user.recruitment_firm_name,
    ).model_dump(mode="json")
    if user.role != UserRole.COMPANY:
        for key in ("companyName", "companySize", "designation"):
            data.pop(key, None)
    if user.role != UserRole.RECRUITER:
        data.pop("recruitmentFirmName", None)
    return data
