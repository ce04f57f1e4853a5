"""Admin user-management request bodies and the admin view of a user."""
from pydantic import BaseModel, ConfigDict

from app.schemas.auth import user_to_response


class AdminUserCreate(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    phone: str | None = None
    role: str | None = None


class AdminUserUpdate(BaseModel):
    """Editable fields. Only keys present in the body are applied."""
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    phone: str | None = None
    isActive: bool | None = None
    isPrimary: bool | None = None
    parentId: int | None = None
    companyName: str | None = None
    companySize: str | None = None
    designation: str | None = None
    recruitmentFirmName: str | None = None


class AdminPasswordChange(BaseModel):
    newPassword: str | None = None


def admin_user_view(user) -> dict:
    data = user_to_response(user)
    data["parentId"] = user.parent_id
    data["createdAt"] = user.created_at.isoformat() if user.created_at else None
    return data
