"""Admin: list, create, update, deactivate and delete user accounts."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.models.user import User, UserRole
from app.schemas.admin import AdminPasswordChange, AdminUserCreate, AdminUserUpdate, admin_user_view
from app.schemas.auth import is_valid_email
from app.services.audit_log import create_log, CATEGORY_STATUS_CHANGE
from app.services.auth import get_password_hash
from app.services.errors import Conflict, Forbidden, NotFound, ValidationError
from app.services.password_reset import validate_password_strength
from app.services.registration import normalize_email

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/admin/users", tags=["admin"])

# Request key -> User column
_EDITABLE = {
    "name": "name",
    "phone": "phone",
    "isActive": "is_active",
    "isPrimary": "is_primary",
    "parentId": "parent_id",
    "companyName": "company_name",
    "companySize": "company_size",
    "designation": "designation",
    "recruitmentFirmName": "recruitment_firm_name",
}


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


@router.get("")
def list_users(
    role: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    is_primary: bool | None = Query(None, alias="isPrimary"),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(User)
    if role and role in UserRole._value2member_map_:
        q = q.filter(User.role == UserRole(role))
    if is_active is not None:
        q = q.filter(User.is_active == is_active)
    if is_primary is not None:
        q = q.filter(User.is_primary == is_primary)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))
    users = q.order_by(User.created_at.desc(), User.id.desc()).all()
    return {"users": [admin_user_view(u) for u in users], "total": len(users)}


@router.post("")
def create_user(data: AdminUserCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Create an internal team member or another admin. No OTP step: the admin vouches for the address."""
    name = (data.name or "").strip()
    email = normalize_email(data.email)
    phone = (data.phone or "").strip()
    if not (name and email and data.password and phone):
        raise ValidationError("All fields are required")
    if data.role not in (UserRole.INTERNAL.value, UserRole.ADMIN.value):
        raise ValidationError("Admin can only create internal team members or other admins")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    validate_password_strength(data.password)
    if db.query(User).filter(User.email == email).first():
        raise Conflict("User already exists")

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(data.password),
        phone=phone,
        role=UserRole(data.role),
        is_primary=True,
        is_active=True,
        email_verified=True,
        email_verified_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.flush()
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Account created by admin",
        f"Admin {admin.email} created {user.role.value} account {user.email}.",
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"user_id": user.id, "role": user.role},
    )
    db.commit()
    db.refresh(user)
    log.info("[Admin] %s created %s account %s", admin.email, user.role.value, user.email)
    return {"success": True, "user": admin_user_view(user)}


@router.get("/{user_id}")
def read_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return admin_user_view(_get_user_or_404(db, user_id))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user_or_404(db, user_id)
    changes = {key: getattr(data, key) for key in data.model_fields_set if key in _EDITABLE}

    for key in ("name", "phone", "isActive", "isPrimary"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be null")
    if "parentId" in changes and changes["parentId"] is not None:
        if changes["parentId"] == user.id:
            raise ValidationError("A user cannot be their own parent account")
        _get_user_or_404(db, changes["parentId"])

    was_active = user.is_active
    for key, value in changes.items():
        setattr(user, _EDITABLE[key], value.strip() if isinstance(value, str) else value)

    if "isActive" in changes and changes["isActive"] != was_active:
        state = "reactivated" if user.is_active else "deactivated"
        create_log(
            db,
            CATEGORY_STATUS_CHANGE,
            f"Account {state}",
            f"Admin {admin.email} {state} account {user.email}.",
            actor_user_id=admin.id,
            actor_email=admin.email,
            meta={"user_id": user.id, "is_active": user.is_active},
        )
        log.info("[Admin] %s %s account %s", admin.email, state, user.email)
    db.commit()
    db.refresh(user)
    return admin_user_view(user)


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    admin_id, admin_email = admin.id, admin.email
    user = _get_user_or_404(db, user_id)
    if user.role == UserRole.ADMIN and user.id != admin.id:
        raise Forbidden("Cannot delete other admin accounts")

    # Team members go with their primary account
    members = (
        db.query(User)
        .filter(User.parent_id == user.id)
        .delete(synchronize_session=False)
    )
    email = user.email
    db.delete(user)
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Account deleted",
        f"Admin {admin_email} deleted account {email} and {members} team member(s).",
        actor_user_id=admin_id if admin_id != user_id else None,
        actor_email=admin_email,
        meta={"user_id": user_id, "team_members_deleted": members},
    )
    db.commit()
    log.info("[Admin] %s deleted account %s (%d team member(s))", admin_email, email, members)
    return {"success": True}


@router.put("/{user_id}/change-password")
def change_user_password(
    user_id: int,
    data: AdminPasswordChange,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if not data.newPassword:
        raise ValidationError("New password is required")
    validate_password_strength(data.newPassword)
    user = _get_user_or_404(db, user_id)

    user.hashed_password = get_password_hash(data.newPassword)
    # Any outstanding reset link dies with the old password
    user.reset_password_token = None
    user.reset_password_expires = None
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Password changed by admin",
        f"Admin {admin.email} set a new password for {user.email}.",
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"user_id": user.id},
    )
    db.commit()
    log.info("[Admin] %s changed the password of %s", admin.email, user.email)
    return {"success": True, "message": f"Password updated successfully for {user.name}"}
