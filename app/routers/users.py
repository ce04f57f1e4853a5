"""Signed-in account maintenance."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest
from app.services.audit_log import create_log, CATEGORY_STATUS_CHANGE
from app.services.auth import get_password_hash, verify_password
from app.services.errors import Unauthorized, ValidationError
from app.services.password_reset import validate_password_strength

router = APIRouter(prefix="/user", tags=["user"])


@router.put("/change-password")
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not data.current_password or not data.new_password:
        raise ValidationError("Current password and new password are required")
    validate_password_strength(data.new_password)
    if not verify_password(data.current_password, current_user.hashed_password):
        raise Unauthorized("Current password is incorrect")
    current_user.hashed_password = get_password_hash(data.new_password)
    # A password change invalidates any outstanding reset link
    current_user.reset_password_token = None
    current_user.reset_password_expires = None
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Password changed",
        f"Password for {current_user.email} was changed by the account holder.",
        actor_user_id=current_user.id,
        actor_email=current_user.email,
    )
    db.commit()
    return {"message": "Password updated successfully"}
