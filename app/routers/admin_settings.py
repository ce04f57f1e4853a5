"""Admin: email notification settings."""
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.models.user import User
from app.services.app_settings import get_all_settings, initialize_defaults, update_settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/email-settings")
def read_email_settings(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    initialize_defaults(db, updated_by_id=admin.id)
    return {"settings": get_all_settings(db)}


@router.put("/email-settings")
def write_email_settings(
    body: dict = Body(...),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    settings = update_settings(db, body.get("settings"), updated_by_id=admin.id)
    return {"message": "Email notification settings updated successfully", "settings": settings}
