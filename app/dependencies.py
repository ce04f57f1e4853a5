"""Shared dependencies: DB session, current user."""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.config import get_settings
from app.database import get_db
from app.models.user import User, UserRole
from app.services.auth import decode_token_with_error
from app.services.errors import Forbidden, Unauthorized

security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """Session from the Bearer header, falling back to the auth-token cookie."""
    token_str = (credentials.credentials if credentials else "") or request.cookies.get(get_settings().session_cookie_name, "")
    token_str = (token_str or "").strip()
    if not token_str:
        raise Unauthorized()
    payload, _ = decode_token_with_error(token_str)
    if not payload:
        raise Unauthorized("Invalid token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Forbidden()
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise Forbidden("Admin access required")
    return current_user
