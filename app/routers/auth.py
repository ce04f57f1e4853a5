"""Signup with email OTP, login/logout, and password reset."""
from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    EmailOnlyRequest,
    LoginRequest,
    OtpSentResponse,
    ResetPasswordRequest,
    VerifyOtpRequest,
    user_to_response,
)
from app.services import notifications
from app.services.audit_log import create_log, CATEGORY_FAILED_ATTEMPT
from app.services.auth import create_access_token, verify_password
from app.services.errors import Forbidden, Unauthorized, ValidationError
from app.services.password_reset import redeem_password_reset, request_password_reset
from app.services.registration import (
    normalize_email,
    request_registration,
    resend_otp,
    verify_otp,
    welcome_sender_for,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_info(request: Request) -> tuple[str | None, str | None]:
    ip = request.client.host if request.client else None
    ua = (request.headers.get("user-agent") or "").strip() or None
    return ip, ua


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
        max_age=60 * 60 * 24 * settings.session_token_expire_days,
    )


@router.post("/register-with-otp", response_model=OtpSentResponse)
def register_with_otp(payload: dict = Body(...), db: Session = Depends(get_db)):
    return request_registration(db, payload)


@router.post("/resend-otp", response_model=OtpSentResponse)
def resend(data: EmailOnlyRequest, db: Session = Depends(get_db)):
    return resend_otp(db, data.email)


@router.post("/verify-otp")
def verify(
    request: Request,
    response: Response,
    data: VerifyOtpRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ip, ua = _client_info(request)
    user, token = verify_otp(db, data.email, data.otp, ip_address=ip, user_agent=ua)
    background_tasks.add_task(notifications.dispatch_best_effort, welcome_sender_for(user.role), user.email, user.name)
    _set_session_cookie(response, token)
    return {
        "message": "Account created and verified successfully",
        "user": user_to_response(user),
        "token": token,
    }


@router.post("/forgot-password")
def forgot_password(data: EmailOnlyRequest, db: Session = Depends(get_db)):
    return request_password_reset(db, data.email)


@router.post("/reset-password")
def reset_password(data: ResetPasswordRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    user = redeem_password_reset(db, data.token, data.password)
    background_tasks.add_task(
        notifications.dispatch_best_effort,
        notifications.send_password_reset_confirmation_email,
        user.email,
        user.name,
    )
    return {"message": "Password reset successful. You can now log in with your new password."}


@router.post("/login")
def login(request: Request, response: Response, data: LoginRequest, db: Session = Depends(get_db)):
    email = normalize_email(data.email)
    if not email or not data.password:
        raise ValidationError("Email and password are required")
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        ip, ua = _client_info(request)
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Login failed",
            f"Failed login attempt for email: {email}.",
            actor_email=email,
            ip_address=ip,
            user_agent=ua,
            meta={"reason": "invalid_email_or_password"},
        )
        db.commit()
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Forbidden()
    token = create_access_token(user.id, user.email, user.role)
    _set_session_cookie(response, token)
    return {"user": user_to_response(user), "token": token}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(get_settings().session_cookie_name, path="/", httponly=True)
    return {"success": True}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return user_to_response(current_user)
