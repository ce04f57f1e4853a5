"""Transactional email (Mailgun preferred, SendGrid fallback) for signup and password reset."""
import logging
from datetime import datetime, timezone

from app.config import get_settings

log = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"

SIGNATURE_HTML = "<p>Best regards,<br>Team SourcingScreen<br>partner@sourcingscreen.com<br>www.sourcingscreen.com</p>"
SIGNATURE_TEXT = "Best regards,\nTeam SourcingScreen\npartner@sourcingscreen.com\nwww.sourcingscreen.com"


def _mask(email: str) -> str:
    local, _, domain = (email or "").partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun (preferred) or SendGrid. Returns True only if a provider accepted it."""
    settings = get_settings()
    if settings.mailgun_api_key and settings.mailgun_domain:
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.sendgrid_api_key:
        return _send_email_sendgrid(to_email, subject, html_content, text_content=text_content, settings=settings)
    log.warning(
        "[Email] NOT SENT: to=%s subject=%s. Set MAILGUN_API_KEY and MAILGUN_DOMAIN (or SENDGRID_API_KEY) in .env.",
        _mask(to_email),
        subject,
    )
    return False


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    import httpx

    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        # Mailgun drops mail whose sender is outside the sending domain
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    if settings.mail_reply_to:
        data["h:Reply-To"] = settings.mail_reply_to
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if 200 <= r.status_code < 300:
                log.info("[Mailgun] accepted: to=%s subject=%s", _mask(to_email), subject)
                return True
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                log.warning("[Mailgun] 401 with US endpoint. Retrying with EU endpoint")
                r2 = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
                if 200 <= r2.status_code < 300:
                    log.info("[Mailgun] accepted (EU): to=%s subject=%s", _mask(to_email), subject)
                    return True
                log.error("[Mailgun] EU request failed: status=%s body=%s", r2.status_code, r2.text[:500])
                return False
            log.error("[Mailgun] API failed: status=%s to=%s body=%s", r.status_code, _mask(to_email), r.text[:500])
            return False
    except httpx.HTTPError as e:
        log.error("[Mailgun] transport error: to=%s error=%s: %s", _mask(to_email), type(e).__name__, e)
        return False


def _send_email_sendgrid(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    message = Mail(
        from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content or "",
    )
    try:
        SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as e:  # SDK raises python_http_client errors and urllib errors
        log.error("[SendGrid] send failed: to=%s error=%s: %s", _mask(to_email), type(e).__name__, e)
        return False
    log.info("[SendGrid] accepted: to=%s subject=%s", _mask(to_email), subject)
    return True


def dispatch_best_effort(send, *args, **kwargs) -> None:
    """Run a send_* function for a fire-and-forget email: failures are logged, never raised."""
    name = getattr(send, "__name__", "send")
    try:
        if not send(*args, **kwargs):
            log.warning("[Email] %s was not delivered", name)
    except Exception:
        log.exception("[Email] %s failed", name)


def send_otp_email(to_email: str, name: str, otp: str) -> bool:
    """Signup verification code. The code expires in 10 minutes."""
    subject = "Verify Your Email Address - OTP Code"
    text = (
        f"Hello {name}!\n\n"
        "Thank you for registering with our platform. To complete your registration, "
        "please verify your email address using the OTP code below:\n\n"
        f"Your verification code is: {otp}\n\n"
        "This code will expire in 10 minutes.\n\n"
        "Security Notice: If you didn't request this verification code, please ignore this email. "
        "Never share your OTP with anyone.\n\n"
        f"{SIGNATURE_TEXT}"
    )
    html = f"""
    <h2>Hello {name}!</h2>
    <p>Thank you for registering with our platform. To complete your registration, please verify your email address using the OTP code below:</p>
    <p>Your verification code is: <strong style="font-size:1.6em;letter-spacing:0.3em;">{otp}</strong></p>
    <p>This code will expire in 10 minutes.</p>
    <p><strong>Security Notice:</strong> If you didn't request this verification code, please ignore this email. Never share your OTP with anyone.</p>
    {SIGNATURE_HTML}
    """
    return send_email(to_email, subject, html, text_content=text)


def send_password_reset_email(to_email: str, name: str, reset_url: str) -> bool:
    subject = "Reset Your Password - SourcingScreen"
    text = (
        f"Hello {name},\n\n"
        "We received a request to reset your password. Open the link below to choose a new one:\n\n"
        f"{reset_url}\n\n"
        "This link will expire in 1 hour. If you didn't request a password reset, you can ignore this email.\n\n"
        f"{SIGNATURE_TEXT}"
    )
    html = f"""
    <p>Hello {name},</p>
    <p>We received a request to reset your password. Click the link below to choose a new one:</p>
    <p><a href="{reset_url}">Reset your password</a></p>
    <p>This link will expire in 1 hour. If you didn't request a password reset, you can ignore this email.</p>
    {SIGNATURE_HTML}
    """
    return send_email(to_email, subject, html, text_content=text)


def send_password_reset_confirmation_email(to_email: str, name: str) -> bool:
    changed_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    subject = "Your Password Has Been Reset - SourcingScreen"
    text = (
        f"Hello {name},\n\n"
        f"Your password was reset successfully on {changed_at}. You can now log in with your new password.\n\n"
        "If you did not make this change, contact our support team immediately.\n\n"
        f"{SIGNATURE_TEXT}"
    )
    html = f"""
    <p>Hello {name},</p>
    <p>Your password was reset successfully on {changed_at}. You can now log in with your new password.</p>
    <p>If you did not make this change, contact our support team immediately.</p>
    {SIGNATURE_HTML}
    """
    return send_email(to_email, subject, html, text_content=text)


def send_welcome_email(to_email: str, name: str) -> bool:
    """Welcome for company, admin and internal accounts after email verification."""
    subject = "Welcome to SourcingScreen!"
    text = (
        f"Hi {name}, welcome to SourcingScreen. Your account is verified and ready. "
        "Sign in to post jobs and review the candidates recruiters submit.\n\n"
        f"{SIGNATURE_TEXT}"
    )
    html = f"""
    <p>Hi {name},</p>
    <p>Welcome to <strong>SourcingScreen</strong>. Your account is verified and ready.</p>
    <p>Sign in to post jobs and review the candidates recruiters submit.</p>
    {SIGNATURE_HTML}
    """
    return send_email(to_email, subject, html, text_content=text)


def send_recruiter_welcome_email(to_email: str, name: str) -> bool:
    subject = "Welcome to SourcingScreen - Recruiter Partner Program"
    text = (
        f"Hi {name}, welcome to the SourcingScreen recruiter partner program. Your account is verified. "
        "Sign in to browse open jobs and submit candidates.\n\n"
        f"{SIGNATURE_TEXT}"
    )
    html = f"""
    <p>Hi {name},</p>
    <p>Welcome to the <strong>SourcingScreen</strong> recruiter partner program. Your account is verified.</p>
    <p>Sign in to browse open jobs and submit candidates.</p>
    {SIGNATURE_HTML}
    """
    return send_email(to_email, subject, html, text_content=text)
