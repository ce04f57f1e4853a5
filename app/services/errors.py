"""Account-flow failures. Each carries the HTTP status and the message returned as {"error": ...}."""


class AuthFlowError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthFlowError):
    status_code = 400
    default_message = "Invalid request"


class InvalidCode(AuthFlowError):
    status_code = 400
    default_message = "Invalid verification code"


class InvalidOrExpiredToken(AuthFlowError):
    """Wrong and expired tokens/codes are reported identically."""
    status_code = 400
    default_message = "Invalid or expired reset token"


class Unauthorized(AuthFlowError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AuthFlowError):
    status_code = 403
    default_message = "Your account has been deactivated. Please contact an administrator."


class NotFound(AuthFlowError):
    status_code = 404
    default_message = "Not found"


class Conflict(AuthFlowError):
    status_code = 409
    default_message = "User already exists with this email address"


class RateLimited(AuthFlowError):
    status_code = 429
    default_message = "Please wait before requesting another OTP"

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class TooManyAttempts(AuthFlowError):
    status_code = 429
    default_message = "Maximum verification attempts reached. Please request a new code."


class DeliveryError(AuthFlowError):
    status_code = 500
    default_message = "Failed to send verification email. Please try again."
