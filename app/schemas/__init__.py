from app.schemas.auth import (
    Registration,
    CompanyRegistration,
    RecruiterRegistration,
    AdminRegistration,
    InternalRegistration,
    UserResponse,
    OtpSentResponse,
)
