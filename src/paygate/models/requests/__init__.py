from .accounts import (
    AccountSummary,
    LoginRequest,
    LoginResponse,
    ProfileView,
    SignupRequest,
    SignupResponse,
)
from .payments import (
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationView,
    ReviewRequest,
    SubmitPaymentRequest,
)
from .serde_base import RawPayload, SerdeBase

__all__ = [
    "AccountSummary",
    "ApplicationListResponse",
    "ApplicationResponse",
    "ApplicationView",
    "LoginRequest",
    "LoginResponse",
    "ProfileView",
    "RawPayload",
    "ReviewRequest",
    "SerdeBase",
    "SignupRequest",
    "SignupResponse",
    "SubmitPaymentRequest",
]
