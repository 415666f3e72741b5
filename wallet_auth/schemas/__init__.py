from .auth import (
    NonceResponse,
    VerifyRequest,
    VerifyResponse,
    SessionResponse,
    SignOutRequest,
    SignOutResponse,
    ErrorResponse,
)

__all__ = [
    "NonceResponse",
    "VerifyRequest",
    "VerifyResponse",
    "SessionResponse",
    "SignOutRequest",
    "SignOutResponse",
    "ErrorResponse",
]
