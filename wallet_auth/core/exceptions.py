"""
Authentication exceptions
Every failure of the sign-in flow is an AuthError carrying a stable code
and the HTTP status it maps to.
"""


class AuthError(Exception):
    """Base exception for the wallet sign-in flow."""

    code = "AUTH_ERROR"
    status_code = 400

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)
        self.message = message


class MalformedMessage(AuthError):
    """The signed message carries no nonce, or more than one."""

    code = "MalformedMessage"
    status_code = 400


class InvalidOrReusedNonce(AuthError):
    """Nonce is unknown, expired or already consumed."""

    code = "InvalidOrReusedNonce"
    status_code = 401

    def __init__(self, message: str = "Invalid, expired, or reused nonce"):
        super().__init__(message)


class SignatureInvalid(AuthError):
    """The signature does not prove control of the claimed address."""

    code = "SignatureInvalid"
    status_code = 401

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class VerificationError(AuthError):
    """The verification backend itself failed (RPC down, timeout, ...)."""

    code = "VerificationError"
    status_code = 500

    def __init__(self, message: str = "Signature verification failed"):
        super().__init__(message)


class InvalidSession(AuthError):
    """
    Session token is unknown, revoked or expired.

    Absence and expiry are reported the same way so callers cannot tell them
    apart.
    """

    code = "InvalidSession"
    status_code = 401

    def __init__(self, message: str = "Invalid session"):
        super().__init__(message)


class MissingSessionToken(AuthError):
    """Session check or sign-out called without a token."""

    code = "MissingSessionToken"
    status_code = 400

    def __init__(self, message: str = "Missing session token"):
        super().__init__(message)
