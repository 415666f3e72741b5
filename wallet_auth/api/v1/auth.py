from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from wallet_auth.core.deps import get_auth_service, get_current_session
from wallet_auth.core.exceptions import InvalidSession, MissingSessionToken
from wallet_auth.schemas.auth import (
    NonceResponse,
    SessionResponse,
    SignOutRequest,
    SignOutResponse,
    VerifyRequest,
    VerifyResponse,
)
from wallet_auth.services.auth import AuthService
from wallet_auth.services.session_store import Session

router = APIRouter()


def _epoch_ms(seconds: float) -> int:
    return int(seconds * 1000)


# -----------------------------
# SIWE challenge / response
# -----------------------------

@router.post("/auth/nonce", response_model=NonceResponse)
@router.get("/auth/nonce", response_model=NonceResponse)
def issue_nonce(auth: AuthService = Depends(get_auth_service)):
    return NonceResponse(nonce=auth.issue_nonce())


@router.post("/auth/verify", response_model=VerifyResponse)
def verify_signature(payload: VerifyRequest, auth: AuthService = Depends(get_auth_service)):
    # AuthError subclasses are turned into responses by the app's exception handler
    result = auth.complete_sign_in(payload.address, payload.message, payload.signature)
    return VerifyResponse(
        session_token=result.session_token,
        address=result.address,
        expires_in=result.expires_in,
    )


@router.get("/auth/verify", response_model=SessionResponse)
def check_session(token: Optional[str] = None, auth: AuthService = Depends(get_auth_service)):
    if not token:
        raise MissingSessionToken()

    status = auth.check_session(token)
    if not status.valid:
        raise InvalidSession()

    return SessionResponse(address=status.address, expires_at=_epoch_ms(status.expires_at))


@router.delete("/auth/verify", response_model=SignOutResponse)
def sign_out(payload: SignOutRequest, auth: AuthService = Depends(get_auth_service)):
    if not payload.token:
        raise MissingSessionToken()

    auth.sign_out(payload.token)
    return SignOutResponse()


@router.get("/auth/me", response_model=SessionResponse)
def me(session: Session = Depends(get_current_session)):
    return SessionResponse(address=session.address, expires_at=_epoch_ms(session.expires_at))
