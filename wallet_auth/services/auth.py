"""
Authentication Service
Sign-in with a wallet signature: nonce challenge, verification, sessions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from web3 import Web3

from wallet_auth.core.exceptions import (
    AuthError,
    InvalidOrReusedNonce,
    InvalidSession,
    SignatureInvalid,
)
from wallet_auth.services.nonce_store import NonceStore
from wallet_auth.services.session_store import Session, SessionStore
from wallet_auth.services.siwe import NonceIssuer, extract_nonce

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    NONCE_ISSUED = "NONCE_ISSUED"
    MESSAGE_SIGNED = "MESSAGE_SIGNED"
    VERIFYING = "VERIFYING"
    AUTHENTICATED = "AUTHENTICATED"
    REJECTED = "REJECTED"


class Verifier(Protocol):
    def verify(self, address: str, message: str, signature: str) -> bool:
        ...


@dataclass(frozen=True)
class SignInResult:
    session_token: str
    address: str
    expires_in: int
    state: AuthState = AuthState.AUTHENTICATED


@dataclass(frozen=True)
class SessionCheck:
    valid: bool
    address: Optional[str] = None
    expires_at: Optional[float] = None


class AuthService:
    """Coordinates nonces, signature verification and sessions."""

    def __init__(
        self,
        nonce_store: NonceStore,
        session_store: SessionStore,
        verifier: Verifier,
        issuer: Optional[NonceIssuer] = None,
    ) -> None:
        self.nonce_store = nonce_store
        self.session_store = session_store
        self.verifier = verifier
        self.issuer = issuer or NonceIssuer(nonce_store)

    def issue_nonce(self) -> str:
        return self.issuer.issue()

    def complete_sign_in(self, address: str, message: str, signature: str) -> SignInResult:
        """
        Finish a sign-in attempt whose challenge the wallet has signed.

        The nonce is consumed before the signature is checked and is never
        given back, so every issued nonce allows exactly one attempt.

        Args:
            address: Account the client claims to control
            message: Signed challenge containing a "Nonce: <value>" line
            signature: Hex signature over `message`

        Returns:
            SignInResult with the new session token

        Raises:
            MalformedMessage: no single nonce in the message
            InvalidOrReusedNonce: nonce unknown, expired or already used
            SignatureInvalid: signature does not match `address`
            VerificationError: the verification backend failed
        """
        state = AuthState.MESSAGE_SIGNED
        try:
            nonce = extract_nonce(message)

            if not self.nonce_store.consume(nonce):
                raise InvalidOrReusedNonce()

            state = AuthState.VERIFYING
            logger.info("Verifying signature for address %s", address)
            if not self.verifier.verify(address, message, signature):
                raise SignatureInvalid()
        except AuthError as exc:
            logger.warning(
                "Sign-in %s -> %s for %s: %s",
                state.value,
                AuthState.REJECTED.value,
                address,
                exc.code,
            )
            raise

        bound_address = Web3.to_checksum_address(address)
        token = self.session_store.create(bound_address)
        logger.info("Signature valid, %s is %s", bound_address, AuthState.AUTHENTICATED.value)
        return SignInResult(
            session_token=token,
            address=bound_address,
            expires_in=self.session_store.ttl_seconds,
        )

    def check_session(self, token: str) -> SessionCheck:
        session = self.session_store.get(token)
        if session is None:
            return SessionCheck(valid=False)
        return SessionCheck(valid=True, address=session.address, expires_at=session.expires_at)

    def require_session(self, token: Optional[str]) -> Session:
        session = self.session_store.get(token) if token else None
        if session is None:
            raise InvalidSession()
        return session

    def sign_out(self, token: str) -> bool:
        self.session_store.revoke(token)
        logger.info("Session revoked")
        return True
