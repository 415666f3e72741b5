from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from wallet_auth.core.config import settings
from wallet_auth.services.auth import AuthService
from wallet_auth.services.nonce_store import InMemoryNonceStore, NonceStore, RedisNonceStore
from wallet_auth.services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    Session,
    SessionStore,
)
from wallet_auth.services.signature_verifier import SignatureVerifier
from wallet_auth.services.sweeper import ExpirySweeper


@lru_cache
def get_nonce_store() -> NonceStore:
    if settings.auth_store_backend == "redis":
        return RedisNonceStore.from_url(settings.redis_url, settings.siwe_nonce_ttl_seconds)
    return InMemoryNonceStore(settings.siwe_nonce_ttl_seconds)


@lru_cache
def get_session_store() -> SessionStore:
    if settings.auth_store_backend == "redis":
        return RedisSessionStore.from_url(settings.redis_url, settings.session_ttl_seconds)
    return InMemorySessionStore(settings.session_ttl_seconds)


@lru_cache
def get_signature_verifier() -> SignatureVerifier:
    return SignatureVerifier.from_rpc(
        settings.chain_rpc_url,
        timeout=settings.verifier_timeout_seconds,
        universal_validator_address=settings.universal_validator_address,
    )


@lru_cache
def get_auth_service() -> AuthService:
    return AuthService(
        nonce_store=get_nonce_store(),
        session_store=get_session_store(),
        verifier=get_signature_verifier(),
    )


@lru_cache
def get_expiry_sweeper() -> ExpirySweeper:
    # sweep at least once per nonce lifetime
    interval = min(settings.sweep_interval_seconds, settings.siwe_nonce_ttl_seconds)
    return ExpirySweeper([get_nonce_store(), get_session_store()], interval)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_session(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> Session:
    return auth.require_session(_bearer_token(authorization))
