from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Optional

from web3 import Web3

from wallet_auth.core.exceptions import MalformedMessage
from wallet_auth.services.nonce_store import NonceStore

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 16  # 128 bits = 32 hex characters

# EIP-4361 challenge, as produced by the wallet's signInWithEthereum capability:
# <domain> wants you to sign in with your Ethereum account:
# <address>
#
# <statement?>
#
# URI: <uri>
# Version: 1
# Chain ID: <chain_id>
# Nonce: <nonce>
# Issued At: <iso8601>
#
# Only the Nonce line matters to the server; the rest is for the wallet and
# the signature check.
NONCE_LINE_RE = re.compile(r"^Nonce: ([A-Za-z0-9]+)\r?$", re.MULTILINE)


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    return secrets.token_hex(num_bytes)


def extract_nonce(message: str) -> str:
    """
    Pull the single nonce out of a signed challenge message.

    Raises:
        MalformedMessage: no "Nonce: <value>" line, or more than one
    """
    matches = NONCE_LINE_RE.findall(message or "")
    if not matches:
        raise MalformedMessage("Invalid message format: nonce not found")
    if len(matches) > 1:
        raise MalformedMessage("Invalid message format: multiple nonces")
    return matches[0]


def build_challenge_message(
    address: str,
    nonce: str,
    *,
    domain: str,
    uri: str,
    chain_id: int,
    statement: Optional[str] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    issued = (issued_at or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines = [
        f"{domain} wants you to sign in with your Ethereum account:",
        Web3.to_checksum_address(address),
        "",
    ]
    if statement:
        lines += [statement, ""]
    lines += [
        f"URI: {uri}",
        "Version: 1",
        f"Chain ID: {chain_id}",
        f"Nonce: {nonce}",
        f"Issued At: {issued}",
    ]
    return "\n".join(lines)


class NonceIssuer:
    """Hands out fresh nonces and registers them as outstanding."""

    def __init__(self, store: NonceStore, num_bytes: int = NONCE_NUM_BYTES) -> None:
        if num_bytes < NONCE_NUM_BYTES:
            raise ValueError("nonces need at least 128 bits of entropy")
        self.store = store
        self.num_bytes = num_bytes

    def issue(self) -> str:
        nonce = generate_nonce(self.num_bytes)
        self.store.add(nonce)
        logger.info("Generated nonce %s...", nonce[:8])
        return nonce
