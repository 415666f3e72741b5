import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

# Add the parent directory to the path so we can import wallet_auth modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallet_auth.services.auth import AuthService
from wallet_auth.services.nonce_store import InMemoryNonceStore
from wallet_auth.services.session_store import InMemorySessionStore
from wallet_auth.services.signature_verifier import SignatureVerifier

PRIVATE_KEY_1 = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b7"
PRIVATE_KEY_2 = "0x5c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b8"

NONCE_TTL = 600
SESSION_TTL = 7 * 24 * 60 * 60


class FakeClock:
    """Manually advanced stand-in for time.time"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sign(account, message: str) -> str:
    signed = account.sign_message(encode_defunct(text=message))
    return Web3.to_hex(signed.signature)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY_1)


@pytest.fixture
def other_account():
    return Account.from_key(PRIVATE_KEY_2)


@pytest.fixture
def mock_web3():
    """Web3 stand-in where no address has contract code"""
    mock = Mock()
    mock.eth.get_code.return_value = b""
    return mock


@pytest.fixture
def nonce_store(clock):
    return InMemoryNonceStore(NONCE_TTL, clock=clock)


@pytest.fixture
def session_store(clock):
    return InMemorySessionStore(SESSION_TTL, clock=clock)


@pytest.fixture
def verifier(mock_web3):
    return SignatureVerifier(mock_web3)


@pytest.fixture
def auth_service(nonce_store, session_store, verifier):
    return AuthService(nonce_store, session_store, verifier)


@pytest.fixture
def sign_with():
    """Returns a helper that personal_signs a message with an account"""
    return sign
