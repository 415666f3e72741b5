from datetime import datetime, timezone

import pytest

from wallet_auth.core.exceptions import MalformedMessage
from wallet_auth.services.siwe import build_challenge_message, extract_nonce, generate_nonce


class TestExtractNonce:
    def test_reads_nonce_line(self):
        assert extract_nonce("Sign in\nNonce: abc123\n") == "abc123"

    def test_reads_nonce_from_full_siwe_message(self):
        message = """localhost wants you to sign in with your Ethereum account:
0x742d35Cc6634C0532925a3b844Bc454e4438f44e

Sign in to Split Payment

URI: http://localhost:8000
Version: 1
Chain ID: 84532
Nonce: 9f86d081884c7d659a2feaa0c55ad015
Issued At: 2024-01-01T00:00:00Z"""

        assert extract_nonce(message) == "9f86d081884c7d659a2feaa0c55ad015"

    def test_handles_crlf_line_endings(self):
        assert extract_nonce("Sign in\r\nNonce: abc123\r\nIssued At: x") == "abc123"

    @pytest.mark.parametrize(
        "message",
        [
            "",
            "This is not a valid SIWE message",
            "Nonce:\n",
            "My Nonce: abc123",
            "Nonce: abc123\nNonce: def456",
            "Nonce: abc123\nNonce: abc123",
        ],
    )
    def test_missing_or_ambiguous_nonce_is_malformed(self, message):
        with pytest.raises(MalformedMessage):
            extract_nonce(message)


class TestChallengeMessage:
    def test_round_trips_through_extract_nonce(self, account):
        # Arrange
        nonce = generate_nonce()

        # Act
        message = build_challenge_message(
            account.address.lower(),
            nonce,
            domain="localhost",
            uri="http://localhost:8000",
            chain_id=84532,
            statement="Sign in to Split Payment",
            issued_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        # Assert
        lines = message.split("\n")
        assert lines[0] == "localhost wants you to sign in with your Ethereum account:"
        assert lines[1] == account.address
        assert "Chain ID: 84532" in lines
        assert lines[-1] == "Issued At: 2024-01-01T00:00:00Z"
        assert extract_nonce(message) == nonce

    def test_statement_is_optional(self, account):
        message = build_challenge_message(
            account.address, "abc123", domain="d", uri="http://d", chain_id=1
        )

        assert message.split("\n")[3] == "URI: http://d"
