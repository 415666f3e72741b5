"""
Signature Verifier
Decides whether a signed challenge was produced by the controller of an address.

Three schemes are supported:
- EOA: plain 65-byte secp256k1 signature, checked with ecrecover
- ERC-1271: deployed smart account, asked on-chain via isValidSignature
- ERC-6492: signature of a smart account that may not be deployed yet,
  wrapped with its factory call and a magic suffix
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from wallet_auth.core.exceptions import VerificationError

logger = logging.getLogger(__name__)

ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")
ERC6492_MAGIC_SUFFIX = bytes.fromhex("6492" * 16)
EOA_SIGNATURE_LENGTH = 65

ERC1271_ABI = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": "hash", "type": "bytes32"},
            {"internalType": "bytes", "name": "signature", "type": "bytes"},
        ],
        "name": "isValidSignature",
        "outputs": [{"internalType": "bytes4", "name": "", "type": "bytes4"}],
        "stateMutability": "view",
        "type": "function",
    },
]

# UniversalSigValidator from the ERC-6492 reference implementation
UNIVERSAL_VALIDATOR_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "_signer", "type": "address"},
            {"internalType": "bytes32", "name": "_hash", "type": "bytes32"},
            {"internalType": "bytes", "name": "_signature", "type": "bytes"},
        ],
        "name": "isValidSig",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class SignatureScheme(str, Enum):
    EOA = "eoa"
    ERC1271 = "erc1271"
    ERC6492 = "erc6492"


@dataclass(frozen=True)
class VerificationRequest:
    scheme: SignatureScheme
    address: str
    message: str
    message_hash: bytes
    signature: bytes
    # ERC-6492 only
    wrapped_signature: Optional[bytes] = None
    factory: Optional[str] = None
    factory_calldata: Optional[bytes] = None


def personal_message_hash(message: str) -> bytes:
    """EIP-191 hash of a personal_sign message."""
    data = message.encode("utf-8")
    prefix = b"\x19Ethereum Signed Message:\n" + str(len(data)).encode("ascii")
    return bytes(Web3.keccak(prefix + data))


def classify_signature(address: str, message: str, signature: str) -> VerificationRequest:
    """
    Build a tagged verification request from raw client input.

    Raises:
        ValueError: address or signature is not well formed
    """
    if not Web3.is_address(address):
        raise ValueError(f"Not an address: {address!r}")
    checksum = Web3.to_checksum_address(address)
    sig = Web3.to_bytes(hexstr=signature)
    if not sig:
        raise ValueError("Empty signature")
    message_hash = personal_message_hash(message)

    if sig.endswith(ERC6492_MAGIC_SUFFIX):
        try:
            factory, calldata, inner = abi_decode(
                ["address", "bytes", "bytes"], sig[: -len(ERC6492_MAGIC_SUFFIX)]
            )
        except DecodingError as exc:
            raise ValueError(f"Bad ERC-6492 wrapper: {exc}") from exc
        return VerificationRequest(
            scheme=SignatureScheme.ERC6492,
            address=checksum,
            message=message,
            message_hash=message_hash,
            signature=inner,
            wrapped_signature=sig,
            factory=Web3.to_checksum_address(factory),
            factory_calldata=calldata,
        )

    scheme = SignatureScheme.EOA if len(sig) == EOA_SIGNATURE_LENGTH else SignatureScheme.ERC1271
    return VerificationRequest(
        scheme=scheme,
        address=checksum,
        message=message,
        message_hash=message_hash,
        signature=sig,
    )


class SignatureVerifier:
    def __init__(self, w3: Web3, universal_validator_address: Optional[str] = None) -> None:
        self.w3 = w3
        self.universal_validator_address = (
            Web3.to_checksum_address(universal_validator_address)
            if universal_validator_address
            else None
        )

    @classmethod
    def from_rpc(
        cls,
        rpc_url: str,
        timeout: float,
        universal_validator_address: Optional[str] = None,
    ) -> "SignatureVerifier":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        return cls(w3, universal_validator_address)

    def verify(self, address: str, message: str, signature: str) -> bool:
        """
        Check a signature over `message` against `address`.

        Returns:
            True if valid, False if the signature does not match

        Raises:
            VerificationError: the chain node could not be reached or failed
        """
        try:
            request = classify_signature(address, message, signature)
        except ValueError as exc:
            logger.info("Rejecting malformed signature input: %s", exc)
            return False

        logger.debug("Verifying %s signature for %s", request.scheme.value, request.address)
        try:
            if request.scheme is SignatureScheme.EOA:
                return self._verify_eoa(request)
            if request.scheme is SignatureScheme.ERC6492:
                return self._verify_erc6492(request)
            return self._verify_erc1271(request.address, request.message_hash, request.signature)
        except (Web3Exception, OSError, ValueError) as exc:
            # web3 6.x raises a bare ValueError for JSON-RPC error replies
            logger.error("Signature verification backend failed: %s", exc)
            raise VerificationError(f"Signature verification failed: {exc}") from exc

    def _has_code(self, address: str) -> bool:
        return len(self.w3.eth.get_code(address)) > 0

    def _verify_eoa(self, request: VerificationRequest) -> bool:
        try:
            recovered = Account.recover_message(
                encode_defunct(text=request.message), signature=request.signature
            )
        except Exception as exc:
            logger.debug("ecrecover failed: %s", exc)
            recovered = None

        if recovered and Web3.to_checksum_address(recovered) == request.address:
            return True
        # smart accounts may also produce 65-byte signatures
        return self._verify_erc1271(request.address, request.message_hash, request.signature)

    def _verify_erc1271(self, address: str, message_hash: bytes, signature: bytes) -> bool:
        if not self._has_code(address):
            return False
        contract = self.w3.eth.contract(address=address, abi=ERC1271_ABI)
        try:
            result = contract.functions.isValidSignature(message_hash, signature).call()
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            logger.info("isValidSignature rejected signature for %s: %s", address, exc)
            return False
        return bytes(result) == ERC1271_MAGIC_VALUE

    def _verify_erc6492(self, request: VerificationRequest) -> bool:
        if self._has_code(request.address):
            return self._verify_erc1271(request.address, request.message_hash, request.signature)

        if not self.universal_validator_address:
            raise VerificationError(
                "Counterfactual account signature needs a universal validator contract"
            )
        validator = self.w3.eth.contract(
            address=self.universal_validator_address, abi=UNIVERSAL_VALIDATOR_ABI
        )
        try:
            return bool(
                validator.functions.isValidSig(
                    request.address, request.message_hash, request.wrapped_signature
                ).call()
            )
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            logger.info("Universal validator rejected signature for %s: %s", request.address, exc)
            return False
