"""
Auth Schemas for API Request/Response
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Base for responses; fields declare camelCase aliases the browser client expects."""

    model_config = ConfigDict(populate_by_name=True)


class NonceResponse(BaseModel):
    nonce: str


class VerifyRequest(BaseModel):
    address: str = Field(..., pattern=r"^0x[a-fA-F0-9]{40}$", description="Claimed wallet address")
    message: str = Field(..., min_length=1, description="Signed challenge message")
    signature: str = Field(..., pattern=r"^0x[a-fA-F0-9]+$", description="Hex signature")


class VerifyResponse(CamelModel):
    session_token: str = Field(..., alias="sessionToken")
    address: str
    expires_in: int = Field(..., alias="expiresIn", description="Session lifetime in seconds")


class SessionResponse(CamelModel):
    valid: bool = True
    address: str
    expires_at: int = Field(..., alias="expiresAt", description="Expiry as epoch milliseconds")


class SignOutRequest(BaseModel):
    token: Optional[str] = None


class SignOutResponse(BaseModel):
    success: bool = True
    message: str = "Signed out successfully"


class ErrorResponse(BaseModel):
    error: str
    message: str
