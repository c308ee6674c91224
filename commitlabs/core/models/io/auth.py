"""
Wallet authentication I/O models.
"""

from __future__ import annotations

from pydantic import Field

from .common import ApiModel, StellarAddress, UtcDatetime


class NonceRequest(ApiModel):
    address: StellarAddress = Field(description="Stellar address requesting a challenge")


class NonceResponse(ApiModel):
    nonce: str
    message: str = Field(description="Challenge message the wallet must sign")
    expires_at: UtcDatetime


class VerifyRequest(ApiModel):
    address: str = Field(min_length=1, description="Stellar address that signed the challenge")
    signature: str = Field(min_length=1, description="Base64 (or hex) ed25519 signature of the message")
    message: str = Field(min_length=1, description="The signed challenge message")


class VerifyResponse(ApiModel):
    verified: bool
    address: str
    message: str
    session_token: str
    expires_at: UtcDatetime


class SessionInfo(ApiModel):
    address: str
    expires_at: UtcDatetime


class LogoutResponse(ApiModel):
    revoked: bool
