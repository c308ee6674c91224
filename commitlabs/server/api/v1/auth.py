"""
Wallet Authentication API Endpoints.

Challenge/response sign-in for Stellar wallets:

- ``POST /nonce`` issues a nonce and the challenge message to sign
- ``POST /verify`` verifies the signed challenge and opens a session
- ``GET /session`` resolves the bearer session
- ``POST /logout`` revokes the bearer session
"""

from fastapi import APIRouter, Depends

from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.io import (
    LogoutResponse,
    NonceRequest,
    NonceResponse,
    SessionInfo,
    VerifyRequest,
    VerifyResponse,
)
from commitlabs.core.monitoring import log_auth_event
from commitlabs.server.errors import UnauthorizedError
from commitlabs.server.responses import ok
from commitlabs.server.services.auth import (
    generate_challenge_message,
    verify_signature_with_nonce,
)
from commitlabs.server.services.deps import (
    BearerToken,
    NonceStoreDep,
    SessionStoreDep,
    rate_limited,
)

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/nonce",
    summary="Request Sign-in Nonce",
    description="Issue a short-lived nonce and the challenge message the wallet must sign.",
    response_description="Nonce, challenge message and expiry.",
    dependencies=[Depends(rate_limited("auth:nonce"))],
)
async def request_nonce(body: NonceRequest, nonce_store: NonceStoreDep):
    record = nonce_store.issue(body.address)
    log_auth_event("nonce issued", body.address)
    return ok(
        NonceResponse(
            nonce=record.nonce,
            message=generate_challenge_message(record.nonce),
            expires_at=record.expires_at,
        )
    )


@router.post(
    "/verify",
    summary="Verify Signed Challenge",
    description="Verify the wallet signature over the challenge message and open a session.",
    response_description="Verification result with a bearer session token.",
    responses={401: {"description": "Signature, message or nonce rejected"}},
    dependencies=[Depends(rate_limited("auth:verify"))],
)
async def verify(body: VerifyRequest, nonce_store: NonceStoreDep, session_store: SessionStoreDep):
    """
    Verify a signed challenge.

    The nonce embedded in the message must have been issued for ``address`` and
    still be live. It is consumed on success, so a signature cannot be replayed.
    """
    result = verify_signature_with_nonce(body, nonce_store)
    if not result.valid:
        log_auth_event("verification rejected", body.address, success=False, reason=result.error)
        raise UnauthorizedError(result.error)

    session = session_store.issue(body.address)
    log_auth_event("verified", body.address)
    return ok(
        VerifyResponse(
            verified=True,
            address=body.address,
            message="Signature verified successfully",
            session_token=session.token,
            expires_at=session.expires_at,
        )
    )


@router.get(
    "/session",
    summary="Get Session",
    description="Resolve the wallet address of the bearer session token.",
    response_description="Session address and expiry.",
    responses={401: {"description": "Missing, invalid or expired token"}},
    dependencies=[Depends(rate_limited("auth:session"))],
)
async def get_session_info(token: BearerToken, session_store: SessionStoreDep):
    if token is None:
        raise UnauthorizedError("A valid session token is required.")
    record = session_store.get(token)
    if record is None:
        raise UnauthorizedError("Invalid or expired session token.")
    return ok(SessionInfo(address=record.address, expires_at=record.expires_at))


@router.post(
    "/logout",
    summary="Logout",
    description="Revoke the bearer session token.",
    response_description="Whether a session was revoked.",
    responses={401: {"description": "Missing token"}},
    dependencies=[Depends(rate_limited("auth:logout"))],
)
async def logout(token: BearerToken, session_store: SessionStoreDep):
    if token is None:
        raise UnauthorizedError("A valid session token is required.")
    record = session_store.get(token)
    revoked = session_store.revoke(token)
    if record is not None:
        log_auth_event("logout", record.address)
    return ok(LogoutResponse(revoked=revoked))
