"""
Wallet Authentication Service.

Challenge/response sign-in for Stellar wallets:

1. The client asks for a nonce for its address and receives the challenge
   message ``"Sign in to CommitLabs: <nonce>"``.
2. The wallet signs the message with its ed25519 key.
3. The backend extracts the nonce from the message, checks it was issued for
   that address and is still live, verifies the signature and consumes the
   nonce, then issues an opaque session token.

Nonces and sessions live in process memory with lazy expiry on read; the
background sweeper removes whatever expired without being read.
"""

from __future__ import annotations

import base64
import binascii
import re
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from stellar_sdk import Keypair
from stellar_sdk.exceptions import BadSignatureError

from commitlabs.core.database import utc_now
from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.io import VerifyRequest
from commitlabs.server.core.config import settings

logger = get_logger(__name__)

CHALLENGE_PREFIX = "Sign in to CommitLabs:"
NONCE_PATTERN = re.compile(r"Sign in to CommitLabs:\s*([a-f0-9]+)", re.IGNORECASE)

MISSING_FIELDS_ERROR = "Missing required fields: address, signature, or message"
INVALID_SIGNATURE_ERROR = "Invalid signature"
INVALID_MESSAGE_FORMAT_ERROR = 'Invalid message format. Expected: "Sign in to CommitLabs: {nonce}"'
INVALID_NONCE_ERROR = "Invalid or expired nonce"
NONCE_ADDRESS_MISMATCH_ERROR = "Nonce address mismatch"

Clock = Callable[[], datetime]


def generate_nonce() -> str:
    """32 lowercase hex characters from 16 random bytes."""
    return secrets.token_hex(16)


def generate_challenge_message(nonce: str) -> str:
    return f"{CHALLENGE_PREFIX} {nonce}"


# =====================================================================
# Nonce store
# =====================================================================


@dataclass(frozen=True)
class NonceRecord:
    nonce: str
    address: str
    created_at: datetime
    expires_at: datetime


class NonceStore:
    """In-memory nonce registry keyed by nonce."""

    def __init__(self, ttl_seconds: int = 300, clock: Clock = utc_now) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[str, NonceRecord] = {}

    def issue(self, address: str) -> NonceRecord:
        now = self._clock()
        record = NonceRecord(nonce=generate_nonce(), address=address, created_at=now, expires_at=now + self.ttl)
        with self._lock:
            self._records[record.nonce] = record
        return record

    def get(self, nonce: str) -> Optional[NonceRecord]:
        """Return the live record for ``nonce``; an expired record is deleted on read."""
        with self._lock:
            record = self._records.get(nonce)
            if record is None:
                return None
            if record.expires_at < self._clock():
                del self._records[nonce]
                return None
            return record

    def consume(self, nonce: str) -> bool:
        """Delete ``nonce``. True only when it was still live."""
        with self._lock:
            record = self._records.pop(nonce, None)
        return record is not None and record.expires_at >= self._clock()

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [n for n, r in self._records.items() if r.expires_at < now]
            for n in expired:
                del self._records[n]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)


# =====================================================================
# Session store
# =====================================================================


@dataclass(frozen=True)
class SessionRecord:
    token: str
    address: str
    created_at: datetime
    expires_at: datetime


class SessionStore:
    """In-memory registry of opaque bearer session tokens."""

    def __init__(self, ttl_seconds: int = 86400, clock: Clock = utc_now) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionRecord] = {}

    def issue(self, address: str) -> SessionRecord:
        now = self._clock()
        record = SessionRecord(
            token=secrets.token_urlsafe(32), address=address, created_at=now, expires_at=now + self.ttl
        )
        with self._lock:
            self._sessions[record.token] = record
        return record

    def get(self, token: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at < self._clock():
                del self._sessions[token]
                return None
            return record

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [t for t, r in self._sessions.items() if r.expires_at < now]
            for t in expired:
                del self._sessions[t]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


# =====================================================================
# Signature verification
# =====================================================================


@dataclass(frozen=True)
class SignatureVerificationResult:
    valid: bool
    address: Optional[str] = None
    error: Optional[str] = None


def decode_signature(signature: str) -> bytes:
    """
    Decode a wallet signature given as base64, or as 128 hex characters.

    Raises:
        ValueError: the signature is neither.
    """
    value = signature.strip()
    if len(value) == 128 and all(c in string.hexdigits for c in value):
        return bytes.fromhex(value)
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Signature is not valid base64: {e}") from e


def verify_stellar_signature(address: str, signature: str, message: str) -> SignatureVerificationResult:
    """Verify an ed25519 signature of ``message`` by ``address``. Never raises."""
    if not address or not signature or not message:
        return SignatureVerificationResult(valid=False, error=MISSING_FIELDS_ERROR)

    try:
        keypair = Keypair.from_public_key(address)
        keypair.verify(message.encode("utf-8"), decode_signature(signature))
    except BadSignatureError:
        return SignatureVerificationResult(valid=False, error=INVALID_SIGNATURE_ERROR)
    except ValueError as e:
        return SignatureVerificationResult(valid=False, error=str(e) or INVALID_SIGNATURE_ERROR)

    return SignatureVerificationResult(valid=True, address=address)


def extract_nonce(message: str) -> Optional[str]:
    match = NONCE_PATTERN.search(message)
    return match.group(1).lower() if match else None


def verify_signature_with_nonce(request: VerifyRequest, nonce_store: NonceStore) -> SignatureVerificationResult:
    """
    Verify a signed challenge and consume its nonce.

    The nonce is consumed only when every check passes, so a failed attempt can
    be retried until the nonce expires.
    """
    nonce = extract_nonce(request.message)
    if nonce is None:
        return SignatureVerificationResult(valid=False, error=INVALID_MESSAGE_FORMAT_ERROR)

    record = nonce_store.get(nonce)
    if record is None:
        return SignatureVerificationResult(valid=False, error=INVALID_NONCE_ERROR)
    if record.address != request.address:
        return SignatureVerificationResult(valid=False, error=NONCE_ADDRESS_MISMATCH_ERROR)

    result = verify_stellar_signature(request.address, request.signature, request.message)
    if not result.valid:
        return result

    if not nonce_store.consume(nonce):
        return SignatureVerificationResult(valid=False, error=INVALID_NONCE_ERROR)
    return result


def verify_session_token(token: Optional[str], store: SessionStore) -> Tuple[bool, Optional[str]]:
    if not token:
        return False, None
    record = store.get(token)
    if record is None:
        return False, None
    return True, record.address


# =====================================================================
# Singletons
# =====================================================================

_nonce_store: Optional[NonceStore] = None
_session_store: Optional[SessionStore] = None


def get_nonce_store() -> NonceStore:
    global _nonce_store
    if _nonce_store is None:
        _nonce_store = NonceStore(ttl_seconds=settings.auth.nonce_ttl_seconds)
    return _nonce_store


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(ttl_seconds=settings.auth.session_ttl_seconds)
    return _session_store
