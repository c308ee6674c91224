"""
API I/O schemas.

Request bodies and response payloads for every CommitLabs endpoint.
"""

from .attestations import AttestationCreate, AttestationRead
from .auth import (
    LogoutResponse,
    NonceRequest,
    NonceResponse,
    SessionInfo,
    VerifyRequest,
    VerifyResponse,
)
from .commitments import (
    CommitmentCreate,
    CommitmentRead,
    CommitmentStats,
    EarlyExitRequest,
    EarlyExitResult,
    SettlementResult,
    SettleRequest,
)
from .common import ApiModel, StellarAddress, UtcDatetime, to_utc_naive
from .marketplace import (
    ListingCancel,
    ListingCreate,
    ListingPurchase,
    MarketplaceCard,
    MarketplaceListingsPayload,
    MarketplaceListingView,
)
from .metrics import ChainHealth, HealthMetrics

__all__ = [
    "ApiModel",
    "AttestationCreate",
    "AttestationRead",
    "ChainHealth",
    "CommitmentCreate",
    "CommitmentRead",
    "CommitmentStats",
    "EarlyExitRequest",
    "EarlyExitResult",
    "HealthMetrics",
    "ListingCancel",
    "ListingCreate",
    "ListingPurchase",
    "LogoutResponse",
    "MarketplaceCard",
    "MarketplaceListingView",
    "MarketplaceListingsPayload",
    "NonceRequest",
    "NonceResponse",
    "SessionInfo",
    "SettleRequest",
    "SettlementResult",
    "StellarAddress",
    "UtcDatetime",
    "VerifyRequest",
    "VerifyResponse",
    "to_utc_naive",
]
