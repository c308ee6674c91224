"""
Commitment I/O models for API requests and responses.

These schemas define the contract between the API and clients for creating,
listing, settling and exiting commitments.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import Field

from commitlabs.core.models.domain import CommitmentStatus, CommitmentType

from .common import ApiModel, StellarAddress, UtcDatetime

if TYPE_CHECKING:
    from commitlabs.core.database.entities.commitments import Commitment


class CommitmentCreate(ApiModel):
    """Schema for creating a commitment via API."""

    type: CommitmentType = Field(description="Risk profile of the commitment", examples=["Balanced"])
    asset: str = Field(min_length=1, max_length=12, description="Committed asset code", examples=["USDC"])
    amount: float = Field(gt=0, allow_inf_nan=False, description="Committed amount in asset units", examples=[50000])
    duration_days: int = Field(ge=1, le=365, description="Commitment duration in days", examples=[30])
    max_loss_percent: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        allow_inf_nan=False,
        description="Maximum tolerated drawdown in percent. Defaults to the profile limit.",
    )
    owner_address: StellarAddress = Field(description="Stellar address of the committing wallet")


class CommitmentRead(ApiModel):
    """Schema for reading a commitment from API, including derived progress fields."""

    id: str
    type: CommitmentType
    status: CommitmentStatus
    asset: str
    amount: float
    current_value: float
    change_percent: float
    duration_progress: float
    days_remaining: int
    compliance_score: int
    max_loss_percent: float
    current_drawdown_percent: float
    current_yield: float
    fees_generated: float
    owner_address: str
    duration_days: int
    created_at: UtcDatetime
    expires_at: UtcDatetime
    settled_at: Optional[UtcDatetime] = None
    tx_hash: Optional[str] = None

    @classmethod
    def from_entity(cls, commitment: "Commitment", now: datetime) -> "CommitmentRead":
        total_seconds = (commitment.expires_at - commitment.created_at).total_seconds()
        elapsed_seconds = (now - commitment.created_at).total_seconds()
        remaining_seconds = (commitment.expires_at - now).total_seconds()

        if total_seconds > 0:
            progress = min(max(elapsed_seconds / total_seconds * 100, 0.0), 100.0)
        else:
            progress = 100.0
        days_remaining = max(math.ceil(remaining_seconds / 86400), 0)
        change = (commitment.current_value - commitment.amount) / commitment.amount * 100 if commitment.amount else 0.0

        return cls(
            id=commitment.id,
            type=commitment.type,
            status=commitment.status,
            asset=commitment.asset,
            amount=commitment.amount,
            current_value=commitment.current_value,
            change_percent=round(change, 2),
            duration_progress=round(progress, 2),
            days_remaining=days_remaining,
            compliance_score=commitment.compliance_score,
            max_loss_percent=commitment.max_loss_percent,
            current_drawdown_percent=commitment.current_drawdown_percent,
            current_yield=commitment.current_yield,
            fees_generated=commitment.fees_generated,
            owner_address=commitment.owner_address,
            duration_days=commitment.duration_days,
            created_at=commitment.created_at,
            expires_at=commitment.expires_at,
            settled_at=commitment.settled_at,
            tx_hash=commitment.tx_hash,
        )


class CommitmentStats(ApiModel):
    """Aggregated figures for a wallet (or the whole platform)."""

    total_active: int
    total_committed_value: float
    avg_compliance_score: float
    total_fees_generated: float


class SettleRequest(ApiModel):
    """Optional body for settling a matured commitment."""

    caller_address: Optional[StellarAddress] = Field(
        default=None, description="Wallet requesting settlement. Must be the owner when given."
    )


class SettlementResult(ApiModel):
    commitment_id: str
    settlement_amount: float
    final_status: CommitmentStatus
    tx_hash: Optional[str] = None
    reference: str
    settled_at: UtcDatetime


class EarlyExitRequest(ApiModel):
    """Body for exiting an active commitment before maturity."""

    caller_address: StellarAddress = Field(description="Wallet requesting the exit. Must be the owner.")


class EarlyExitResult(ApiModel):
    commitment_id: str
    exit_amount: float
    penalty_amount: float
    penalty_percent: float
    final_status: CommitmentStatus
    tx_hash: Optional[str] = None
    reference: str
    exited_at: UtcDatetime
