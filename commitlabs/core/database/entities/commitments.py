"""
Commitment entity models.

A commitment locks an amount of an asset for a fixed duration under a risk
profile. Attestations mutate its value, drawdown, yield and compliance score
while it is active.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from commitlabs.core.models.domain import CommitmentStatus, CommitmentType

from ..base import Base, utc_now


class CommitmentBase(Base):
    """Base fields for commitment entity."""

    type: CommitmentType = Field(description="Risk profile")
    status: CommitmentStatus = Field(default=CommitmentStatus.active, index=True, description="Lifecycle status")
    asset: str = Field(max_length=12, index=True, description="Committed asset code")

    # Figures
    amount: float = Field(description="Committed amount")
    current_value: float = Field(description="Current marked value")
    max_loss_percent: float = Field(description="Maximum tolerated drawdown in percent")
    current_drawdown_percent: float = Field(default=0.0, description="Latest attested drawdown in percent")
    compliance_score: int = Field(default=100, description="Compliance score 0-100")
    current_yield: float = Field(default=0.0, description="Yield in percent of the committed amount")
    fees_generated: float = Field(default=0.0, description="Accumulated fees")

    owner_address: str = Field(max_length=56, index=True, description="Stellar address of the owner")
    duration_days: int = Field(description="Duration in days")
    tx_hash: Optional[str] = Field(default=None, max_length=128, description="Latest chain transaction hash")


class Commitment(CommitmentBase, table=True):
    """Entity for a liquidity commitment.

    Table: cl_commitments
    """

    __tablename__ = "cl_commitments"

    id: str = Field(primary_key=True, max_length=32)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    expires_at: datetime = Field(index=True)
    settled_at: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == CommitmentStatus.active

    def __repr__(self) -> str:
        return f"Commitment(id={self.id}, type={self.type}, status={self.status})"
