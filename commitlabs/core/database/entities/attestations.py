"""
Attestation entity models.

Attestations are append-only observations about a commitment.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import JSON, Column, Field

from commitlabs.core.models.domain import (
    AttestationSeverity,
    AttestationType,
    AttestationVerdict,
)

from ..base import Base, utc_now


class AttestationBase(Base):
    """Base fields for attestation entity."""

    commitment_id: str = Field(foreign_key="cl_commitments.id", index=True, max_length=32)
    type: AttestationType = Field(description="Kind of attestation")
    verdict: AttestationVerdict = Field(description="Attester verdict")
    severity: AttestationSeverity = Field(index=True, description="Derived severity")
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None)
    tx_hash: Optional[str] = Field(default=None, max_length=128)
    attester_address: Optional[str] = Field(default=None, max_length=56)


class Attestation(AttestationBase, table=True):
    """Entity for a commitment attestation.

    Table: cl_attestations
    """

    __tablename__ = "cl_attestations"

    id: str = Field(primary_key=True, max_length=32)
    observed_at: datetime = Field(default_factory=utc_now, index=True)
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    def __repr__(self) -> str:
        return f"Attestation(id={self.id}, commitment_id={self.commitment_id}, type={self.type})"
