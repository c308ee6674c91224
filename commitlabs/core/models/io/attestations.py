"""
Attestation I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from commitlabs.core.models.domain import (
    AttestationSeverity,
    AttestationType,
    AttestationVerdict,
)

from .common import ApiModel, StellarAddress, UtcDatetime


class AttestationCreate(ApiModel):
    """Schema for recording an attestation against an active commitment."""

    commitment_id: str = Field(min_length=1, description="Attested commitment", examples=["CMT-001"])
    type: AttestationType = Field(description="Kind of attestation", examples=["health_check"])
    verdict: Optional[AttestationVerdict] = Field(
        default=None, description="Attester verdict. Derived from the severity when omitted."
    )
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    tx_hash: Optional[str] = Field(default=None, max_length=128, description="On-chain attestation transaction")
    attester_address: Optional[StellarAddress] = Field(default=None, description="Stellar address of the attester")
    observed_at: Optional[datetime] = Field(default=None, description="Observation time. Defaults to now.")
    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific payload (complianceScore, feeAmount, drawdownPercent).",
        examples=[{"drawdownPercent": 1.5}],
    )


class AttestationRead(ApiModel):
    """Schema for reading an attestation from API."""

    id: str
    commitment_id: str
    type: AttestationType
    verdict: AttestationVerdict
    severity: AttestationSeverity
    title: Optional[str] = None
    description: Optional[str] = None
    tx_hash: Optional[str] = None
    attester_address: Optional[str] = None
    observed_at: UtcDatetime
    details: Dict[str, Any] = Field(default_factory=dict)
