"""Domain enums shared by entities, services and API schemas."""

from .enums import (
    DEFAULT_MAX_LOSS_PERCENT,
    AttestationSeverity,
    AttestationType,
    AttestationVerdict,
    CommitmentStatus,
    CommitmentType,
    Environment,
    ListingStatus,
    SortOrder,
)

__all__ = [
    "DEFAULT_MAX_LOSS_PERCENT",
    "AttestationSeverity",
    "AttestationType",
    "AttestationVerdict",
    "CommitmentStatus",
    "CommitmentType",
    "Environment",
    "ListingStatus",
    "SortOrder",
]
