"""Domain enums for commitments, attestations and marketplace listings."""

from __future__ import annotations

from enum import Enum


class CommitmentType(str, Enum):
    """
    Risk profile of a commitment.

    The profile bounds the maximum loss a commitment may tolerate before an
    attestation flags it as violated.
    """

    safe = "Safe"
    balanced = "Balanced"
    aggressive = "Aggressive"

    @property
    def default_max_loss_percent(self) -> float:
        return DEFAULT_MAX_LOSS_PERCENT[self]


DEFAULT_MAX_LOSS_PERCENT = {
    CommitmentType.safe: 2.0,
    CommitmentType.balanced: 8.0,
    CommitmentType.aggressive: 100.0,
}


class CommitmentStatus(str, Enum):
    """Lifecycle status of a commitment. Only ``active`` commitments may change state."""

    active = "Active"
    settled = "Settled"
    violated = "Violated"
    early_exit = "Early Exit"


class AttestationType(str, Enum):
    """Kinds of attestation emitted for an active commitment."""

    health_check = "health_check"
    violation = "violation"
    fee_generation = "fee_generation"
    drawdown = "drawdown"


class AttestationVerdict(str, Enum):
    """Outcome reported by the attester."""

    passed = "pass"
    failed = "fail"
    unknown = "unknown"


class AttestationSeverity(str, Enum):
    """Severity derived from an attestation. Ordered ok < warning < violation."""

    ok = "ok"
    warning = "warning"
    violation = "violation"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AttestationSeverity.ok: 0,
    AttestationSeverity.warning: 1,
    AttestationSeverity.violation: 2,
}


class ListingStatus(str, Enum):
    """Lifecycle status of a marketplace listing."""

    active = "Active"
    sold = "Sold"
    cancelled = "Cancelled"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class Environment(str, Enum):
    """Deployment environment of the backend."""

    development = "development"
    preview = "preview"
    production = "production"
    test = "test"
