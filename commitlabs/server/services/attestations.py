"""
Attestation Service.

Records attestations against active commitments and applies their effect:

- health_check: may replace the compliance score (``details.complianceScore``)
- fee_generation: adds ``details.feeAmount`` to fees and current value
- drawdown: records ``details.drawdownPercent`` and re-marks the current value
- violation: always a violation

A violation-severity attestation moves the commitment to Violated and cancels
its active marketplace listing in the same transaction.
"""

from __future__ import annotations

import asyncio
import math
import secrets
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from commitlabs.core.database import SqlRepoBundle, utc_now
from commitlabs.core.database.entities import Attestation, Commitment
from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import (
    AttestationSeverity,
    AttestationType,
    AttestationVerdict,
    CommitmentStatus,
    ListingStatus,
    SortOrder,
)
from commitlabs.core.models.io import AttestationCreate, AttestationRead, to_utc_naive
from commitlabs.core.monitoring import log_attestation_recorded, log_listing_event
from commitlabs.server.errors import ConflictError, NotFoundError, ValidationError

from .pagination import Page, PaginationParams, SortField, apply_query, resolve_sort

logger = get_logger(__name__)

ATTESTATION_SORT_FIELDS: Dict[str, SortField] = {
    "observedAt": SortField("observed_at", SortOrder.desc),
    "severity": SortField(lambda a: a.severity.rank, SortOrder.desc),
}
DEFAULT_ATTESTATION_SORT = "observedAt"

# Drawdown at or above this share of the max loss is reported as a warning.
DRAWDOWN_WARNING_RATIO = 0.8


def new_attestation_id() -> str:
    return f"ATT-{secrets.token_hex(4).upper()}"


def _number(details: Dict[str, Any], key: str, required: bool, low: float, high: Optional[float]) -> Optional[float]:
    value = details.get(key)
    if value is None:
        if required:
            raise ValidationError(f"details.{key} is required for this attestation type.")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"details.{key} must be a number.")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    # NaN compares False against both bounds, so it must be rejected here.
    if not math.isfinite(number):
        raise ValidationError(f"details.{key} must be a finite number.")
    if number < low or (high is not None and number > high):
        bounds = f"between {low:g} and {high:g}" if high is not None else f"at least {low:g}"
        raise ValidationError(f"details.{key} must be {bounds}.")
    return number


def drawdown_severity(drawdown_percent: float, max_loss_percent: float) -> AttestationSeverity:
    if drawdown_percent > max_loss_percent:
        return AttestationSeverity.violation
    if drawdown_percent >= max_loss_percent * DRAWDOWN_WARNING_RATIO:
        return AttestationSeverity.warning
    return AttestationSeverity.ok


def apply_attestation_effect(commitment: Commitment, data: AttestationCreate) -> AttestationSeverity:
    """
    Mutate ``commitment`` according to the attestation and return its severity.

    Raises:
        ValidationError: the type-specific ``details`` are missing or out of range.
    """
    details = data.details

    if data.type == AttestationType.health_check:
        score = _number(details, "complianceScore", required=False, low=0, high=100)
        if score is not None:
            commitment.compliance_score = int(round(score))
        return AttestationSeverity.warning if data.verdict == AttestationVerdict.failed else AttestationSeverity.ok

    if data.type == AttestationType.fee_generation:
        fee = _number(details, "feeAmount", required=True, low=0, high=None)
        if fee == 0:
            raise ValidationError("details.feeAmount must be greater than 0.")
        commitment.fees_generated = round(commitment.fees_generated + fee, 2)
        commitment.current_value = round(commitment.current_value + fee, 2)
        commitment.current_yield = round(commitment.fees_generated / commitment.amount * 100, 2)
        return AttestationSeverity.ok

    if data.type == AttestationType.drawdown:
        drawdown = _number(details, "drawdownPercent", required=True, low=0, high=100)
        commitment.current_drawdown_percent = drawdown
        commitment.current_value = round(commitment.amount * (1 - drawdown / 100) + commitment.fees_generated, 2)
        return drawdown_severity(drawdown, commitment.max_loss_percent)

    return AttestationSeverity.violation


class AttestationService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        write_lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repos = repos
        self.write_lock = write_lock or asyncio.Lock()
        self.clock = clock

    async def list_attestations(
        self,
        params: PaginationParams,
        commitment_id: Optional[str] = None,
        type: Optional[AttestationType] = None,
        verdict: Optional[AttestationVerdict] = None,
        severity: Optional[AttestationSeverity] = None,
    ) -> Page[AttestationRead]:
        sort_field, sort_order = resolve_sort(params, ATTESTATION_SORT_FIELDS, DEFAULT_ATTESTATION_SORT)
        rows = await self.repos.attestations.list(
            {"commitment_id": commitment_id, "type": type, "verdict": verdict, "severity": severity}
        )
        return apply_query(
            [AttestationRead.model_validate(row) for row in rows],
            sort_field=sort_field,
            sort_order=sort_order,
            page=params.page,
            page_size=params.page_size,
        )

    async def create_attestation(self, data: AttestationCreate) -> AttestationRead:
        """
        Raises:
            NotFoundError: unknown commitment.
            ConflictError: the commitment is not active.
            ValidationError: invalid type-specific details.
        """
        async with self.write_lock:
            commitment = await self.repos.commitments.get(data.commitment_id)
            if commitment is None:
                raise NotFoundError("Commitment")
            if not commitment.is_active:
                raise ConflictError(
                    f"Cannot attest commitment {commitment.id}: it is not active (status: {commitment.status.value})."
                )

            severity = apply_attestation_effect(commitment, data)
            verdict = data.verdict
            if verdict is None:
                violated = severity == AttestationSeverity.violation
                verdict = AttestationVerdict.failed if violated else AttestationVerdict.passed

            attestation = Attestation(
                id=new_attestation_id(),
                commitment_id=commitment.id,
                type=data.type,
                verdict=verdict,
                severity=severity,
                title=data.title,
                description=data.description,
                tx_hash=data.tx_hash,
                attester_address=data.attester_address,
                observed_at=to_utc_naive(data.observed_at) if data.observed_at else self.clock(),
                details=dict(data.details),
            )

            rows: List[Any] = [commitment, attestation]
            cancelled = None
            if severity == AttestationSeverity.violation:
                commitment.status = CommitmentStatus.violated
                cancelled = await self.repos.listings.get_active_for_commitment(commitment.id)
                if cancelled is not None:
                    cancelled.status = ListingStatus.cancelled
                    rows.append(cancelled)

            await self.repos.save_all(*rows)

        log_attestation_recorded(attestation.id, commitment.id, attestation.type.value, severity.value)
        if severity == AttestationSeverity.violation:
            logger.warning(f"Commitment {commitment.id} violated by attestation {attestation.id}")
        if cancelled is not None:
            log_listing_event("cancelled", cancelled.id, commitment.id, cancelled.seller_address)
        return AttestationRead.model_validate(attestation)
