"""
Commitment Service.

Business rules for creating, listing, settling and exiting commitments.
State-changing operations run under the shared write lock so that the
"not listed" and "still active" checks cannot interleave with marketplace or
attestation writes.
"""

from __future__ import annotations

import asyncio
import secrets
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from commitlabs.core.database import SqlRepoBundle, utc_now
from commitlabs.core.database.entities import Commitment
from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import CommitmentStatus, CommitmentType, SortOrder
from commitlabs.core.models.io import (
    CommitmentCreate,
    CommitmentRead,
    CommitmentStats,
    EarlyExitResult,
    SettlementResult,
)
from commitlabs.core.monitoring import log_commitment_created, log_commitment_settled
from commitlabs.server.core.config import Settings, settings
from commitlabs.server.errors import ApiError, ConflictError, ForbiddenError, NotFoundError

from .chain import SorobanGateway
from .pagination import Page, PaginationParams, SortField, apply_query, resolve_sort

logger = get_logger(__name__)

COMMITMENT_SORT_FIELDS: Dict[str, SortField] = {
    "createdAt": SortField("created_at", SortOrder.desc),
    "amount": SortField("amount", SortOrder.desc),
    "complianceScore": SortField("compliance_score", SortOrder.desc),
    "expiresAt": SortField("expires_at", SortOrder.asc),
}
DEFAULT_COMMITMENT_SORT = "createdAt"


def new_commitment_id() -> str:
    return f"CMT-{secrets.token_hex(4).upper()}"


class CommitmentService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        chain: SorobanGateway,
        config: Settings = settings,
        write_lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repos = repos
        self.chain = chain
        self.config = config
        self.write_lock = write_lock or asyncio.Lock()
        self.clock = clock

    async def _require(self, commitment_id: str) -> Commitment:
        commitment = await self.repos.commitments.get(commitment_id)
        if commitment is None:
            raise NotFoundError("Commitment")
        return commitment

    async def list_commitments(
        self,
        params: PaginationParams,
        status: Optional[CommitmentStatus] = None,
        type: Optional[CommitmentType] = None,
        asset: Optional[str] = None,
        owner_address: Optional[str] = None,
    ) -> Page[CommitmentRead]:
        sort_field, sort_order = resolve_sort(params, COMMITMENT_SORT_FIELDS, DEFAULT_COMMITMENT_SORT)
        rows = await self.repos.commitments.list(
            {"status": status, "type": type, "asset": asset, "owner_address": owner_address}
        )
        now = self.clock()
        return apply_query(
            [CommitmentRead.from_entity(row, now) for row in rows],
            sort_field=sort_field,
            sort_order=sort_order,
            page=params.page,
            page_size=params.page_size,
        )

    async def get_commitment(self, commitment_id: str) -> CommitmentRead:
        commitment = await self._require(commitment_id)
        return CommitmentRead.from_entity(commitment, self.clock())

    async def create_commitment(self, data: CommitmentCreate) -> CommitmentRead:
        now = self.clock()
        max_loss = data.max_loss_percent if data.max_loss_percent is not None else data.type.default_max_loss_percent
        commitment = Commitment(
            id=new_commitment_id(),
            type=data.type,
            status=CommitmentStatus.active,
            asset=data.asset.upper(),
            amount=data.amount,
            current_value=data.amount,
            max_loss_percent=max_loss,
            compliance_score=100,
            owner_address=data.owner_address,
            duration_days=data.duration_days,
            created_at=now,
            expires_at=now + timedelta(days=data.duration_days),
            updated_at=now,
        )
        receipt = self.chain.record_creation(
            commitment.id, commitment.owner_address, commitment.amount, commitment.asset
        )
        commitment.tx_hash = receipt.tx_hash

        async with self.write_lock:
            commitment = await self.repos.commitments.create(commitment)

        log_commitment_created(commitment.id, commitment.owner_address, commitment.type.value, commitment.amount)
        return CommitmentRead.from_entity(commitment, now)

    async def get_stats(self, owner_address: Optional[str] = None) -> CommitmentStats:
        rows = await self.repos.commitments.list({"owner_address": owner_address})
        active = [row for row in rows if row.is_active]
        avg_score = sum(row.compliance_score for row in active) / len(active) if active else 0.0
        return CommitmentStats(
            total_active=len(active),
            total_committed_value=round(sum(row.amount for row in active), 2),
            avg_compliance_score=round(avg_score, 1),
            total_fees_generated=round(sum(row.fees_generated for row in rows), 2),
        )

    async def _ensure_not_listed(self, commitment: Commitment) -> None:
        listing = await self.repos.listings.get_active_for_commitment(commitment.id)
        if listing is not None:
            raise ConflictError(
                f"Commitment {commitment.id} is listed on the marketplace ({listing.id}). Cancel the listing first.",
                details={"listingId": listing.id},
            )

    async def settle(
        self, commitment_id: str, caller_address: Optional[str] = None, ip: str = "unknown"
    ) -> SettlementResult:
        """
        Settle a matured active commitment for its current value.

        Raises:
            NotFoundError: unknown commitment.
            ForbiddenError: ``caller_address`` is given and is not the owner.
            ConflictError: the commitment is not active, not matured, or listed.
        """
        try:
            async with self.write_lock:
                commitment = await self._require(commitment_id)
                if caller_address is not None and caller_address != commitment.owner_address:
                    raise ForbiddenError("Only the commitment owner can settle this commitment.")
                if not commitment.is_active:
                    raise ConflictError(
                        f"Commitment {commitment_id} is not active (status: {commitment.status.value}).",
                    )
                now = self.clock()
                if now < commitment.expires_at:
                    raise ConflictError(
                        f"Commitment {commitment_id} has not matured yet.",
                        details={"expiresAt": commitment.expires_at.isoformat() + "Z"},
                    )
                await self._ensure_not_listed(commitment)

                receipt = self.chain.settle(
                    commitment.id, caller_address or commitment.owner_address, commitment.current_value
                )
                commitment.status = CommitmentStatus.settled
                commitment.settled_at = now
                commitment.tx_hash = receipt.tx_hash
                commitment = await self.repos.commitments.save(commitment)
        except Exception as e:
            message = e.message if isinstance(e, ApiError) else f"{type(e).__name__}: {e}"
            log_commitment_settled(commitment_id, ip, caller_address=caller_address, error=message)
            raise

        result = SettlementResult(
            commitment_id=commitment.id,
            settlement_amount=commitment.current_value,
            final_status=commitment.status,
            tx_hash=receipt.tx_hash,
            reference=receipt.reference,
            settled_at=now,
        )
        log_commitment_settled(
            commitment_id,
            ip,
            caller_address=caller_address,
            settlement_amount=result.settlement_amount,
            final_status=result.final_status.value,
            tx_hash=result.tx_hash,
        )
        return result

    async def early_exit(self, commitment_id: str, caller_address: str) -> EarlyExitResult:
        """
        Exit an active commitment before maturity, paying the early exit penalty.

        Raises:
            NotFoundError: unknown commitment.
            ForbiddenError: ``caller_address`` is not the owner.
            ConflictError: the commitment is not active or is listed.
        """
        async with self.write_lock:
            commitment = await self._require(commitment_id)
            if caller_address != commitment.owner_address:
                raise ForbiddenError("Only the commitment owner can exit this commitment.")
            if not commitment.is_active:
                raise ConflictError(f"Commitment {commitment_id} is not active (status: {commitment.status.value}).")
            await self._ensure_not_listed(commitment)

            penalty_percent = self.config.early_exit_penalty_percent
            penalty = round(commitment.current_value * penalty_percent / 100, 2)
            exit_amount = round(commitment.current_value - penalty, 2)
            receipt = self.chain.early_exit(commitment.id, caller_address, exit_amount, penalty)

            now = self.clock()
            commitment.status = CommitmentStatus.early_exit
            commitment.settled_at = now
            commitment.tx_hash = receipt.tx_hash
            commitment = await self.repos.commitments.save(commitment)

        logger.info(f"Commitment {commitment_id} exited early: exit={exit_amount} penalty={penalty}")
        return EarlyExitResult(
            commitment_id=commitment.id,
            exit_amount=exit_amount,
            penalty_amount=penalty,
            penalty_percent=penalty_percent,
            final_status=commitment.status,
            tx_hash=receipt.tx_hash,
            reference=receipt.reference,
            exited_at=now,
        )
