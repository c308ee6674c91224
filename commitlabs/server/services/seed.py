"""
Demo Seed Data.

Seeds the six marketplace commitments (CMT-001..CMT-006) with their listings
(LST-001..LST-006), a matured unlisted commitment (CMT-007) and one health-check
attestation per listed commitment. Seeding is skipped when CMT-001 exists.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from stellar_sdk import Keypair

from commitlabs.core.database import SqlRepoBundle, utc_now
from commitlabs.core.database.entities import Attestation, Commitment, Listing
from commitlabs.core.logging_config import get_logger
from commitlabs.core.models.domain import (
    AttestationSeverity,
    AttestationType,
    AttestationVerdict,
    CommitmentStatus,
    CommitmentType,
    ListingStatus,
)

logger = get_logger(__name__)

SEED_ASSET = "USDC"

DURATION_DAYS = {
    CommitmentType.safe: 30,
    CommitmentType.balanced: 60,
    CommitmentType.aggressive: 90,
}


@dataclass(frozen=True)
class SeedListing:
    listing_id: str
    commitment_id: str
    type: CommitmentType
    amount: float
    remaining_days: int
    max_loss: float
    current_yield: float
    compliance_score: int
    price: float


SEED_LISTINGS = (
    SeedListing("LST-001", "CMT-001", CommitmentType.safe, 50000, 25, 2, 5.2, 95, 52000),
    SeedListing("LST-002", "CMT-002", CommitmentType.balanced, 100000, 45, 8, 12.5, 88, 105000),
    SeedListing("LST-003", "CMT-003", CommitmentType.aggressive, 250000, 80, 100, 18.7, 76, 262000),
    SeedListing("LST-004", "CMT-004", CommitmentType.safe, 75000, 15, 2, 4.8, 92, 76500),
    SeedListing("LST-005", "CMT-005", CommitmentType.balanced, 150000, 55, 8, 11.3, 85, 155000),
    SeedListing("LST-006", "CMT-006", CommitmentType.aggressive, 500000, 85, 100, 22.1, 72, 525000),
)


def seed_keypair(n: int) -> Keypair:
    """Deterministic keypair of seed wallet ``n``, so demo owners can sign in locally."""
    seed = hashlib.sha256(f"commitlabs-seed-{n}".encode("utf-8")).digest()
    return Keypair.from_raw_ed25519_seed(seed)


def seed_address(n: int) -> str:
    return seed_keypair(n).public_key


def _seed_commitment(
    commitment_id: str,
    type: CommitmentType,
    amount: float,
    remaining: int,
    max_loss: float,
    current_yield: float,
    compliance_score: int,
    owner: str,
    now: datetime,
) -> Commitment:
    duration = DURATION_DAYS[type]
    fees = round(amount * current_yield / 100, 2)
    return Commitment(
        id=commitment_id,
        type=type,
        status=CommitmentStatus.active,
        asset=SEED_ASSET,
        amount=amount,
        current_value=round(amount + fees, 2),
        max_loss_percent=max_loss,
        compliance_score=compliance_score,
        current_yield=current_yield,
        fees_generated=fees,
        owner_address=owner,
        duration_days=duration,
        created_at=now - timedelta(days=duration - remaining),
        expires_at=now + timedelta(days=remaining),
        updated_at=now,
    )


async def seed_mock_data(repos: SqlRepoBundle, now: Optional[datetime] = None) -> bool:
    """Insert the demo data set. Returns False when it was already present."""
    if await repos.commitments.get("CMT-001") is not None:
        logger.debug("Seed data already present, skipping")
        return False

    now = now or utc_now()
    rows = []
    for n, item in enumerate(SEED_LISTINGS, start=1):
        owner = seed_address(n)
        commitment = _seed_commitment(
            item.commitment_id,
            item.type,
            item.amount,
            item.remaining_days,
            item.max_loss,
            item.current_yield,
            item.compliance_score,
            owner,
            now,
        )
        rows.append(commitment)
        rows.append(
            Listing(
                id=item.listing_id,
                commitment_id=item.commitment_id,
                price=item.price,
                currency_asset=SEED_ASSET,
                seller_address=owner,
                status=ListingStatus.active,
                created_at=now - timedelta(hours=n),
                updated_at=now - timedelta(hours=n),
            )
        )
        rows.append(
            Attestation(
                id=f"ATT-{n:03d}",
                commitment_id=item.commitment_id,
                type=AttestationType.health_check,
                verdict=AttestationVerdict.passed,
                severity=AttestationSeverity.ok,
                title="Routine health check",
                observed_at=now - timedelta(days=1),
                details={"complianceScore": item.compliance_score},
            )
        )

    matured = _seed_commitment(
        "CMT-007", CommitmentType.safe, 20000, 0, 2, 3.1, 98, seed_address(7), now - timedelta(days=1)
    )
    rows.append(matured)

    await repos.save_all(*rows)
    logger.info(f"Seeded {len(SEED_LISTINGS) + 1} commitments and {len(SEED_LISTINGS)} marketplace listings")
    return True
