"""Health and metrics I/O models."""

from __future__ import annotations

from typing import Optional

from .common import ApiModel, UtcDatetime


class HealthMetrics(ApiModel):
    status: str
    uptime: float
    requests_total: int
    errors_total: int
    timestamp: UtcDatetime


class ChainHealth(ApiModel):
    status: str
    rpc_url: str
    ledger: Optional[int] = None
