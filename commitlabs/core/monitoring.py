"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring and tracing
of the CommitLabs backend, including:
- API endpoint tracing
- Database operation monitoring
- Soroban RPC (HTTPX) call tracing
- Business events (commitments, attestations, marketplace, auth)
- Process-level request counters used by the metrics endpoint

Every event helper always writes to the standard logger; Logfire receives the same
event only once ``initialize_logfire`` has configured it.
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

import logfire
from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "commitlabs")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "commitlabs-backend")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

# Feature flags
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_HTTPX = os.getenv("LOGFIRE_TRACE_HTTPX", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_logfire_configured = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    This function sets up Logfire with automatic instrumentation for:
    - SQLAlchemy database operations
    - HTTPX HTTP requests (Soroban RPC)
    - FastAPI endpoints

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).

    Returns:
        True when Logfire was configured, False when it stays disabled.
    """
    global _logfire_configured

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
        )
        _logfire_configured = True

        if LOGFIRE_TRACE_SQLALCHEMY:
            try:
                logfire.instrument_sqlalchemy()
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")

        if LOGFIRE_TRACE_HTTPX:
            try:
                logfire.instrument_httpx()
                logger.info("Logfire: HTTPX instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument HTTPX: {e}")

        if LOGFIRE_TRACE_FASTAPI:
            if app is not None:
                try:
                    logfire.instrument_fastapi(app=app)
                    logger.info("Logfire: FastAPI instrumentation enabled")
                except Exception as e:
                    logger.warning(f"Failed to instrument FastAPI: {e}")
            else:
                logger.debug("FastAPI app instance not provided, skipping FastAPI instrumentation")

        logger.info(
            f"Logfire monitoring initialized: "
            f"project={LOGFIRE_PROJECT_NAME}, "
            f"environment={LOGFIRE_ENVIRONMENT}, "
            f"service={LOGFIRE_SERVICE_NAME}"
        )
        return True

    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def is_logfire_configured() -> bool:
    return _logfire_configured


def _emit(level: str, message: str, **attributes: Any) -> None:
    log = getattr(logger, level)
    log(message, extra={"event_attributes": attributes})
    if not _logfire_configured:
        return
    try:
        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(f"Could not send event to Logfire: {message}")


@dataclass
class MetricsSnapshot:
    uptime: float
    requests_total: int
    errors_total: int


class RequestMetrics:
    """Process-wide request counters.

    ``errors_total`` counts responses with a 5xx status (including requests that
    raised before producing a response).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.monotonic()
        self._requests_total = 0
        self._errors_total = 0

    def record(self, status_code: int) -> None:
        with self._lock:
            self._requests_total += 1
            if status_code >= 500:
                self._errors_total += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                uptime=time.monotonic() - self._started_at,
                requests_total=self._requests_total,
                errors_total=self._errors_total,
            )

    def reset(self) -> None:
        with self._lock:
            self._started_at = time.monotonic()
            self._requests_total = 0
            self._errors_total = 0


request_metrics = RequestMetrics()


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    request_metrics.record(status_code)
    _emit(
        "info",
        "API request completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    _emit("error", f"{error_type}: {error_message}", **(context or {}))


def log_commitment_created(commitment_id: str, owner_address: str, commitment_type: str, amount: float) -> None:
    """Log the creation of a commitment."""
    _emit(
        "info",
        "Commitment created",
        commitment_id=commitment_id,
        owner_address=owner_address,
        commitment_type=commitment_type,
        amount=amount,
    )


def log_commitment_settled(
    commitment_id: str,
    ip: str,
    caller_address: Optional[str] = None,
    settlement_amount: Optional[float] = None,
    final_status: Optional[str] = None,
    tx_hash: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """
    Log a settlement attempt.

    A populated ``error`` marks a failed attempt and is logged at warning level.
    """
    level = "warning" if error else "info"
    message = "Commitment settlement failed" if error else "Commitment settled"
    _emit(
        level,
        message,
        commitment_id=commitment_id,
        ip=ip,
        caller_address=caller_address,
        settlement_amount=settlement_amount,
        final_status=final_status,
        tx_hash=tx_hash,
        error=error,
    )


def log_attestation_recorded(attestation_id: str, commitment_id: str, attestation_type: str, severity: str) -> None:
    """Log a newly recorded attestation."""
    _emit(
        "info",
        "Attestation recorded",
        attestation_id=attestation_id,
        commitment_id=commitment_id,
        attestation_type=attestation_type,
        severity=severity,
    )


def log_listing_event(event: str, listing_id: str, commitment_id: str, address: Optional[str] = None) -> None:
    """Log a marketplace listing lifecycle event (created, cancelled, sold)."""
    _emit("info", f"Marketplace listing {event}", listing_id=listing_id, commitment_id=commitment_id, address=address)


def log_auth_event(event: str, address: str, success: bool = True, reason: Optional[str] = None) -> None:
    """Log a wallet authentication event (nonce issued, verified, rejected, logout)."""
    _emit(
        "info" if success else "warning",
        f"Auth {event}",
        address=address,
        success=success,
        reason=reason,
    )
