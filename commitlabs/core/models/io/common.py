"""
Shared I/O building blocks.

All API schemas derive from ``ApiModel`` so that Python code uses snake_case
attributes while the wire format is camelCase, matching what the CommitLabs
frontend consumes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel
from stellar_sdk import StrKey


class ApiModel(BaseModel):
    """Base schema: camelCase aliases, population by field name, ORM-friendly."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC, the representation stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


UtcDatetime = Annotated[datetime, PlainSerializer(_iso_utc, return_type=str, when_used="json")]


def _validate_stellar_address(value: str) -> str:
    value = value.strip()
    if not StrKey.is_valid_ed25519_public_key(value):
        raise ValueError("Invalid Stellar address. Expected an ed25519 public key starting with 'G'.")
    return value


StellarAddress = Annotated[str, AfterValidator(_validate_stellar_address)]
