"""
Database entities.

Importing this package registers every table on ``SQLModel.metadata``.
"""

from .attestations import Attestation
from .commitments import Commitment
from .listings import Listing

__all__ = ["Attestation", "Commitment", "Listing"]
