"""CommitLabs.

Backend service for the CommitLabs liquidity commitment product.

High-level architecture
-----------------------

Users lock liquidity into time-boxed **commitments** (Safe, Balanced or
Aggressive). While a commitment is active it receives **attestations**
(health checks, fee generation, drawdown and violation events) that update its
value, yield and compliance score. Matured commitments are **settled**; active
ones may be exited early for a penalty or traded on the **marketplace**.

Core subpackages
----------------

- ``commitlabs.core``:

  - Logging and Logfire monitoring.
  - Domain enums and API I/O models.
  - SQLModel entities and async repositories.

- ``commitlabs.server``:

  - FastAPI application, routers and middleware.
  - Service layer (commitments, attestations, marketplace, wallet auth,
    pagination, rate limiting, Soroban chain gateway).

Authentication is a wallet-signature challenge/response: the client asks for a
nonce, signs ``"Sign in to CommitLabs: <nonce>"`` with its Stellar key and
exchanges the signature for a session token.
"""

__version__ = "0.1.0"
