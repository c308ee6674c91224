"""
Middleware modules for the CommitLabs server.

This package contains custom middleware for request/response logging,
request counters and security headers.
"""

from .logfire_middleware import LogfireMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = ["LogfireMiddleware", "SecurityHeadersMiddleware"]
