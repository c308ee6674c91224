"""
CommitLabs API server.

FastAPI application, routers, services and middleware.
"""
