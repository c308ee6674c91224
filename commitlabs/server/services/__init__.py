"""
Service layer for the CommitLabs API.

Services hold the business rules; routers translate HTTP to service calls.
"""
