"""
Models package.

- domain: enums describing commitment, attestation and listing lifecycles.
- io: Pydantic request/response schemas (camelCase on the wire).
"""
