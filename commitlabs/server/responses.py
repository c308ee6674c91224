"""
Response Envelope Helpers.

Success: ``{"success": true, "data": ..., "meta"?: {...}}``
Failure: ``{"success": false, "error": {"code", "message", "details"?}}``

Pydantic payloads are encoded by alias, so clients receive camelCase keys.
"""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(data: Any, meta: Optional[Dict[str, Any]] = None, status_code: int = 200) -> JSONResponse:
    """Build a success envelope response."""
    content: Dict[str, Any] = {"success": True, "data": jsonable_encoder(data, by_alias=True)}
    if meta is not None:
        content["meta"] = jsonable_encoder(meta, by_alias=True)
    return JSONResponse(status_code=status_code, content=content)


def fail(code: str, message: str, details: Any = None, status_code: int = 500) -> JSONResponse:
    """Build a failure envelope response."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})
