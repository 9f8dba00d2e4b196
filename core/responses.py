# core/responses.py
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope: {"success": true, "data"?: ..., "message"?: ...}."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    return body


def error_body(kind: str, message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": kind, "message": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body
