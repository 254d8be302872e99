"""Response envelope helpers: ``{"success": bool, "result": ...}``."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

VALIDATION_MESSAGE = "Invalid data"


def envelope(result: Any, *, success: bool = True) -> dict[str, Any]:
  return {"success": success, "result": jsonable_encoder(result)}


def failure_response(status_code: int) -> JSONResponse:
  """Failed operation with a null result."""
  return JSONResponse(status_code=status_code, content=envelope(None, success=False))


def validation_failure_response(errors: Mapping[str, Sequence[str]]) -> JSONResponse:
  """Validation failure carrying a ``field -> messages`` mapping."""
  content = {"success": False, "message": VALIDATION_MESSAGE, "errors": {field: list(messages) for field, messages in errors.items()}}
  return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)
