import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.responses import failure_response, validation_failure_response
from app.notifications.errors import NotFoundError, ValidationError

logger = logging.getLogger("uvicorn.error")


def _field_name(location: tuple[Any, ...] | list[Any]) -> str:
  """Collapse a pydantic error location into the request field it points at."""
  # Drop the request section prefix so body.title becomes title.
  parts = [str(part) for part in location if part not in {"body", "query", "path", "header"}]
  if not parts:
    return "body"
  return ".".join(parts)


def _group_request_errors(errors: list[dict[str, Any]]) -> dict[str, list[str]]:
  """Return ``field -> messages`` without echoing raw input payloads."""
  grouped: dict[str, list[str]] = {}
  for error in errors:
    field = _field_name(error.get("loc", ()))
    grouped.setdefault(field, []).append(f"{field} {error.get('msg', 'is invalid')}")
  return grouped


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  logger.error("Global exception path=%s error_type=%s", request.url.path, type(exc).__name__, exc_info=exc)
  return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Map request schema errors onto the validation envelope."""
  grouped = _group_request_errors(list(exc.errors()))
  # Keep validation logs concise because 422s are client-correctable and expected.
  logger.warning("Request validation failed path=%s method=%s fields=%s", request.url.path, request.method, sorted(grouped))
  return validation_failure_response(grouped)


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
  logger.info("Submission rejected path=%s fields=%s", request.url.path, sorted(exc.errors))
  return validation_failure_response(exc.errors)


async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
  logger.info("Not found path=%s entity=%s id=%s", request.url.path, exc.entity, exc.entity_id)
  return failure_response(status.HTTP_404_NOT_FOUND)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Handle FastAPI HTTPExceptions without exposing ``exc.detail`` to callers."""
  if exc.status_code >= 500:
    logger.error("HTTPException path=%s status_code=%s detail=%s", request.url.path, exc.status_code, exc.detail, exc_info=True)
  else:
    logger.warning("HTTPException path=%s status_code=%s detail=%s", request.url.path, exc.status_code, exc.detail)
  response = failure_response(exc.status_code)
  if exc.headers:
    response.headers.update(exc.headers)
  return response
