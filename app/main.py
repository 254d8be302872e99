from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import actions, push_notifications, tasks
from app.config import get_settings
from app.core.exceptions import global_exception_handler, http_exception_handler, not_found_exception_handler, request_validation_exception_handler, validation_exception_handler
from app.core.lifespan import lifespan
from app.notifications.errors import NotFoundError, ValidationError

settings = get_settings()

app = FastAPI(title="Pushcast", version="0.1.0", lifespan=lifespan, docs_url="/docs" if settings.debug else None, redoc_url=None)

if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization", "x-pushcast-task-secret"])


# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(NotFoundError, not_found_exception_handler)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(push_notifications.router, prefix="/v1/push-notifications", tags=["push-notifications"])
app.include_router(tasks.router, prefix="/internal", tags=["tasks"])
app.include_router(actions.router, tags=["actions"])
