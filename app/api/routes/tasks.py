from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import get_dispatcher, require_task_secret
from app.api.models import CycleSummaryItem
from app.api.responses import envelope
from app.notifications.dispatcher import BatchDispatcher

router = APIRouter(prefix="/push-notifications", tags=["tasks"])
logger = logging.getLogger(__name__)


@router.post("/cycle", status_code=status.HTTP_200_OK, dependencies=[Depends(require_task_secret)])
async def run_dispatch_cycle(dispatcher: Annotated[BatchDispatcher, Depends(get_dispatcher)]) -> dict[str, Any]:
  """
  Handler for cron and Cloud Scheduler triggers.
  Runs one dispatch cycle inline and returns the per-notification summaries.
  """
  summaries = await dispatcher.dispatch_cycle()
  logger.info("Dispatch cycle triggered over HTTP processed=%d", len(summaries))
  return envelope([CycleSummaryItem.from_summary(summary) for summary in summaries])
