"""Run one push dispatch cycle and print the per-notification summaries as JSON.

Suitable for a crontab entry, e.g. ``* * * * * cd /srv/pushcast && python scripts/run_cycle.py``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running the script from the repository root without installing the package.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.config import get_settings  # noqa: E402
from app.core.database import dispose_engine  # noqa: E402
from app.notifications.errors import PersistenceError  # noqa: E402
from app.notifications.factory import build_notification_services  # noqa: E402

logger = logging.getLogger("scripts.run_cycle")


async def _run(*, indent: int | None) -> int:
  settings = get_settings()
  try:
    services = build_notification_services(settings)
    summaries = await services.dispatcher.dispatch_cycle()
  except (PersistenceError, RuntimeError) as exc:
    logger.error("Dispatch cycle failed: %s", exc, exc_info=True)
    return 1
  finally:
    await dispose_engine()

  print(json.dumps({"success": True, "result": [summary.to_dict() for summary in summaries]}, indent=indent))
  return 0


def main() -> None:
  """Parse arguments, run the cycle and exit non-zero when it could not run."""
  parser = argparse.ArgumentParser(description="Run one push notification dispatch cycle.")
  parser.add_argument("--pretty", action="store_true", help="Indent the JSON output.")
  parser.add_argument("--verbose", action="store_true", help="Log progress to stderr.")
  args = parser.parse_args()

  logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
  sys.exit(asyncio.run(_run(indent=2 if args.pretty else None)))


if __name__ == "__main__":
  main()
