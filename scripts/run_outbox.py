"""
Retry runner for outbox messages
Processes PENDING messages (declaration documents, fraud evaluation) whose
backoff has elapsed. Run from cron or in a loop with --interval.
"""

import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings
from app.services.registry import get_services

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("run_outbox")


def run_once(limit: int = None) -> int:
    processed = get_services().outbox.dispatch_pending(limit=limit)
    logger.info(f"Processed {processed} outbox message(s)")
    return processed


def run_forever(interval: float, limit: int = None):
    logger.info(f"Outbox runner started, polling every {interval}s")
    try:
        while True:
            run_once(limit)
            time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("Outbox runner stopped")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Dispatch pending outbox messages")
    parser.add_argument("--limit", type=int, default=settings.OUTBOX_BATCH_SIZE, help="Messages per pass")
    parser.add_argument("--interval", type=float, help="Keep polling every N seconds")
    args = parser.parse_args()

    if args.interval:
        run_forever(args.interval, args.limit)
    else:
        run_once(args.limit)
