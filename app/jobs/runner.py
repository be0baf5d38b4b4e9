import asyncio
import logging

logger = logging.getLogger(__name__)


async def run_periodically(job, interval_minutes: int):
    """Run a blocking job in a worker thread every interval until cancelled."""
    while True:
        try:
            await asyncio.to_thread(job)
        except Exception:
            logger.exception(f"Background job {job.__name__} failed")
        await asyncio.sleep(interval_minutes * 60)
