# tasks.py

import asyncio
import logging

from fastapi.concurrency import run_in_threadpool


async def generate_video_task(generator, job_id: str):
    """
    Background task that walks a simulated job through its phases.
    Any failure is recorded on the job so the next poll reports it.
    """
    try:
        logging.info(f"📝 Worker picked up job {job_id}")
        await generator.run(job_id)
        logging.info(f"✅ Worker finished job {job_id}")
    except Exception as e:
        logging.error(f"❌ Worker failed job {job_id}. Error: {e}")
        await run_in_threadpool(generator.fail, job_id, str(e))


async def sweep_jobs_task(store, retention_seconds: float, interval_seconds: float):
    """Evict terminal jobs older than the retention window, forever."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(store.sweep, retention_seconds)
        except Exception as e:
            logging.error(f"❌ Job sweep failed: {e}")
