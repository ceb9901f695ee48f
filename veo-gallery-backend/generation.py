"""
Generation job state machine and the two generators behind /generate.

SimulatedGenerator walks a job through fixed-duration phases in the job
store. RemoteGenerator forwards the sanitized request to the generation
backend and proxies its job status.
"""

import asyncio
import logging
import uuid
from typing import List, Optional, Tuple
from urllib.parse import quote

import requests
from fastapi import BackgroundTasks, HTTPException
from fastapi.concurrency import run_in_threadpool

from job_store import JobStore
from poller import resolve_result_url
from schemas import GenerationJob, SanitizedGeneration
from tasks import generate_video_task

COMPLETED_STATUSES = ("completed", "done")


class InvalidTransition(ValueError):
    """Raised when a job update would break the job lifecycle."""


def advance(
    job: GenerationJob,
    status: str,
    progress: Optional[float] = None,
    result_url: Optional[str] = None,
    error_message: Optional[str] = None,
) -> GenerationJob:
    """Return a copy of ``job`` moved to ``status``.

    Terminal jobs are frozen, progress never goes down, 100 is reserved for
    completion, and a terminal job carries exactly one of result_url and
    error_message.
    """
    if job.is_terminal:
        raise InvalidTransition(f"Job {job.id} is already {job.status}")

    progress = job.progress if progress is None else progress
    if progress < job.progress:
        raise InvalidTransition(f"Progress of job {job.id} cannot go from {job.progress} to {progress}")

    if status in COMPLETED_STATUSES:
        if not result_url:
            raise InvalidTransition("A completed job needs a result URL")
        return job.model_copy(update={"status": status, "progress": 100.0, "result_url": result_url})

    if status == "error":
        return job.model_copy(update={
            "status": status,
            "error_message": error_message or "Job failed",
        })

    if progress >= 100:
        raise InvalidTransition("Progress reaches 100 only at completion")
    return job.model_copy(update={"status": status, "progress": progress})


def job_payload(job: GenerationJob) -> dict:
    """Status body served by GET /jobs/{id}."""
    payload = {"status": job.status, "progress": job.progress}
    if job.result_url:
        payload["url"] = job.result_url
    if job.error_message:
        payload["error"] = job.error_message
    return payload


class SimulatedGenerator:
    """Fakes a generation backend without spending model time."""

    def __init__(
        self,
        store: JobStore,
        phases: List[Tuple[str, float]],
        result_url: str,
        sleep=asyncio.sleep,
    ):
        self.store = store
        self.phases = phases
        self.result_url = result_url
        self.sleep = sleep

    def start(self, request: SanitizedGeneration, background_tasks: BackgroundTasks) -> str:
        job = GenerationJob(id=str(uuid.uuid4()), prompt=request.prompt)
        self.store.put(job)
        background_tasks.add_task(generate_video_task, self, job.id)
        logging.info(f"✨ Simulated job {job.id} queued for prompt: '{request.prompt}'")
        return job.id

    async def run(self, job_id: str) -> None:
        last = len(self.phases) - 1
        for index, (status, duration) in enumerate(self.phases):
            job = await run_in_threadpool(self.store.get, job_id)
            if job is None:
                return
            if status in COMPLETED_STATUSES:
                job = advance(job, status, result_url=self.result_url)
            else:
                job = advance(job, status, progress=index / last * 100 if last else 0)
            await run_in_threadpool(self.store.put, job)
            if duration > 0:
                await self.sleep(duration)

    def fail(self, job_id: str, message: str) -> None:
        job = self.store.get(job_id)
        if job is None or job.is_terminal:
            return
        self.store.put(advance(job, "error", error_message=message))

    def status(self, job_id: str) -> Optional[dict]:
        job = self.store.get(job_id)
        if job is None:
            if self.store.was_evicted(job_id):
                raise HTTPException(status_code=410, detail="Job expired after the retention window.")
            return None
        return job_payload(job)


class RemoteGenerator:
    """Forwards jobs to the HTTP generation backend."""

    def __init__(self, base_url: str, timeout: float = 60.0, session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _require_base_url(self) -> str:
        if not self.base_url:
            raise HTTPException(status_code=500, detail="GENERATION_BACKEND_URL not configured")
        return self.base_url

    def start(self, request: SanitizedGeneration, background_tasks: BackgroundTasks) -> str:
        base_url = self._require_base_url()
        try:
            response = self.session.post(
                f"{base_url}/generate",
                json=request.model_dump(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not reach the generation backend: {e}")

        if not response.ok:
            logging.error(f"❌ Generation backend rejected job: {response.status_code}")
            raise HTTPException(
                status_code=response.status_code,
                detail=f"Generation backend error: {response.status_code}",
            )

        job_id = response.json().get("job_id")
        if not job_id:
            raise HTTPException(status_code=502, detail="No job_id in generation backend response")
        logging.info(f"✨ Remote job {job_id} submitted ({request.width}x{request.height}, {request.frames} frames)")
        return job_id

    def status(self, job_id: str) -> Optional[dict]:
        base_url = self._require_base_url()
        try:
            response = self.session.get(
                f"{base_url}/jobs/{quote(job_id, safe='')}",
                headers={"Cache-Control": "no-store"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not reach the generation backend: {e}")

        if response.status_code == 404:
            return None
        if not response.ok:
            raise HTTPException(
                status_code=response.status_code,
                detail=f"Generation backend error: {response.status_code}",
            )
        job = response.json()
        # result URLs are relative to the generation backend, not to this API
        if job.get("url"):
            job["url"] = resolve_result_url(job["url"], base_url)
        return job
