"""
Job store abstraction for generation jobs.

The generator writes a job, the API reads it back for polling, and a
periodic sweep evicts terminal jobs older than the retention window.
Evicted ids are remembered (bounded) so a late poll can be told the job
expired instead of being told it never existed.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from database import make_session_factory
from models import JobRecord
from schemas import GenerationJob, TERMINAL_STATUSES, utcnow

MAX_TOMBSTONES = 1024


class JobStore:
    """Key-value interface over GenerationJob records."""

    def __init__(self):
        self._evicted: "OrderedDict[str, datetime]" = OrderedDict()

    def get(self, job_id: str) -> Optional[GenerationJob]:
        raise NotImplementedError

    def put(self, job: GenerationJob) -> None:
        raise NotImplementedError

    def delete(self, job_id: str) -> None:
        raise NotImplementedError

    def all(self) -> Iterable[GenerationJob]:
        raise NotImplementedError

    def was_evicted(self, job_id: str) -> bool:
        return job_id in self._evicted

    def _remember_eviction(self, job_id: str) -> None:
        self._evicted[job_id] = utcnow()
        while len(self._evicted) > MAX_TOMBSTONES:
            self._evicted.popitem(last=False)

    def sweep(self, retention_seconds: float, now: Optional[datetime] = None) -> List[str]:
        """Delete terminal jobs created before the retention cutoff."""
        cutoff = (now or utcnow()) - timedelta(seconds=retention_seconds)
        expired = [
            job.id for job in self.all()
            if job.status in TERMINAL_STATUSES and job.created_at < cutoff
        ]
        for job_id in expired:
            self.delete(job_id)
            self._remember_eviction(job_id)
        if expired:
            logging.info(f"🧹 Swept {len(expired)} expired job(s)")
        return expired


class MemoryJobStore(JobStore):
    """Process-local dict store. The default."""

    def __init__(self):
        super().__init__()
        self._jobs: Dict[str, GenerationJob] = {}

    def get(self, job_id: str) -> Optional[GenerationJob]:
        job = self._jobs.get(job_id)
        return job.model_copy() if job else None

    def put(self, job: GenerationJob) -> None:
        self._jobs[job.id] = job.model_copy()

    def delete(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)

    def all(self) -> Iterable[GenerationJob]:
        # snapshot first, request threads may put while the sweeper iterates
        return [job.model_copy() for job in list(self._jobs.values())]


class SqlJobStore(JobStore):
    """SQLAlchemy-backed store, selected with JOB_STORE_URL."""

    def __init__(self, database_url: str):
        super().__init__()
        self._session_factory = make_session_factory(database_url)

    @staticmethod
    def _to_job(record) -> GenerationJob:
        return GenerationJob(
            id=record.id,
            status=record.status,
            progress=record.progress,
            prompt=record.prompt or "",
            result_url=record.result_url,
            error_message=record.error_message,
            # SQLite drops tzinfo on the way back
            created_at=record.created_at.replace(tzinfo=record.created_at.tzinfo or timezone.utc),
        )

    def get(self, job_id: str) -> Optional[GenerationJob]:
        db = self._session_factory()
        try:
            record = db.get(JobRecord, job_id)
            return self._to_job(record) if record else None
        finally:
            db.close()

    def put(self, job: GenerationJob) -> None:
        db = self._session_factory()
        try:
            db.merge(JobRecord(
                id=job.id,
                status=job.status,
                progress=job.progress,
                prompt=job.prompt,
                result_url=job.result_url,
                error_message=job.error_message,
                created_at=job.created_at,
            ))
            db.commit()
        finally:
            db.close()

    def delete(self, job_id: str) -> None:
        db = self._session_factory()
        try:
            db.query(JobRecord).filter(JobRecord.id == job_id).delete()
            db.commit()
        finally:
            db.close()

    def all(self) -> Iterable[GenerationJob]:
        db = self._session_factory()
        try:
            return [self._to_job(record) for record in db.query(JobRecord).all()]
        finally:
            db.close()


def create_job_store(database_url: str = "") -> JobStore:
    if database_url:
        logging.info("🗄️ Using SQL job store")
        return SqlJobStore(database_url)
    return MemoryJobStore()
