# veo-gallery-backend/tests/test_job_store.py

from datetime import timedelta

import pytest

from job_store import MemoryJobStore, SqlJobStore, create_job_store
from schemas import GenerationJob, utcnow


def _job(job_id, status="queued", age_seconds=0, **extra):
    return GenerationJob(id=job_id, status=status, created_at=utcnow() - timedelta(seconds=age_seconds), **extra)


@pytest.fixture(params=["memory", "sql"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryJobStore()
    return SqlJobStore(f"sqlite:///{tmp_path / 'jobs.db'}")


def test_unknown_job_is_none(any_store):
    assert any_store.get("never-submitted") is None
    assert not any_store.was_evicted("never-submitted")


def test_put_then_get(any_store):
    any_store.put(_job("a", prompt="a dancing ogre"))
    job = any_store.get("a")
    assert job.id == "a"
    assert job.prompt == "a dancing ogre"
    assert job.status == "queued"


def test_put_replaces_existing(any_store):
    any_store.put(_job("a"))
    any_store.put(_job("a", status="generating", progress=33.3))
    job = any_store.get("a")
    assert job.status == "generating"
    assert job.progress == pytest.approx(33.3)


def test_sweep_evicts_only_old_terminal_jobs(any_store):
    any_store.put(_job("old-done", status="completed", age_seconds=700, progress=100, result_url="/v.mp4"))
    any_store.put(_job("old-error", status="error", age_seconds=700, error_message="boom"))
    any_store.put(_job("old-running", status="generating", age_seconds=700))
    any_store.put(_job("new-done", status="completed", age_seconds=5, progress=100, result_url="/v.mp4"))

    evicted = any_store.sweep(retention_seconds=600)

    assert sorted(evicted) == ["old-done", "old-error"]
    assert any_store.get("old-done") is None
    assert any_store.get("old-running") is not None
    assert any_store.get("new-done") is not None
    assert any_store.was_evicted("old-done")
    assert not any_store.was_evicted("new-done")


def test_memory_store_hands_out_copies():
    store = MemoryJobStore()
    store.put(_job("a"))
    job = store.get("a")
    job.status = "error"
    assert store.get("a").status == "queued"


def test_create_job_store_defaults_to_memory(tmp_path):
    assert isinstance(create_job_store(""), MemoryJobStore)
    assert isinstance(create_job_store(f"sqlite:///{tmp_path / 'x.db'}"), SqlJobStore)
