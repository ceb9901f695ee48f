# veo-gallery-backend/tests/test_generation.py

import asyncio

import pytest
import requests
from fastapi import BackgroundTasks, HTTPException

from fakes import INSTANT_PHASES, FakeResponse, FakeSession
from generation import InvalidTransition, RemoteGenerator, SimulatedGenerator, advance
from job_store import MemoryJobStore, SqlJobStore
from schemas import GenerationJob, SanitizedGeneration
from tasks import generate_video_task, sweep_jobs_task

BACKEND = "https://gen.example.com"


def _payload(prompt="test"):
    return SanitizedGeneration(prompt=prompt, seconds=4, aspect="9:16", steps=14, width=320, height=576, frames=48)


class RecordingStore(MemoryJobStore):
    def __init__(self):
        super().__init__()
        self.history = []

    def put(self, job):
        self.history.append((job.status, job.progress, job.result_url))
        super().put(job)


# --- State transitions ---

def test_completed_job_is_frozen():
    job = advance(GenerationJob(id="j"), "completed", result_url="/v.mp4")
    assert job.progress == 100
    with pytest.raises(InvalidTransition):
        advance(job, "processing", progress=100)
    with pytest.raises(InvalidTransition):
        advance(job, "error", error_message="late")


def test_progress_cannot_go_backwards():
    job = advance(GenerationJob(id="j"), "generating", progress=50)
    with pytest.raises(InvalidTransition):
        advance(job, "processing", progress=40)


def test_progress_100_is_reserved_for_completion():
    with pytest.raises(InvalidTransition):
        advance(GenerationJob(id="j"), "processing", progress=100)


def test_completion_requires_url_and_error_keeps_message():
    with pytest.raises(InvalidTransition):
        advance(GenerationJob(id="j"), "done")

    failed = advance(GenerationJob(id="j", progress=30), "error", error_message="GPU out of memory")
    assert failed.error_message == "GPU out of memory"
    assert failed.result_url is None
    assert failed.progress == 30


# --- Simulated generator ---

def test_simulated_generator_walks_all_phases():
    """
    Phases run in order, progress never decreases, and only the final
    state carries the result URL at 100%.
    """
    store = RecordingStore()
    generator = SimulatedGenerator(store, INSTANT_PHASES, "/media/sample.mp4")
    background = BackgroundTasks()

    job_id = generator.start(_payload(), background)
    assert store.get(job_id).status == "queued"
    assert len(background.tasks) == 1

    asyncio.run(generator.run(job_id))

    statuses = [status for status, _, _ in store.history]
    assert statuses == ["queued", "queued", "generating", "processing", "completed"]
    progresses = [progress for _, progress, _ in store.history]
    assert progresses == sorted(progresses)
    assert [p for p in progresses if p >= 100] == [100]
    assert generator.status(job_id) == {"status": "completed", "progress": 100, "url": "/media/sample.mp4"}


def test_simulated_generator_sleeps_for_phase_durations():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    store = MemoryJobStore()
    phases = [("queued", 1.0), ("generating", 8.0), ("processing", 4.0), ("completed", 0.0)]
    generator = SimulatedGenerator(store, phases, "/media/sample.mp4", sleep=fake_sleep)
    job_id = generator.start(_payload(), BackgroundTasks())

    asyncio.run(generator.run(job_id))

    assert slept == [1.0, 8.0, 4.0]


def test_failed_simulation_is_reported_on_the_job():
    store = MemoryJobStore()
    generator = SimulatedGenerator(store, [("queued", 0), ("processing", 0)], result_url="")
    job_id = generator.start(_payload(), BackgroundTasks())

    async def boom(job_id):
        raise RuntimeError("renderer crashed")

    generator.run = boom
    asyncio.run(generate_video_task(generator, job_id))

    assert generator.status(job_id) == {"status": "error", "progress": 0, "error": "renderer crashed"}


def test_simulated_status_unknown_and_evicted():
    store = MemoryJobStore()
    generator = SimulatedGenerator(store, INSTANT_PHASES, "/media/sample.mp4")
    assert generator.status("nope") is None

    job_id = generator.start(_payload(), BackgroundTasks())
    asyncio.run(generator.run(job_id))
    store.sweep(retention_seconds=-1)

    with pytest.raises(HTTPException) as exc:
        generator.status(job_id)
    assert exc.value.status_code == 410


# --- Remote generator ---

def test_remote_start_forwards_sanitized_payload():
    session = FakeSession({("POST", f"{BACKEND}/generate"): FakeResponse(200, {"job_id": "abc"})})
    generator = RemoteGenerator(BACKEND + "/", session=session)

    assert generator.start(_payload(), BackgroundTasks()) == "abc"

    method, url, kwargs = session.calls[0]
    assert url == f"{BACKEND}/generate"
    assert kwargs["json"]["frames"] == 48
    assert kwargs["json"]["width"] == 320


def test_remote_start_surfaces_http_failure():
    session = FakeSession({f"{BACKEND}/generate": FakeResponse(502, reason="Bad Gateway")})
    with pytest.raises(HTTPException) as exc:
        RemoteGenerator(BACKEND, session=session).start(_payload(), BackgroundTasks())
    assert exc.value.status_code == 502


def test_remote_start_without_job_id():
    session = FakeSession({f"{BACKEND}/generate": FakeResponse(200, {})})
    with pytest.raises(HTTPException) as exc:
        RemoteGenerator(BACKEND, session=session).start(_payload(), BackgroundTasks())
    assert exc.value.status_code == 502


def test_remote_connection_error_is_503():
    session = FakeSession({f"{BACKEND}/generate": requests.ConnectionError("refused")})
    with pytest.raises(HTTPException) as exc:
        RemoteGenerator(BACKEND, session=session).start(_payload(), BackgroundTasks())
    assert exc.value.status_code == 503


def test_remote_without_base_url_fails_fast():
    session = FakeSession()
    with pytest.raises(HTTPException) as exc:
        RemoteGenerator("", session=session).status("abc")
    assert exc.value.status_code == 500
    assert session.calls == []


def test_remote_status_resolves_url_against_backend():
    session = FakeSession({
        f"{BACKEND}/jobs/abc": FakeResponse(200, {"status": "done", "url": "/out/abc.mp4"}),
        f"{BACKEND}/jobs/missing": FakeResponse(404),
        f"{BACKEND}/jobs/broken": FakeResponse(500, reason="Server Error"),
    })
    generator = RemoteGenerator(BACKEND, session=session)

    assert generator.status("abc") == {"status": "done", "url": f"{BACKEND}/out/abc.mp4"}
    assert generator.status("missing") is None
    with pytest.raises(HTTPException) as exc:
        generator.status("broken")
    assert exc.value.status_code == 500


def test_simulated_generator_on_sql_store(tmp_path):
    store = SqlJobStore(f"sqlite:///{tmp_path / 'jobs.db'}")
    generator = SimulatedGenerator(store, INSTANT_PHASES, "/media/sample.mp4")
    job_id = generator.start(_payload(), BackgroundTasks())

    asyncio.run(generate_video_task(generator, job_id))

    assert generator.status(job_id)["status"] == "completed"


def test_sweeper_evicts_finished_jobs():
    store = MemoryJobStore()
    store.put(advance(GenerationJob(id="old"), "completed", result_url="/v.mp4"))

    async def scenario():
        sweeper = asyncio.create_task(sweep_jobs_task(store, retention_seconds=-1, interval_seconds=0))
        for _ in range(100):
            if store.was_evicted("old"):
                break
            await asyncio.sleep(0.01)
        sweeper.cancel()

    asyncio.run(scenario())
    assert store.get("old") is None
    assert store.was_evicted("old")
