# dependencies.py
"""
FastAPI dependency providers. Long-lived collaborators are built once;
tests swap them through ``app.dependency_overrides``.
"""

from functools import lru_cache

import requests
from fastapi import Depends

import config
from generation import RemoteGenerator, SimulatedGenerator
from job_store import JobStore, create_job_store
from publishing import GcsStorage, PublishOrchestrator, create_publisher
from services import AudioMerger, FfmpegMuxer, MediaMuxer, PromptEnhancer


@lru_cache()
def get_job_store() -> JobStore:
    return create_job_store(config.JOB_STORE_URL)


@lru_cache()
def get_remote_generator() -> RemoteGenerator:
    return RemoteGenerator(config.GENERATION_BACKEND_URL, timeout=config.HTTP_TIMEOUT_SECONDS)


def get_generator(store: JobStore = Depends(get_job_store)):
    if config.USE_REAL_GENERATION:
        return get_remote_generator()
    return SimulatedGenerator(store, config.SIMULATED_PHASES, config.SIMULATED_VIDEO_URL)


@lru_cache()
def get_muxer() -> MediaMuxer:
    return FfmpegMuxer(config.FFMPEG_BINARY, config.FFMPEG_TIMEOUT_SECONDS)


def get_audio_merger(muxer: MediaMuxer = Depends(get_muxer)) -> AudioMerger:
    return AudioMerger(muxer, timeout=config.HTTP_TIMEOUT_SECONDS)


@lru_cache()
def get_storage() -> GcsStorage:
    return GcsStorage(config.GCS_PROJECT_ID, config.GCS_BUCKET_NAME, config.GCS_KEY_FILE)


@lru_cache()
def get_publisher():
    return create_publisher(
        config.YOUTUBE_PUBLISH_MODE,
        config.has_youtube_credentials(),
        client_id=config.YOUTUBE_CLIENT_ID,
        client_secret=config.YOUTUBE_CLIENT_SECRET,
        access_token=config.YOUTUBE_ACCESS_TOKEN,
        refresh_token=config.YOUTUBE_REFRESH_TOKEN,
        token_uri=config.YOUTUBE_TOKEN_URI,
        scopes=config.YOUTUBE_SCOPES,
        delay_seconds=config.DEMO_PUBLISH_DELAY_SECONDS,
    )


def get_publish_orchestrator(
    publisher=Depends(get_publisher),
    gcs: GcsStorage = Depends(get_storage),
) -> PublishOrchestrator:
    return PublishOrchestrator(publisher, gcs)


@lru_cache()
def get_prompt_enhancer() -> PromptEnhancer:
    return PromptEnhancer(config.OLLAMA_API_URL, config.OLLAMA_MODEL)


def get_http_session():
    return requests
