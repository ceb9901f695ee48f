import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from dependencies import get_job_store, get_publisher
from routers import generation, media, youtube
from tasks import sweep_jobs_task

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Pick the publisher once so the mode is logged at boot.
    get_publisher()
    sample = config.simulated_video_path()
    if not config.USE_REAL_GENERATION and sample and not os.path.isfile(sample):
        logging.warning(f"⚠️ Simulated jobs will finish with {config.SIMULATED_VIDEO_URL} but {sample} is missing")
    sweeper = asyncio.create_task(sweep_jobs_task(
        get_job_store(),
        config.JOB_RETENTION_SECONDS,
        config.JOB_SWEEP_INTERVAL_SECONDS,
    ))
    logging.info(f"🚀 Veo Gallery backend started ({'real' if config.USE_REAL_GENERATION else 'simulated'} generation)")
    try:
        yield
    finally:
        sweeper.cancel()


app = FastAPI(
    title="Veo Gallery Backend",
    description="Generation, audio merge, storage and publishing glue for the Veo gallery.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generation.router)
app.include_router(media.router)
app.include_router(youtube.router)


# --------------------------------------------------------------------------
# --- API Endpoints ---
# --------------------------------------------------------------------------

@app.get("/")
def read_root():
    return {"status": "🚀 Veo Gallery backend is running!"}


@app.get("/health")
def health(publisher=Depends(get_publisher)):
    """Liveness plus which integrations are configured."""
    sample = config.simulated_video_path()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.ENVIRONMENT,
        "endpoints": {
            "/generate": "POST - Start a video generation job",
            "/jobs/{id}": "GET - Check job status",
            "/merge-audio": "POST - Merge an audio track into a video",
            "/upload-to-gcs": "POST - Upload video to Google Cloud Storage",
            "/publish-to-youtube": "POST - Publish video to YouTube",
            "/trending-sounds": "GET - Trending sounds for the audio picker",
            "/enhance-prompt": "POST - Enhance a prompt with a local model",
            "/health": "GET - This health check",
        },
        "config": {
            "hasGenerationBackend": bool(config.GENERATION_BACKEND_URL),
            "useRealGeneration": config.USE_REAL_GENERATION,
            "hasYouTubeCredentials": config.has_youtube_credentials(),
            "publishMode": "demo" if publisher.demo_mode else "real",
            "hasGCSConfig": config.has_gcs_config(),
            "jobStore": "sql" if config.JOB_STORE_URL else "memory",
            "hasSampleVideo": sample is None or os.path.isfile(sample),
        },
    }
