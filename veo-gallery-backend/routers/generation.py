"""
Router for video generation endpoints.
Handles job submission, job status, prompt enhancement and serving the
simulated result video.
"""

import logging
import os

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import FileResponse

import config
from dependencies import get_generator, get_prompt_enhancer
from sanitizer import sanitize_generation_request
from schemas import EnhanceRequest, EnhanceResponse, GenerateRequest, JobResponse
from services import PromptEnhancer


# Create the router
router = APIRouter(tags=["generation"])


@router.post("/generate", response_model=JobResponse)
def generate(request: GenerateRequest, background_tasks: BackgroundTasks, generator=Depends(get_generator)):
    """
    Sanitizes the request, starts a job on the configured generator
    and immediately returns its id.
    """
    if not request.prompt.strip():
        raise HTTPException(status_code=400, detail="prompt is required")

    payload = sanitize_generation_request(request)
    job_id = generator.start(payload, background_tasks)
    return {"job_id": job_id}


@router.get("/jobs/{job_id}")
def get_job(job_id: str, generator=Depends(get_generator)):
    """
    Current status of a job: {status} while pending,
    {status, url} when done, {status, error} on failure.
    """
    job = generator.status(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found.")
    return job


@router.post("/enhance-prompt", response_model=EnhanceResponse)
def enhance_prompt(request: EnhanceRequest, enhancer: PromptEnhancer = Depends(get_prompt_enhancer)):
    """Rewrites a short prompt into a detailed, cinematic one."""
    return enhancer.enhance(request.prompt)


@router.get("/media/{name}")
def get_media(name: str):
    """
    Safely serves a video file from the server's media directory.
    The simulated generator points finished jobs here.
    """
    path = os.path.join(config.MEDIA_DIR, name)
    # Security Check: the resolved path must stay inside the media directory.
    if not os.path.abspath(path).startswith(os.path.abspath(config.MEDIA_DIR) + os.sep):
        raise HTTPException(status_code=403, detail="Forbidden: Access to this path is not allowed.")

    if not os.path.isfile(path):
        logging.warning(f"Media file not found: {path}")
        raise HTTPException(status_code=404, detail="Video file not found.")

    return FileResponse(path, media_type="video/mp4", filename=os.path.basename(path))
