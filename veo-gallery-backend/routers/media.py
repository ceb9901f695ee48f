"""
Router for media endpoints: audio merge, Cloud Storage upload and the
trending sounds catalogue.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

import config
from dependencies import get_audio_merger, get_http_session, get_storage
from publishing import GcsStorage
from schemas import MergeRequest, MergeResponse, SoundsResponse, UploadResponse
from services import AudioMerger
from sounds import trending_sounds


router = APIRouter(tags=["media"])


@router.post("/merge-audio", response_model=MergeResponse)
def merge_audio(request: MergeRequest, merger: AudioMerger = Depends(get_audio_merger)):
    """Muxes an audio track (remote or built-in tone/silence) into a video."""
    return {"dataUrl": merger.merge(request)}


@router.post("/upload-to-gcs", response_model=UploadResponse)
def upload_to_gcs(video: Optional[UploadFile] = File(None), storage: GcsStorage = Depends(get_storage)):
    """Receives a video from the frontend and stores it in a public bucket."""
    if video is None or not (video.content_type or "").startswith("video/"):
        raise HTTPException(status_code=400, detail="No video file provided")

    data = video.file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Video exceeds the upload size limit.")

    logging.info(f"📁 Received file: {video.filename} Size: {len(data)}")
    return storage.upload(data, video.filename, video.content_type)


@router.get("/trending-sounds", response_model=SoundsResponse)
def get_trending_sounds(
    response: Response,
    provider: str = "curated",
    region: Optional[str] = None,
    session=Depends(get_http_session),
):
    """Sounds for the audio picker from the chosen provider."""
    try:
        sounds, max_age = trending_sounds(provider, region, session)
    except Exception as e:
        logging.error(f"trending-sounds error: {e}")
        raise HTTPException(status_code=500, detail="Failed to load trending sounds")

    response.headers["Cache-Control"] = f"public, max-age={max_age}"
    return {"sounds": sounds}
