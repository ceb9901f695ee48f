"""
Pydantic models for data validation in the Veo Gallery backend.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


TERMINAL_STATUSES = ("completed", "done", "error")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationJob(BaseModel):
    """One asynchronous generation request and its tracked progress."""
    id: str
    status: str = "queued"  # queued | generating | running | processing | completed | done | error
    progress: float = 0.0
    prompt: str = ""
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class GenerateRequest(BaseModel):
    """Raw generation parameters as sent by the UI."""
    prompt: str
    seconds: Optional[float] = None
    steps: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    aspect: Optional[str] = None


class SanitizedGeneration(BaseModel):
    """Backend-safe payload forwarded to the generation service."""
    prompt: str
    seconds: float
    aspect: str
    steps: int
    width: int
    height: int
    frames: int


class JobResponse(BaseModel):
    """Response when submitting a generation job."""
    job_id: str


class EnhanceRequest(BaseModel):
    prompt: str


class EnhanceResponse(BaseModel):
    enhancedPrompt: str
    reasoning: str
    improvements: List[str]


class MergeRequest(BaseModel):
    """Request model for merging an audio track into a video."""
    videoUrl: str
    audioUrl: Optional[str] = None
    audioChoice: Literal["tone", "silence"] = "tone"
    volume: Optional[float] = None


class MergeResponse(BaseModel):
    dataUrl: str


class UploadResponse(BaseModel):
    """Response model for a video stored in Cloud Storage."""
    url: str
    fileName: str
    originalName: Optional[str] = None
    size: int


class PublishRequest(BaseModel):
    videoUrl: str
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


class PublishResult(BaseModel):
    """Same shape for the real and the demo publisher."""
    success: bool
    videoId: str
    youtubeUrl: str
    title: str
    description: str
    privacy: str
    uploadTime: str
    message: str
    demoMode: bool


class Sound(BaseModel):
    id: str
    title: str
    artist: str
    durationSec: float
    audioUrl: str
    source: str
    cover: Optional[str] = None


class SoundsResponse(BaseModel):
    sounds: List[Sound]
