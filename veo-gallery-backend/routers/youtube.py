"""
Router for publishing a finished video to YouTube.
"""

from fastapi import APIRouter, Depends

from dependencies import get_publish_orchestrator
from publishing import PublishOrchestrator
from schemas import PublishRequest, PublishResult


router = APIRouter(tags=["publishing"])


@router.post("/publish-to-youtube", response_model=PublishResult)
def publish_to_youtube(request: PublishRequest, orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator)):
    """
    Uploads data URLs to Cloud Storage first, then publishes through the
    real or demo publisher chosen at startup. Both answer with the same shape.
    """
    return orchestrator.publish(request)
