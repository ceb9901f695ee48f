"""
Cloud Storage uploads and YouTube publishing.

The publisher is picked once at startup (see ``create_publisher``): the
real YouTube Data API publisher, or a demo publisher with the same
response shape for running without OAuth credentials.
"""

import io
import logging
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from fastapi import HTTPException
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.cloud import storage
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from schemas import PublishRequest, PublishResult, UploadResponse
from services import decode_data_url, fetch_asset, is_http_url

DEFAULT_TITLE = "AI Generated Video"
DEFAULT_DESCRIPTION = "Created with Veo AI"
DEFAULT_TAGS = ["AI", "video", "generated"]
MAX_TITLE_LENGTH = 100
YOUTUBE_CATEGORY_ID = "22"  # People & Blogs
YOUTUBE_ID_ALPHABET = string.ascii_letters + string.digits + "-_"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class GcsStorage:
    """Uploads video bytes to a public Cloud Storage bucket."""

    def __init__(self, project_id: str, bucket_name: str, key_file: str = "", client=None):
        self.project_id = project_id
        self.bucket_name = bucket_name
        self.key_file = key_file
        self._client = client

    def _bucket(self):
        if not self.bucket_name:
            raise HTTPException(status_code=500, detail="GCS bucket name not configured")
        if self._client is None:
            if self.key_file:
                self._client = storage.Client.from_service_account_json(self.key_file, project=self.project_id or None)
            else:
                self._client = storage.Client(project=self.project_id or None)
        return self._client.bucket(self.bucket_name)

    def upload(self, data: bytes, original_name: Optional[str], content_type: str) -> UploadResponse:
        bucket = self._bucket()
        name = original_name or "video.mp4"
        extension = name.rsplit(".", 1)[-1] if "." in name else "mp4"
        file_name = f"videos/{uuid.uuid4()}.{extension}"

        logging.info(f"📁 Uploading {original_name} ({len(data)} bytes) to gs://{self.bucket_name}/{file_name}")
        try:
            blob = bucket.blob(file_name)
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
        except Exception as e:
            logging.error(f"❌ Upload error: {e}")
            raise HTTPException(status_code=502, detail=f"Failed to upload to cloud storage: {e}")

        public_url = f"https://storage.googleapis.com/{self.bucket_name}/{file_name}"
        logging.info(f"✅ Upload successful: {public_url}")
        return UploadResponse(url=public_url, fileName=file_name, originalName=original_name, size=len(data))


class YouTubePublisher:
    """Uploads to YouTube with the Data API v3 using stored OAuth tokens."""

    demo_mode = False

    def __init__(self, client_id: str, client_secret: str, access_token: str, refresh_token: str,
                 token_uri: str, scopes: List[str], session=None, service=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.token_uri = token_uri
        self.scopes = scopes
        self.session = session
        self._service = service

    def _youtube(self):
        if self._service is None:
            creds = Credentials(
                token=self.access_token or None,
                refresh_token=self.refresh_token or None,
                token_uri=self.token_uri,
                client_id=self.client_id,
                client_secret=self.client_secret,
                scopes=self.scopes,
            )
            self._service = build("youtube", "v3", credentials=creds, cache_discovery=False)
        return self._service

    def publish(self, video_url: str, title: str, description: str, tags: List[str]) -> PublishResult:
        logging.info(f"🎬 Starting YouTube upload for: {video_url}")
        video_bytes, _ = fetch_asset(video_url, "video", self.session)

        body = {
            "snippet": {
                "title": title,
                "description": description,
                "tags": tags,
                "categoryId": YOUTUBE_CATEGORY_ID,
            },
            "status": {
                "privacyStatus": "unlisted",
                "selfDeclaredMadeForKids": False,
            },
        }
        media = MediaIoBaseUpload(io.BytesIO(video_bytes), mimetype="video/mp4", resumable=True)

        logging.info("⬆️ Uploading to YouTube...")
        try:
            response = self._youtube().videos().insert(
                part="snippet,status",
                body=body,
                media_body=media,
            ).execute()
        except HttpError as e:
            logging.error(f"❌ YouTube upload error: {e}")
            status_code = e.resp.status if e.resp is not None else 502
            raise HTTPException(status_code=status_code, detail=f"Failed to publish to YouTube: {e}")
        except RefreshError as e:
            logging.error(f"❌ YouTube credentials rejected: {e}")
            raise HTTPException(status_code=401, detail=f"Failed to publish to YouTube: {e}")
        except GoogleAuthError as e:
            logging.error(f"❌ YouTube auth error: {e}")
            raise HTTPException(status_code=502, detail=f"Failed to publish to YouTube: {e}")

        video_id = response.get("id", "")
        snippet = response.get("snippet", {})
        youtube_url = watch_url(video_id)
        logging.info(f"✅ YouTube upload successful: {youtube_url}")
        return PublishResult(
            success=True,
            videoId=video_id,
            youtubeUrl=youtube_url,
            title=snippet.get("title") or title,
            description=snippet.get("description") or description,
            privacy=response.get("status", {}).get("privacyStatus", "unlisted"),
            uploadTime=_now_iso(),
            message="🎬 Video successfully published to YouTube!",
            demoMode=False,
        )


class DemoPublisher:
    """Pretends to publish: waits a little and makes up a video id."""

    demo_mode = True

    def __init__(self, delay_seconds: float = 3.0, sleep: Callable[[float], None] = time.sleep):
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    def publish(self, video_url: str, title: str, description: str, tags: List[str]) -> PublishResult:
        logging.info(f"🎬 [DEMO MODE] Simulating YouTube upload for: {video_url}")
        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)

        video_id = "".join(random.choice(YOUTUBE_ID_ALPHABET) for _ in range(11))
        youtube_url = watch_url(video_id)
        logging.info(f"✅ [DEMO MODE] YouTube upload simulation successful: {youtube_url}")
        return PublishResult(
            success=True,
            videoId=video_id,
            youtubeUrl=youtube_url,
            title=title,
            description=description,
            privacy="private",
            uploadTime=_now_iso(),
            message='🎬 [DEMO MODE] Video successfully "published" to YouTube!',
            demoMode=True,
        )


class PublishOrchestrator:
    """Makes the source streamable over HTTP, then hands it to the publisher."""

    def __init__(self, publisher, gcs: GcsStorage):
        self.publisher = publisher
        self.gcs = gcs

    def publish(self, request: PublishRequest) -> PublishResult:
        video_url = request.videoUrl.strip()
        if not video_url:
            raise HTTPException(status_code=400, detail="Video URL is required")

        if not is_http_url(video_url):
            data, content_type = decode_data_url(video_url)
            upload = self.gcs.upload(data, "video.mp4", content_type or "video/mp4")
            video_url = upload.url

        title = (request.title or "").strip() or DEFAULT_TITLE
        description = request.description if request.description is not None else DEFAULT_DESCRIPTION
        tags = request.tags if request.tags is not None else list(DEFAULT_TAGS)
        return self.publisher.publish(video_url, title[:MAX_TITLE_LENGTH], description, tags)


def create_publisher(mode: str, credentials_present: bool, **kwargs):
    """Pick the publisher for ``YOUTUBE_PUBLISH_MODE``."""
    if mode not in ("real", "demo", "auto"):
        raise ValueError(f"YOUTUBE_PUBLISH_MODE must be real, demo or auto, not '{mode}'")
    use_real = mode == "real" or (mode == "auto" and credentials_present)
    if use_real:
        logging.info("🎬 YouTube: Real API mode")
        return YouTubePublisher(
            client_id=kwargs["client_id"],
            client_secret=kwargs["client_secret"],
            access_token=kwargs["access_token"],
            refresh_token=kwargs["refresh_token"],
            token_uri=kwargs["token_uri"],
            scopes=kwargs["scopes"],
        )
    logging.info("🎭 YouTube: Demo mode (configure OAuth for real publishing)")
    return DemoPublisher(delay_seconds=kwargs.get("delay_seconds", 3.0))
