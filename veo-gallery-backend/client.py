"""
HTTP client for the gallery API, used by scripts and the test suite.
"""

import threading
from typing import List, Optional
from urllib.parse import quote

import requests

from poller import JobExpired, RetryPolicy, poll_until_done


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{message} ({status_code})")
        self.status_code = status_code


class GalleryClient:
    def __init__(self, base_url: str, session=None, timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _check(self, response, what: str):
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", "")
            except ValueError:
                detail = response.text
            raise ApiError(response.status_code, f"{what} failed: {detail}")
        return response.json()

    def start_job(self, prompt: str, **params) -> str:
        body = {"prompt": prompt, **params}
        response = self.session.post(f"{self.base_url}/generate", json=body, timeout=self.timeout)
        job_id = self._check(response, "startJob").get("job_id")
        if not job_id:
            raise ApiError(response.status_code, "No job_id in response")
        return job_id

    def get_job(self, job_id: str) -> Optional[dict]:
        """Current status payload, or None when the job is not visible (yet)."""
        response = self.session.get(
            f"{self.base_url}/jobs/{quote(job_id, safe='')}",
            headers={"Cache-Control": "no-store"},
            timeout=self.timeout,
        )
        if response.status_code == 404:
            return None
        if response.status_code == 410:
            raise JobExpired(f"Job {job_id} expired")
        return self._check(response, "getJob")

    def wait_for_video(
        self,
        job_id: str,
        policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        return poll_until_done(self.get_job, job_id, self.base_url, policy, cancel_event)

    def merge_audio(self, video_url: str, audio_url: Optional[str] = None,
                    audio_choice: str = "tone", volume: Optional[float] = None) -> str:
        body = {"videoUrl": video_url, "audioUrl": audio_url, "audioChoice": audio_choice, "volume": volume}
        response = self.session.post(f"{self.base_url}/merge-audio", json=body, timeout=self.timeout)
        return self._check(response, "mergeAudio")["dataUrl"]

    def publish(self, video_url: str, title: Optional[str] = None,
                description: Optional[str] = None, tags: Optional[List[str]] = None) -> dict:
        body = {"videoUrl": video_url, "title": title, "description": description, "tags": tags}
        response = self.session.post(f"{self.base_url}/publish-to-youtube", json=body, timeout=self.timeout)
        return self._check(response, "publish")
