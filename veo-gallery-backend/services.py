"""
Service classes for the Veo Gallery backend.
Contains the audio merge pipeline (AudioMerger, FfmpegMuxer) and the
PromptEnhancer.
"""

import base64
import json
import logging
import os
import re
import subprocess
import tempfile
from typing import Optional, Tuple, Union
from urllib.parse import unquote

import ffmpeg
import requests
from fastapi import HTTPException

from config import (
    EXAMPLE_1_ASSISTANT,
    EXAMPLE_1_USER,
    EXAMPLE_2_ASSISTANT,
    EXAMPLE_2_USER,
    FALLBACK_IMPROVEMENTS,
    FALLBACK_REASONING,
    FFMPEG_BINARY,
    FFMPEG_TIMEOUT_SECONDS,
    OLLAMA_API_URL,
    OLLAMA_MODEL,
    SYSTEM_PROMPT,
)
from schemas import EnhanceResponse, MergeRequest

_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

GENERATED_AUDIO_SOURCES = {
    "tone": "sine=frequency=440:sample_rate=44100",
    "silence": "anullsrc=channel_layout=stereo:sample_rate=44100",
}
# Long enough for any clip; -shortest trims it to the video.
GENERATED_AUDIO_SECONDS = 600
MAX_VOLUME = 5.0


def is_http_url(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def decode_data_url(url: str) -> Tuple[bytes, str]:
    match = _DATA_URL.match(url)
    if not match:
        raise HTTPException(status_code=400, detail="Malformed data URL.")
    mime = match.group("mime") or "application/octet-stream"
    try:
        if match.group("b64"):
            return base64.b64decode(match.group("data"), validate=True), mime
        return unquote(match.group("data")).encode("utf-8"), mime
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Malformed data URL: {e}")


def fetch_asset(url: str, what: str, session=None, timeout: float = 60.0) -> Tuple[bytes, str]:
    """Download a remote asset (or decode a data URL). Returns (bytes, content type)."""
    if url.startswith("data:"):
        return decode_data_url(url)

    session = session or requests
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise HTTPException(status_code=400, detail=f"Failed to download {what}: {e}")

    if not response.ok:
        raise HTTPException(
            status_code=400,
            detail=f"Failed to download {what}: {response.status_code} {response.reason}",
        )
    return response.content, response.headers.get("content-type", "")


def audio_extension(content_type: str) -> str:
    if "ogg" in content_type:
        return ".ogg"
    if "wav" in content_type:
        return ".wav"
    return ".mp3"


class GeneratedAudio:
    """A built-in audio track rendered by ffmpeg's lavfi device."""

    def __init__(self, kind: str):
        if kind not in GENERATED_AUDIO_SOURCES:
            raise ValueError(f"Unknown generated audio '{kind}'")
        self.kind = kind

    @property
    def expression(self) -> str:
        return GENERATED_AUDIO_SOURCES[self.kind]


AudioInput = Union[str, GeneratedAudio]


class MediaMuxer:
    """Combines a video with an audio track into ``output_path``."""

    def combine(self, video_path: str, audio: AudioInput, volume: Optional[float], output_path: str) -> None:
        raise NotImplementedError


class FfmpegMuxer(MediaMuxer):
    """Muxes with the ffmpeg binary: video copied, audio re-encoded to AAC."""

    def __init__(self, binary: str = FFMPEG_BINARY, timeout: float = FFMPEG_TIMEOUT_SECONDS):
        self.binary = binary
        self.timeout = timeout

    def build_command(self, video_path: str, audio: AudioInput, volume: Optional[float], output_path: str) -> list:
        video_in = ffmpeg.input(video_path)
        if isinstance(audio, GeneratedAudio):
            audio_in = ffmpeg.input(audio.expression, f="lavfi", t=GENERATED_AUDIO_SECONDS)
        else:
            audio_in = ffmpeg.input(audio)

        audio_stream = audio_in.audio
        if volume is not None:
            audio_stream = audio_stream.filter("volume", volume)

        output = ffmpeg.output(
            video_in.video,
            audio_stream,
            output_path,
            vcodec="copy",
            acodec="aac",
            shortest=None,
        )
        return output.compile(cmd=self.binary, overwrite_output=True)

    def combine(self, video_path: str, audio: AudioInput, volume: Optional[float], output_path: str) -> None:
        command = self.build_command(video_path, audio, volume, output_path)
        logging.info(f"🎬 Running ffmpeg command: {' '.join(command)}")

        try:
            subprocess.run(command, capture_output=True, timeout=self.timeout, check=True)
            logging.info("✅ Audio merge completed successfully!")

        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf8", errors="replace").strip() if e.stderr else ""
            logging.error(f"❌ ffmpeg failed with exit code {e.returncode}. Stderr:\n{stderr}")
            raise HTTPException(status_code=500, detail=f"Audio merge failed (ffmpeg exit code {e.returncode})")

        except subprocess.TimeoutExpired:
            logging.error("❌ ffmpeg timed out.")
            raise HTTPException(status_code=504, detail=f"Audio merge timed out after {self.timeout:.0f} seconds.")

        except FileNotFoundError:
            raise HTTPException(status_code=500, detail=f"ffmpeg binary not found: {self.binary}")


class AudioMerger:
    """Downloads a video and an audio track into a private temp dir and muxes them."""

    def __init__(self, muxer: MediaMuxer, session=None, timeout: float = 60.0, workspace_root: Optional[str] = None):
        self.muxer = muxer
        self.session = session
        self.timeout = timeout
        self.workspace_root = workspace_root

    def merge(self, request: MergeRequest) -> str:
        """Return the merged video as a ``data:video/mp4;base64,...`` URL."""
        if not request.videoUrl.strip():
            raise HTTPException(status_code=400, detail="videoUrl is required")

        volume = None
        if request.volume is not None:
            volume = max(0.0, min(request.volume, MAX_VOLUME))

        with tempfile.TemporaryDirectory(prefix="merge-audio-", dir=self.workspace_root) as workspace:
            video_path = os.path.join(workspace, "input-video.mp4")
            video_bytes, _ = fetch_asset(request.videoUrl, "video", self.session, self.timeout)
            with open(video_path, "wb") as f:
                f.write(video_bytes)

            if request.audioUrl:
                audio_bytes, content_type = fetch_asset(request.audioUrl, "audio", self.session, self.timeout)
                audio = os.path.join(workspace, "input-audio" + audio_extension(content_type))
                with open(audio, "wb") as f:
                    f.write(audio_bytes)
            else:
                audio = GeneratedAudio(request.audioChoice)

            output_path = os.path.join(workspace, "output.mp4")
            self.muxer.combine(video_path, audio, volume, output_path)

            if not os.path.exists(output_path):
                raise HTTPException(status_code=500, detail="Audio merge produced no output file.")
            with open(output_path, "rb") as f:
                merged = f.read()

        logging.info(f"🎵 Merged audio into video ({len(merged)} bytes)")
        return "data:video/mp4;base64," + base64.b64encode(merged).decode("ascii")


def parse_enhancement(text: str) -> EnhanceResponse:
    """Read the model's JSON answer; fall back to using the raw text."""
    cleaned = re.sub(r"```(?:json)?\n?|```", "", text or "").strip()
    match = re.search(r"\{[\s\S]*\}", cleaned)
    if match:
        try:
            parsed = json.loads(match.group(0))
            return EnhanceResponse(
                enhancedPrompt=str(parsed.get("enhancedPrompt") or ""),
                reasoning=str(parsed.get("reasoning") or ""),
                improvements=[str(item) for item in parsed.get("improvements") or []],
            )
        except (ValueError, AttributeError) as e:
            logging.warning(f"Could not parse enhancer response: {e}")

    return EnhanceResponse(
        enhancedPrompt=cleaned,
        reasoning=FALLBACK_REASONING,
        improvements=list(FALLBACK_IMPROVEMENTS),
    )


class PromptEnhancer:
    """Rewrites a short prompt into a cinematic one with a local Ollama model."""

    def __init__(self, api_url: str = OLLAMA_API_URL, model: str = OLLAMA_MODEL, session=None):
        self.api_url = api_url
        self.model = model
        self.session = session or requests

    def enhance(self, prompt: str) -> EnhanceResponse:
        if not prompt.strip():
            raise HTTPException(status_code=400, detail="prompt is required")
        try:
            logging.info(f"📝 Sending prompt to {self.model}: '{prompt}'")
            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": EXAMPLE_1_USER},
                    {"role": "assistant", "content": EXAMPLE_1_ASSISTANT},
                    {"role": "user", "content": EXAMPLE_2_USER},
                    {"role": "assistant", "content": EXAMPLE_2_ASSISTANT},
                    {"role": "user", "content": f'ORIGINAL USER PROMPT: "{prompt}"'},
                ],
                "stream": False,
                "options": {"temperature": 0.7, "top_p": 0.95},
            }
            response = self.session.post(self.api_url, json=payload, timeout=180)
            response.raise_for_status()
            text = response.json().get("message", {}).get("content", "")
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not connect to the Ollama AI model: {e}")

        if not text.strip():
            raise HTTPException(status_code=502, detail="AI returned an empty response.")
        return parse_enhancement(text)
