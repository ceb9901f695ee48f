"""
Configuration file for the Veo Gallery backend.
Contains all global constants read from the environment and the
prompt engineering templates used by the prompt enhancer.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


# --- Paths ---
PROJECT_ROOT = os.getcwd()
MEDIA_DIR = os.getenv("MEDIA_DIR", os.path.join(PROJECT_ROOT, "media"))

# --- Generation backend ---
GENERATION_BACKEND_URL = os.getenv("GENERATION_BACKEND_URL", "").strip().rstrip("/")
# Gates the real (costly) model. Off means the simulated generator answers /generate.
USE_REAL_GENERATION = _env_bool("USE_REAL_GENERATION", False)
HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", 60.0)

# --- Simulated generator ---
SIMULATED_VIDEO_URL = os.getenv("SIMULATED_VIDEO_URL", "/media/sample.mp4")
# (status, seconds spent in that phase)
SIMULATED_PHASES = [
    ("queued", 1.0),
    ("generating", 8.0),
    ("processing", 4.0),
    ("completed", 0.0),
]

# --- Job store ---
JOB_STORE_URL = os.getenv("JOB_STORE_URL", "")
JOB_RETENTION_SECONDS = _env_float("JOB_RETENTION_SECONDS", 10 * 60)
JOB_SWEEP_INTERVAL_SECONDS = _env_float("JOB_SWEEP_INTERVAL_SECONDS", 5 * 60)

# --- Polling ---
DEFAULT_POLL_INTERVAL_SECONDS = 3.0

# --- Google Cloud Storage ---
GCS_PROJECT_ID = os.getenv("GCS_PROJECT_ID", "")
GCS_BUCKET_NAME = os.getenv("GCS_BUCKET_NAME", "")
GCS_KEY_FILE = os.getenv("GCS_KEY_FILE", "")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(100 * 1024 * 1024)))

# --- YouTube ---
YOUTUBE_CLIENT_ID = os.getenv("YOUTUBE_CLIENT_ID", "").strip()
YOUTUBE_CLIENT_SECRET = os.getenv("YOUTUBE_CLIENT_SECRET", "").strip()
YOUTUBE_ACCESS_TOKEN = os.getenv("YOUTUBE_ACCESS_TOKEN", "").strip()
YOUTUBE_REFRESH_TOKEN = os.getenv("YOUTUBE_REFRESH_TOKEN", "").strip()
YOUTUBE_TOKEN_URI = "https://oauth2.googleapis.com/token"
YOUTUBE_SCOPES = ["https://www.googleapis.com/auth/youtube.upload"]
# "real", "demo" or "auto" (real only when credentials are present)
YOUTUBE_PUBLISH_MODE = os.getenv("YOUTUBE_PUBLISH_MODE", "auto").strip().lower()
DEMO_PUBLISH_DELAY_SECONDS = _env_float("DEMO_PUBLISH_DELAY_SECONDS", 3.0)

# --- Media processing ---
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
FFMPEG_TIMEOUT_SECONDS = _env_float("FFMPEG_TIMEOUT_SECONDS", 300.0)

# --- Server ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# --- Prompt enhancer (local Ollama) ---
OLLAMA_API_URL = os.getenv("OLLAMA_API_URL", "http://localhost:11434/api/chat")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")


def has_youtube_credentials() -> bool:
    return bool(
        YOUTUBE_CLIENT_ID
        and YOUTUBE_CLIENT_SECRET
        and (YOUTUBE_ACCESS_TOKEN or YOUTUBE_REFRESH_TOKEN)
    )


def has_gcs_config() -> bool:
    return bool(GCS_PROJECT_ID and GCS_BUCKET_NAME)


def simulated_video_path():
    """Local file behind SIMULATED_VIDEO_URL, or None when it points elsewhere."""
    if not SIMULATED_VIDEO_URL.startswith("/media/"):
        return None
    return os.path.join(MEDIA_DIR, SIMULATED_VIDEO_URL[len("/media/"):])


# --- Prompt Engineering Section ---

VEO_SAMPLE_PROMPTS = [
    "Fluffy Characters Stop Motion: Inside a brightly colored, cozy kitchen made of felt and yarn. "
    "A plump, fluffy hamster with oversized glasses nervously stirs a bubbling pot on a miniature stove. "
    "The camera is a mid-shot, capturing his frantic stirring. Suddenly the pot emits a loud \"POP!\" "
    "and a geyser of iridescent green slime erupts, covering the entire kitchen.",

    "A fast-tracking POV shot through a grimy, neon-lit cyberpunk alleyway at night. Rain slicks the "
    "pavement, reflecting the glow of holographic advertisements. The sound of rapid footsteps and heavy "
    "breathing dominates the audio. The camera whips around to a lateral tracking shot following a nimble "
    "protagonist in a hooded jacket as she leaps over discarded crates.",

    "A gentle close-up on two small, brown macaque monkeys perched on a moss-covered branch in a vibrant, "
    "misty rainforest. One monkey tenderly grooms the other's fur, making soft chittering sounds. The camera "
    "slowly zooms in as they lean in and gaze at each other.",
]

SYSTEM_PROMPT = """You are an expert AI video generation prompt engineer for text-to-video models.

Transform basic user prompts into cinematic, detailed prompts that generate high-quality videos.

KEY ELEMENTS TO INCLUDE:
1.  Camera work: specific shot types (close-up, wide shot, tracking shot, POV).
2.  Visual style: cinematography, lighting, color grading, atmosphere.
3.  Audio design: specific sounds, dialogue, music, ambient audio.
4.  Movement and action: detailed character movements and scene dynamics.
5.  Environment: rich scene descriptions with textures and mood.
6.  Keep it to at most 8 seconds of content and be specific about what happens each second.

Respond ONLY with JSON in this exact format:
{"enhancedPrompt": "...", "reasoning": "...", "improvements": ["...", "..."]}
"""

EXAMPLE_1_USER = "A cat in a kitchen."
EXAMPLE_1_ASSISTANT = (
    '{"enhancedPrompt": "' + VEO_SAMPLE_PROMPTS[0] + '", '
    '"reasoning": "Adds a concrete style, a camera position and an audible payoff.", '
    '"improvements": ["Defined visual style", "Specified camera framing", "Added sound design"]}'
)

EXAMPLE_2_USER = "Someone running at night in a city."
EXAMPLE_2_ASSISTANT = (
    '{"enhancedPrompt": "' + VEO_SAMPLE_PROMPTS[1] + '", '
    '"reasoning": "Turns a vague action into a tracked chase with lighting and audio cues.", '
    '"improvements": ["Dynamic camera movement", "Lighting and weather", "Foley audio"]}'
)

FALLBACK_REASONING = "Enhanced with AI-powered improvements"
FALLBACK_IMPROVEMENTS = [
    "Improved visual composition",
    "Enhanced cinematography",
    "Added technical details",
]
