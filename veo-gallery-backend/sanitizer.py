"""
Turns user supplied generation parameters into a payload the generation
backend accepts: preset or 64-aligned dimensions, a capped frame count and
default step count.
"""

import math
from typing import Optional

from schemas import GenerateRequest, SanitizedGeneration

ASPECT_PRESETS = {
    "16:9": (576, 320),
    "1:1": (512, 512),
    "9:16": (320, 576),
}
DEFAULT_ASPECT = "16:9"
DEFAULT_FPS = 12
MAX_FRAMES = 48
DEFAULT_SECONDS = 6.0
DEFAULT_STEPS = 14
DIMENSION_STEP = 64


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def align_dimension(value: int) -> int:
    """Round to the nearest multiple of 64, never below 64."""
    # integer math, huge values would overflow a float
    return max(DIMENSION_STEP, (int(value) + DIMENSION_STEP // 2) // DIMENSION_STEP * DIMENSION_STEP)


def frames_for(seconds: float) -> int:
    seconds = min(seconds, MAX_FRAMES / DEFAULT_FPS)
    return min(max(1, _round_half_up(seconds * DEFAULT_FPS)), MAX_FRAMES)


def sanitize_generation_request(request: GenerateRequest) -> SanitizedGeneration:
    aspect = request.aspect if request.aspect in ASPECT_PRESETS else DEFAULT_ASPECT

    if request.width and request.height:
        width, height = align_dimension(request.width), align_dimension(request.height)
    else:
        width, height = ASPECT_PRESETS[aspect]

    seconds = request.seconds if _is_finite(request.seconds) else DEFAULT_SECONDS
    steps = request.steps if request.steps is not None else DEFAULT_STEPS

    return SanitizedGeneration(
        prompt=request.prompt,
        seconds=seconds,
        aspect=aspect,
        steps=steps,
        width=width,
        height=height,
        frames=frames_for(seconds),
    )
