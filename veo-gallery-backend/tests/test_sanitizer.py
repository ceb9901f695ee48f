# veo-gallery-backend/tests/test_sanitizer.py

import pytest

from sanitizer import MAX_FRAMES, align_dimension, sanitize_generation_request
from schemas import GenerateRequest


def test_portrait_preset_caps_frames():
    """
    A 10 second 9:16 request uses the portrait preset and is capped at 48 frames (from 120).
    """
    payload = sanitize_generation_request(GenerateRequest(prompt="test", aspect="9:16", seconds=10))

    assert (payload.width, payload.height) == (320, 576)
    assert payload.frames == 48
    assert payload.seconds == 10


@pytest.mark.parametrize("aspect, size", [("16:9", (576, 320)), ("1:1", (512, 512)), ("9:16", (320, 576))])
def test_aspect_presets(aspect, size):
    payload = sanitize_generation_request(GenerateRequest(prompt="p", aspect=aspect))
    assert (payload.width, payload.height) == size
    assert payload.aspect == aspect


def test_unknown_aspect_falls_back_to_landscape():
    payload = sanitize_generation_request(GenerateRequest(prompt="p", aspect="4:3"))
    assert payload.aspect == "16:9"
    assert (payload.width, payload.height) == (576, 320)


def test_defaults():
    payload = sanitize_generation_request(GenerateRequest(prompt="p"))
    assert payload.steps == 14
    assert payload.seconds == 6
    assert payload.frames == MAX_FRAMES


def test_explicit_steps_are_kept():
    assert sanitize_generation_request(GenerateRequest(prompt="p", steps=30)).steps == 30


def test_custom_dimensions_round_to_multiples_of_64():
    payload = sanitize_generation_request(GenerateRequest(prompt="p", width=700, height=1290))
    assert (payload.width, payload.height) == (704, 1280)


def test_custom_dimensions_need_both_sides():
    payload = sanitize_generation_request(GenerateRequest(prompt="p", width=700, aspect="1:1"))
    assert (payload.width, payload.height) == (512, 512)


@pytest.mark.parametrize("value, expected", [(96, 128), (95, 64), (10, 64), (-300, 64), (1000, 1024)])
def test_align_dimension(value, expected):
    assert align_dimension(value) == expected


def test_short_durations_still_get_one_frame():
    assert sanitize_generation_request(GenerateRequest(prompt="p", seconds=0.01)).frames == 1
    assert sanitize_generation_request(GenerateRequest(prompt="p", seconds=-5)).frames == 1


def test_every_input_gives_safe_output():
    """
    Width and height are positive multiples of 64 and frames stay in [1, 48]
    for a spread of awkward inputs.
    """
    for width in (None, -1, 1, 63, 65, 333, 4000, 10 ** 400):
        for height in (None, 0, 31, 97, 720):
            for seconds in (None, -1.0, 0.0, 0.2, 1.0, 4.0, 100.0, 1e308):
                payload = sanitize_generation_request(
                    GenerateRequest(prompt="p", width=width, height=height, seconds=seconds)
                )
                assert payload.width > 0 and payload.width % 64 == 0
                assert payload.height > 0 and payload.height % 64 == 0
                assert 1 <= payload.frames <= 48


def test_huge_values_do_not_overflow():
    payload = sanitize_generation_request(GenerateRequest(prompt="p", seconds=1e308, width=10 ** 400, height=10 ** 400))
    assert payload.frames == MAX_FRAMES
    assert payload.width == payload.height == (10 ** 400 + 32) // 64 * 64
