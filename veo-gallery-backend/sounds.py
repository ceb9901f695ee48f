"""
Trending sound providers for the audio picker: a curated list, the Deezer
chart, and Apple's "most played" feed resolved to iTunes previews.
"""

import logging
from typing import List, Optional, Tuple
from urllib.parse import quote

import requests

from schemas import Sound

CURATED_MAX_AGE = 600
LIVE_MAX_AGE = 120
DEEZER_LIMIT = 25
ITUNES_LIMIT = 15
PREVIEW_SECONDS = 30

CURATED_SOUNDS = [
    Sound(
        id="sample-1",
        title="original sound - tna.music",
        artist="TNAe",
        durationSec=54,
        audioUrl="https://sf16-ies-music-va.tiktokcdn.com/obj/ies-music-ttp-dup-us/7516564887011740458.mp3",
        source="curated-demo",
    ),
    Sound(
        id="sample-2",
        title="Original sound - DJ ANyelo",
        artist="DJ Anyelo",
        durationSec=54,
        audioUrl="https://sf77-ies-music-va.tiktokcdn.com/obj/musically-maliva-obj/7317428813843876614.mp3",
        source="curated-demo",
    ),
    Sound(
        id="sample-3",
        title="GRR",
        artist="Fantomel",
        durationSec=17,
        audioUrl="https://sf16-music.tiktokcdn-eu.com/obj/ies-music-eu2-no/7508780725572356886.mp3",
        source="curated-demo",
    ),
]


def fetch_deezer_chart(session, region: Optional[str] = None, timeout: float = 10.0) -> List[Sound]:
    region_path = f"/{quote(region)}" if region and len(region) <= 3 else ""
    response = session.get(f"https://api.deezer.com/chart{region_path}/tracks", timeout=timeout)
    if not response.ok:
        logging.warning(f"Deezer chart returned {response.status_code}")
        return []

    sounds = []
    for track in response.json().get("data") or []:
        if not track.get("preview"):
            continue
        duration = track.get("duration")
        album = track.get("album") or {}
        sounds.append(Sound(
            id=str(track.get("id")),
            title=str(track.get("title")),
            artist=str((track.get("artist") or {}).get("name") or "Unknown"),
            durationSec=min(PREVIEW_SECONDS, duration) if isinstance(duration, (int, float)) else PREVIEW_SECONDS,
            audioUrl=str(track["preview"]),
            source="deezer-chart",
            cover=album.get("cover_small") or album.get("cover"),
        ))
        if len(sounds) == DEEZER_LIMIT:
            break
    return sounds


def fetch_itunes_most_played(session, region: Optional[str] = None, timeout: float = 10.0) -> List[Sound]:
    region = (region or "US").upper()
    rss_url = f"https://rss.applemarketingtools.com/api/v2/{quote(region)}/music/most-played/50/songs.json"
    rss = session.get(rss_url, timeout=timeout)
    if not rss.ok:
        raise RuntimeError(f"Apple RSS failed: {rss.status_code}")

    items = (rss.json().get("feed") or {}).get("results") or []
    sounds = []
    for item in items[:ITUNES_LIMIT]:
        query = f"{item.get('name', '')} {item.get('artistName', '')}"
        try:
            response = session.get(
                "https://itunes.apple.com/search",
                params={"term": query, "country": region, "entity": "song", "limit": 1},
                timeout=timeout,
            )
        except requests.RequestException as e:
            logging.warning(f"iTunes search failed for '{query}': {e}")
            continue
        if not response.ok:
            continue
        results = response.json().get("results") or []
        match = results[0] if results else None
        if not match or not match.get("previewUrl"):
            continue
        sounds.append(Sound(
            id=str(match.get("trackId") or item.get("id") or query),
            title=str(item.get("name") or match.get("trackName")),
            artist=str(item.get("artistName") or match.get("artistName") or "Unknown"),
            durationSec=PREVIEW_SECONDS,
            audioUrl=str(match["previewUrl"]),
            source="itunes-preview",
            cover=item.get("artworkUrl100") or match.get("artworkUrl100"),
        ))
    return sounds


def trending_sounds(provider: str, region: Optional[str] = None, session=None) -> Tuple[List[Sound], int]:
    """Return (sounds, cache max-age seconds) for ``provider``."""
    session = session or requests
    if provider == "deezer":
        return fetch_deezer_chart(session, region), LIVE_MAX_AGE
    if provider == "itunes":
        return fetch_itunes_most_played(session, region), LIVE_MAX_AGE
    return list(CURATED_SOUNDS), CURATED_MAX_AGE
