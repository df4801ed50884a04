from __future__ import annotations

import re

from .errors import InvalidPayloadError

TRACK_HOST = "open.spotify.com"

_TRACK_ID = r"[A-Za-z0-9]{22}"

# Checked in order; the first pattern that matches wins.
TRACK_PATTERNS = [
    re.compile(rf"^spotify:track:(?P<id>{_TRACK_ID})$"),
    re.compile(rf"^https?://[^\s/]+(?:/[^\s?#]*)?/track/(?P<id>{_TRACK_ID})(?:[/?#]\S*)?$", re.IGNORECASE),
    re.compile(rf"^(?P<id>{_TRACK_ID})$"),
]


def track_url(track_id: str) -> str:
    return f"https://{TRACK_HOST}/track/{track_id}"


def extract_track_id(reference: str) -> str | None:
    candidate = (reference or "").strip()
    for pattern in TRACK_PATTERNS:
        match = pattern.match(candidate)
        if match:
            return match.group("id")
    return None


def normalize_track_reference(reference: str) -> str:
    """Return the canonical web URL for a URI, web link, or bare track id."""
    track_id = extract_track_id(reference)
    if track_id is None:
        raise InvalidPayloadError("Enter a track link, a spotify:track URI, or a track ID.")
    return track_url(track_id)
