"""YouTube link helpers used to decorate expert talks."""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, urlparse

THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def video_id(url: str) -> Optional[str]:
    """Extract the video id from the common YouTube URL shapes.

    Handles `youtu.be/<id>`, `youtube.com/watch?v=<id>`,
    `youtube.com/embed/<id>` and `youtube.com/shorts/<id>`. Returns
    `None` for anything else, including strings that are not URLs.
    """
    if not url:
        return None
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    if not host:
        return None
    if host.endswith("youtu.be"):
        return parsed.path.lstrip("/").split("/")[0] or None
    if "youtube" not in host:
        return None
    v = parse_qs(parsed.query).get("v")
    if v and v[0]:
        return v[0]
    parts = [p for p in parsed.path.split("/") if p]
    for marker in ("embed", "shorts"):
        if marker in parts:
            idx = parts.index(marker)
            if idx + 1 < len(parts):
                return parts[idx + 1]
    return None


def thumbnail_url(url: str) -> Optional[str]:
    vid = video_id(url)
    if not vid:
        return None
    return THUMBNAIL_TEMPLATE.format(video_id=vid)
