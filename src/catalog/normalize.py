"""Text helpers shared by the catalog and the availability gate."""

from __future__ import annotations

import re
import unicodedata

_HTTP_URL = re.compile(r"^https?://.+")


def fold(text: str) -> str:
    """Lower-case and strip diacritics ("Février" -> "fevrier")."""
    decomposed = unicodedata.normalize("NFD", text.strip())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def clean_url(url: str | None) -> str:
    """Trim a catalog URL and drop the stray double quotes some records carry."""
    if not url:
        return ""
    return url.strip().strip('"')


def is_http_url(url: str) -> bool:
    return bool(url and _HTTP_URL.match(url))


def is_youtube_url(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url
