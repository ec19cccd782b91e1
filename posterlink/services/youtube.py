import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple
from urllib.parse import parse_qs, urlparse

import requests

from posterlink import config
from posterlink.errors import InvalidVideoUrl, ThumbnailUnavailable
from posterlink.utils.results import BestEffort

logger = logging.getLogger(__name__)

SHORT_HOST = "youtu.be"
CANONICAL_HOST = "youtube.com"

THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/{variant}.jpg"
# Tried in this order, once each.
THUMBNAIL_TIERS = ("maxresdefault", "hqdefault")

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
TITLE_RE = re.compile(r"<title>(.*?)</title>", re.S)
TITLE_SUFFIX = " - YouTube"

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

VIDEO_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
SHORT_LINK_RE = re.compile(r"youtu\.be/([a-zA-Z0-9_-]+)")
WATCH_PARAM_RE = re.compile(r"v=([a-zA-Z0-9_-]+)")


# -----------------------------
# Video id resolution
# -----------------------------
def _clean_id(candidate: Optional[str]) -> Optional[str]:
    if candidate and VIDEO_ID_RE.fullmatch(candidate):
        return candidate
    return None


def id_from_structured_url(url: str) -> Optional[str]:
    """Parse the URL properly and read the id from the host's own scheme."""
    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return None

    if host == SHORT_HOST:
        segments = [s for s in parsed.path.split("/") if s]
        return _clean_id(segments[0] if segments else None)

    if CANONICAL_HOST in host:
        values = parse_qs(parsed.query).get("v") or []
        return _clean_id(values[0] if values else None)

    return None


def id_from_patterns(url: str) -> Optional[str]:
    """Loose match for pasted fragments like ``youtu.be/abc`` or ``...v=abc``."""
    for pattern in (SHORT_LINK_RE, WATCH_PARAM_RE):
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


ID_STRATEGIES: Tuple[Callable[[str], Optional[str]], ...] = (
    id_from_structured_url,
    id_from_patterns,
)


def resolve_video_id(url: str, strategies: Sequence[Callable[[str], Optional[str]]] = ID_STRATEGIES) -> str:
    """Return the video id for ``url``; the first strategy that finds one wins."""
    url = (url or "").strip()
    if url:
        for strategy in strategies:
            video_id = strategy(url)
            if video_id:
                return video_id
    raise InvalidVideoUrl()


# -----------------------------
# Thumbnails and titles
# -----------------------------
@dataclass(frozen=True)
class Thumbnail:
    content: bytes
    url: str
    media_type: str
    attempts: Tuple[str, ...]


class YouTubeService:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = None,
                 title_fallback: str = None):
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
        self.title_fallback = title_fallback if title_fallback is not None else config.TITLE_FALLBACK

    def _get(self, url: str):
        return self.session.get(url, timeout=self.timeout, headers={'User-Agent': USER_AGENT})

    def thumbnail_urls(self, video_id: str) -> Tuple[str, ...]:
        return tuple(THUMBNAIL_URL.format(video_id=video_id, variant=v) for v in THUMBNAIL_TIERS)

    def fetch_thumbnail(self, video_id: str) -> Thumbnail:
        """Fetch the best available thumbnail, max resolution first.

        Raises ThumbnailUnavailable when every tier fails.
        """
        attempts = []
        for url in self.thumbnail_urls(video_id):
            attempts.append(url)
            try:
                response = self._get(url)
            except requests.RequestException as e:
                logger.info("Thumbnail request failed for %s: %s", url, e)
                continue

            if response.status_code == 200 and response.content:
                content_type = response.headers.get("Content-Type") or "image/jpeg"
                media_type = content_type.split(";")[0].strip().lower()
                return Thumbnail(response.content, url, media_type, tuple(attempts))

            logger.info("Thumbnail tier %s answered %s", url, response.status_code)

        raise ThumbnailUnavailable()

    def extract_title(self, html: str) -> Optional[str]:
        match = TITLE_RE.search(html or "")
        if not match:
            return None
        title = match.group(1).strip()
        if title.endswith(TITLE_SUFFIX):
            title = title[:-len(TITLE_SUFFIX)]
        return title.strip() or None

    def scrape_title(self, video_id: str) -> BestEffort[str]:
        """Read the display title from the public watch page.

        Never raises: any failure yields the fallback title.
        """
        url = WATCH_URL.format(video_id=video_id)
        try:
            response = self._get(url)
        except requests.RequestException as e:
            logger.warning("Could not fetch watch page for %s: %s", video_id, e)
            return BestEffort.substitute(self.title_fallback, str(e))

        if response.status_code != 200:
            logger.warning("Watch page for %s answered %s", video_id, response.status_code)
            return BestEffort.substitute(self.title_fallback, f"HTTP {response.status_code}")

        title = self.extract_title(response.text)
        if not title:
            logger.warning("No <title> found on watch page for %s", video_id)
            return BestEffort.substitute(self.title_fallback, "no title tag")

        return BestEffort.ok(title)
