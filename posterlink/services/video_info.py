import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from posterlink.errors import PosterLinkError
from posterlink.models import VideoInfo
from posterlink.services.palette import PaletteExtractor
from posterlink.services.youtube import Thumbnail, YouTubeService, resolve_video_id
from posterlink.utils.results import BestEffort, Required

logger = logging.getLogger(__name__)


class VideoInfoService:
    """URL in, VideoInfo out.

    resolve id -> fetch thumbnail -> extract palette is a strict chain; the
    title scrape only needs the id, so it runs beside the chain and is
    joined before assembly. Only the chain can fail the request.
    """

    def __init__(self, youtube: Optional[YouTubeService] = None,
                 extractor: Optional[PaletteExtractor] = None,
                 concurrent_title: bool = True):
        self.youtube = youtube or YouTubeService()
        self.extractor = extractor or PaletteExtractor()
        self.concurrent_title = concurrent_title

    def _thumbnail(self, video_id: str) -> Required[Thumbnail]:
        try:
            return Required.ok(self.youtube.fetch_thumbnail(video_id))
        except PosterLinkError as e:
            return Required.fail(e)

    def _palette(self, thumbnail: Thumbnail) -> Required[List[str]]:
        try:
            return Required.ok(self.extractor.extract(thumbnail.content, thumbnail.media_type))
        except PosterLinkError as e:
            return Required.fail(e)

    def _join_title(self, future: Future) -> BestEffort[str]:
        try:
            return future.result()
        except Exception as e:
            logger.exception("Title scrape crashed")
            return BestEffort.substitute(self.youtube.title_fallback, str(e))

    def get_video_info(self, youtube_url: str) -> VideoInfo:
        video_id = resolve_video_id(youtube_url)
        logger.info("Resolved %r to video id %s", youtube_url, video_id)

        if not self.concurrent_title:
            thumbnail = self._thumbnail(video_id).unwrap()
            colors = self._palette(thumbnail).unwrap()
            title = self.youtube.scrape_title(video_id)
            return self._assemble(youtube_url, thumbnail, colors, title)

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="title") as pool:
            title_future = pool.submit(self.youtube.scrape_title, video_id)
            thumbnail = self._thumbnail(video_id).unwrap()
            colors = self._palette(thumbnail).unwrap()
            title = self._join_title(title_future)

        return self._assemble(youtube_url, thumbnail, colors, title)

    def _assemble(self, youtube_url: str, thumbnail: Thumbnail, colors: List[str],
                  title: BestEffort[str]) -> VideoInfo:
        if title.degraded:
            logger.info("Using fallback title (%s)", title.reason)
        # source_url stays exactly as the caller sent it; the QR code encodes it.
        return VideoInfo(
            title=title.value,
            thumbnail_url=thumbnail.url,
            colors=tuple(colors),
            source_url=youtube_url,
            thumbnail_attempts=thumbnail.attempts,
        )
