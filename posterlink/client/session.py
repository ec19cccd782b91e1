import random
from typing import Optional

from posterlink.client.api import PosterLinkClient
from posterlink.client.renderer import Poster, remix, render_poster
from posterlink.models import VideoInfo


class PosterSession:
    """The one piece of client state: who is signed in and what is on screen."""

    def __init__(self, client: PosterLinkClient, rng: Optional[random.Random] = None):
        self.client = client
        self.rng = rng or random.Random()
        self.current: Optional[VideoInfo] = None

    def generate(self, youtube_url: str) -> Poster:
        url = (youtube_url or "").strip()
        if not url:
            raise ValueError("Please enter a YouTube URL.")
        info = self.client.get_video_info(url)
        poster = render_poster(info)
        self.current = info
        return poster

    def remix(self) -> Poster:
        if self.current is None:
            raise ValueError("Generate a poster before remixing.")
        self.current = remix(self.current, self.rng)
        return render_poster(self.current)
