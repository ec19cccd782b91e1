import logging
from typing import Any, Dict, List, Optional

import requests

from posterlink import config
from posterlink.models import VideoInfo

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx answer from the PosterLink API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class PosterLinkClient:
    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = None):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.token = token if token is not None else (config.API_TOKEN or None)
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, headers=self._headers(),
                                            timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(0, f"Could not reach the server: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            raise ApiError(response.status_code, data.get("error") or f"Request failed ({response.status_code})")
        return data

    # Account

    def register(self, name: str, email: str, password: str) -> str:
        return self._request("POST", "/register", {"name": name, "email": email, "password": password})["message"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/login", {"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/me")

    def upgrade_to_premium(self) -> Dict[str, Any]:
        return self._request("POST", "/update-to-premium")["user"]

    # Posters

    def get_video_info(self, youtube_url: str) -> VideoInfo:
        data = self._request("POST", "/get-video-info", {"youtubeUrl": youtube_url})
        return VideoInfo.from_response(data, source_url=youtube_url)

    def upload_poster(self, image_data: str, filename: str) -> str:
        data = self._request("POST", "/upload-to-imgbb", {"imageData": image_data, "filename": filename})
        return data["url"]

    def get_posters(self) -> List[str]:
        return list(self._request("GET", "/get-posters").get("posters") or [])

    def fetch_image(self, url: str) -> bytes:
        """Download an image (the thumbnail) for rasterizing."""
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content
