import io

import requests
from PIL import Image

RED, GREEN, BLUE, YELLOW = (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)


def make_image(colors=(RED, GREEN, BLUE, YELLOW), fmt="PNG", size=128) -> bytes:
    """Vertical stripes, one per color, equal widths."""
    img = Image.new("RGB", (size, size))
    stripe = size // len(colors)
    for i, color in enumerate(colors):
        img.paste(color, (i * stripe, 0, size if i == len(colors) - 1 else (i + 1) * stripe, size))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None, json_data=None, text=None):
        self.status_code = status_code
        self.content = content if text is None else text.encode("utf-8")
        self.headers = headers or {}
        self._json = json_data

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    @property
    def text(self):
        return self.content.decode("utf-8", "replace")

    def json(self):
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code}")


class FakeSession:
    """Answers by exact URL; unknown URLs get a 404.

    A route may be a FakeResponse, an exception instance to raise, or a
    callable taking (method, url, kwargs).
    """

    def __init__(self, routes=None):
        self.routes = routes if routes is not None else {}
        self.calls = []

    def _respond(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(method, url, kwargs)
        return route

    def get(self, url, **kwargs):
        return self._respond("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, kwargs)

    def urls(self):
        return [url for _method, url, _kwargs in self.calls]


def maxres(video_id):
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def hqdefault(video_id):
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def watch(video_id):
    return f"https://www.youtube.com/watch?v={video_id}"


def png_response(content=None):
    return FakeResponse(200, content or make_image(), headers={"Content-Type": "image/png"})


def page(title):
    return FakeResponse(200, text=f"<html><head><title>{title}</title></head><body></body></html>")
