import base64
import html
import io
import logging
import re
import textwrap
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from posterlink.client.api import ApiError, PosterLinkClient
from posterlink.client.renderer import POSTER_WIDTH, QR_WIDTH, Poster, qr_image, render_poster
from posterlink.errors import PosterLinkError
from posterlink.models import VideoInfo

logger = logging.getLogger(__name__)

EXPORT_SCALE = 2
PADDING = 24
SWATCH = 32
SWATCH_GAP = 6
LOGO = 48
TITLE_SIZE = 22
TITLE_WRAP = 30


def poster_filename(title: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", title) + ".png"


def to_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def rasterize_poster(poster: Poster, thumbnail: Optional[Image.Image] = None,
                     scale: int = EXPORT_SCALE) -> Image.Image:
    """Draw the poster layout into a bitmap at ``scale`` times its CSS size."""
    pad = PADDING * scale
    width = POSTER_WIDTH * scale
    inner = width - 2 * pad

    font = _font(TITLE_SIZE * scale)
    lines = textwrap.wrap(poster.title, TITLE_WRAP) or [""]
    line_height = int(TITLE_SIZE * scale * 1.3)

    thumb_height = inner * 9 // 16
    if thumbnail is not None:
        thumb_height = inner * thumbnail.height // max(1, thumbnail.width)

    qr = qr_image(poster, QR_WIDTH * scale)
    qr_size = qr.width
    height = (pad + thumb_height + 16 * scale + len(lines) * line_height
              + 12 * scale + SWATCH * scale + 12 * scale + qr_size + pad)

    canvas = Image.new("RGB", (width, height), poster.backdrop)
    draw = ImageDraw.Draw(canvas)

    y = pad
    if thumbnail is not None:
        canvas.paste(thumbnail.convert("RGB").resize((inner, thumb_height)), (pad, y))
    else:
        draw.rectangle((pad, y, pad + inner, y + thumb_height), fill=poster.title_color)
    y += thumb_height + 16 * scale

    for line in lines:
        draw.text((pad, y), line, fill=poster.title_color, font=font)
        y += line_height
    y += 12 * scale

    x = pad
    for color in poster.swatches:
        draw.rounded_rectangle((x, y, x + SWATCH * scale, y + SWATCH * scale), radius=4 * scale, fill=color)
        x += (SWATCH + SWATCH_GAP) * scale
    y += SWATCH * scale + 12 * scale

    # Logo: tinted rounded screen with the play triangle cut in backdrop color.
    logo = LOGO * scale
    ly = y + qr_size - logo
    draw.rounded_rectangle((pad, ly + logo // 6, pad + logo, ly + logo * 5 // 6), radius=6 * scale,
                           fill=poster.logo_tint)
    cx, cy = pad + logo // 2, ly + logo // 2
    draw.polygon([(cx - logo // 8, cy - logo // 7), (cx - logo // 8, cy + logo // 7), (cx + logo // 6, cy)],
                 fill=poster.backdrop)

    canvas.paste(qr, (width - pad - qr_size, y))
    return canvas


class ExportStatus(Enum):
    COMPLETE = "complete"
    SAVED_ONLY = "saved_only"
    UPLOADED_ONLY = "uploaded_only"
    FAILED = "failed"


@dataclass
class ExportResult:
    status: ExportStatus
    filename: str
    local_path: Optional[Path] = None
    hosted_url: Optional[str] = None
    save_error: Optional[str] = None
    upload_error: Optional[str] = None

    @property
    def message(self) -> str:
        if self.status is ExportStatus.COMPLETE:
            return "Poster downloaded and uploaded successfully!"
        if self.status is ExportStatus.SAVED_ONLY:
            return f"Download succeeded, but the upload failed: {self.upload_error}"
        if self.status is ExportStatus.UPLOADED_ONLY:
            return f"Upload succeeded, but saving locally failed: {self.save_error}"
        return f"Export failed: {self.save_error or self.upload_error}"


class ExportPipeline:
    """Rasterize a poster, save it locally and relay it to the image host.

    The two outputs are independent: one failing never hides the other.
    """

    def __init__(self, client: PosterLinkClient, output_dir, scale: int = EXPORT_SCALE):
        self.client = client
        self.output_dir = Path(output_dir)
        self.scale = scale

    def _thumbnail(self, url: str) -> Optional[Image.Image]:
        if not url:
            return None
        try:
            return Image.open(io.BytesIO(self.client.fetch_image(url)))
        except (requests.RequestException, UnidentifiedImageError, OSError) as e:
            logger.warning("Could not load thumbnail %s, drawing a placeholder: %s", url, e)
            return None

    def rasterize(self, info: VideoInfo) -> bytes:
        poster = render_poster(info)
        img = rasterize_poster(poster, self._thumbnail(info.thumbnail_url), self.scale)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def save(self, png: bytes, filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(png)
        return path

    def export(self, info: VideoInfo) -> ExportResult:
        filename = poster_filename(html.unescape(info.title))
        try:
            png = self.rasterize(info)
        except (PosterLinkError, OSError, ValueError) as e:
            logger.error("Could not rasterize poster: %s", e)
            return ExportResult(ExportStatus.FAILED, filename, save_error=str(e))

        result = ExportResult(ExportStatus.FAILED, filename)

        try:
            result.local_path = self.save(png, filename)
            logger.info("Saved poster to %s", result.local_path)
        except OSError as e:
            logger.error("Could not save poster locally: %s", e)
            result.save_error = str(e)

        try:
            result.hosted_url = self.client.upload_poster(to_data_url(png), filename)
            logger.info("Poster uploaded to %s", result.hosted_url)
        except ApiError as e:
            logger.error("Poster upload failed: %s", e)
            result.upload_error = e.message

        saved = result.local_path is not None
        uploaded = result.hosted_url is not None
        if saved and uploaded:
            result.status = ExportStatus.COMPLETE
        elif saved:
            result.status = ExportStatus.SAVED_ONLY
        elif uploaded:
            result.status = ExportStatus.UPLOADED_ONLY
        return result
