import base64
import html
import io
import random
from dataclasses import dataclass
from typing import Optional, Tuple

import qrcode
from jinja2 import Environment, PackageLoader, select_autoescape
from PIL import Image

from posterlink.errors import InsufficientPalette
from posterlink.models import VideoInfo

QR_WIDTH = 120
QR_MARGIN = 1
MIN_QR_MODULE_PX = 2
POSTER_WIDTH = 420

YOUTUBE_LOGO_PATH = (
    "M24.325 8.309s-2.655-.334-8.357-.334c-5.517 0-8.294.334-8.294.334A2.675 2.675 0 0 0 5 10.984"
    "v10.034a2.675 2.675 0 0 0 2.674 2.676s2.582.332 8.294.332c5.709 0 8.357-.332 8.357-.332"
    "A2.673 2.673 0 0 0 27 21.018V10.982a2.673 2.673 0 0 0-2.675-2.673zM13.061 19.975V12.03"
    "L20.195 16l-7.134 3.975z"
)

_env = Environment(
    loader=PackageLoader("posterlink", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class Poster:
    """What gets drawn, with every color role already assigned."""
    title: str
    thumbnail_url: str
    backdrop: str
    title_color: str
    logo_tint: str
    swatches: Tuple[str, ...]
    qr_text: str
    qr_dark: str
    qr_light: str


def render_poster(info: VideoInfo) -> Poster:
    colors = tuple(info.colors)
    if len(colors) < 3:
        raise InsufficientPalette()

    backdrop, title_color, logo_tint = colors[0], colors[1], colors[2]
    return Poster(
        title=html.unescape(info.title),
        thumbnail_url=info.thumbnail_url,
        backdrop=backdrop,
        title_color=title_color,
        logo_tint=logo_tint,
        swatches=colors,
        qr_text=info.source_url,
        qr_dark=title_color,
        qr_light=backdrop,
    )


def remix(info: VideoInfo, rng: Optional[random.Random] = None) -> VideoInfo:
    """Same colors, new order. ``info`` itself is left as it was."""
    colors = list(info.colors)
    (rng or random).shuffle(colors)
    return info.with_colors(colors)


def qr_image(poster: Poster, width: int = QR_WIDTH) -> Image.Image:
    """Draw the QR code with whole-pixel modules, centered in a ``width`` square.

    Modules never drop below two pixels, so very long URLs grow the image
    past ``width`` rather than blur it.
    """
    qr = qrcode.QRCode(border=QR_MARGIN, error_correction=qrcode.constants.ERROR_CORRECT_M)
    qr.add_data(poster.qr_text)
    qr.make(fit=True)
    modules = qr.modules_count + 2 * QR_MARGIN
    qr.box_size = max(MIN_QR_MODULE_PX, width // modules)
    img = qr.make_image(fill_color=poster.qr_dark, back_color=poster.qr_light).convert("RGB")
    if img.width >= width:
        return img
    canvas = Image.new("RGB", (width, width), poster.qr_light)
    offset = (width - img.width) // 2
    canvas.paste(img, (offset, offset))
    return canvas


def qr_data_url(poster: Poster, width: int = QR_WIDTH) -> str:
    buf = io.BytesIO()
    qr_image(poster, width).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def poster_to_html(poster: Poster) -> str:
    template = _env.get_template("poster.html")
    return template.render(
        poster=poster,
        width=POSTER_WIDTH,
        logo_path=YOUTUBE_LOGO_PATH,
        qr_data_url=qr_data_url(poster),
        qr_width=QR_WIDTH,
    )
