import io
import logging
from typing import Dict, List

from PIL import Image, UnidentifiedImageError

from posterlink import config
from posterlink.errors import InsufficientPalette, PaletteDecodeError

logger = logging.getLogger(__name__)

# Callers index positions 0-2 unconditionally.
MIN_COLORS = 3

# Sampling on a reduced copy is plenty for dominant colors.
SAMPLE_SIZE = (160, 160)

MEDIA_TYPE_FORMATS: Dict[str, str] = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
}


def _hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


class PaletteExtractor:
    def __init__(self, size: int = None):
        self.size = max(MIN_COLORS, size if size is not None else config.PALETTE_SIZE)

    def decode(self, data: bytes, media_type: str) -> Image.Image:
        fmt = MEDIA_TYPE_FORMATS.get((media_type or "").lower())
        if not fmt:
            raise PaletteDecodeError(f"Unsupported image type: {media_type}")
        try:
            img = Image.open(io.BytesIO(data), formats=[fmt])
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise PaletteDecodeError(f"Could not decode {media_type} image: {e}") from e
        return img.convert("RGB")

    def extract(self, data: bytes, media_type: str = "image/jpeg") -> List[str]:
        """Return dominant colors as hex strings, most common first.

        Raises PaletteDecodeError for unreadable bytes and InsufficientPalette
        when fewer than three colors come out.
        """
        img = self.decode(data, media_type)
        img.thumbnail(SAMPLE_SIZE)

        quantized = img.quantize(colors=self.size, method=Image.Quantize.MEDIANCUT)
        palette = quantized.getpalette() or []
        counts = quantized.getcolors(maxcolors=256) or []

        colors: List[str] = []
        for _count, idx in sorted(counts, key=lambda c: (-c[0], c[1])):
            base = idx * 3
            if base + 2 >= len(palette):
                continue
            hx = _hex(palette[base], palette[base + 1], palette[base + 2])
            if hx not in colors:
                colors.append(hx)

        if len(colors) < MIN_COLORS:
            logger.warning("Palette extraction produced %d color(s), need %d", len(colors), MIN_COLORS)
            raise InsufficientPalette()

        return colors
