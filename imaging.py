import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

import config

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 800, 600
BACKGROUND = (26, 26, 46)
WHITE = (255, 255, 255)
ACCENT = (22, 199, 154)
GOLD = (255, 215, 0)
MUTED = (160, 160, 160)


def summary_image_path() -> Path:
    return Path(config.CACHE_DIR) / config.SUMMARY_IMAGE_NAME


def _font(size):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        # no TrueType font on this host
        return ImageFont.load_default()


def _centered(draw, y, text, fill, font):
    x = (WIDTH - draw.textlength(text, font=font)) / 2
    draw.text((x, y), text, fill=fill, font=font)


def format_gdp(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"${value:,.2f}"


def render_summary_image(total_countries: int, top: Sequence, timestamp: datetime, path=None) -> str:
    """Draw the refresh summary PNG and return where it was written.

    `top` is the ranked list of countries (anything with `name` and
    `estimated_gdp`).
    """
    path = Path(path) if path else summary_image_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    im = Image.new("RGB", (WIDTH, HEIGHT), BACKGROUND)
    draw = ImageDraw.Draw(im)
    title_font, big_font, body_font, small_font = _font(36), _font(28), _font(20), _font(18)

    _centered(draw, 40, "Country Data Summary", WHITE, title_font)
    _centered(draw, 105, f"Total Countries: {total_countries}", ACCENT, big_font)
    draw.text((50, 170), "Top 5 Countries by Estimated GDP:", fill=WHITE, font=body_font)

    y = 220
    if not top:
        draw.text((70, y), "No GDP data available.", fill=MUTED, font=body_font)
    for idx, c in enumerate(top, start=1):
        draw.text((70, y), f"{idx}.", fill=ACCENT, font=body_font)
        draw.text((110, y), c.name, fill=WHITE, font=body_font)
        draw.text((450, y), format_gdp(c.estimated_gdp), fill=GOLD, font=body_font)
        y += 50

    _centered(draw, HEIGHT - 50, f"Last Refreshed: {timestamp.isoformat()}", MUTED, small_font)

    im.save(path, "PNG")
    logger.info("Summary image written to %s", path)
    return str(path)
