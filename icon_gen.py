"""Generate the tray icon (64×64 PIL Image, in-memory)."""

from __future__ import annotations

from datetime import date

from PIL import Image, ImageDraw, ImageFont

ICON_SIZE = 64
ACCENT = "#BF3838"
_HEADER_H = 16
_FONT_CANDIDATES = ("segoeuib.ttf", "DejaVuSans-Bold.ttf", "Arial Bold.ttf")


def _load_font(size: int):
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return None


def create_icon_image(today: date | None = None) -> Image.Image:
    """Return a 64×64 RGBA calendar page: accent header strip, day number below."""
    today = today or date.today()
    size = ICON_SIZE
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    draw.rounded_rectangle((0, 0, size - 1, size - 1), radius=8, fill="white")
    draw.rounded_rectangle((0, 0, size - 1, _HEADER_H + 8), radius=8, fill=ACCENT)
    draw.rectangle((0, _HEADER_H, size - 1, _HEADER_H + 8), fill="white")

    text = str(today.day)
    body_h = size - _HEADER_H

    # Find the largest font size that fits the page body
    font = None
    font_size = 60
    while font_size > 10:
        font = _load_font(font_size)
        if font is None:
            font = ImageFont.load_default()
            break
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= size - 8 and bbox[3] - bbox[1] <= body_h - 8:
            break
        font_size -= 2

    # Centre the visible pixels (compensate for font metric offsets)
    bbox = draw.textbbox((0, 0), text, font=font)
    x = (size - (bbox[2] - bbox[0])) / 2 - bbox[0]
    y = _HEADER_H + (body_h - (bbox[3] - bbox[1])) / 2 - bbox[1]
    draw.text((x, y), text, fill="black", font=font)

    return img
