"""
Synthesized card art for the Plaque Preview service.

Two generators produce a drawable bitmap for a slot without any real card
image: the placeholder (used whenever artwork cannot be obtained) and the
back design (used when the customer asks to see card backs). Every metric
is a proportion of the requested size so that a card looks the same in the
large four-card row and the small ten-card grid.
"""

from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont
from loguru import logger

from .config import get_config
from .models import PlayerCardData


Color = Tuple[int, int, int]

RARITY_COLORS = {
    'legendary': (251, 191, 36),   # gold
    'rare': (168, 85, 247),        # purple
    'common': (107, 114, 128),     # gray
}

PLACEHOLDER_TOP = (243, 244, 246)
PLACEHOLDER_BOTTOM = (229, 231, 235)
PLACEHOLDER_BORDER = (209, 213, 219)
PLACEHOLDER_TEXT = (55, 65, 81)
PLACEHOLDER_MUTED = (107, 114, 128)
PLACEHOLDER_PRICE = (5, 150, 105)

BACK_TOP = (26, 26, 46)
BACK_BOTTOM = (22, 33, 62)
BACK_ACCENT = (234, 179, 8)
BACK_TEXT = (255, 255, 255)


def rarity_color(rarity: str) -> Color:
    return RARITY_COLORS.get(rarity, RARITY_COLORS['common'])


@lru_cache(maxsize=64)
def _load_font_cached(size: int, candidates: Tuple[str, ...]) -> ImageFont.ImageFont:
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug(f"No TrueType font found in {list(candidates)}, using default font at {size}px")
    return ImageFont.load_default(size=size)


def load_font(size: int) -> ImageFont.ImageFont:
    """Load the configured display face at a pixel size (always bold)."""
    return _load_font_cached(max(6, int(size)), tuple(get_config().FONT_PATHS))


def text_size(draw: ImageDraw.ImageDraw, text: str, font) -> Tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def fit_font(draw: ImageDraw.ImageDraw, text: str, size: int, max_width: float):
    """Largest font not above `size` whose rendering of `text` fits in max_width."""
    size = max(6, int(size))
    font = load_font(size)
    while size > 6 and text_size(draw, text, font)[0] > max_width:
        size -= 1
        font = load_font(size)
    return font


def draw_centered_text(draw: ImageDraw.ImageDraw, text: str, center_x: float, top: float,
                       font, fill) -> int:
    """Draw text horizontally centered on center_x; returns the drawn height."""
    bbox = draw.textbbox((0, 0), text, font=font)
    width = bbox[2] - bbox[0]
    x = int(round(center_x - width / 2 - bbox[0]))
    y = int(round(top - bbox[1]))
    draw.text((x, y), text, fill=fill, font=font)
    return bbox[3] - bbox[1]


def vertical_gradient(width: int, height: int, top: Color, bottom: Color) -> Image.Image:
    """RGBA image blending linearly from `top` to `bottom`."""
    width, height = max(1, width), max(1, height)
    ramp = np.linspace(0.0, 1.0, height, dtype=np.float32)[:, None]
    start = np.array(top, dtype=np.float32)
    end = np.array(bottom, dtype=np.float32)
    rows = start + (end - start) * ramp
    pixels = np.repeat(rows[:, None, :], width, axis=1)
    rgb = np.clip(np.rint(pixels), 0, 255).astype(np.uint8)
    return Image.fromarray(rgb, 'RGB').convert('RGBA')


def _draw_text_block(draw: ImageDraw.ImageDraw, lines: Sequence[Tuple[str, object, Color]],
                     center_x: float, center_y: float, gap: float) -> None:
    """Stack lines of (text, font, color) centered as a block around center_y."""
    heights = [text_size(draw, text, font)[1] for text, font, _ in lines]
    total = sum(heights) + gap * (len(lines) - 1)
    top = center_y - total / 2
    for (text, font, fill), height in zip(lines, heights):
        draw_centered_text(draw, text, center_x, top, font, fill)
        top += height + gap


def _present(values: Iterable[str]) -> List[str]:
    return [v for v in values if v]


def generate_placeholder(card: PlayerCardData, width: int, height: int) -> Image.Image:
    """
    Neutral stand-in for a card whose artwork is unavailable.

    Light vertical gradient, thin border, and centered lines for player name,
    "{year} {brand}", series and price.
    """
    image = vertical_gradient(width, height, PLACEHOLDER_TOP, PLACEHOLDER_BOTTOM)
    width, height = image.size
    draw = ImageDraw.Draw(image)

    border = max(1, round(min(width, height) * 0.01))
    draw.rectangle([0, 0, width - 1, height - 1], outline=PLACEHOLDER_BORDER, width=border)

    max_text = width * 0.88
    lines = []
    if card.player_name:
        lines.append((card.player_name, fit_font(draw, card.player_name, width * 0.113, max_text), PLACEHOLDER_TEXT))
    for text, scale, color in ((card.edition_line, 0.085, PLACEHOLDER_TEXT),
                               (card.series, 0.066, PLACEHOLDER_MUTED)):
        if text:
            lines.append((text, fit_font(draw, text, width * scale, max_text), color))
    lines.append((card.price_label, fit_font(draw, card.price_label, width * 0.094, max_text), PLACEHOLDER_PRICE))

    _draw_text_block(draw, lines, width / 2, height / 2, gap=width * 0.047)
    return image


def generate_back(card: PlayerCardData, width: int, height: int) -> Image.Image:
    """
    Stylized card back: dark gradient, accent border, two-line wordmark,
    and a translucent stats panel with the player's details and rarity.
    """
    image = vertical_gradient(width, height, BACK_TOP, BACK_BOTTOM)
    width, height = image.size
    draw = ImageDraw.Draw(image)

    inset = round(width * 0.024)
    border = max(1, round(width * 0.014))
    draw.rectangle([inset, inset, width - 1 - inset, height - 1 - inset], outline=BACK_ACCENT, width=border)

    # Wordmark
    mark_font = fit_font(draw, "ROSTER", width * 0.113, width * 0.8)
    _draw_text_block(draw, [("ROSTER", mark_font, BACK_ACCENT), ("FRAME", mark_font, BACK_ACCENT)],
                     width / 2, height * 0.34, gap=height * 0.02)

    # Stats panel
    panel_left, panel_right = width * 0.1, width * 0.9
    panel_top, panel_bottom = height * 0.55, height * 0.92
    overlay = Image.new('RGBA', image.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).rectangle(
        [round(panel_left), round(panel_top), round(panel_right), round(panel_bottom)],
        fill=(255, 255, 255, 26)
    )
    image = Image.alpha_composite(image, overlay)
    draw = ImageDraw.Draw(image)

    max_text = (panel_right - panel_left) * 0.92
    detail_size = width * 0.057
    lines = []
    name = card.player_name.upper()
    if name:
        lines.append((name, fit_font(draw, name, width * 0.075, max_text), BACK_TEXT))
    details = _present([card.edition_line, card.series,
                        f"Position: {card.position}" if card.position else ""])
    for text in details:
        lines.append((text, fit_font(draw, text, detail_size, max_text), BACK_TEXT))
    rarity = card.rarity.upper()
    lines.append((rarity, fit_font(draw, rarity, detail_size, max_text), rarity_color(card.rarity)))

    _draw_text_block(draw, lines, width / 2, (panel_top + panel_bottom) / 2, gap=height * 0.015)
    return image
