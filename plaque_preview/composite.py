"""
Composite module for the Plaque Preview service.

This module handles:
- Drawing the plaque texture, cards, rarity badges and nameplate text
  onto a fixed-size canvas, back to front
- Encoding the finished canvas for storage and web responses
"""

import io
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageOps
from loguru import logger

from .assets import BackgroundProvider
from .card_art import draw_centered_text, fit_font, rarity_color, text_size
from .errors import EncodeError
from .layout import CARD_PADDING, Layout, SlotRect
from .models import PlaqueConfiguration


CARD_BORDER_COLOR = (204, 204, 204, 255)
CARD_BACKING_COLOR = (255, 255, 255, 255)

SHADOW_OFFSET = (2, 2)
SHADOW_BLUR = 4
SHADOW_COLOR = (0, 0, 0, 102)

BADGE_DIAMETER = 16
BADGE_RING = 2
BADGE_INSET = 15

NAMEPLATE_OFFSET = 90     # band top, measured up from the canvas bottom
NAMEPLATE_HEIGHT = 60
NAMEPLATE_FONT_SIZE = 30
NAMEPLATE_TEXT_COLOR = (0, 0, 0, 255)


class CompositeSettings:
    """Settings for encoding the final image."""

    def __init__(self,
                 output_format: str = 'PNG',
                 quality: int = 95,
                 optimize: bool = True,
                 background_color: Tuple[int, int, int] = (255, 255, 255)):
        self.output_format = output_format
        self.quality = quality
        self.optimize = optimize
        self.background_color = background_color

    @property
    def content_type(self) -> str:
        return 'image/jpeg' if self.output_format.upper() in ('JPEG', 'JPG') else 'image/png'


class PlaqueCompositor:
    """Draws one plaque preview. Holds no per-render state."""

    def __init__(self, background_provider: BackgroundProvider):
        self.background_provider = background_provider

    def create_canvas(self, layout: Layout, plaque_style: str) -> Image.Image:
        """Texture scaled to cover the canvas, or a transparent canvas for blank plaques."""
        texture = self.background_provider.get_texture(plaque_style)
        if texture is None:
            return Image.new('RGBA', layout.canvas_size, (0, 0, 0, 0))
        return ImageOps.fit(texture, layout.canvas_size, Image.Resampling.LANCZOS).convert('RGBA')

    def render(self,
               configuration: PlaqueConfiguration,
               layout: Layout,
               resolved_slots: Sequence[SlotRect],
               bitmaps: Sequence[Image.Image]) -> Image.Image:
        """
        Compose the preview.

        Only slots 0..len(playerCards)-1 are drawn; the rest stay empty.
        Identical inputs always give identical pixels.
        """
        canvas = self.create_canvas(layout, configuration.plaque_style)

        occupied = min(len(configuration.player_cards), len(resolved_slots), len(bitmaps))
        logger.info(f"Compositing {occupied} cards onto {layout.canvas_size} canvas "
                    f"({layout.topology}, style={configuration.plaque_style})")

        for index in range(occupied):
            card = configuration.player_cards[index]
            card_box = resolved_slots[index].inset(CARD_PADDING).pixel_box()
            canvas = self._draw_shadow(canvas, card_box)
            self._draw_card(canvas, card_box, bitmaps[index])
            self._draw_rarity_badge(canvas, card_box, card.rarity)

        if not configuration.is_blank:
            self._draw_team_name(canvas, configuration.team_name)

        return canvas

    def _draw_shadow(self, canvas: Image.Image, card_box: Tuple[int, int, int, int]) -> Image.Image:
        x, y, width, height = card_box
        margin = SHADOW_BLUR * 3
        shadow = Image.new('RGBA', (width + 2 * margin, height + 2 * margin), (0, 0, 0, 0))
        ImageDraw.Draw(shadow).rectangle([margin, margin, margin + width - 1, margin + height - 1],
                                         fill=SHADOW_COLOR)
        shadow = shadow.filter(ImageFilter.GaussianBlur(SHADOW_BLUR))

        overlay = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
        overlay.paste(shadow, (x + SHADOW_OFFSET[0] - margin, y + SHADOW_OFFSET[1] - margin))
        return Image.alpha_composite(canvas, overlay)

    def _draw_card(self, canvas: Image.Image, card_box: Tuple[int, int, int, int], bitmap: Image.Image) -> None:
        x, y, width, height = card_box
        if bitmap.size != (width, height):
            bitmap = ImageOps.fit(bitmap, (width, height), Image.Resampling.LANCZOS)

        tile = Image.new('RGBA', (width, height), CARD_BACKING_COLOR)
        tile = Image.alpha_composite(tile, bitmap.convert('RGBA'))
        canvas.paste(tile, (x, y))

        draw = ImageDraw.Draw(canvas)
        draw.rectangle([x, y, x + width - 1, y + height - 1], outline=CARD_BORDER_COLOR, width=1)

    def _draw_rarity_badge(self, canvas: Image.Image, card_box: Tuple[int, int, int, int], rarity: str) -> None:
        x, y, width, _ = card_box
        left = x + width - BADGE_INSET - BADGE_DIAMETER
        top = y + BADGE_INSET
        draw = ImageDraw.Draw(canvas)
        draw.ellipse([left, top, left + BADGE_DIAMETER - 1, top + BADGE_DIAMETER - 1],
                     fill=rarity_color(rarity) + (255,), outline=(255, 255, 255, 255), width=BADGE_RING)

    def _draw_team_name(self, canvas: Image.Image, team_name: str) -> None:
        text = team_name.upper()
        draw = ImageDraw.Draw(canvas)
        font = fit_font(draw, text, NAMEPLATE_FONT_SIZE, canvas.width * 0.9)
        _, text_height = text_size(draw, text, font)
        band_top = canvas.height - NAMEPLATE_OFFSET
        top = band_top + (NAMEPLATE_HEIGHT - text_height) / 2
        draw_centered_text(draw, text, canvas.width / 2, top, font, NAMEPLATE_TEXT_COLOR)


def get_image_bytes(image: Image.Image, settings: Optional[CompositeSettings] = None) -> bytes:
    """Encode the image for storage and web responses."""
    if settings is None:
        settings = CompositeSettings()

    save_kwargs = {
        'format': settings.output_format,
        'optimize': settings.optimize
    }

    if settings.output_format.upper() in ('JPEG', 'JPG'):
        save_kwargs.update({'format': 'JPEG', 'quality': settings.quality})
        # JPEG has no alpha; flatten onto the background colour
        if image.mode != 'RGB':
            flattened = Image.new('RGB', image.size, settings.background_color)
            flattened.paste(image, mask=image.getchannel('A') if image.mode == 'RGBA' else None)
            image = flattened
    elif settings.output_format.upper() == 'PNG':
        save_kwargs['compress_level'] = 6

    buffer = io.BytesIO()
    try:
        image.save(buffer, **save_kwargs)
    except Exception as e:
        raise EncodeError(settings.output_format, str(e))
    return buffer.getvalue()
