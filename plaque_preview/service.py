"""
Render pipeline for the Plaque Preview service.

configuration -> layout -> resolved slots -> card bitmaps -> composite
-> encoded bytes -> store -> preview record
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple

from PIL import Image
from loguru import logger

from .acquisition import ImageLoader, acquire_bitmaps
from .assets import BackgroundProvider
from .composite import CompositeSettings, PlaqueCompositor, get_image_bytes
from .config import AppConfig
from .layout import get_layout, resolve_layout
from .models import PlaqueConfiguration, Preview, parse_configuration
from .storage import PreviewStore


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PreviewService:
    """Validates, renders, stores and retrieves plaque previews."""

    def __init__(self,
                 store: PreviewStore,
                 compositor: PlaqueCompositor,
                 loader: ImageLoader,
                 settings: Optional[CompositeSettings] = None,
                 acquisition_workers: int = 4,
                 id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
                 clock: Callable[[], str] = _utc_now):
        self.store = store
        self.compositor = compositor
        self.loader = loader
        self.settings = settings or CompositeSettings()
        self.acquisition_workers = acquisition_workers
        self.id_factory = id_factory
        self.clock = clock

    def render_image(self, configuration: PlaqueConfiguration) -> Image.Image:
        """Render a validated configuration to an in-memory canvas."""
        layout = get_layout(configuration.plaque_type)

        cards = configuration.player_cards
        if len(cards) > layout.slot_count:
            logger.warning(f"{len(cards)} cards supplied for a {layout.slot_count}-slot plaque; "
                           f"ignoring {len(cards) - layout.slot_count}")
            cards = cards[:layout.slot_count]

        slots = resolve_layout(layout, configuration.layout_adjustments)
        bitmaps = acquire_bitmaps(cards, slots[:len(cards)], configuration.show_card_backs,
                                  self.loader, max_workers=self.acquisition_workers)
        return self.compositor.render(configuration, layout, slots, bitmaps)

    def generate(self, payload: Any) -> Preview:
        """
        Render and store a preview from a raw request payload.

        ValidationError is raised before any drawing; RenderError subclasses
        abort the request without publishing anything.
        """
        configuration = parse_configuration(payload)
        # Unsupported plaque types are rejected before a canvas exists
        get_layout(configuration.plaque_type)

        start_time = time.time()
        preview_id = self.id_factory()
        logger.info(f"Rendering preview {preview_id}: {configuration.plaque_type}-card "
                    f"'{configuration.plaque_style}' plaque for {configuration.team_name}")

        image = self.render_image(configuration)
        image_bytes = get_image_bytes(image, self.settings)

        preview = Preview(
            preview_id=preview_id,
            image_url=f"/api/preview/{preview_id}/image",
            download_url=f"/api/preview/{preview_id}/download",
            created_at=self.clock(),
            content_type=self.settings.content_type,
            configuration=configuration.to_wire(),
        )
        self.store.create(preview, image_bytes)

        elapsed = time.time() - start_time
        logger.info(f"Preview {preview_id} ready in {elapsed:.2f}s ({len(image_bytes):,} bytes)")
        return preview

    def get(self, preview_id: str) -> Preview:
        return self.store.get_by_id(preview_id)

    def get_image(self, preview_id: str) -> Tuple[Preview, bytes]:
        return self.store.get_image(preview_id)


def create_preview_service(config: AppConfig, store: PreviewStore) -> PreviewService:
    """Factory function wiring a PreviewService from configuration."""
    provider = BackgroundProvider(config.ASSETS_DIR, config.PLAQUE_STYLES, config.DEFAULT_PLAQUE_STYLE)
    loader = ImageLoader(upload_root=config.UPLOAD_ROOT, timeout=config.IMAGE_FETCH_TIMEOUT)
    return PreviewService(
        store=store,
        compositor=PlaqueCompositor(provider),
        loader=loader,
        settings=CompositeSettings(output_format=config.OUTPUT_FORMAT),
        acquisition_workers=config.ACQUISITION_WORKERS,
    )
