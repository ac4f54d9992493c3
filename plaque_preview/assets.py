"""
Background texture provider for the Plaque Preview service.
"""

import os
import threading
from typing import Dict, Optional

from PIL import Image
from loguru import logger

from .errors import BackgroundAssetMissingError


BLANK_STYLE = 'blank'


class BackgroundProvider:
    """Loads and caches plaque textures keyed by style."""

    def __init__(self, assets_dir: str, styles: Dict[str, str], default_style: str):
        self.assets_dir = assets_dir
        self.styles = dict(styles)
        self.default_style = default_style
        self._cache: Dict[str, Image.Image] = {}
        self._lock = threading.Lock()

    def texture_path(self, plaque_style: str) -> str:
        filename = self.styles.get(plaque_style)
        if filename is None:
            logger.warning(f"Unknown plaque style '{plaque_style}', using '{self.default_style}'")
            filename = self.styles.get(self.default_style, '')
        return os.path.join(self.assets_dir, 'backgrounds', filename)

    def get_texture(self, plaque_style: str) -> Optional[Image.Image]:
        """
        Return the texture for a style, or None for the blank style.

        Cached images are shared between renders; callers must not mutate them.
        """
        if plaque_style == BLANK_STYLE:
            return None

        path = self.texture_path(plaque_style)
        with self._lock:
            if path in self._cache:
                return self._cache[path]

        if not os.path.isfile(path):
            raise BackgroundAssetMissingError(plaque_style, path)

        try:
            with Image.open(path) as source:
                texture = source.convert('RGBA')
        except Exception as e:
            raise BackgroundAssetMissingError(plaque_style, path, reason=str(e))

        with self._lock:
            self._cache[path] = texture
        logger.debug(f"Loaded background: {path} ({texture.size})")
        return texture
