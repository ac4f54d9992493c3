"""
Card image acquisition for the Plaque Preview service.

Resolves one drawable bitmap per occupied slot:
- card backs requested -> back design, the card's image is never consulted
- recognised source (http(s) URL, data URL, /uploads path) -> load it
- anything else, or any load failure -> placeholder

Loading is the slow part of a render, so slots are fetched concurrently and
joined back into slot order before anything is drawn.
"""

import base64
import binascii
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import requests
from PIL import Image, ImageOps
from loguru import logger

from .card_art import generate_back, generate_placeholder
from .layout import CARD_PADDING, SlotRect
from .models import PlayerCardData


SOURCE_REMOTE = 'remote'
SOURCE_DATA = 'data'
SOURCE_UPLOAD = 'upload'

_DATA_URL = re.compile(r'^data:image/[\w.+-]+;base64,(?P<payload>.+)$', re.IGNORECASE | re.DOTALL)
_UPLOAD_PATH = re.compile(r'^/?uploads/')


def classify_source(image_url: Optional[str]) -> Optional[str]:
    """Name the kind of image source, or None when it is not loadable."""
    if not image_url or not image_url.strip():
        return None
    url = image_url.strip()
    lowered = url.lower()
    if lowered.startswith(('http://', 'https://')):
        return SOURCE_REMOTE
    if _DATA_URL.match(url):
        return SOURCE_DATA
    if _UPLOAD_PATH.match(url):
        return SOURCE_UPLOAD
    return None


class ImageLoader:
    """Loads card images from remote URLs, data URLs and the local upload root."""

    def __init__(self, upload_root: str = "public", timeout: float = 10.0,
                 session_factory: Callable[[], requests.Session] = requests.Session):
        self.upload_root = Path(upload_root)
        self.timeout = timeout
        self.session_factory = session_factory
        self.headers = {"User-Agent": "plaque-preview/1.0"}
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """One session per acquisition thread; sessions are not shared between threads."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            self._local.session = session
        return session

    def load(self, image_url: str) -> Image.Image:
        """Fetch and fully decode an image. Raises on any failure."""
        kind = classify_source(image_url)
        url = image_url.strip()
        if kind == SOURCE_REMOTE:
            data = self._fetch_remote(url)
        elif kind == SOURCE_DATA:
            data = self._decode_data_url(url)
        elif kind == SOURCE_UPLOAD:
            data = self._read_upload(url)
        else:
            raise ValueError(f"Unrecognised image source: {url[:80]!r}")

        image = Image.open(BytesIO(data))
        image.load()
        return image

    def _fetch_remote(self, url: str) -> bytes:
        response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def _decode_data_url(self, url: str) -> bytes:
        match = _DATA_URL.match(url)
        try:
            return base64.b64decode(match.group('payload'), validate=False)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Malformed data URL: {e}")

    def _read_upload(self, url: str) -> bytes:
        root = self.upload_root.resolve()
        path = (root / url.lstrip('/')).resolve()
        # Keep lookups inside the upload root
        path.relative_to(root)
        return path.read_bytes()


def fit_to_card(image: Image.Image, width: int, height: int) -> Image.Image:
    """Scale and center-crop to exactly fill width x height."""
    if image.mode not in ('RGB', 'RGBA'):
        image = image.convert('RGBA')
    return ImageOps.fit(image, (width, height), Image.Resampling.LANCZOS).convert('RGBA')


def acquire_bitmap(card: PlayerCardData, final_rect: SlotRect, show_card_backs: bool,
                   loader: ImageLoader, slot_index: int = 0) -> Image.Image:
    """
    Produce the bitmap drawn in one slot, sized to the slot's padded card area.

    Never raises for a missing or broken image; failures are logged and
    replaced by a placeholder.
    """
    _, _, width, height = final_rect.inset(CARD_PADDING).pixel_box()

    if show_card_backs:
        return generate_back(card, width, height)

    kind = classify_source(card.image_url)
    if kind is None:
        if card.image_url:
            logger.warning(f"Slot {slot_index}: unrecognised image source for {card.player_name}, using placeholder")
        else:
            logger.debug(f"Slot {slot_index}: no image for {card.player_name}, using placeholder")
        return generate_placeholder(card, width, height)

    try:
        image = loader.load(card.image_url)
        return fit_to_card(image, width, height)
    except Exception as e:
        logger.warning(f"Slot {slot_index}: failed to load {kind} image for {card.player_name}: {e}")
        return generate_placeholder(card, width, height)


def acquire_bitmaps(cards: Sequence[PlayerCardData], rects: Sequence[SlotRect], show_card_backs: bool,
                    loader: ImageLoader, max_workers: int = 4) -> List[Image.Image]:
    """Acquire bitmaps for paired cards/slots concurrently, returned in slot order."""
    start_time = time.time()
    indices = range(len(cards))

    if max_workers <= 1 or len(cards) <= 1:
        bitmaps = [acquire_bitmap(c, r, show_card_backs, loader, i) for c, r, i in zip(cards, rects, indices)]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            bitmaps = list(executor.map(
                lambda c, r, i: acquire_bitmap(c, r, show_card_backs, loader, i),
                cards, rects, indices
            ))

    elapsed = time.time() - start_time
    logger.info(f"Acquired {len(bitmaps)} card bitmaps in {elapsed:.2f}s")
    return bitmaps
