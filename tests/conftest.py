"""
Pytest configuration and fixtures for Plaque Preview tests.

Provides generated texture assets, sample cards, a network-free image
loader and a configured Flask application.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from PIL import Image

from plaque_preview import create_app
from plaque_preview.assets import BackgroundProvider
from plaque_preview.composite import PlaqueCompositor
from plaque_preview.models import PlayerCardData


MAPLE_COLOR = (200, 170, 120)
CLEAR_COLOR = (230, 230, 230)

CARD_COLORS = [
    (220, 30, 30),
    (30, 160, 60),
    (40, 70, 210),
    (240, 200, 20),
    (150, 40, 170),
    (20, 180, 190),
    (250, 120, 20),
    (90, 90, 90),
    (200, 80, 140),
    (10, 10, 120),
]


class FakeLoader:
    """Image loader that serves in-memory images and records every request."""

    def __init__(self, images: Optional[Dict[str, Image.Image]] = None):
        self.images = images or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def load(self, image_url: str) -> Image.Image:
        with self._lock:
            self.calls.append(image_url)
        if image_url not in self.images:
            raise IOError(f"unreachable: {image_url}")
        return self.images[image_url].copy()


def card_url(index: int) -> str:
    return f"https://cards.example.com/card-{index}.jpg"


@pytest.fixture
def assets_dir(tmp_path) -> Path:
    """Asset folder with solid-colour textures for two of the three styles."""
    backgrounds = tmp_path / "assets" / "backgrounds"
    backgrounds.mkdir(parents=True)
    Image.new('RGB', (1200, 900), MAPLE_COLOR).save(backgrounds / "DarkMapleWood1.png")
    Image.new('RGB', (1200, 900), CLEAR_COLOR).save(backgrounds / "ClearPlaque8.png")
    return tmp_path / "assets"


@pytest.fixture
def background_provider(assets_dir) -> BackgroundProvider:
    return BackgroundProvider(
        str(assets_dir),
        {
            "dark-maple-wood": "DarkMapleWood1.png",
            "clear-plaque": "ClearPlaque8.png",
            "black-marble": "BlackMarble8.png",
        },
        "dark-maple-wood",
    )


@pytest.fixture
def compositor(background_provider) -> PlaqueCompositor:
    return PlaqueCompositor(background_provider)


@pytest.fixture
def fake_loader() -> FakeLoader:
    """Loader serving a distinct solid colour for each card_url(i)."""
    images = {card_url(i): Image.new('RGB', (300, 420), color) for i, color in enumerate(CARD_COLORS)}
    return FakeLoader(images)


@pytest.fixture
def make_card():
    """Factory for PlayerCardData with sensible defaults."""
    def _make(index: int = 0, **overrides) -> PlayerCardData:
        data = {
            'id': f"card-{index}",
            'playerName': f"Player {index}",
            'position': "QB",
            'year': 2020,
            'brand': "Panini",
            'series': "Prizm",
            'imageUrl': card_url(index),
            'rarity': "common",
            'price': 12.5,
            'shipping': 4.0,
        }
        data.update(overrides)
        return PlayerCardData.model_validate(data)
    return _make


@pytest.fixture
def card_payload():
    """Factory for wire-format card dicts."""
    def _payload(count: int, **overrides) -> List[dict]:
        cards = []
        for i in range(count):
            card = {
                'id': f"card-{i}",
                'playerName': f"Player {i}",
                'position': "WR",
                'year': 2021,
                'brand': "Topps",
                'series': "Chrome",
                'imageUrl': card_url(i),
                'rarity': "rare",
                'price': 20,
            }
            card.update(overrides)
            cards.append(card)
        return cards
    return _payload


@pytest.fixture
def app(tmp_path, assets_dir, fake_loader):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'ASSETS_DIR': str(assets_dir),
        'PREVIEW_FOLDER': str(tmp_path / "previews"),
        'UPLOAD_ROOT': str(tmp_path / "public"),
        'LOG_FILE': str(tmp_path / "logs" / "app.log"),
        'ACQUISITION_WORKERS': 2,
    }, loader=fake_loader)

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def preview_service(app):
    return app.extensions['preview_service']
