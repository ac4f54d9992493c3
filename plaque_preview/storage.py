"""
Preview storage for the Plaque Preview service.

A store accepts encoded image bytes plus the preview record and hands the
record back by id. Image bytes are always fully written before the record
that points at them becomes visible, so a published id never refers to a
missing or partial image.

Eviction is not handled here; previews live until something external
removes them.
"""

import json
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Tuple

from loguru import logger

from .errors import PreviewNotFoundError, StorageError
from .models import Preview


# Only ids of this shape are ever issued; anything else cannot exist
_PREVIEW_ID = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$')


class PreviewStore(ABC):
    """Interface for preview persistence."""

    @abstractmethod
    def create(self, preview: Preview, image_bytes: bytes) -> Preview:
        """Persist image bytes, then publish the preview record."""

    @abstractmethod
    def get_by_id(self, preview_id: str) -> Preview:
        """Return the preview record or raise PreviewNotFoundError."""

    @abstractmethod
    def get_image(self, preview_id: str) -> Tuple[Preview, bytes]:
        """Return the preview record and its encoded image."""


class InMemoryPreviewStore(PreviewStore):
    """Process-local store, mainly for tests and single-process development."""

    def __init__(self):
        self._records: Dict[str, Tuple[Preview, bytes]] = {}
        self._lock = threading.Lock()

    def create(self, preview: Preview, image_bytes: bytes) -> Preview:
        with self._lock:
            self._records[preview.preview_id] = (preview, bytes(image_bytes))
        return preview

    def get_by_id(self, preview_id: str) -> Preview:
        return self.get_image(preview_id)[0]

    def get_image(self, preview_id: str) -> Tuple[Preview, bytes]:
        with self._lock:
            record = self._records.get(preview_id)
        if record is None:
            raise PreviewNotFoundError(preview_id)
        return record


class FilesystemPreviewStore(PreviewStore):
    """
    Stores `<id>.png` (or `.jpg`) next to `<id>.json` under a root folder.

    Both files are written to a temporary name and renamed into place; the
    JSON record is written last and is what makes a preview exist.
    """

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _check_id(self, preview_id: str) -> None:
        if not preview_id or not _PREVIEW_ID.match(preview_id):
            raise PreviewNotFoundError(preview_id)

    def _metadata_path(self, preview_id: str) -> Path:
        return self.root / f"{preview_id}.json"

    def _image_path(self, preview_id: str, content_type: str) -> Path:
        suffix = '.jpg' if content_type == 'image/jpeg' else '.png'
        return self.root / f"{preview_id}{suffix}"

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(path.name + '.tmp')
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)

    def create(self, preview: Preview, image_bytes: bytes) -> Preview:
        preview_id = preview.preview_id
        if not _PREVIEW_ID.match(preview_id):
            raise StorageError(preview_id, "invalid preview id")

        image_path = self._image_path(preview_id, preview.content_type)
        try:
            self._write_atomic(image_path, image_bytes)
            record = json.dumps(preview.to_wire(), indent=2).encode('utf-8')
            self._write_atomic(self._metadata_path(preview_id), record)
        except OSError as e:
            raise StorageError(preview_id, str(e))

        logger.info(f"Stored preview {preview_id}: {image_path} ({len(image_bytes):,} bytes)")
        return preview

    def get_by_id(self, preview_id: str) -> Preview:
        self._check_id(preview_id)
        path = self._metadata_path(preview_id)
        if not path.exists():
            raise PreviewNotFoundError(preview_id)
        with open(path, 'r', encoding='utf-8') as f:
            return Preview.model_validate(json.load(f))

    def get_image(self, preview_id: str) -> Tuple[Preview, bytes]:
        preview = self.get_by_id(preview_id)
        image_path = self._image_path(preview_id, preview.content_type)
        if not image_path.exists():
            raise PreviewNotFoundError(preview_id)
        return preview, image_path.read_bytes()
