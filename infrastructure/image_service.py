"""Image ingestion and adjusted rendering with Pillow.

Ingestion turns a user-selected file into a self-contained data URI that the
gallery stores as the photo url. Rendering decodes such a url (or a local
path) and applies a `FilterAdjustment` the same way a CSS filter chain would:
brightness, contrast, saturate, sepia, grayscale, in that order.
"""

from __future__ import annotations

import base64
import binascii
from collections import OrderedDict
from dataclasses import dataclass
import hashlib
import io
from pathlib import Path
import threading
from urllib.parse import unquote, unquote_to_bytes, urlparse

from loguru import logger
from PIL import Image, ImageEnhance, ImageOps, UnidentifiedImageError

from core.errors import IngestionError
from core.models import FilterAdjustment
from infrastructure.settings import JsonSettings

# CSS sepia(1) colour matrix, laid out for Image.convert("RGB", matrix).
_SEPIA_MATRIX = (
    0.393, 0.769, 0.189, 0,
    0.349, 0.686, 0.168, 0,
    0.272, 0.534, 0.131, 0,
)  # fmt: skip


def to_data_uri(path: str | Path) -> str:
    """Read an image file into a `data:<mime>;base64,...` string.

    Raises:
        IngestionError: the file is missing, unreadable or not an image.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_bytes()
    except OSError as ex:
        logger.error("Failed to read {}: {}", file_path, ex)
        raise IngestionError(f"Cannot read {file_path.name}: {ex}") from ex
    try:
        with Image.open(io.BytesIO(raw)) as im:
            im.verify()
            mime = Image.MIME.get(im.format or "", "application/octet-stream")
    except (UnidentifiedImageError, OSError, SyntaxError) as ex:
        logger.warning("Rejected non-image file {}: {}", file_path, ex)
        raise IngestionError(f"{file_path.name} is not a supported image") from ex
    logger.info("Ingested {} ({}, {} bytes)", file_path.name, mime, len(raw))
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def decode_url(url: str) -> bytes:
    """Return the raw bytes behind a data URI, `file://` URL or local path."""
    if url.startswith("data:"):
        header, _, payload = url.partition(",")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as ex:
            raise IngestionError("Malformed data URI") from ex
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        raise IngestionError(f"Remote images are not loaded locally: {url}")
    local = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(url)
    try:
        return local.read_bytes()
    except OSError as ex:
        raise IngestionError(f"Cannot read {local}: {ex}") from ex


def apply_adjustment(image: Image.Image, adjustment: FilterAdjustment | None) -> Image.Image:
    """Return a new RGB image with `adjustment` applied."""
    result = image.convert("RGB")
    if adjustment is None or adjustment.is_identity:
        return result
    if adjustment.brightness != 100:
        result = ImageEnhance.Brightness(result).enhance(adjustment.brightness / 100)
    if adjustment.contrast != 100:
        result = ImageEnhance.Contrast(result).enhance(adjustment.contrast / 100)
    if adjustment.saturation != 100:
        result = ImageEnhance.Color(result).enhance(adjustment.saturation / 100)
    if adjustment.sepia > 0:
        toned = result.convert("RGB", _SEPIA_MATRIX)
        result = Image.blend(result, toned, adjustment.sepia / 100)
    if adjustment.grayscale > 0:
        gray = ImageOps.grayscale(result).convert("RGB")
        result = Image.blend(result, gray, adjustment.grayscale / 100)
    return result


@dataclass
class _MemCacheItem:
    key: str
    image: Image.Image


class _LRUCache:
    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, _MemCacheItem] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str) -> Image.Image | None:
        """Return cached image for key, moving it to the MRU position."""
        item = self._data.get(key)
        if not item:
            return None
        self._data.move_to_end(key)
        return item.image

    def put(self, key: str, image: Image.Image) -> None:
        """Insert or update `key` with `image`, evicting LRU when over capacity."""
        self._data[key] = _MemCacheItem(key, image)
        self._data.move_to_end(key)
        while len(self._data) > self._cap:
            self._data.popitem(last=False)


def _compute_cache_key(url: str, adjustment: FilterAdjustment | None, side: int) -> str:
    """Stable key from the url content, the adjustment and the requested side."""
    sig = f"{url}|{adjustment!r}|{int(side)}".encode("utf-8", errors="ignore")
    return hashlib.sha1(sig).hexdigest()


class ImageService:
    """Decodes gallery urls into adjusted, size-bounded Pillow images."""

    def __init__(self, settings: JsonSettings | None = None) -> None:
        self._mem_cap = 128
        self._thumb_side = 256
        self._preview_side = 1600
        if settings is not None:
            self._mem_cap = settings.get_int("viewer.mem_cache", 128)
            self._thumb_side = settings.get_int("viewer.thumbnail_size", 256)
            self._preview_side = settings.get_int("viewer.preview_side", 1600)
        self._mem_cache = _LRUCache(self._mem_cap)
        # Thumbnails render on pool threads.
        self._lock = threading.Lock()

    def ingest(self, path: str | Path) -> str:
        return to_data_uri(path)

    def get_thumbnail(self, url: str, adjustment: FilterAdjustment | None) -> Image.Image:
        return self.render(url, adjustment, self._thumb_side)

    def get_preview(self, url: str, adjustment: FilterAdjustment | None) -> Image.Image:
        return self.render(url, adjustment, self._preview_side)

    def render(self, url: str, adjustment: FilterAdjustment | None, max_side: int) -> Image.Image:
        """Decode `url`, bound it to `max_side` and apply `adjustment`."""
        key = _compute_cache_key(url, adjustment, max_side)
        with self._lock:
            cached = self._mem_cache.get(key)
        if cached is not None:
            return cached
        raw = decode_url(url)
        try:
            with Image.open(io.BytesIO(raw)) as im:
                im = ImageOps.exif_transpose(im)
                if max_side > 0:
                    im.thumbnail((max_side, max_side))
                result = apply_adjustment(im, adjustment)
        except (UnidentifiedImageError, OSError) as ex:
            raise IngestionError(f"Cannot decode image: {ex}") from ex
        with self._lock:
            self._mem_cache.put(key, result)
        return result


def to_png_bytes(image: Image.Image) -> bytes:
    """Encode `image` as PNG, for handing to toolkits that load from bytes."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
