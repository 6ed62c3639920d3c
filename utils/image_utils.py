"""Image encoding helpers for the vision API."""

from __future__ import annotations

import base64
import io
from pathlib import Path

from PIL import Image

# Suffix -> MIME type accepted by the vision endpoint
IMAGE_MEDIA_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}
VISION_JPEG_QUALITY = 85


def media_type_for_path(path: Path) -> str | None:
    """MIME type for a supported image suffix, else None."""
    return IMAGE_MEDIA_TYPES.get(Path(path).suffix.lower())


def is_supported_image(path: Path) -> bool:
    return media_type_for_path(path) is not None


def _resize_to_max_px(img: Image.Image, max_px: int) -> Image.Image:
    """Resize image so longest side is at most max_px."""
    w, h = img.size
    if max(w, h) <= max_px:
        return img
    ratio = max_px / max(w, h)
    return img.resize((int(w * ratio), int(h * ratio)), Image.Resampling.LANCZOS)


def downscale_image_bytes(data: bytes, max_px: int, quality: int = VISION_JPEG_QUALITY) -> bytes:
    """Decode, shrink to max_px on the longest side, re-encode as JPEG. Raises OSError if unreadable."""
    with Image.open(io.BytesIO(data)) as img:
        rgb = img.convert("RGB")
    resized = _resize_to_max_px(rgb, max_px)
    buf = io.BytesIO()
    resized.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def verify_image_bytes(data: bytes) -> None:
    """Raise OSError (PIL.UnidentifiedImageError) when bytes are not a decodable image."""
    with Image.open(io.BytesIO(data)) as img:
        img.verify()


def image_to_data_url(image_bytes: bytes, media_type: str = "image/jpeg") -> str:
    """Encode image bytes as data URL for vision API."""
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{media_type};base64,{b64}"
