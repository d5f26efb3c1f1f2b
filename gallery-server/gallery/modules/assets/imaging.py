"""Pillow-backed image transforms used by the upload pipeline.

All methods are synchronous and CPU bound; the pipeline runs them in a worker
thread. A method raises :class:`StepSkipped` when the transform does not apply
to the payload, and any other exception when it fails.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageDraw, ImageFont, ImageOps

SVG_MIME = "image/svg+xml"

_SAVE_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
}


class StepSkipped(Exception):
    """The transform does not apply to this payload."""


@dataclass(slots=True)
class ProcessedImage:
    data: bytes
    content_type: str
    width: int
    height: int


class ImageProcessor:
    def __init__(
        self,
        *,
        max_width: int = 1920,
        max_height: int = 1080,
        quality: int = 85,
        thumbnail_size: tuple[int, int] = (300, 300),
    ) -> None:
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality
        self.thumbnail_size = thumbnail_size

    def dimensions(self, data: bytes, content_type: str) -> Optional[tuple[int, int]]:
        if content_type == SVG_MIME:
            return None
        with Image.open(io.BytesIO(data)) as img:
            return img.size

    def optimize(self, data: bytes, content_type: str) -> ProcessedImage:
        """Bound the image to the configured box and re-encode it as WebP."""
        self._ensure_raster(content_type)
        with Image.open(io.BytesIO(data)) as img:
            if getattr(img, "is_animated", False):
                raise StepSkipped("animated images are stored as-is")
            original_size = img.size
            out = ImageOps.exif_transpose(img)
            out = out.convert("RGBA" if _has_alpha(out) else "RGB")
            out.thumbnail((self.max_width, self.max_height))
            buffer = io.BytesIO()
            out.save(buffer, format="WEBP", quality=self.quality, method=4)

        encoded = buffer.getvalue()
        if len(encoded) >= len(data) and out.size == original_size:
            raise StepSkipped("re-encoding would not reduce the file size")
        return ProcessedImage(encoded, "image/webp", out.size[0], out.size[1])

    def watermark(
        self,
        data: bytes,
        content_type: str,
        *,
        text: str,
        position: str = "bottom-right",
        opacity: float = 0.3,
    ) -> ProcessedImage:
        self._ensure_raster(content_type)
        save_format = _SAVE_FORMATS[content_type]
        with Image.open(io.BytesIO(data)) as img:
            if getattr(img, "is_animated", False):
                raise StepSkipped("animated images are not watermarked")
            base = img.convert("RGBA")

        overlay = Image.new("RGBA", base.size, (255, 255, 255, 0))
        draw = ImageDraw.Draw(overlay)
        font = ImageFont.load_default()
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        text_size = (right - left, bottom - top)
        draw.text(
            _text_origin(base.size, text_size, position),
            text,
            font=font,
            fill=(255, 255, 255, int(255 * opacity)),
        )
        out = Image.alpha_composite(base, overlay)
        if save_format in ("JPEG", "GIF"):
            out = out.convert("RGB")

        buffer = io.BytesIO()
        if save_format == "JPEG":
            out.save(buffer, format=save_format, quality=self.quality)
        else:
            out.save(buffer, format=save_format)
        return ProcessedImage(buffer.getvalue(), content_type, out.size[0], out.size[1])

    def thumbnail(self, data: bytes, content_type: str) -> ProcessedImage:
        """Centre-crop to the thumbnail box and encode as JPEG."""
        self._ensure_raster(content_type)
        with Image.open(io.BytesIO(data)) as img:
            out = ImageOps.fit(img.convert("RGB"), self.thumbnail_size, method=Image.Resampling.LANCZOS)
        buffer = io.BytesIO()
        out.save(buffer, format="JPEG", quality=80, optimize=True)
        return ProcessedImage(buffer.getvalue(), "image/jpeg", out.size[0], out.size[1])

    @staticmethod
    def _ensure_raster(content_type: str) -> None:
        if content_type == SVG_MIME:
            raise StepSkipped("vector images are not rasterised")
        if content_type not in _SAVE_FORMATS:
            raise StepSkipped(f"unsupported image type {content_type}")


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)


def _text_origin(
    image_size: tuple[int, int],
    text_size: tuple[int, int],
    position: str,
    margin: int = 20,
) -> tuple[int, int]:
    width, height = image_size
    text_width, text_height = text_size
    right = max(width - text_width - margin, 0)
    bottom = max(height - text_height - margin, 0)
    return {
        "top-left": (margin, margin),
        "top-right": (right, margin),
        "bottom-left": (margin, bottom),
        "center": (max((width - text_width) // 2, 0), max((height - text_height) // 2, 0)),
    }.get(position, (right, bottom))
