# pixelator/image_io.py
from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .constants import EXPORT_SCALE
from .core_types import PixelBuffer

"""
Image I/O helpers (RGBA in sRGB) and nearest-neighbour export upscaling.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except ImportError:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            converted = ImageCms.profileToProfile(
                im.convert("RGBA"),
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if converted is not None:
                return converted
        except (ImageCms.PyCMSError, OSError, ValueError):
            pass

    return im.convert("RGBA")


def load_image(path: Path) -> Image.Image:
    """Decode an image file to an RGBA Pillow image (EXIF-oriented, sRGB)."""
    with Image.open(path) as im0:
        im0.seek(0)  # first frame only
        im = _convert_to_srgb_rgba(im0)
        im.load()
    return im


def image_to_buffer(im: Image.Image) -> PixelBuffer:
    return PixelBuffer.from_rgba_array(np.array(im.convert("RGBA"), dtype=np.uint8))


def buffer_to_image(buf: PixelBuffer) -> Image.Image:
    return Image.fromarray(buf.copy_rows())


def upscale_nearest(buf: PixelBuffer, scale: int = EXPORT_SCALE) -> Image.Image:
    """Each buffer pixel becomes a scale x scale block."""
    scale = max(1, int(scale))
    im = buffer_to_image(buf)
    if scale == 1:
        return im
    return im.resize(
        (buf.width * scale, buf.height * scale), resample=Image.Resampling.NEAREST
    )


def export_png(path: Path, buf: PixelBuffer, scale: int = EXPORT_SCALE) -> Path:
    """Write the buffer as PNG, enlarged by `scale`. Returns the written path."""
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    upscale_nearest(buf, scale).save(path)
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "load_image",
    "image_to_buffer",
    "buffer_to_image",
    "upscale_nearest",
    "export_png",
    "is_image_file",
]
