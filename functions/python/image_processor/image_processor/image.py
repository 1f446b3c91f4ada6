"""Image decoding, scaling and JPEG encoding."""

import logging
from io import BytesIO
from typing import Tuple

from PIL import Image

logger = logging.getLogger(__name__)

SCALER_APPROX_BILINEAR = 'APPROX_BILINEAR'
SCALER_BI_LINEAR = 'BI_LINEAR'
SCALER_CATMULL_ROM = 'CATMULL_ROM'
SCALER_NEAREST_NEIGHBOR = 'NEAREST_NEIGHBOR'

SCALERS = {
    SCALER_APPROX_BILINEAR: Image.Resampling.BILINEAR,
    SCALER_BI_LINEAR: Image.Resampling.BILINEAR,
    SCALER_CATMULL_ROM: Image.Resampling.BICUBIC,
    SCALER_NEAREST_NEIGHBOR: Image.Resampling.NEAREST,
}

# Modes JPEG can store as is
JPEG_MODES = ('RGB', 'L', 'CMYK')


def get_scaler(name: str) -> Image.Resampling:
    """Return the resampling filter for a scaler name (nearest by default)."""
    return SCALERS.get((name or '').upper(), Image.Resampling.NEAREST)


def scaled_size(size: Tuple[int, int], scale: float) -> Tuple[int, int]:
    width, height = size
    return max(1, int(width * scale)), max(1, int(height * scale))


def scale_image(image: Image.Image, scale: float, resample: Image.Resampling) -> Image.Image:
    """Resize an image by a factor, keeping its aspect ratio."""
    new_size = scaled_size(image.size, scale)
    logger.info(f"ScaleImage: From={image.size} To={new_size} Resample={resample.name}")
    return image.resize(new_size, resample=resample)


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    """Encode an image as JPEG bytes."""
    if image.mode not in JPEG_MODES:
        image = image.convert('RGB')
    img_byte_arr = BytesIO()
    image.save(img_byte_arr, format='JPEG', quality=quality)
    return img_byte_arr.getvalue()


def get_image(stream, scale: float, resample: Image.Resampling) -> Image.Image:
    """Decode an image from a file-like object and scale it."""
    with Image.open(stream) as source:
        source.load()
        return scale_image(source, scale, resample)


def open_image(path: str, scale: float, resample: Image.Resampling) -> Image.Image:
    """Decode an image file and scale it."""
    with open(path, 'rb') as file:
        return get_image(file, scale, resample)
