"""Configuration module for the image processor."""

import os
import logging
from typing import Dict, Optional
from dotenv import load_dotenv

from storage_trigger.config import (
    ConfigurationError,
    parse_bool,
    require_env,
    validate_folders,
)

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 0.5
DEFAULT_SCALER = 'APPROX_BILINEAR'
DEFAULT_JPEG_QUALITY = 75


class ImageProcessorConfig:
    """Storage folders and image settings read from the environment."""

    def __init__(self):
        self.folder_images_uploaded: Optional[str] = None
        self.folder_images_compressed: Optional[str] = None
        self.folder_images_exif: Optional[str] = None
        self.scale: float = DEFAULT_SCALE
        self.scaler: str = DEFAULT_SCALER
        self.jpeg_quality: int = DEFAULT_JPEG_QUALITY
        self.partition_by_capture_date: bool = False
        self.loaded = False

    def load_environment(self) -> None:
        """Load configuration from environment variables."""
        load_dotenv()

        self.folder_images_compressed = require_env('STORAGE_FOLDER_IMAGES_COMPRESSED')
        self.folder_images_exif = require_env('STORAGE_FOLDER_IMAGES_EXIF')
        self.folder_images_uploaded = require_env('STORAGE_FOLDER_IMAGES_UPLOADED')

        self.scale = self._read_scale(os.getenv('IMAGE_SCALE'))
        self.scaler = (os.getenv('IMAGE_SCALER') or DEFAULT_SCALER).upper()
        self.jpeg_quality = self._read_quality(os.getenv('IMAGE_JPEG_QUALITY'))
        self.partition_by_capture_date = parse_bool(
            'PARTITION_BY_CAPTURE_DATE', os.getenv('PARTITION_BY_CAPTURE_DATE'))

        logger.info(
            f"STORAGE_FOLDER_IMAGES_COMPRESSED={self.folder_images_compressed} "
            f"STORAGE_FOLDER_IMAGES_EXIF={self.folder_images_exif} "
            f"STORAGE_FOLDER_IMAGES_UPLOADED={self.folder_images_uploaded}")
        logger.info(
            f"IMAGE_SCALE={self.scale} IMAGE_SCALER={self.scaler} "
            f"IMAGE_JPEG_QUALITY={self.jpeg_quality} "
            f"PARTITION_BY_CAPTURE_DATE={self.partition_by_capture_date}")

    def validate(self) -> None:
        """Reject folder settings that would overwrite or re-trigger uploads."""
        validate_folders(self.folders)

        if 'upload' in self.folder_images_compressed:
            raise ConfigurationError(
                f"Compressed folder is incorrect! {self.folder_images_compressed}")

    def load(self) -> 'ImageProcessorConfig':
        """Load and validate once per process."""
        if not self.loaded:
            self.load_environment()
            self.validate()
            self.loaded = True
        return self

    @property
    def folders(self) -> Dict[str, str]:
        return {
            'STORAGE_FOLDER_IMAGES_COMPRESSED': self.folder_images_compressed,
            'STORAGE_FOLDER_IMAGES_EXIF': self.folder_images_exif,
            'STORAGE_FOLDER_IMAGES_UPLOADED': self.folder_images_uploaded,
        }

    @staticmethod
    def _read_scale(value: Optional[str]) -> float:
        if not value:
            return DEFAULT_SCALE
        try:
            scale = float(value)
        except ValueError:
            raise ConfigurationError(f"IMAGE_SCALE must be a number, got {value!r}")
        if not 0 < scale <= 1:
            raise ConfigurationError(f"IMAGE_SCALE must be in (0, 1], got {scale}")
        return scale

    @staticmethod
    def _read_quality(value: Optional[str]) -> int:
        if not value:
            return DEFAULT_JPEG_QUALITY
        try:
            quality = int(value)
        except ValueError:
            raise ConfigurationError(
                f"IMAGE_JPEG_QUALITY must be an integer, got {value!r}")
        if not 1 <= quality <= 95:
            raise ConfigurationError(
                f"IMAGE_JPEG_QUALITY must be between 1 and 95, got {quality}")
        return quality


# Global instance
image_config = ImageProcessorConfig()
