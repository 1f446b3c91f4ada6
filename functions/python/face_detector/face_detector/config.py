"""Configuration module for the face detector."""

import os
import logging
from typing import Dict, Optional
from dotenv import load_dotenv

from storage_trigger.config import ConfigurationError, require_env, validate_folders

logger = logging.getLogger(__name__)


class FaceDetectorConfig:
    """Storage folders and Vision settings read from the environment."""

    def __init__(self):
        self.folder_images_compressed: Optional[str] = None
        self.folder_detect_faces: Optional[str] = None
        self.folder_detect_labels: Optional[str] = None
        self.folder_detect_text: Optional[str] = None
        self.max_results: Optional[int] = None
        self.loaded = False

    def load_environment(self) -> None:
        """Load configuration from environment variables."""
        load_dotenv()

        self.folder_images_compressed = require_env('STORAGE_FOLDER_IMAGES_COMPRESSED')
        self.folder_detect_faces = require_env('STORAGE_FOLDER_VISION_DETECT_FACES')
        self.folder_detect_labels = require_env('STORAGE_FOLDER_VISION_DETECT_LABELS')
        self.folder_detect_text = require_env('STORAGE_FOLDER_VISION_DETECT_TEXT')

        max_results = os.getenv('VISION_MAX_RESULTS')
        if max_results:
            try:
                self.max_results = int(max_results)
            except ValueError:
                raise ConfigurationError(
                    f"VISION_MAX_RESULTS must be an integer, got {max_results!r}")
            if self.max_results < 1:
                raise ConfigurationError(
                    f"VISION_MAX_RESULTS must be positive, got {self.max_results}")

        logger.info(
            " ".join(f"{key}={value}" for key, value in self.folders.items()))
        logger.info(f"VISION_MAX_RESULTS={self.max_results}")

    def load(self) -> 'FaceDetectorConfig':
        """Load and validate once per process."""
        if not self.loaded:
            self.load_environment()
            validate_folders(self.folders)
            self.loaded = True
        return self

    @property
    def folders(self) -> Dict[str, str]:
        return {
            'STORAGE_FOLDER_IMAGES_COMPRESSED': self.folder_images_compressed,
            'STORAGE_FOLDER_VISION_DETECT_FACES': self.folder_detect_faces,
            'STORAGE_FOLDER_VISION_DETECT_LABELS': self.folder_detect_labels,
            'STORAGE_FOLDER_VISION_DETECT_TEXT': self.folder_detect_text,
        }


# Global instance
face_config = FaceDetectorConfig()
