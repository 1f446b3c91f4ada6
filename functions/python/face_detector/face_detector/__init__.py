"""Face detector package: Cloud Vision analysis of compressed images."""

from .config import FaceDetectorConfig, face_config
from .main import detect_faces, health
from .vision import VisionAnalyzer, VisionApiError

__all__ = ['FaceDetectorConfig', 'VisionAnalyzer', 'VisionApiError',
           'detect_faces', 'face_config', 'health']
