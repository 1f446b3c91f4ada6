"""Cloud Functions entry point for the face detector."""

from face_detector.config import face_config
from face_detector.main import detect_faces, health

# Fail the deployment at startup when the storage folders are misconfigured
face_config.load()

__all__ = ['detect_faces', 'health']
