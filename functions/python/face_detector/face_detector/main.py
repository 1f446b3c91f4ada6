"""Main module for the face detector."""

import sys
import json
import logging
from typing import Any, Dict, List

import functions_framework

from storage_trigger.config import firebase_config
from storage_trigger.events import log_separator, parse_cloud_event

from .config import face_config
from .vision import VisionAnalyzer

# Configure logging first
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)


def process_notification(cloud_event, analyzer: VisionAnalyzer = None) -> List[Dict[str, Any]]:
    """Run detection for every object named by a storage notification."""
    config = face_config.load()
    firebase_config.initialize()

    notification = parse_cloud_event(cloud_event)
    analyzer = analyzer or VisionAnalyzer(config)
    results = []
    for index, storage_object in enumerate(notification.objects):
        log_separator()
        logger.info(f"StorageNotification: Index={index}")
        results.append(analyzer.process(storage_object))
    return results


@functions_framework.cloud_event
def detect_faces(cloud_event) -> None:
    """Cloud Function triggered when a compressed image is written."""
    try:
        process_notification(cloud_event)
    except Exception as e:
        logger.error("=== Error detecting faces ===")
        logger.error(f"Error type: {type(e).__name__}")
        logger.error(f"Error message: {str(e)}")
        raise


@functions_framework.http
def health(request):
    """Health check endpoint."""
    try:
        config = face_config.load()
        return (json.dumps({"status": "healthy", "folders": config.folders}),
                200, {'Content-Type': 'application/json'})
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return (json.dumps({"status": "unhealthy", "error": str(e)}),
                500, {'Content-Type': 'application/json'})
