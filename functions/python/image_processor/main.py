"""Cloud Functions entry point for the image processor."""

from image_processor.config import image_config
from image_processor.main import health, process_uploaded_image

# Fail the deployment at startup when the storage folders are misconfigured
image_config.load()

__all__ = ['health', 'process_uploaded_image']
