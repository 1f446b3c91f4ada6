"""Image processor package: EXIF extraction and resizing of uploaded images."""

from .config import ImageProcessorConfig, image_config
from .exif import ExifMetadata, ExifNotFoundError, get_exif, open_exif
from .main import health, process_uploaded_image
from .processor import ImageProcessor

__all__ = ['ExifMetadata', 'ExifNotFoundError', 'ImageProcessor',
           'ImageProcessorConfig', 'get_exif', 'health', 'image_config',
           'open_exif', 'process_uploaded_image']
