"""Processing of a single uploaded image."""

import os
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from storage_trigger.events import StorageObject
from storage_trigger.storage import (
    StorageClient,
    build_object_key,
    object_base_name,
    object_stem,
)

from .config import ImageProcessorConfig
from .exif import ExifMetadata, open_exif
from .image import encode_jpeg, get_scaler, open_image

logger = logging.getLogger(__name__)

JSON_SUFFIX = '.JSON'


class ImageProcessor:
    """Extract EXIF metadata from an upload and store a resized copy."""

    def __init__(self, storage_object: StorageObject, config: ImageProcessorConfig,
                 storage_client: Optional[StorageClient] = None):
        self.storage_object = storage_object
        self.config = config
        self.storage_client = storage_client or StorageClient()
        self.temp_file: Optional[str] = None
        self.exif_path: Optional[str] = None
        self.capture_time: Optional[datetime] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()

    def cleanup(self):
        """Clean up temporary files."""
        if self.temp_file and os.path.exists(self.temp_file):
            try:
                os.remove(self.temp_file)
                logger.info(f"Cleaned up temp file: {self.temp_file}")
            except OSError as e:
                logger.warning(f"Failed to clean up temp file: {str(e)}")
        self.temp_file = None

    def is_upload(self) -> bool:
        """Only objects in the upload folder are processed."""
        folder = self.config.folder_images_uploaded.strip('/') + '/'
        return self.storage_object.name.startswith(folder)

    def download(self) -> str:
        self.temp_file = self.storage_client.download_to_file(
            self.storage_object.bucket, self.storage_object.name)
        return self.temp_file

    def file_time(self, metadata: ExifMetadata) -> Optional[datetime]:
        """Capture time used to partition output keys, when enabled."""
        if not self.config.partition_by_capture_date:
            return None
        capture_time = metadata.capture_time()
        if capture_time is None:
            logger.warning("ExifMetadata: No capture time, keys are not partitioned")
        return capture_time

    def process_exif_metadata(self) -> ExifMetadata:
        """Extract the EXIF document and upload it next to the other outputs."""
        logger.info(
            f"ExifMetadata: Bucket={self.storage_object.bucket} FileName={self.temp_file}")
        metadata = open_exif(self.temp_file)
        logger.info("ExifMetadata: Successfully created ExifMetadata")

        self.capture_time = self.file_time(metadata)
        key = build_object_key(
            self.config.folder_images_exif,
            f"{object_stem(self.storage_object.name)}{JSON_SUFFIX}",
            self.capture_time)
        logger.info(f"ExifMetadata: Bucket={self.storage_object.bucket} Key={key}")

        self.storage_client.upload_json(self.storage_object.bucket, key, metadata.to_dict())
        logger.info("ExifMetadata: Successfully uploaded ExifMetadata")
        self.exif_path = key
        return metadata

    def process_image(self, file_time: Optional[datetime]) -> Dict[str, Any]:
        """Resize the image and upload it as JPEG."""
        logger.info(
            f"CompressImage: Bucket={self.storage_object.bucket} FileName={self.temp_file}")
        image = open_image(self.temp_file, self.config.scale, get_scaler(self.config.scaler))
        data = encode_jpeg(image, self.config.jpeg_quality)
        logger.info(f"CompressImage: Successfully created image ({len(data)} bytes)")

        key = build_object_key(
            self.config.folder_images_compressed,
            object_base_name(self.storage_object.name),
            file_time)
        logger.info(f"CompressImage: Bucket={self.storage_object.bucket} Key={key}")

        self.storage_client.upload_bytes(
            self.storage_object.bucket, key, data, 'image/jpeg')
        logger.info("CompressImage: Successfully uploaded image")
        return {
            'compressedPath': key,
            'width': image.width,
            'height': image.height,
            'bytes': len(data),
        }

    def process(self) -> Dict[str, Any]:
        """Run the whole pipeline; any failure propagates to the caller."""
        self.storage_object.log()

        if not self.is_upload():
            logger.info(
                f"Skipping {self.storage_object.name}: not in "
                f"{self.config.folder_images_uploaded}")
            return {'skipped': True, 'name': self.storage_object.name}

        self.download()
        metadata = self.process_exif_metadata()
        result = self.process_image(self.capture_time)

        result.update({
            'success': True,
            'name': self.storage_object.name,
            'exifPath': self.exif_path,
            'exifFields': len(metadata.present_fields()),
        })
        logger.info(f"Processing complete: {result}")
        return result
