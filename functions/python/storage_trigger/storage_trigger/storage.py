"""Blob get/put helpers on top of Firebase Storage."""

import os
import json
import logging
import posixpath
import tempfile
from datetime import datetime
from typing import Any, Dict, Optional

from firebase_admin import storage

from .config import StorageTriggerError

logger = logging.getLogger(__name__)


class ObjectNotFoundError(StorageTriggerError, FileNotFoundError):
    """Raised when a notified object is no longer in its bucket."""


def object_base_name(key: str) -> str:
    """Return the last path segment of an object key."""
    return posixpath.basename(key)


def object_stem(key: str) -> str:
    """Return the base name of a key up to its first dot."""
    return object_base_name(key).split('.')[0]


def build_object_key(folder: str, file_name: str, file_time: Optional[datetime] = None) -> str:
    """Build the destination key for a derived artifact.

    With a ``file_time`` the key is partitioned by date:
    ``folder/YYYY/MM/DD/file_name``.
    """
    folder = folder.strip('/')
    if file_time is not None:
        return f"{folder}/{file_time.strftime('%Y/%m/%d')}/{file_name}"
    return f"{folder}/{file_name}"


def log_upload_result(blob) -> None:
    """Log the properties returned by an upload."""
    logger.info(
        f"UploadResult: Bucket={blob.bucket.name} Name={blob.name} "
        f"Generation={blob.generation} ETag={blob.etag} Md5Hash={blob.md5_hash} "
        f"Crc32c={blob.crc32c} Size={blob.size} ContentType={blob.content_type} "
        f"StorageClass={blob.storage_class}")


class StorageClient:
    """Download and upload objects in Cloud Storage buckets."""

    def bucket(self, bucket_name: str):
        return storage.bucket(bucket_name)

    def download_to_file(self, bucket_name: str, key: str, directory: Optional[str] = None) -> str:
        """Download an object to a temporary file and return its path."""
        bucket = self.bucket(bucket_name)
        blob = bucket.blob(key)

        logger.info(f"Checking existence of blob: gs://{bucket_name}/{key}")
        if not blob.exists():
            raise ObjectNotFoundError(f"Object not found: gs://{bucket_name}/{key}")

        suffix = os.path.splitext(key)[1]
        fd, temp_local_filename = tempfile.mkstemp(suffix=suffix, dir=directory)
        os.close(fd)
        try:
            blob.download_to_filename(temp_local_filename)
        except Exception:
            os.remove(temp_local_filename)
            raise

        logger.info(f"Object downloaded to temporary file: {temp_local_filename}")
        return temp_local_filename

    def upload_bytes(self, bucket_name: str, key: str, data: bytes, content_type: str):
        """Upload raw bytes and return the uploaded blob."""
        logger.info(f"Uploading {len(data)} bytes to: gs://{bucket_name}/{key}")
        blob = self.bucket(bucket_name).blob(key)
        blob.upload_from_string(data, content_type=content_type)
        log_upload_result(blob)
        return blob

    def upload_json(self, bucket_name: str, key: str, document: Dict[str, Any]):
        """Serialize a document as JSON and upload it."""
        data = json.dumps(document, indent=2, ensure_ascii=False).encode('utf-8')
        return self.upload_bytes(bucket_name, key, data, 'application/json')
