import io
import os
import json
import tempfile

import pytest
from PIL import Image

from storage_trigger.storage import ObjectNotFoundError

IMAGE_ENV = {
    'STORAGE_FOLDER_IMAGES_UPLOADED': 'uploaded',
    'STORAGE_FOLDER_IMAGES_COMPRESSED': 'compressed',
    'STORAGE_FOLDER_IMAGES_EXIF': 'exif',
}

FACE_ENV = {
    'STORAGE_FOLDER_IMAGES_COMPRESSED': 'compressed',
    'STORAGE_FOLDER_VISION_DETECT_FACES': 'faces',
    'STORAGE_FOLDER_VISION_DETECT_LABELS': 'labels',
    'STORAGE_FOLDER_VISION_DETECT_TEXT': 'text',
}

OPTIONAL_ENV = (
    'IMAGE_SCALE',
    'IMAGE_SCALER',
    'IMAGE_JPEG_QUALITY',
    'PARTITION_BY_CAPTURE_DATE',
    'VISION_MAX_RESULTS',
    'FIREBASE_PROJECT_ID',
    'FIREBASE_CLIENT_EMAIL',
    'FIREBASE_PRIVATE_KEY',
)


class FakeStorageClient:
    """In-memory stand-in for StorageClient."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.uploads = {}
        self.downloaded = []

    def download_to_file(self, bucket_name, key, directory=None):
        if key not in self.objects:
            raise ObjectNotFoundError(f"Object not found: gs://{bucket_name}/{key}")
        fd, path = tempfile.mkstemp(suffix=os.path.splitext(key)[1], dir=directory)
        with os.fdopen(fd, 'wb') as file:
            file.write(self.objects[key])
        self.downloaded.append(path)
        return path

    def upload_bytes(self, bucket_name, key, data, content_type):
        self.uploads[key] = (data, content_type)

    def upload_json(self, bucket_name, key, document):
        self.upload_bytes(bucket_name, key, json.dumps(document).encode('utf-8'),
                          'application/json')

    def json_upload(self, key):
        data, _ = self.uploads[key]
        return json.loads(data)


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(IMAGE_ENV) + list(FACE_ENV) + list(OPTIONAL_ENV):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def image_env(clean_env):
    for key, value in IMAGE_ENV.items():
        clean_env.setenv(key, value)
    return clean_env


@pytest.fixture
def face_env(clean_env):
    for key, value in FACE_ENV.items():
        clean_env.setenv(key, value)
    return clean_env


@pytest.fixture
def make_jpeg():
    """Build JPEG bytes, optionally carrying primary directory EXIF tags."""
    def build(tags=None, size=(64, 48), color=(200, 120, 40)):
        image = Image.new('RGB', size, color)
        buffer = io.BytesIO()
        if tags:
            exif = Image.Exif()
            for tag, value in tags.items():
                exif[tag] = value
            image.save(buffer, format='JPEG', exif=exif)
        else:
            image.save(buffer, format='JPEG')
        return buffer.getvalue()
    return build


@pytest.fixture
def camera_tags():
    return {
        0x010F: 'Canon',
        0x0110: 'Canon EOS 80D',
        0x0112: 6,
        0x0132: '2021:03:04 05:06:07',
    }


@pytest.fixture
def fake_storage():
    return FakeStorageClient()
