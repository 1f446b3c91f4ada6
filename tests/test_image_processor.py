import io
import json
import os
from unittest.mock import patch

import pytest
from cloudevents.http import CloudEvent
from PIL import Image

from image_processor import main
from image_processor.config import ImageProcessorConfig
from image_processor.exif import ExifNotFoundError
from image_processor.processor import ImageProcessor
from storage_trigger.config import ConfigurationError
from storage_trigger.events import STORAGE_FINALIZED, StorageObject
from storage_trigger.storage import ObjectNotFoundError

BUCKET = 'demo-bucket'


def upload(name='uploaded/photo.jpg'):
    return StorageObject(bucket=BUCKET, name=name, content_type='image/jpeg')


def run(storage_object, config, storage_client):
    with ImageProcessor(storage_object, config, storage_client) as processor:
        result = processor.process()
    return result, processor


def test_config_defaults(image_env):
    config = ImageProcessorConfig().load()

    assert config.folder_images_uploaded == 'uploaded'
    assert config.folder_images_compressed == 'compressed'
    assert config.folder_images_exif == 'exif'
    assert config.scale == 0.5
    assert config.scaler == 'APPROX_BILINEAR'
    assert config.jpeg_quality == 75
    assert config.partition_by_capture_date is False


def test_config_reads_optional_settings(image_env):
    image_env.setenv('IMAGE_SCALE', '0.25')
    image_env.setenv('IMAGE_SCALER', 'catmull_rom')
    image_env.setenv('IMAGE_JPEG_QUALITY', '90')
    image_env.setenv('PARTITION_BY_CAPTURE_DATE', 'true')

    config = ImageProcessorConfig().load()

    assert config.scale == 0.25
    assert config.scaler == 'CATMULL_ROM'
    assert config.jpeg_quality == 90
    assert config.partition_by_capture_date is True


@pytest.mark.parametrize('missing', [
    'STORAGE_FOLDER_IMAGES_UPLOADED',
    'STORAGE_FOLDER_IMAGES_COMPRESSED',
    'STORAGE_FOLDER_IMAGES_EXIF',
])
def test_config_requires_every_folder(image_env, missing):
    image_env.delenv(missing)

    with pytest.raises(ConfigurationError, match=f'{missing} is not set'):
        ImageProcessorConfig().load()


def test_config_rejects_shared_folders(image_env):
    image_env.setenv('STORAGE_FOLDER_IMAGES_EXIF', 'compressed')

    with pytest.raises(ConfigurationError, match='Duplicate storage folder'):
        ImageProcessorConfig().load()


def test_config_rejects_compressed_folder_inside_uploads(image_env):
    image_env.setenv('STORAGE_FOLDER_IMAGES_COMPRESSED', 'uploaded-small')

    with pytest.raises(ConfigurationError, match='Compressed folder is incorrect'):
        ImageProcessorConfig().load()


@pytest.mark.parametrize('key,value', [
    ('IMAGE_SCALE', 'half'),
    ('IMAGE_SCALE', '0'),
    ('IMAGE_SCALE', '1.5'),
    ('IMAGE_JPEG_QUALITY', 'best'),
    ('IMAGE_JPEG_QUALITY', '100'),
    ('PARTITION_BY_CAPTURE_DATE', 'sometimes'),
])
def test_config_rejects_bad_settings(image_env, key, value):
    image_env.setenv(key, value)

    with pytest.raises(ConfigurationError, match=key):
        ImageProcessorConfig().load()


def test_process_upload(image_env, fake_storage, make_jpeg, camera_tags):
    fake_storage.objects['uploaded/photo.jpg'] = make_jpeg(camera_tags, size=(64, 48))
    config = ImageProcessorConfig().load()

    result, processor = run(upload(), config, fake_storage)

    assert set(fake_storage.uploads) == {'exif/photo.JSON', 'compressed/photo.jpg'}

    document = fake_storage.json_upload('exif/photo.JSON')
    assert document['Make'] == 'Canon'
    assert document['Orientation'] == 6
    assert document['LensModel'] is None

    data, content_type = fake_storage.uploads['compressed/photo.jpg']
    assert content_type == 'image/jpeg'
    with Image.open(io.BytesIO(data)) as compressed:
        assert compressed.format == 'JPEG'
        assert compressed.size == (32, 24)

    assert result['success'] is True
    assert result['exifPath'] == 'exif/photo.JSON'
    assert result['compressedPath'] == 'compressed/photo.jpg'
    assert (result['width'], result['height']) == (32, 24)
    assert result['exifFields'] == 4

    assert processor.temp_file is None
    assert not any(os.path.exists(path) for path in fake_storage.downloaded)


def test_process_upload_partitioned_by_capture_date(image_env, fake_storage, make_jpeg, camera_tags):
    image_env.setenv('PARTITION_BY_CAPTURE_DATE', 'true')
    fake_storage.objects['uploaded/2024/photo.final.jpg'] = make_jpeg(camera_tags)
    config = ImageProcessorConfig().load()

    run(upload('uploaded/2024/photo.final.jpg'), config, fake_storage)

    assert set(fake_storage.uploads) == {
        'exif/2021/03/04/photo.JSON',
        'compressed/2021/03/04/photo.final.jpg',
    }


def test_objects_outside_upload_folder_are_skipped(image_env, fake_storage):
    config = ImageProcessorConfig().load()

    result, _ = run(upload('compressed/photo.jpg'), config, fake_storage)

    assert result == {'skipped': True, 'name': 'compressed/photo.jpg'}
    assert fake_storage.uploads == {}
    assert fake_storage.downloaded == []


def test_image_without_exif_fails(image_env, fake_storage, make_jpeg):
    fake_storage.objects['uploaded/photo.jpg'] = make_jpeg()
    config = ImageProcessorConfig().load()

    with pytest.raises(ExifNotFoundError):
        run(upload(), config, fake_storage)

    assert fake_storage.uploads == {}
    assert not any(os.path.exists(path) for path in fake_storage.downloaded)


@pytest.fixture
def function_env(image_env, fake_storage):
    config = ImageProcessorConfig()
    with patch.object(main, 'image_config', config), \
            patch.object(main.firebase_config, 'initialize'), \
            patch('image_processor.processor.StorageClient', return_value=fake_storage):
        yield fake_storage


def finalized_event(*names):
    records = [{'bucket': BUCKET, 'name': name, 'size': '1024'} for name in names]
    data = records[0] if len(records) == 1 else {'records': records}
    return CloudEvent({'type': STORAGE_FINALIZED, 'source': f'//storage.googleapis.com/projects/_/buckets/{BUCKET}'}, data)


def test_process_uploaded_image(function_env, make_jpeg, camera_tags):
    function_env.objects['uploaded/photo.jpg'] = make_jpeg(camera_tags)

    main.process_uploaded_image(finalized_event('uploaded/photo.jpg'))

    assert 'compressed/photo.jpg' in function_env.uploads
    assert 'exif/photo.JSON' in function_env.uploads


def test_process_notification_handles_every_record(function_env, make_jpeg, camera_tags):
    function_env.objects['uploaded/a.jpg'] = make_jpeg(camera_tags)
    function_env.objects['uploaded/b.jpg'] = make_jpeg(camera_tags)

    results = main.process_notification(
        finalized_event('uploaded/a.jpg', 'compressed/x.jpg', 'uploaded/b.jpg'))

    assert [r['name'] for r in results] == ['uploaded/a.jpg', 'compressed/x.jpg', 'uploaded/b.jpg']
    assert results[1]['skipped'] is True
    assert set(function_env.uploads) == {
        'exif/a.JSON', 'compressed/a.jpg', 'exif/b.JSON', 'compressed/b.jpg'}


def test_process_uploaded_image_reraises(function_env):
    with pytest.raises(ObjectNotFoundError):
        main.process_uploaded_image(finalized_event('uploaded/gone.jpg'))


def test_health(function_env):
    body, status, headers = main.health(None)

    assert status == 200
    assert json.loads(body)['folders']['STORAGE_FOLDER_IMAGES_EXIF'] == 'exif'
    assert headers['Content-Type'] == 'application/json'


def test_health_reports_bad_configuration(function_env, image_env):
    image_env.delenv('STORAGE_FOLDER_IMAGES_EXIF')

    body, status, _ = main.health(None)

    assert status == 500
    assert 'STORAGE_FOLDER_IMAGES_EXIF is not set' in json.loads(body)['error']


def test_config_rejects_output_folder_inside_upload_folder(image_env):
    image_env.setenv('STORAGE_FOLDER_IMAGES_UPLOADED', 'photos')
    image_env.setenv('STORAGE_FOLDER_IMAGES_COMPRESSED', 'photos/small')

    with pytest.raises(ConfigurationError, match='Nested storage folders'):
        ImageProcessorConfig().load()
