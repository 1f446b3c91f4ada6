import base64
import json

import pytest
from cloudevents.http import CloudEvent

from storage_trigger.events import (
    PUBSUB_PUBLISHED,
    STORAGE_FINALIZED,
    InvalidEventError,
    StorageObject,
    parse_cloud_event,
    parse_event_data,
)

BUCKET = 'demo-project.appspot.com'


def storage_event(data, event_type=STORAGE_FINALIZED):
    attributes = {
        'type': event_type,
        'source': f'//storage.googleapis.com/projects/_/buckets/{BUCKET}',
        'subject': 'objects/uploaded/photo.jpg',
        'id': 'event-1',
    }
    return CloudEvent(attributes, data)


def pubsub_message(resource=None, event_type='OBJECT_FINALIZE', object_id='uploaded/photo.jpg'):
    message = {
        'messageId': '42',
        'publishTime': '2024-05-01T10:00:00Z',
        'attributes': {
            'eventType': event_type,
            'bucketId': BUCKET,
            'objectId': object_id,
        },
    }
    if resource is not None:
        message['data'] = base64.b64encode(json.dumps(resource).encode()).decode()
    return {'message': message, 'subscription': 'projects/demo/subscriptions/uploads'}


def test_parse_direct_storage_event():
    notification = parse_cloud_event(storage_event({
        'bucket': BUCKET,
        'name': 'uploaded/photo.jpg',
        'size': '2048',
        'contentType': 'image/jpeg',
        'generation': 1714557600000000,
        'timeCreated': '2024-05-01T10:00:00.000Z',
    }))

    assert notification.event_id == 'event-1'
    assert notification.event_type == STORAGE_FINALIZED
    assert notification.subject == 'objects/uploaded/photo.jpg'
    assert len(notification.objects) == 1

    storage_object = notification.objects[0]
    assert storage_object.bucket == BUCKET
    assert storage_object.name == 'uploaded/photo.jpg'
    assert storage_object.size == 2048
    assert storage_object.generation == '1714557600000000'
    assert storage_object.content_type == 'image/jpeg'
    assert storage_object.uri == f'gs://{BUCKET}/uploaded/photo.jpg'


def test_parse_pubsub_wrapped_event():
    resource = {'bucket': BUCKET, 'name': 'uploaded/photo.jpg', 'size': 10}
    notification = parse_cloud_event(
        storage_event(pubsub_message(resource), event_type=PUBSUB_PUBLISHED))

    assert [o.name for o in notification.objects] == ['uploaded/photo.jpg']
    assert notification.objects[0].size == 10


def test_pubsub_message_without_data_uses_attributes():
    objects = parse_event_data(PUBSUB_PUBLISHED, pubsub_message())

    assert objects == [StorageObject(bucket=BUCKET, name='uploaded/photo.jpg')]


def test_pubsub_message_for_other_event_types_is_ignored():
    objects = parse_event_data(PUBSUB_PUBLISHED, pubsub_message(event_type='OBJECT_DELETE'))

    assert objects == []


def test_pubsub_message_with_bad_data():
    data = pubsub_message()
    data['message']['data'] = base64.b64encode(b'not json').decode()

    with pytest.raises(InvalidEventError, match='Invalid Pub/Sub message data'):
        parse_event_data(PUBSUB_PUBLISHED, data)


def test_records_are_kept_in_order():
    objects = parse_event_data(STORAGE_FINALIZED, {'records': [
        {'bucket': BUCKET, 'name': 'uploaded/b.jpg'},
        {'bucket': BUCKET, 'name': 'uploaded/a.jpg'},
    ]})

    assert [o.name for o in objects] == ['uploaded/b.jpg', 'uploaded/a.jpg']


def test_json_payload_is_decoded():
    objects = parse_event_data(
        STORAGE_FINALIZED, json.dumps({'bucket': BUCKET, 'name': 'uploaded/a.jpg'}).encode())

    assert objects[0].name == 'uploaded/a.jpg'


@pytest.mark.parametrize('data,message', [
    ({'bucket': BUCKET}, 'needs bucket and name'),
    ({'name': 'uploaded/a.jpg'}, 'needs bucket and name'),
    ({'bucket': BUCKET, 'name': 'a.jpg', 'size': 'big'}, 'Invalid object size'),
    ('{not json', 'not JSON'),
    (['a.jpg'], 'must be an object'),
    ({'records': 'a.jpg'}, 'must be a list'),
])
def test_invalid_payloads(data, message):
    with pytest.raises(InvalidEventError, match=message):
        parse_event_data(STORAGE_FINALIZED, data)
