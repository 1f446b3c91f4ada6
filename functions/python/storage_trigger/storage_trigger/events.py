"""Object-creation notifications delivered to storage functions."""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import StorageTriggerError

logger = logging.getLogger(__name__)

STORAGE_FINALIZED = 'google.cloud.storage.object.v1.finalized'
PUBSUB_PUBLISHED = 'google.cloud.pubsub.topic.v1.messagePublished'
OBJECT_FINALIZE = 'OBJECT_FINALIZE'


class InvalidEventError(StorageTriggerError, ValueError):
    """Raised when an event payload does not describe a storage object."""


def log_separator():
    """Print a separator line for better log readability."""
    logger.info("\n" + "="*50 + "\n")


@dataclass
class StorageObject:
    """A newly written Cloud Storage object."""

    bucket: str
    name: str
    size: int = 0
    etag: Optional[str] = None
    generation: Optional[str] = None
    metageneration: Optional[str] = None
    content_type: Optional[str] = None
    time_created: Optional[str] = None
    md5_hash: Optional[str] = None
    crc32c: Optional[str] = None
    storage_class: Optional[str] = None

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'StorageObject':
        """Build an object from a Cloud Storage object resource."""
        bucket = resource.get('bucket')
        name = resource.get('name')
        if not bucket or not name:
            raise InvalidEventError(
                f"Object resource needs bucket and name, got {sorted(resource)}")

        try:
            size = int(resource.get('size') or 0)
        except (TypeError, ValueError):
            raise InvalidEventError(
                f"Invalid object size: {resource.get('size')!r}")

        return cls(
            bucket=bucket,
            name=name,
            size=size,
            etag=resource.get('etag'),
            generation=_as_str(resource.get('generation')),
            metageneration=_as_str(resource.get('metageneration')),
            content_type=resource.get('contentType'),
            time_created=resource.get('timeCreated'),
            md5_hash=resource.get('md5Hash'),
            crc32c=resource.get('crc32c'),
            storage_class=resource.get('storageClass'),
        )

    @property
    def uri(self) -> str:
        return f"gs://{self.bucket}/{self.name}"

    def log(self) -> None:
        logger.info(
            f"StorageObject: Bucket={self.bucket} Name={self.name} "
            f"Size={self.size} ETag={self.etag} Generation={self.generation} "
            f"Metageneration={self.metageneration} ContentType={self.content_type} "
            f"TimeCreated={self.time_created} StorageClass={self.storage_class}")


@dataclass
class StorageNotification:
    """A storage notification listing one or more affected objects."""

    event_id: Optional[str] = None
    event_type: Optional[str] = None
    source: Optional[str] = None
    time: Optional[str] = None
    subject: Optional[str] = None
    objects: List[StorageObject] = field(default_factory=list)

    def log(self) -> None:
        logger.info(
            f"StorageNotification: Id={self.event_id} Type={self.event_type} "
            f"Source={self.source} Time={self.time} Subject={self.subject} "
            f"Objects={len(self.objects)}")


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _decode_pubsub_message(message: Dict[str, Any]) -> List[StorageObject]:
    attributes = message.get('attributes') or {}
    event_type = attributes.get('eventType')
    logger.info(
        f"PubSubMessage: Id={message.get('messageId')} "
        f"PublishTime={message.get('publishTime')} EventType={event_type} "
        f"BucketId={attributes.get('bucketId')} ObjectId={attributes.get('objectId')}")

    if event_type and event_type != OBJECT_FINALIZE:
        logger.info(f"Ignoring storage notification of type {event_type}")
        return []

    resource: Dict[str, Any] = {}
    if message.get('data'):
        try:
            resource = json.loads(base64.b64decode(message['data']))
        except (ValueError, TypeError) as e:
            raise InvalidEventError(f"Invalid Pub/Sub message data: {str(e)}")
        if not isinstance(resource, dict):
            raise InvalidEventError("Pub/Sub message data is not an object")

    resource.setdefault('bucket', attributes.get('bucketId'))
    resource.setdefault('name', attributes.get('objectId'))
    return [StorageObject.from_resource(resource)]


def parse_event_data(event_type: Optional[str], data: Any) -> List[StorageObject]:
    """Extract the affected objects from an event payload."""
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise InvalidEventError(f"Event data is not JSON: {str(e)}")

    if not isinstance(data, dict):
        raise InvalidEventError(
            f"Event data must be an object, got {type(data).__name__}")

    if event_type == PUBSUB_PUBLISHED or 'message' in data:
        return _decode_pubsub_message(data.get('message') or {})

    if 'records' in data:
        records = data['records']
        if not isinstance(records, list):
            raise InvalidEventError("Event records must be a list")
        return [StorageObject.from_resource(record) for record in records]

    return [StorageObject.from_resource(data)]


def parse_cloud_event(cloud_event) -> StorageNotification:
    """Turn a CloudEvent into a storage notification."""
    event_type = cloud_event.get('type')
    notification = StorageNotification(
        event_id=cloud_event.get('id'),
        event_type=event_type,
        source=cloud_event.get('source'),
        time=cloud_event.get('time'),
        subject=cloud_event.get('subject'),
        objects=parse_event_data(event_type, cloud_event.data),
    )
    notification.log()
    return notification
