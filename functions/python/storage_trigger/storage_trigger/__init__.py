"""Shared helpers for Cloud Storage triggered functions."""

from .config import (
    ConfigurationError,
    FirebaseConfig,
    StorageTriggerError,
    firebase_config,
    parse_bool,
    require_env,
    validate_folders,
)
from .events import (
    InvalidEventError,
    StorageNotification,
    StorageObject,
    parse_cloud_event,
)
from .storage import (
    ObjectNotFoundError,
    StorageClient,
    build_object_key,
    object_base_name,
    object_stem,
)

__all__ = [
    'ConfigurationError',
    'FirebaseConfig',
    'InvalidEventError',
    'ObjectNotFoundError',
    'StorageClient',
    'StorageNotification',
    'StorageObject',
    'StorageTriggerError',
    'build_object_key',
    'firebase_config',
    'object_base_name',
    'object_stem',
    'parse_bool',
    'parse_cloud_event',
    'require_env',
    'validate_folders',
]
