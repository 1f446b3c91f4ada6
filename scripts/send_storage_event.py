#!/usr/bin/env python3
"""Send a Cloud Storage object-finalized event to a locally running function.

Start the function first, for example:

    functions-framework --target=process_uploaded_image --signature-type=cloudevent --debug
"""
import sys
import json
import uuid
import argparse
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

import requests
from dotenv import load_dotenv

STORAGE_FINALIZED = 'google.cloud.storage.object.v1.finalized'


def build_storage_event(bucket: str, name: str, size: int = 0,
                        content_type: str = 'image/jpeg') -> Tuple[Dict[str, str], Dict[str, Any]]:
    """Build binary-mode CloudEvent headers and the object resource body."""
    now = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    headers = {
        'ce-id': str(uuid.uuid4()),
        'ce-specversion': '1.0',
        'ce-type': STORAGE_FINALIZED,
        'ce-source': f'//storage.googleapis.com/projects/_/buckets/{bucket}',
        'ce-subject': f'objects/{name}',
        'ce-time': now,
        'Content-Type': 'application/json',
    }
    data = {
        'bucket': bucket,
        'name': name,
        'size': str(size),
        'contentType': content_type,
        'timeCreated': now,
        'updated': now,
        'generation': '1',
        'metageneration': '1',
        'storageClass': 'STANDARD',
    }
    return headers, data


def send_event(url: str, bucket: str, name: str, size: int = 0,
               content_type: str = 'image/jpeg') -> requests.Response:
    headers, data = build_storage_event(bucket, name, size, content_type)

    print(f"\n=== Sending {headers['ce-type']} to {url} ===")
    print(f"Object: gs://{bucket}/{name}")
    print(json.dumps(data, indent=4))

    return requests.post(url, headers=headers, data=json.dumps(data), timeout=300)


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description='Send a storage object-finalized CloudEvent to a local function')
    parser.add_argument('bucket', help='Bucket name')
    parser.add_argument('name', help='Object name, e.g. uploaded/photo.jpg')
    parser.add_argument('--url', default='http://localhost:8080',
                        help='Function URL (default: http://localhost:8080)')
    parser.add_argument('--size', type=int, default=0, help='Object size in bytes')
    parser.add_argument('--content-type', default='image/jpeg',
                        help='Object content type (default: image/jpeg)')
    args = parser.parse_args()

    try:
        response = send_event(args.url, args.bucket, args.name,
                              args.size, args.content_type)
    except requests.RequestException as e:
        print(f"\nError: {str(e)}")
        sys.exit(1)

    if response.ok:
        print(f"\nSuccess: {response.status_code}")
    else:
        print(f"\nError: {response.status_code}")
        print(response.text)
        sys.exit(1)


if __name__ == "__main__":
    main()
