"""
Uploaded file models.

Uploaded files live in the platform's file storage. A metaobject of type
``uploaded_file`` links the local ``file_<ms>_<rand>`` id handed to the
storefront with the platform file id.
"""

import base64
import binascii
import random
import re
import string
import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from quote_service.models.quote import fields_to_dict

MODEL_EXTENSIONS = ('stl', 'obj', 'step', 'stp', '3mf', 'glb', 'gltf', '3ds', 'ply')
DEFAULT_MIME_TYPE = 'application/octet-stream'
READY_STATUS = 'READY'
FILE_ID_PREFIX = 'file_'
FILE_GID_PREFIX = 'gid://shopify/'

_DATA_URI = re.compile(r'^data:(?P<mime>[^;,]*)(?:;[^,]*)?,(?P<data>.*)$', re.DOTALL)


def generate_file_id() -> str:
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f'{FILE_ID_PREFIX}{int(time.time() * 1000)}_{suffix}'


def determine_content_category(file_type: Optional[str], file_name: Optional[str]) -> str:
    """Map a MIME type / file extension to the platform file content category."""
    mime = (file_type or '').lower()
    extension = (file_name or '').lower().rsplit('.', 1)[-1]
    if mime.startswith('image/'):
        return 'IMAGE'
    if mime.startswith('video/'):
        return 'VIDEO'
    if 'model' in mime or extension in MODEL_EXTENSIONS:
        return 'MODEL_3D'
    return 'FILE'


def decode_file_data(file_data: str) -> Tuple[bytes, Optional[str]]:
    """
    Decode a base64 payload or data URI.

    Returns:
        Tuple of raw bytes and the MIME type carried by the data URI, if any

    Raises:
        ValueError: If the payload is not valid base64
    """
    mime_type = None
    match = _DATA_URI.match(file_data)
    if match:
        mime_type = match.group('mime') or None
        file_data = match.group('data')
    try:
        return base64.b64decode(''.join(file_data.split()), validate=True), mime_type
    except (binascii.Error, ValueError) as exc:
        raise ValueError('File data is not valid base64') from exc


def record_handle(file_id: str) -> str:
    """Metaobject handle of the ``uploaded_file`` record for a local file id."""
    return file_id.replace('_', '-')


def is_platform_gid(file_id: str) -> bool:
    return file_id.startswith(FILE_GID_PREFIX)


class FileRecord(BaseModel):
    """``uploaded_file`` metaobject."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    handle: Optional[str] = None
    file_id: str
    file_name: str = ''
    file_type: str = ''
    shopify_file_id: str = ''
    file_url: str = ''
    file_size: str = ''
    order_id: str = ''

    @classmethod
    def from_metaobject(cls, node: Dict[str, Any]) -> 'FileRecord':
        values = fields_to_dict(node.get('fields') or [])
        return cls(
            id=node.get('id'),
            handle=node.get('handle'),
            file_id=values.get('file_id', ''),
            file_name=values.get('file_name', ''),
            file_type=values.get('file_type', ''),
            shopify_file_id=values.get('shopify_file_id', ''),
            file_url=values.get('file_url', ''),
            file_size=values.get('file_size', ''),
            order_id=values.get('order_id', ''),
        )

    def to_fields(self) -> List[Dict[str, str]]:
        return [
            {'key': 'file_id', 'value': self.file_id},
            {'key': 'file_name', 'value': self.file_name},
            {'key': 'file_type', 'value': self.file_type},
            {'key': 'shopify_file_id', 'value': self.shopify_file_id},
            {'key': 'file_url', 'value': self.file_url},
            {'key': 'file_size', 'value': self.file_size},
            {'key': 'order_id', 'value': self.order_id},
        ]


class PlatformFile(BaseModel):
    """A file node from platform storage, normalized across file types."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    url: Optional[str] = None
    original_file_size: Optional[int] = None
    file_status: Optional[str] = None
    alt: Optional[str] = None
    mime_type: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.file_status == READY_STATUS

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'PlatformFile':
        source = node.get('originalSource') or {}
        image = node.get('image') or {}
        return cls(
            id=node['id'],
            url=node.get('url') or source.get('url') or image.get('url'),
            original_file_size=node.get('originalFileSize') or source.get('fileSize'),
            file_status=node.get('fileStatus'),
            alt=node.get('alt'),
            mime_type=node.get('mimeType') or source.get('mimeType'),
            file_name=node.get('filename'),
        )
