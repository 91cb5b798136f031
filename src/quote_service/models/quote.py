"""
Quote record domain model.

Quote records are metaobjects whose fields are plain strings. This module maps
them to a typed model and holds the encoding rules used when records are
written: handle generation, invoice URL classification and the pipe-delimited
author field that carries fabrication parameters.
"""

import random
import re
import string
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FILE_DATA_MAX_LENGTH = 1000
HANDLE_SUFFIX_LENGTH = 6

# Placeholders written to invoice_url/file_data depending on what the client sent
DATA_URI_PLACEHOLDER = 'data:uri'
HTTP_URL_PLACEHOLDER = 'http:url'
TEXT_DATA_PLACEHOLDER = 'text:data'

PARAMETER_KEYS = ('material', 'color', 'quantity', 'precision', 'tolerance', 'roughness')
AUTHOR_SEPARATOR = '|'

QUOTE_FIELD_KEYS = ('text', 'author', 'email', 'status', 'price', 'invoice_url', 'file_data', 'note')


class QuoteStatus(str, Enum):
    """Status values the service writes itself; other free-text values are kept as is."""

    PENDING = 'Pending'
    QUOTED = 'Quoted'
    DELETED = 'Deleted'


class MetaobjectField(BaseModel):
    key: str
    value: Optional[str] = None


def fields_to_dict(fields: List[Dict[str, Any]]) -> Dict[str, str]:
    return {field['key']: field.get('value') or '' for field in fields or []}


def generate_handle(email: Optional[str]) -> str:
    """Build a metaobject handle from the email plus a random suffix."""
    prefix = re.sub(r'[^a-zA-Z0-9]', '-', email) if email else 'customer'
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=HANDLE_SUFFIX_LENGTH))
    return f'{prefix}-{suffix}'


def classify_invoice_url(invoice_url: Optional[str]) -> Tuple[str, str]:
    """
    Split a client supplied invoice_url into the stored (invoice_url, file_data) pair.

    Data URIs are truncated into file_data since the URL field rejects them;
    http(s) URLs stay in invoice_url; anything else is treated as text data.
    """
    if not invoice_url:
        return '', ''
    if invoice_url.startswith('data:'):
        return DATA_URI_PLACEHOLDER, invoice_url[:FILE_DATA_MAX_LENGTH]
    if invoice_url.startswith(('http://', 'https://')):
        return invoice_url, HTTP_URL_PLACEHOLDER
    return TEXT_DATA_PLACEHOLDER, invoice_url


def encode_author(name: Optional[str], parameters: Optional[Dict[str, Any]] = None) -> str:
    """Merge fabrication parameters into the author field as ``Name|key=value|...``."""
    name = (name or '').replace(AUTHOR_SEPARATOR, ' ').strip()
    if not parameters:
        return name
    parts = [name]
    for key, value in parameters.items():
        if value is None or value == '':
            continue
        parts.append(f'{key}={str(value).replace(AUTHOR_SEPARATOR, " ")}')
    return AUTHOR_SEPARATOR.join(parts)


def decode_author(author: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """Split an author field back into the display name and its parameters."""
    if not author or AUTHOR_SEPARATOR not in author:
        return author or '', {}
    name, *pairs = author.split(AUTHOR_SEPARATOR)
    parameters = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if sep and key.strip():
            parameters[key.strip()] = value.strip()
    return name.strip(), parameters


class QuoteRecord(BaseModel):
    """Quote metaobject with its decoded fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Annotated[str, Field(
        description='Metaobject global id',
        examples=['gid://shopify/Metaobject/123456']
    )]

    handle: Annotated[str, Field(
        description='Metaobject handle',
        examples=['jane-example-com-a1b2c3']
    )]

    fields: List[MetaobjectField] = []
    text: str = ''
    author: str = ''
    author_name: str = ''
    parameters: Dict[str, str] = {}
    email: str = ''
    status: Optional[str] = None
    price: str = ''
    invoice_url: str = ''
    file_data: str = ''
    note: str = ''
    updated_at: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.status == QuoteStatus.DELETED.value

    @classmethod
    def from_metaobject(cls, node: Dict[str, Any]) -> 'QuoteRecord':
        """Build a record from a metaobject node returned by the Admin API."""
        raw_fields = node.get('fields') or []
        values = fields_to_dict(raw_fields)
        author_name, parameters = decode_author(values.get('author'))
        status_present = any(field['key'] == 'status' for field in raw_fields)
        return cls(
            id=node['id'],
            handle=node.get('handle') or '',
            fields=[MetaobjectField(key=field['key'], value=field.get('value')) for field in raw_fields],
            text=values.get('text', ''),
            author=values.get('author', ''),
            author_name=author_name,
            parameters=parameters,
            email=values.get('email', ''),
            status=values.get('status') if status_present else None,
            price=values.get('price', ''),
            invoice_url=values.get('invoice_url', ''),
            file_data=values.get('file_data', ''),
            note=values.get('note', ''),
            updated_at=node.get('updatedAt'),
        )
