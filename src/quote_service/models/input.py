"""
Input models for API requests using Pydantic.

This module defines the request bodies accepted by the quote service handlers.
JSON keys are camelCase for the storefront clients; quote record bodies keep
the snake_case keys of the record fields.
"""

import re
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

Scalar = Union[str, int, float]


def normalize_email(value: str) -> str:
    """Trim and lower-case an email address, rejecting malformed ones."""
    value = (value or '').strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError('Invalid email format')
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateQuoteRequest(BaseModel):
    """Request model for creating a quote record."""

    text: Annotated[str, Field(
        description='Free text describing the request',
        examples=['3D printing request for model.stl']
    )] = ''

    author: Annotated[str, Field(
        description='Customer name',
        examples=['Jane Doe']
    )] = ''

    email: Annotated[str, Field(
        description='Customer email address',
        examples=['jane@example.com']
    )] = ''

    status: Annotated[str, Field(
        description='Initial status label'
    )] = 'Pending'

    price: Annotated[str, Field(
        description='Initial price, usually empty until quoted'
    )] = ''

    invoice_url: Annotated[Optional[str], Field(
        description='File reference: data URI, http(s) URL or plain text'
    )] = None

    parameters: Annotated[Optional[Dict[str, Scalar]], Field(
        description='Fabrication parameters merged into the author field',
        examples=[{'material': 'ABS', 'color': 'White'}]
    )] = None

    @field_validator('price', mode='before')
    @classmethod
    def stringify_price(cls, v: Any) -> str:
        return '' if v is None else str(v)


class UpdateQuoteRequest(BaseModel):
    """Request model for patching a quote record; at least one field is required."""

    status: Optional[Scalar] = None
    price: Optional[Scalar] = None
    note: Optional[Scalar] = None

    @model_validator(mode='after')
    def require_any_field(self) -> 'UpdateQuoteRequest':
        if self.status is None and self.price is None and self.note is None:
            raise ValueError('At least one of status, price or note must be provided')
        return self

    def to_fields(self) -> List[Dict[str, str]]:
        fields = []
        for key in ('status', 'price', 'note'):
            value = getattr(self, key)
            if value is not None:
                fields.append({'key': key, 'value': str(value)})
        return fields


class SubmitQuoteRequest(CamelModel):
    """Request model for submitting a quote as a draft order."""

    file_name: Annotated[str, Field(
        description='Name of the uploaded model file',
        examples=['model.stl']
    )] = 'model.stl'

    customer_email: Annotated[str, Field(
        description='Customer email address',
        examples=['customer@example.com']
    )]

    customer_name: Annotated[Optional[str], Field(
        description='Customer display name',
        examples=['张三']
    )] = None

    quantity: Annotated[int, Field(
        ge=1,
        description='Number of parts to fabricate'
    )] = 1

    material: str = 'ABS'
    color: str = '白色'
    precision: str = '标准 (±0.1mm)'

    file_url: Annotated[Optional[str], Field(
        description='Data URI of the model file, uploaded to platform storage when present'
    )] = None

    file_type: Optional[str] = None

    line_items: Annotated[Optional[List[Dict[str, Any]]], Field(
        description='Optional line items; custom attributes of the first one are copied'
    )] = None

    @field_validator('customer_email', mode='before')
    @classmethod
    def validate_email_format(cls, v: Any) -> str:
        return normalize_email(v if isinstance(v, str) else '')

    @field_validator('quantity', mode='before')
    @classmethod
    def coerce_quantity(cls, v: Any) -> Any:
        if v in (None, ''):
            return 1
        return v

    @field_validator('file_name', mode='before')
    @classmethod
    def default_file_name(cls, v: Any) -> Any:
        return v or 'model.stl'


class SetQuotePriceRequest(CamelModel):
    """Request model for staff setting the quoted price on a draft order."""

    draft_order_id: Annotated[str, Field(min_length=1, description='Draft order global id')]

    amount: Annotated[float, Field(
        ge=0,
        description='Quoted unit price',
        examples=[1500.0]
    )]

    note: Optional[str] = None


class DraftOrderActionRequest(CamelModel):
    draft_order_id: Annotated[str, Field(min_length=1, description='Draft order global id')]


class UploadFileRequest(CamelModel):
    """Request model for uploading a file to platform storage."""

    file_data: Annotated[str, Field(
        min_length=1,
        description='Base64 payload or data URI'
    )]

    file_name: Annotated[str, Field(
        min_length=1,
        description='Original file name',
        examples=['model.STEP']
    )]

    file_type: Optional[str] = None
    order_id: Optional[str] = None


class CleanupFilesRequest(CamelModel):
    order_id: Optional[str] = None
    file_id: Optional[str] = None

    @model_validator(mode='after')
    def require_target(self) -> 'CleanupFilesRequest':
        if not self.order_id and not self.file_id:
            raise ValueError('Either orderId or fileId must be provided')
        return self


class QuoteEmailRequest(CamelModel):
    """Request model for the quote notification email."""

    order_id: Optional[str] = None

    email: Annotated[str, Field(
        description='Recipient email address',
        examples=['customer@example.com']
    )]

    amount: Annotated[Scalar, Field(
        description='Quoted amount',
        examples=['1500.00']
    )]

    files: Optional[Union[str, List[str]]] = None
    note: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def validate_email_format(cls, v: Any) -> str:
        return normalize_email(v if isinstance(v, str) else '')

    @field_validator('amount')
    @classmethod
    def require_amount(cls, v: Scalar) -> Scalar:
        if isinstance(v, str) and not v.strip():
            raise ValueError('Amount is required')
        return v

    @property
    def files_text(self) -> str:
        if isinstance(self.files, list):
            return ', '.join(self.files)
        return self.files or ''
