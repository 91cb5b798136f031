"""
Output models for API responses using Pydantic.

Responses are serialized with camelCase aliases for the storefront frontend.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quote_service.models.order_status import Fulfillment


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelOutput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


NEXT_STEPS = [
    '1. 您将收到询价确认邮件',
    '2. 客服将评估您的需求并报价',
    '3. 报价完成后，您将收到通知',
    '4. 您可以在"我的询价"页面查看进度',
]


class SubmitQuoteOutput(CamelOutput):
    """Response model for a submitted quote."""

    success: bool = True
    message: str = '询价提交成功！客服将在24小时内为您提供报价。'

    quote_id: Annotated[str, Field(
        description='Quote number shown to the customer',
        examples=['Q1738140000000']
    )]

    draft_order_id: Annotated[str, Field(
        description='Draft order global id',
        examples=['gid://shopify/DraftOrder/1234567890']
    )]

    draft_order_name: Optional[str] = None
    invoice_url: Optional[str] = None
    customer_email: str
    file_name: str
    file_id: str
    shopify_file_id: Optional[str] = None
    next_steps: List[str] = NEXT_STEPS
    timestamp: str = Field(default_factory=utc_now_iso)


class OrderInfoOutput(CamelOutput):
    id: str
    name: str
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    processed_at: Optional[str] = None


class OrderStatusOutput(CamelOutput):
    """Response model for the order status lookup."""

    success: bool = True
    order_id: str
    order_name: str

    status: Annotated[str, Field(
        description='Display status label',
        examples=['已付款']
    )]

    status_code: Annotated[str, Field(
        description='Machine status code',
        examples=['paid']
    )]

    total_price: str
    paid_at: Optional[str] = None
    fulfilled_at: Optional[str] = None
    fulfillments: List[Fulfillment] = []
    invoice_url: Optional[str] = None
    is_completed: bool = False

    matched_by: Annotated[Optional[str], Field(
        description='How the draft was linked to a real order: name, email_amount or null'
    )] = None

    order_info: Optional[OrderInfoOutput] = None
    updated_at: str = Field(default_factory=utc_now_iso)


class UploadFileOutput(CamelOutput):
    """Response model for an uploaded file."""

    success: bool = True
    message: str = '文件上传成功'
    file_id: str
    file_name: str
    shopify_file_id: str
    file_url: Optional[str] = None
    original_file_size: int
    uploaded_file_size: int
    timestamp: str = Field(default_factory=utc_now_iso)


class EmailContentOutput(CamelOutput):
    to: str
    subject: str
    text_body: str
    html_body: str


class QuoteEmailOutput(CamelOutput):
    """Response model for the quote notification; the email is always returned."""

    success: bool = True
    sent: bool
    provider: Optional[str] = None
    email: EmailContentOutput
    mailto: str


class HealthCheckOutput(BaseModel):
    status: str
    version: str
    environment: str
    shop: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)
