"""
Service Models Package

This package contains the Pydantic models used throughout the service,
including input validation models, output response models, and the domain
models mapped from Admin API records.
"""

from .input import (
    CleanupFilesRequest,
    CreateQuoteRequest,
    DraftOrderActionRequest,
    QuoteEmailRequest,
    SetQuotePriceRequest,
    SubmitQuoteRequest,
    UpdateQuoteRequest,
    UploadFileRequest,
)
from .output import (
    EmailContentOutput,
    HealthCheckOutput,
    OrderStatusOutput,
    QuoteEmailOutput,
    SubmitQuoteOutput,
    UploadFileOutput,
)
from .draft_order import DraftOrder, DraftOrderLineItem
from .order_status import OrderStatusCode, PlatformOrder, StatusResolution
from .quote import QuoteRecord, QuoteStatus
from .uploaded_file import FileRecord, PlatformFile

__all__ = [
    # Input models
    "CleanupFilesRequest",
    "CreateQuoteRequest",
    "DraftOrderActionRequest",
    "QuoteEmailRequest",
    "SetQuotePriceRequest",
    "SubmitQuoteRequest",
    "UpdateQuoteRequest",
    "UploadFileRequest",

    # Output models
    "EmailContentOutput",
    "HealthCheckOutput",
    "OrderStatusOutput",
    "QuoteEmailOutput",
    "SubmitQuoteOutput",
    "UploadFileOutput",

    # Domain models
    "DraftOrder",
    "DraftOrderLineItem",
    "OrderStatusCode",
    "PlatformOrder",
    "StatusResolution",
    "QuoteRecord",
    "QuoteStatus",
    "FileRecord",
    "PlatformFile",
]
