"""
Custom Fabrication Quote Service Module.

This package implements the quote workflow of the storefront on top of the
commerce platform's Admin GraphQL API, following the three-layer architecture
pattern from the aws-lambda-handler-cookbook:

- handlers: API Gateway entry points, one resolver per resource
- logic: Quote, draft order, file and notification workflows
- dal: Admin API client and data access handlers
- models: Pydantic request, response and domain models

There is no local database; quotes, draft orders and uploaded file records all
live in the platform.
"""

__version__ = "1.0.0"
__description__ = "Custom fabrication quote service on the Shopify Admin API"

from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.models.draft_order import DraftOrder
from quote_service.models.order_status import OrderStatusCode
from quote_service.models.quote import QuoteRecord, QuoteStatus

__all__ = [
    "DraftOrder",
    "OrderStatusCode",
    "QuoteRecord",
    "QuoteStatus",
    "logger",
    "tracer",
    "metrics",
]
