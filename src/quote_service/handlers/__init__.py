"""
AWS Lambda Handlers Module.

Each handler module builds its own API Gateway REST resolver and exposes a
``lambda_handler`` entry point:

- quotes_handler: quote record CRUD (metaobjects)
- draft_orders_handler: quote submission, staff pricing, invoices, order status
- files_handler: staged uploads, downloads and cleanup
- notifications_handler: quote notification emails
- health_handler: Admin API connectivity check

Shared CORS policy, security headers and error handlers come from
``handlers.utils.rest_api_resolver``; services are created lazily by
``handlers.dependencies``.
"""

from quote_service.handlers.utils.observability import logger, metrics, tracer

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
