"""
Business Logic Layer Module.

Services coordinating the handlers with the Admin API data access layer:

- QuoteService: quote records and their delete mode
- DraftOrderService: quote submission, pricing, completion and order status
- StatusResolver: derived customer facing status of a draft order
- FileService: staged uploads, downloads and uploaded file records
- NotificationService: quote notification emails
"""

from quote_service.logic.draft_order_service import DraftOrderService
from quote_service.logic.file_service import FileService
from quote_service.logic.notification_service import NotificationService
from quote_service.logic.quote_service import QuoteService
from quote_service.logic.status_resolver import StatusResolver, resolve_status

__all__ = [
    "DraftOrderService",
    "FileService",
    "NotificationService",
    "QuoteService",
    "StatusResolver",
    "resolve_status",
]
