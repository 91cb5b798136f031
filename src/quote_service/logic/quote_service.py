"""
Business Logic Layer for quote records.

Quote records are metaobjects of the configured quote type. This service
creates, lists, patches and deletes them, applying the configured delete mode.
"""

from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit

from quote_service.dal import BaseMetaobjectHandler
from quote_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorContext,
    ResourceNotFoundError,
)
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.models.input import CreateQuoteRequest, UpdateQuoteRequest
from quote_service.models.quote import (
    QuoteRecord,
    QuoteStatus,
    classify_invoice_url,
    encode_author,
    generate_handle,
)

DELETE_MODE_SOFT = 'soft'
DELETE_MODE_HARD = 'hard'


class QuoteNotFoundError(ResourceNotFoundError):
    """Raised when no quote record has the requested handle."""

    def __init__(self, handle: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="Quote", resource_id=handle, context=context)


class QuoteService:
    """Business logic service for quote records."""

    def __init__(
        self,
        metaobject_handler: BaseMetaobjectHandler,
        quote_type: str = 'quote',
        hard_delete: bool = False,
    ):
        """
        Initialize quote service.

        Args:
            metaobject_handler: Metaobject data access handler
            quote_type: Metaobject type holding quote records
            hard_delete: Remove records on delete instead of marking them Deleted
        """
        self.metaobjects = metaobject_handler
        self.quote_type = quote_type
        self.hard_delete = hard_delete

    @property
    def delete_mode(self) -> str:
        return DELETE_MODE_HARD if self.hard_delete else DELETE_MODE_SOFT

    @tracer.capture_method
    def list_quotes(self, status: Optional[str] = None, context: Optional[ErrorContext] = None) -> List[QuoteRecord]:
        """
        List quote records, excluding soft-deleted ones.

        Args:
            status: Optional exact status filter
            context: Error context for tracing

        Returns:
            Active quote records
        """
        records = [QuoteRecord.from_metaobject(node) for node in self.metaobjects.list_metaobjects(self.quote_type)]
        active = [record for record in records if not record.is_deleted]
        if status:
            active = [record for record in active if record.status == status]

        logger.info("Quotes listed", extra={
            "total": len(records),
            "active": len(active),
            "status_filter": status,
        })
        return active

    @tracer.capture_method
    def create_quote(self, request: CreateQuoteRequest, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Create a quote record.

        Returns:
            The created metaobject node

        Raises:
            BusinessLogicError: If the platform rejects the record
        """
        invoice_url, file_data = classify_invoice_url(request.invoice_url)
        handle = generate_handle(request.email)
        fields = [
            {'key': 'text', 'value': request.text},
            {'key': 'author', 'value': encode_author(request.author, request.parameters)},
            {'key': 'email', 'value': request.email},
            {'key': 'status', 'value': request.status},
            {'key': 'price', 'value': request.price},
            {'key': 'invoice_url', 'value': invoice_url},
            {'key': 'file_data', 'value': file_data},
        ]

        metaobject = self.metaobjects.create_metaobject(self.quote_type, handle, fields)

        metrics.add_metric(name="QuoteCreated", unit=MetricUnit.Count, value=1)
        logger.info("Quote created", extra={
            "handle": metaobject.get('handle', handle),
            "has_file_data": bool(file_data),
            "has_parameters": bool(request.parameters),
        })
        return metaobject

    def _require_id(self, handle: str, context: Optional[ErrorContext]) -> str:
        node = self.metaobjects.get_by_handle(self.quote_type, handle)
        if not node:
            raise QuoteNotFoundError(handle, context=context)
        return node['id']

    @tracer.capture_method
    def update_quote(self, handle: str, request: UpdateQuoteRequest, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Patch status, price or note of a quote record.

        Raises:
            QuoteNotFoundError: If no record has the handle
        """
        metaobject_id = self._require_id(handle, context)
        metaobject = self.metaobjects.update_metaobject(metaobject_id, request.to_fields())

        metrics.add_metric(name="QuoteUpdated", unit=MetricUnit.Count, value=1)
        logger.info("Quote updated", extra={
            "handle": handle,
            "fields": [field['key'] for field in request.to_fields()],
        })
        return metaobject

    def _delete_record(self, metaobject_id: str) -> Optional[str]:
        if self.hard_delete:
            return self.metaobjects.delete_metaobject(metaobject_id)
        self.metaobjects.update_metaobject(metaobject_id, [{'key': 'status', 'value': QuoteStatus.DELETED.value}])
        return None

    @tracer.capture_method
    def delete_quote(self, handle: str, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Delete a quote record using the configured delete mode.

        Raises:
            QuoteNotFoundError: If no record has the handle
        """
        metaobject_id = self._require_id(handle, context)
        deleted_id = self._delete_record(metaobject_id)

        metrics.add_metric(name="QuoteDeleted", unit=MetricUnit.Count, value=1)
        logger.info("Quote deleted", extra={"handle": handle, "mode": self.delete_mode})

        result: Dict[str, Any] = {'success': True, 'handle': handle, 'mode': self.delete_mode}
        if deleted_id:
            result['deletedId'] = deleted_id
        return result

    @tracer.capture_method
    def delete_all_quotes(self, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Delete every quote record, continuing past individual failures.

        Returns:
            Totals and per-record outcome details
        """
        nodes = self.metaobjects.list_metaobjects(self.quote_type)
        details = []
        for node in nodes:
            try:
                self._delete_record(node['id'])
                details.append({'id': node['id'], 'handle': node.get('handle'), 'success': True})
            except BaseServiceError as exc:
                logger.warning("Failed to delete quote", extra={"id": node['id'], "error": exc.message})
                details.append({
                    'id': node['id'],
                    'handle': node.get('handle'),
                    'success': False,
                    'error': exc.user_message,
                })

        deleted = sum(1 for detail in details if detail['success'])
        failed = len(details) - deleted

        metrics.add_metric(name="QuotesPurged", unit=MetricUnit.Count, value=deleted)
        logger.info("All quotes deleted", extra={
            "total": len(nodes),
            "deleted": deleted,
            "failed": failed,
            "mode": self.delete_mode,
        })
        return {
            'success': failed == 0,
            'mode': self.delete_mode,
            'total': len(nodes),
            'deleted': deleted,
            'failed': failed,
            'details': details,
        }
