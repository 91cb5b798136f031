"""
Business Logic Layer for draft order quotes.

Customers submit quotes as draft orders; staff set a price through custom
attributes, send the invoice and complete the draft; customers poll the
derived order status.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import ValidationError as PydanticValidationError

from quote_service.dal import BaseDraftOrderHandler
from quote_service.handlers.utils.errors import (
    BaseServiceError,
    BusinessLogicError,
    ErrorContext,
    ResourceNotFoundError,
)
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.logic.file_service import FileService
from quote_service.logic.status_resolver import StatusResolver
from quote_service.models import draft_order as attrs
from quote_service.models.draft_order import DraftOrder, DraftOrderLineItem
from quote_service.models.input import SetQuotePriceRequest, SubmitQuoteRequest, UploadFileRequest
from quote_service.models.output import OrderInfoOutput, OrderStatusOutput, SubmitQuoteOutput
from quote_service.models.uploaded_file import generate_file_id

DRAFT_ORDER_GID_PREFIX = 'gid://shopify/DraftOrder/'
ALREADY_PAID_MESSAGE = 'invoice has already been paid'
EXCLUDED_ATTRIBUTE_KEYS = ('fileData', 'file_data')
MAX_ATTRIBUTE_LENGTH = 1000
PLACEHOLDER_PRICE = '0.00'
LIST_STATUS_ALL = 'all'


class DraftOrderNotFoundError(ResourceNotFoundError):
    """Raised when a draft order cannot be found by id or name."""

    def __init__(self, draft_order_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="DraftOrder", resource_id=draft_order_id, context=context)


def generate_quote_id() -> str:
    return f'Q{int(time.time() * 1000)}'


def _line_item_output(item: DraftOrderLineItem) -> Dict[str, Any]:
    return item.model_dump(by_alias=True)


def format_draft_summary(draft: DraftOrder) -> Dict[str, Any]:
    return {
        'id': draft.id,
        'name': draft.name,
        'email': draft.email,
        'totalPrice': draft.total_price,
        'status': draft.status,
        'invoiceUrl': draft.invoice_url,
        'completedAt': draft.completed_at,
    }


def format_draft_list_item(draft: DraftOrder) -> Dict[str, Any]:
    return {
        'id': draft.id,
        'name': draft.name,
        'email': draft.email,
        'status': draft.list_status,
        'totalPrice': draft.total_price,
        'createdAt': draft.created_at,
        'updatedAt': draft.updated_at,
        'invoiceUrl': draft.invoice_url,
        'fileId': draft.attribute(attrs.ATTR_FILE_ID, attrs.ATTR_FILE_ID_LEGACY) or None,
        'shopifyFileId': draft.attribute(attrs.ATTR_PLATFORM_FILE_ID) or None,
        'note': draft.note,
        'lineItems': [_line_item_output(item) for item in draft.line_items],
    }


def format_draft_detail(draft: DraftOrder) -> Dict[str, Any]:
    """Reshape a draft order into the customer facing quote detail."""
    line_item = draft.first_line_item
    status = draft.attribute(attrs.ATTR_STATUS)
    quantity = draft.attribute(attrs.ATTR_QUANTITY)
    quoted_amount = draft.attribute(attrs.ATTR_QUOTED_AMOUNT)
    unit_price = line_item.original_unit_price if line_item else None

    try:
        display_quantity = int(quantity)
    except ValueError:
        display_quantity = line_item.quantity if line_item else 1

    return {
        'id': draft.id,
        'name': draft.name,
        'email': draft.email,
        'invoiceUrl': draft.invoice_url,
        'totalPrice': draft.total_price,
        'status': status or attrs.STATUS_PENDING_LABEL,
        'isPending': (status or attrs.STATUS_PENDING_LABEL) == attrs.STATUS_PENDING_LABEL,
        'isQuoted': status == attrs.STATUS_QUOTED_LABEL,
        'createdAt': draft.created_at,
        'updatedAt': draft.updated_at,
        'product': {
            'title': line_item.title if line_item else '',
            'quantity': display_quantity,
            'price': unit_price or PLACEHOLDER_PRICE,
            'quotedAmount': quoted_amount,
        },
        'file': {
            'name': draft.attribute(attrs.ATTR_FILE_NAME, attrs.ATTR_FILE),
            'id': draft.attribute(attrs.ATTR_FILE_ID, attrs.ATTR_FILE_ID_LEGACY),
            'shopifyFileId': draft.attribute(attrs.ATTR_PLATFORM_FILE_ID),
            'url': draft.attribute(attrs.ATTR_FILE_CDN_URL),
        },
        'customization': {
            'quantity': quantity,
            'material': draft.attribute(attrs.ATTR_MATERIAL, attrs.ATTR_MATERIAL_LEGACY),
            'color': draft.attribute(attrs.ATTR_COLOR),
            'precision': draft.attribute(attrs.ATTR_PRECISION),
        },
        'quote': {
            'id': draft.attribute(attrs.ATTR_QUOTE_ID),
            'amount': unit_price or PLACEHOLDER_PRICE,
            'displayAmount': quoted_amount,
            'note': draft.attribute(attrs.ATTR_NOTE),
            'quotedAt': draft.attribute(attrs.ATTR_QUOTED_AT),
        },
        'customer': {'email': draft.email, 'name': '客户'} if draft.email else None,
        'lineItems': [_line_item_output(item) for item in draft.line_items],
    }


def extra_custom_attributes(line_items: Optional[List[Dict[str, Any]]], reserved: List[str]) -> List[Dict[str, str]]:
    """Custom attributes of the client's first line item that are safe to copy."""
    if not line_items:
        return []
    raw = line_items[0].get('customAttributes') or line_items[0].get('properties') or []
    if isinstance(raw, dict):
        raw = [{'key': key, 'value': value} for key, value in raw.items()]

    copied = []
    for attribute in raw:
        key = str(attribute.get('key') or '')
        value = attribute.get('value')
        if not key or key in EXCLUDED_ATTRIBUTE_KEYS or key in reserved or value is None:
            continue
        value = str(value)
        if len(value) >= MAX_ATTRIBUTE_LENGTH:
            continue
        copied.append({'key': key, 'value': value})
    return copied


class DraftOrderService:
    """Business logic service for draft order quotes."""

    def __init__(
        self,
        draft_order_handler: BaseDraftOrderHandler,
        file_service: Optional[FileService] = None,
        status_resolver: Optional[StatusResolver] = None,
    ):
        """
        Initialize draft order service.

        Args:
            draft_order_handler: Draft order data access handler
            file_service: File service used to store data URI uploads on submit
            status_resolver: Resolver for customer facing order status
        """
        self.draft_orders = draft_order_handler
        self.file_service = file_service
        self.status_resolver = status_resolver or StatusResolver(draft_order_handler)

    def _get_or_raise(self, draft_order_id: str, context: Optional[ErrorContext]) -> DraftOrder:
        draft = self.draft_orders.get_draft_order(draft_order_id)
        if not draft:
            raise DraftOrderNotFoundError(draft_order_id, context=context)
        return draft

    def _store_submitted_file(self, request: SubmitQuoteRequest, file_id: str) -> Optional[str]:
        if not self.file_service or not request.file_url or not request.file_url.startswith('data:'):
            return None
        try:
            upload = self.file_service.upload_file(
                UploadFileRequest(file_data=request.file_url, file_name=request.file_name, file_type=request.file_type),
                file_id=file_id,
            )
            return upload.shopify_file_id
        except (BaseServiceError, PydanticValidationError) as exc:
            logger.warning("File upload failed, submitting quote without platform file", extra={
                "file_id": file_id,
                "error": str(exc),
            })
            metrics.add_metric(name="SubmitFileUploadFailed", unit=MetricUnit.Count, value=1)
            return None

    @tracer.capture_method
    def submit_quote(self, request: SubmitQuoteRequest, context: Optional[ErrorContext] = None) -> SubmitQuoteOutput:
        """
        Submit a customer quote request as a draft order.

        Args:
            request: Validated submit request
            context: Error context for tracing

        Returns:
            SubmitQuoteOutput with the quote and draft order identifiers

        Raises:
            BusinessLogicError: If the platform rejects the draft order
            ExternalServiceError: If the platform cannot be reached
        """
        quote_id = generate_quote_id()
        file_id = generate_file_id()
        shopify_file_id = self._store_submitted_file(request, file_id)

        custom_attributes = [
            {'key': attrs.ATTR_MATERIAL, 'value': request.material},
            {'key': attrs.ATTR_COLOR, 'value': request.color},
            {'key': attrs.ATTR_PRECISION, 'value': request.precision},
            {'key': attrs.ATTR_FILE, 'value': request.file_name},
            {'key': attrs.ATTR_FILE_ID, 'value': file_id},
            {'key': attrs.ATTR_QUOTE_ID, 'value': quote_id},
        ]
        if shopify_file_id:
            custom_attributes.append({'key': attrs.ATTR_PLATFORM_FILE_ID, 'value': shopify_file_id})
        custom_attributes.extend(
            extra_custom_attributes(request.line_items, reserved=[attr['key'] for attr in custom_attributes])
        )

        draft_input = {
            'email': request.customer_email,
            'taxExempt': True,
            'lineItems': [{
                'title': f'3D打印服务 - {request.file_name}',
                'quantity': request.quantity,
                'originalUnitPrice': PLACEHOLDER_PRICE,
                'customAttributes': custom_attributes,
            }],
            'note': (
                f"询价单号: {quote_id}\n"
                f"客户: {request.customer_name or '未提供'}\n"
                f"文件: {request.file_name}\n"
                f"文件数据: {'已存储' if request.file_url else '未提供'}"
            ),
        }

        draft = self.draft_orders.create_draft_order(draft_input)

        metrics.add_metric(name="DraftOrderSubmitted", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("quote_id", quote_id)
        logger.info("Quote submitted", extra={
            "quote_id": quote_id,
            "draft_order_id": draft.id,
            "file_id": file_id,
            "has_platform_file": bool(shopify_file_id),
        })

        return SubmitQuoteOutput(
            quote_id=quote_id,
            draft_order_id=draft.id,
            draft_order_name=draft.name,
            invoice_url=draft.invoice_url,
            customer_email=request.customer_email,
            file_name=request.file_name,
            file_id=file_id,
            shopify_file_id=shopify_file_id,
        )

    @tracer.capture_method
    def list_draft_orders(self, status: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """List draft orders with coarse quote status and counts."""
        drafts = self.draft_orders.search_draft_orders(first=limit)
        items = [format_draft_list_item(draft) for draft in drafts]

        filtered = items
        if status and status != LIST_STATUS_ALL:
            filtered = [item for item in items if item['status'] == status]

        return {
            'success': True,
            'draftOrders': filtered,
            'total': len(items),
            'pending': sum(1 for item in items if item['status'] == attrs.LIST_STATUS_PENDING),
            'quoted': sum(1 for item in items if item['status'] == attrs.LIST_STATUS_QUOTED),
        }

    @tracer.capture_method
    def get_draft_order_detail(self, identifier: str, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Fetch a draft order by global id or by name (``#D1001`` or ``D1001``).

        Raises:
            DraftOrderNotFoundError: If nothing matches
        """
        if identifier.startswith(DRAFT_ORDER_GID_PREFIX):
            draft = self.draft_orders.get_draft_order(identifier)
        else:
            name = identifier if identifier.startswith('#') else f'#{identifier}'
            matches = self.draft_orders.search_draft_orders(query=f'name:{name}', first=1)
            draft = matches[0] if matches else None

        if not draft:
            raise DraftOrderNotFoundError(identifier, context=context)
        return {'success': True, 'draftOrder': format_draft_detail(draft)}

    @tracer.capture_method
    def set_quote_price(self, request: SetQuotePriceRequest, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Record the staff quote on a draft order.

        The status and amount attributes of the first line item are replaced and its
        unit price set to the quoted amount; other line items are kept unchanged.
        """
        draft = self._get_or_raise(request.draft_order_id, context)
        amount = f'{request.amount:.2f}'
        quoted_at = datetime.now(timezone.utc).isoformat()

        replaced = {
            attrs.ATTR_STATUS: attrs.STATUS_QUOTED_LABEL,
            attrs.ATTR_QUOTED_AMOUNT: amount,
            attrs.ATTR_QUOTED_AT: quoted_at,
        }
        if request.note is not None:
            replaced[attrs.ATTR_NOTE] = request.note

        line_items = []
        for index, item in enumerate(draft.line_items):
            custom_attributes = [
                {'key': attr.key, 'value': attr.value or ''} for attr in item.custom_attributes
            ]
            unit_price = item.original_unit_price or PLACEHOLDER_PRICE
            if index == 0:
                custom_attributes = [attr for attr in custom_attributes if attr['key'] not in replaced]
                custom_attributes.extend({'key': key, 'value': value} for key, value in replaced.items())
                unit_price = amount
            line_items.append({
                'title': item.title,
                'quantity': item.quantity,
                'originalUnitPrice': unit_price,
                'customAttributes': custom_attributes,
            })

        updated = self.draft_orders.update_draft_order(draft.id, {'lineItems': line_items})

        metrics.add_metric(name="QuotePriceSet", unit=MetricUnit.Count, value=1)
        logger.info("Quote price set", extra={"draft_order_id": draft.id, "amount": amount})
        return {'success': True, 'draftOrder': format_draft_detail(updated)}

    @tracer.capture_method
    def send_invoice(self, draft_order_id: str, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        invoice = self.draft_orders.send_invoice(draft_order_id)
        metrics.add_metric(name="InvoiceSent", unit=MetricUnit.Count, value=1)
        logger.info("Invoice sent", extra={"draft_order_id": draft_order_id})
        return {'success': True, 'draftOrder': invoice}

    @tracer.capture_method
    def complete_draft_order(self, draft_order_id: str, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Complete a draft order with payment pending.

        Already completed drafts, and drafts whose invoice was paid meanwhile, return
        their current state instead of failing.

        Raises:
            DraftOrderNotFoundError: If the draft does not exist
            BusinessLogicError: If the platform rejects the completion
        """
        draft = self._get_or_raise(draft_order_id, context)
        if draft.is_completed or draft.completed_at:
            logger.info("Draft order already completed", extra={"draft_order_id": draft_order_id})
            return {'success': True, 'alreadyCompleted': True, 'draftOrder': format_draft_summary(draft)}

        payload = self.draft_orders.complete_draft_order(draft_order_id, payment_pending=True)
        user_errors = payload.get('userErrors') or []
        if user_errors:
            messages = [error.get('message', '') for error in user_errors]
            if any(ALREADY_PAID_MESSAGE in message for message in messages):
                logger.info("Invoice already paid, returning current draft state", extra={
                    "draft_order_id": draft_order_id,
                })
                current = self._get_or_raise(draft_order_id, context)
                return {'success': True, 'alreadyCompleted': True, 'draftOrder': format_draft_summary(current)}

            raise BusinessLogicError(
                message=f"Draft order completion failed: {', '.join(messages)}",
                error_code="DRAFT_ORDER_COMPLETE_FAILED",
                user_errors=user_errors,
                context=context,
            )

        completed = DraftOrder.from_node(payload['draftOrder'])
        metrics.add_metric(name="DraftOrderCompleted", unit=MetricUnit.Count, value=1)
        logger.info("Draft order completed", extra={"draft_order_id": draft_order_id, "status": completed.status})
        return {'success': True, 'alreadyCompleted': False, 'draftOrder': format_draft_summary(completed)}

    @tracer.capture_method
    def delete_draft_order(self, draft_order_id: str, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        deleted_id = self.draft_orders.delete_draft_order(draft_order_id)
        metrics.add_metric(name="DraftOrderDeleted", unit=MetricUnit.Count, value=1)
        logger.info("Draft order deleted", extra={"draft_order_id": draft_order_id})
        return {'success': True, 'deletedId': deleted_id}

    @tracer.capture_method
    def get_order_status(self, draft_order_id: str, context: Optional[ErrorContext] = None) -> OrderStatusOutput:
        """
        Resolve the customer facing status of a draft order.

        Raises:
            DraftOrderNotFoundError: If the draft does not exist
        """
        draft = self._get_or_raise(draft_order_id, context)
        resolution, real_order, matched_by = self.status_resolver.resolve(draft)

        logger.info("Order status resolved", extra={
            "draft_order_id": draft.id,
            "is_completed": draft.is_completed,
            "status_code": resolution.status_code.value,
            "financial_status": real_order.financial_status if real_order else None,
            "matched_by": matched_by.value if matched_by else None,
        })

        return OrderStatusOutput(
            order_id=draft.id,
            order_name=draft.name,
            status=resolution.status,
            status_code=resolution.status_code.value,
            total_price=draft.total_price,
            paid_at=resolution.paid_at,
            fulfilled_at=resolution.fulfilled_at,
            fulfillments=resolution.fulfillments,
            invoice_url=draft.invoice_url,
            is_completed=draft.is_completed,
            matched_by=matched_by.value if matched_by else None,
            order_info=OrderInfoOutput(
                id=real_order.id,
                name=real_order.name,
                financial_status=real_order.financial_status,
                fulfillment_status=real_order.fulfillment_status,
                processed_at=real_order.processed_at,
            ) if real_order else None,
        )
