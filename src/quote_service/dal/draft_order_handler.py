"""
Draft order and order data access.
"""

from typing import Any, Dict, List, Optional

from quote_service.dal import BaseDraftOrderHandler
from quote_service.dal import queries
from quote_service.dal.shopify_client import ShopifyAdminClient
from quote_service.handlers.utils.observability import logger, tracer
from quote_service.models.draft_order import DraftOrder
from quote_service.models.order_status import PlatformOrder


class DraftOrderHandler(BaseDraftOrderHandler):
    """Admin API implementation of draft order storage."""

    def __init__(self, client: ShopifyAdminClient) -> None:
        self.client = client

    @tracer.capture_method
    def get_draft_order(self, draft_order_id: str) -> Optional[DraftOrder]:
        data = self.client.execute(queries.DRAFT_ORDER_BY_ID, {'id': draft_order_id})
        node = data.get('draftOrder')
        return DraftOrder.from_node(node) if node else None

    @tracer.capture_method
    def search_draft_orders(self, query: Optional[str] = None, first: int = 50) -> List[DraftOrder]:
        data = self.client.execute(queries.SEARCH_DRAFT_ORDERS, {'first': first, 'query': query})
        edges = (data.get('draftOrders') or {}).get('edges') or []
        return [DraftOrder.from_node(edge['node']) for edge in edges]

    @tracer.capture_method
    def create_draft_order(self, draft_input: Dict[str, Any]) -> DraftOrder:
        data = self.client.execute(queries.CREATE_DRAFT_ORDER, {'input': draft_input})
        payload = self.client.raise_for_user_errors(data.get('draftOrderCreate'), 'draftOrderCreate')
        draft_order = DraftOrder.from_node(payload['draftOrder'])
        logger.info('Draft order created', extra={'draft_order_id': draft_order.id, 'draft_order_name': draft_order.name})
        return draft_order

    @tracer.capture_method
    def update_draft_order(self, draft_order_id: str, draft_input: Dict[str, Any]) -> DraftOrder:
        data = self.client.execute(queries.UPDATE_DRAFT_ORDER, {'id': draft_order_id, 'input': draft_input})
        payload = self.client.raise_for_user_errors(data.get('draftOrderUpdate'), 'draftOrderUpdate')
        return DraftOrder.from_node(payload['draftOrder'])

    @tracer.capture_method
    def complete_draft_order(self, draft_order_id: str, payment_pending: bool = True) -> Dict[str, Any]:
        """Run ``draftOrderComplete`` and return the raw payload, user errors included."""
        data = self.client.execute(queries.COMPLETE_DRAFT_ORDER, {
            'id': draft_order_id,
            'paymentPending': payment_pending,
        })
        return data.get('draftOrderComplete') or {}

    @tracer.capture_method
    def send_invoice(self, draft_order_id: str) -> Dict[str, Any]:
        data = self.client.execute(queries.SEND_DRAFT_ORDER_INVOICE, {'id': draft_order_id})
        payload = self.client.raise_for_user_errors(data.get('draftOrderInvoiceSend'), 'draftOrderInvoiceSend')
        return payload.get('draftOrder') or {}

    @tracer.capture_method
    def delete_draft_order(self, draft_order_id: str) -> Optional[str]:
        data = self.client.execute(queries.DELETE_DRAFT_ORDER, {'input': {'id': draft_order_id}})
        payload = self.client.raise_for_user_errors(data.get('draftOrderDelete'), 'draftOrderDelete')
        return payload.get('deletedId')

    @tracer.capture_method
    def search_orders(self, query: str, first: int = 5) -> List[PlatformOrder]:
        data = self.client.execute(queries.SEARCH_ORDERS, {'first': first, 'query': query})
        edges = (data.get('orders') or {}).get('edges') or []
        return [PlatformOrder.from_node(edge['node']) for edge in edges]
