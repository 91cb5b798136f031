"""
Order status resolution.

A quote's lifecycle is not stored anywhere as a single field. It is derived
from the draft order, the real order created when the draft was completed (if
one can be found) and the status custom attribute staff write when quoting.
"""

from typing import List, Mapping, Optional, Tuple

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import ValidationError as PydanticValidationError

from quote_service.dal import OrderSearcher
from quote_service.handlers.utils.errors import BaseServiceError
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.models.draft_order import (
    ATTR_STATUS,
    STATUS_FULFILLED_LABEL,
    STATUS_PAID_LABEL,
    STATUS_QUOTED_LABEL,
    DraftOrder,
)
from quote_service.models.order_status import (
    FULFILLED,
    FinancialStatus,
    MatchedBy,
    OrderStatusCode,
    PlatformOrder,
    StatusResolution,
)

AMOUNT_TOLERANCE = 0.01
ORDER_SEARCH_SIZE = 5


def _to_float(value: Optional[str]) -> float:
    try:
        return float(value or 0)
    except ValueError:
        return 0.0


def resolve_from_order(order: PlatformOrder) -> Optional[StatusResolution]:
    """Derive the status from a real order, or None if its financial status is not decisive."""
    financial_status = order.financial_status

    if financial_status == FinancialStatus.PAID.value:
        paid_at = order.processed_at or order.updated_at
        if order.fulfillment_status == FULFILLED:
            return StatusResolution(
                status_code=OrderStatusCode.FULFILLED,
                paid_at=paid_at,
                fulfilled_at=order.fulfillments[0].created_at if order.fulfillments else None,
                fulfillments=order.fulfillments,
            )
        return StatusResolution(status_code=OrderStatusCode.PAID, paid_at=paid_at)

    if financial_status == FinancialStatus.PARTIALLY_PAID.value:
        return StatusResolution(
            status_code=OrderStatusCode.PARTIALLY_PAID,
            paid_at=order.processed_at or order.updated_at,
        )

    if financial_status == FinancialStatus.PENDING.value:
        return StatusResolution(status_code=OrderStatusCode.PENDING_PAYMENT)

    return None


def resolve_from_draft(custom_attributes: Mapping[str, str], total_price: Optional[str]) -> StatusResolution:
    """Derive the status from the draft's status attribute and total price."""
    custom_status = custom_attributes.get(ATTR_STATUS)
    if custom_status == STATUS_PAID_LABEL:
        return StatusResolution(status_code=OrderStatusCode.PAID)
    if custom_status == STATUS_FULFILLED_LABEL:
        return StatusResolution(status_code=OrderStatusCode.FULFILLED)
    if custom_status == STATUS_QUOTED_LABEL or _to_float(total_price) > 0:
        return StatusResolution(status_code=OrderStatusCode.QUOTED)
    return StatusResolution(status_code=OrderStatusCode.PENDING)


def resolve_status(
    custom_attributes: Mapping[str, str],
    total_price: Optional[str],
    real_order: Optional[PlatformOrder] = None,
) -> StatusResolution:
    """
    Resolve the display status of a quote.

    Args:
        custom_attributes: Custom attributes of the draft's first line item
        total_price: Draft total price as a decimal string
        real_order: Real order matched to a completed draft, if any

    Returns:
        StatusResolution with the status code and payment/fulfillment details
    """
    if real_order:
        resolution = resolve_from_order(real_order)
        if resolution:
            return resolution
    return resolve_from_draft(custom_attributes, total_price)


def build_order_queries(draft: DraftOrder) -> List[str]:
    """Search strings tried in order when looking for the real order of a draft."""
    candidates = []
    if draft.name:
        candidates.append(f"name:{draft.name.replace('#', '')}")
        candidates.append(f'name:{draft.name}')
    if draft.email:
        candidates.append(f'email:{draft.email} AND total_price:{draft.total_price}')
        candidates.append(f'email:{draft.email}')

    queries: List[str] = []
    for candidate in candidates:
        if candidate not in queries:
            queries.append(candidate)
    return queries


def match_order(draft: DraftOrder, orders: List[PlatformOrder]) -> Tuple[Optional[PlatformOrder], Optional[MatchedBy]]:
    """Pick the first order matching the draft by name, or by email and amount."""
    draft_name = draft.name.replace('#', '')
    draft_email = (draft.email or '').lower()
    draft_total = draft.total_price_value

    for order in orders:
        if draft_name and order.name.replace('#', '') == draft_name:
            return order, MatchedBy.NAME
        if (
            draft_email
            and (order.email or '').lower() == draft_email
            and abs(order.total_price_value - draft_total) < AMOUNT_TOLERANCE
        ):
            return order, MatchedBy.EMAIL_AMOUNT
    return None, None


class StatusResolver:
    """Resolves draft order status, finding the real order of completed drafts."""

    def __init__(self, order_searcher: OrderSearcher) -> None:
        self.order_searcher = order_searcher

    @tracer.capture_method
    def find_real_order(self, draft: DraftOrder) -> Tuple[Optional[PlatformOrder], Optional[MatchedBy]]:
        """
        Search the order list for the order created from a completed draft.

        Queries are tried in sequence and the first non-empty result set is the only
        one inspected. Lookup failures are logged and treated as no match.
        """
        try:
            for query in build_order_queries(draft):
                orders = self.order_searcher.search_orders(query, first=ORDER_SEARCH_SIZE)
                if not orders:
                    continue
                order, matched_by = match_order(draft, orders)
                logger.info('Order search returned results', extra={
                    'query': query,
                    'result_count': len(orders),
                    'matched_order_id': order.id if order else None,
                    'matched_by': matched_by.value if matched_by else None,
                })
                return order, matched_by
        except (BaseServiceError, PydanticValidationError, KeyError) as exc:
            logger.warning('Real order lookup failed, using draft order status', extra={
                'draft_order_id': draft.id,
                'error': str(exc),
            })
            metrics.add_metric(name='OrderMatchFailed', unit=MetricUnit.Count, value=1)
        return None, None

    @tracer.capture_method
    def resolve(self, draft: DraftOrder) -> Tuple[StatusResolution, Optional[PlatformOrder], Optional[MatchedBy]]:
        real_order, matched_by = (None, None)
        if draft.is_completed:
            real_order, matched_by = self.find_real_order(draft)

        resolution = resolve_status(draft.attributes, draft.total_price, real_order)
        metrics.add_metric(name='StatusResolved', unit=MetricUnit.Count, value=1)
        tracer.put_annotation('status_code', resolution.status_code.value)
        return resolution, real_order, matched_by
