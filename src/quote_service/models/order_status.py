"""
Order status models used by the status resolver.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OrderStatusCode(str, Enum):
    """Machine status codes, each with a display label shown to customers."""

    PENDING = 'pending'
    QUOTED = 'quoted'
    PENDING_PAYMENT = 'pending_payment'
    PARTIALLY_PAID = 'partially_paid'
    PAID = 'paid'
    FULFILLED = 'fulfilled'

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    OrderStatusCode.PENDING: '待报价',
    OrderStatusCode.QUOTED: '已报价',
    OrderStatusCode.PENDING_PAYMENT: '待付款',
    OrderStatusCode.PARTIALLY_PAID: '部分付款',
    OrderStatusCode.PAID: '已付款',
    OrderStatusCode.FULFILLED: '已发货',
}


class FinancialStatus(str, Enum):
    PAID = 'PAID'
    PARTIALLY_PAID = 'PARTIALLY_PAID'
    PENDING = 'PENDING'


FULFILLED = 'FULFILLED'


class MatchedBy(str, Enum):
    """How a draft was linked to a real order."""

    NAME = 'name'
    EMAIL_AMOUNT = 'email_amount'


class TrackingInfo(BaseModel):
    number: Optional[str] = None
    url: Optional[str] = None
    company: Optional[str] = None


class Fulfillment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: Optional[str] = None
    created_at: Optional[str] = None
    tracking_info: List[TrackingInfo] = []


class PlatformOrder(BaseModel):
    """A real order created when a draft order is completed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ''
    email: Optional[str] = None
    total_price: str = '0.00'
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    processed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    fulfillments: List[Fulfillment] = []

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'PlatformOrder':
        fulfillments = node.get('fulfillments') or []
        # older API versions return a connection instead of a list
        if isinstance(fulfillments, dict):
            fulfillments = [edge['node'] for edge in fulfillments.get('edges') or []]
        return cls(
            id=node['id'],
            name=node.get('name') or '',
            email=node.get('email'),
            total_price=node.get('totalPrice') or '0.00',
            financial_status=node.get('displayFinancialStatus') or node.get('financialStatus'),
            fulfillment_status=node.get('displayFulfillmentStatus') or node.get('fulfillmentStatus'),
            processed_at=node.get('processedAt'),
            created_at=node.get('createdAt'),
            updated_at=node.get('updatedAt'),
            fulfillments=[
                Fulfillment(
                    id=item['id'],
                    status=item.get('status'),
                    created_at=item.get('createdAt'),
                    tracking_info=_tracking_list(item.get('trackingInfo')),
                )
                for item in fulfillments
            ],
        )

    @property
    def total_price_value(self) -> float:
        try:
            return float(self.total_price or 0)
        except ValueError:
            return 0.0


def _tracking_list(tracking: Any) -> List[TrackingInfo]:
    if not tracking:
        return []
    if isinstance(tracking, dict):
        tracking = [tracking]
    return [TrackingInfo(**item) for item in tracking]


class StatusResolution(BaseModel):
    """Outcome of resolving a draft order's status."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: OrderStatusCode = OrderStatusCode.PENDING
    paid_at: Optional[str] = None
    fulfilled_at: Optional[str] = None
    fulfillments: List[Fulfillment] = []

    @property
    def status(self) -> str:
        return self.status_code.label
