"""
Draft order domain model.

A draft order carries a quote in the custom attributes of its first line item.
The attribute keys are the ones shown to store staff in the admin, so they are
kept in Chinese.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Attribute keys written when a quote is submitted
ATTR_MATERIAL = '材料'
ATTR_COLOR = '颜色'
ATTR_PRECISION = '精度'
ATTR_FILE = '文件'
ATTR_FILE_ID = '文件ID'
ATTR_QUOTE_ID = '询价单号'
ATTR_PLATFORM_FILE_ID = 'Shopify文件ID'

# Attribute keys written when staff set a price
ATTR_STATUS = '状态'
ATTR_QUOTED_AMOUNT = '报价金额'
ATTR_QUOTED_AT = '报价时间'
ATTR_NOTE = '备注'

# Attribute keys honoured when reading older drafts
ATTR_FILE_NAME = '文件名'
ATTR_QUANTITY = '数量'
ATTR_MATERIAL_LEGACY = '材质'
ATTR_FILE_ID_LEGACY = '_fileId'
ATTR_FILE_CDN_URL = '_fileCdnUrl'

STATUS_PENDING_LABEL = '待报价'
STATUS_QUOTED_LABEL = '已报价'
STATUS_PAID_LABEL = '已付款'
STATUS_FULFILLED_LABEL = '已发货'

COMPLETED_STATUS = 'COMPLETED'

LIST_STATUS_PENDING = 'pending'
LIST_STATUS_QUOTED = 'quoted'


class CustomAttribute(BaseModel):
    key: str
    value: Optional[str] = None


class DraftOrderLineItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    title: str = ''
    quantity: int = 1
    original_unit_price: Optional[str] = None
    custom_attributes: List[CustomAttribute] = []

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'DraftOrderLineItem':
        return cls(
            id=node.get('id'),
            title=node.get('title') or '',
            quantity=node.get('quantity') or 1,
            original_unit_price=node.get('originalUnitPrice'),
            custom_attributes=[
                CustomAttribute(key=attr['key'], value=attr.get('value'))
                for attr in node.get('customAttributes') or []
            ],
        )


class DraftOrder(BaseModel):
    """Draft order as returned by the Admin API, flattened from its GraphQL shape."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Annotated[str, Field(
        description='Draft order global id',
        examples=['gid://shopify/DraftOrder/123456789']
    )]

    name: Annotated[str, Field(
        description='Draft order name',
        examples=['#D1001']
    )] = ''

    email: Optional[str] = None
    note: Optional[str] = None
    invoice_url: Optional[str] = None
    total_price: str = '0.00'
    subtotal_price: Optional[str] = None
    total_tax: Optional[str] = None
    status: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    line_items: List[DraftOrderLineItem] = []

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'DraftOrder':
        line_items = node.get('lineItems') or {}
        return cls(
            id=node['id'],
            name=node.get('name') or '',
            email=node.get('email'),
            note=node.get('note2'),
            invoice_url=node.get('invoiceUrl'),
            total_price=node.get('totalPrice') or '0.00',
            subtotal_price=node.get('subtotalPrice'),
            total_tax=node.get('totalTax'),
            status=node.get('status'),
            completed_at=node.get('completedAt'),
            created_at=node.get('createdAt'),
            updated_at=node.get('updatedAt'),
            line_items=[DraftOrderLineItem.from_node(edge['node']) for edge in line_items.get('edges') or []],
        )

    @property
    def first_line_item(self) -> Optional[DraftOrderLineItem]:
        return self.line_items[0] if self.line_items else None

    @property
    def attributes(self) -> Dict[str, str]:
        """Custom attributes of the first line item as a mapping."""
        if not self.first_line_item:
            return {}
        return {attr.key: attr.value or '' for attr in self.first_line_item.custom_attributes}

    def attribute(self, *keys: str) -> str:
        """Return the first non-empty attribute among ``keys``."""
        attributes = self.attributes
        for key in keys:
            if attributes.get(key):
                return attributes[key]
        return ''

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED_STATUS

    @property
    def total_price_value(self) -> float:
        try:
            return float(self.total_price or 0)
        except ValueError:
            return 0.0

    @property
    def list_status(self) -> str:
        """Coarse status used by the admin list: quoted once a price was set."""
        return LIST_STATUS_QUOTED if self.attributes.get(ATTR_STATUS) == STATUS_QUOTED_LABEL else LIST_STATUS_PENDING
