"""
Data Access Layer (DAL) for the quote service.

All state lives in the commerce platform. This module defines the interfaces
the business logic layer depends on; the Admin API implementations live in
the sibling modules.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from quote_service.models.draft_order import DraftOrder
from quote_service.models.order_status import PlatformOrder


@runtime_checkable
class OrderSearcher(Protocol):
    """Anything that can search real orders, used by the status resolver."""

    def search_orders(self, query: str, first: int = 5) -> List[PlatformOrder]:
        ...


class BaseMetaobjectHandler(ABC):
    """Abstract base class for metaobject storage."""

    @abstractmethod
    def list_metaobjects(self, metaobject_type: str, page_size: int = 250) -> List[Dict[str, Any]]:
        """List every metaobject of a type."""
        pass

    @abstractmethod
    def create_metaobject(self, metaobject_type: str, handle: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        """Create a metaobject."""
        pass

    @abstractmethod
    def update_metaobject(self, metaobject_id: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        """Update fields of a metaobject."""
        pass

    @abstractmethod
    def delete_metaobject(self, metaobject_id: str) -> Optional[str]:
        """Delete a metaobject, returning the deleted id."""
        pass

    @abstractmethod
    def get_by_handle(self, metaobject_type: str, handle: str) -> Optional[Dict[str, Any]]:
        """Find a metaobject by handle."""
        pass


class BaseDraftOrderHandler(ABC):
    """Abstract base class for draft order storage."""

    @abstractmethod
    def get_draft_order(self, draft_order_id: str) -> Optional[DraftOrder]:
        pass

    @abstractmethod
    def search_draft_orders(self, query: Optional[str] = None, first: int = 50) -> List[DraftOrder]:
        pass

    @abstractmethod
    def create_draft_order(self, draft_input: Dict[str, Any]) -> DraftOrder:
        pass

    @abstractmethod
    def update_draft_order(self, draft_order_id: str, draft_input: Dict[str, Any]) -> DraftOrder:
        pass

    @abstractmethod
    def complete_draft_order(self, draft_order_id: str, payment_pending: bool = True) -> Dict[str, Any]:
        pass

    @abstractmethod
    def send_invoice(self, draft_order_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def delete_draft_order(self, draft_order_id: str) -> Optional[str]:
        pass

    @abstractmethod
    def search_orders(self, query: str, first: int = 5) -> List[PlatformOrder]:
        pass


__all__ = [
    'OrderSearcher',
    'BaseMetaobjectHandler',
    'BaseDraftOrderHandler',
]
