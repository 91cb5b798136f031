"""
Metaobject data access.

Quote records and uploaded file records are metaobjects. This handler wraps
the list/create/update/delete operations and the handle lookup.
"""

from typing import Any, Dict, List, Optional

from quote_service.dal import BaseMetaobjectHandler
from quote_service.dal import queries
from quote_service.dal.shopify_client import ShopifyAdminClient
from quote_service.handlers.utils.errors import ExternalServiceError
from quote_service.handlers.utils.observability import logger, tracer

# Admin API maximum for `first`
PAGE_SIZE = 250
MAX_PAGES = 40


class MetaobjectHandler(BaseMetaobjectHandler):
    """Admin API implementation of metaobject storage."""

    def __init__(self, client: ShopifyAdminClient) -> None:
        self.client = client

    @tracer.capture_method
    def list_metaobjects(self, metaobject_type: str, page_size: int = PAGE_SIZE) -> List[Dict[str, Any]]:
        """Read every metaobject of a type, following the ``pageInfo`` cursor."""
        nodes: List[Dict[str, Any]] = []
        cursor = None
        for _ in range(MAX_PAGES):
            data = self.client.execute(queries.LIST_METAOBJECTS, {
                'type': metaobject_type,
                'first': page_size,
                'after': cursor,
            })
            connection = data.get('metaobjects') or {}
            nodes.extend(connection.get('nodes') or [])
            page_info = connection.get('pageInfo') or {}
            cursor = page_info.get('endCursor')
            if not page_info.get('hasNextPage') or not cursor:
                break
        else:
            logger.warning('Metaobject listing stopped at page limit', extra={
                'type': metaobject_type,
                'pages': MAX_PAGES,
                'count': len(nodes),
            })

        logger.debug('Metaobjects listed', extra={'type': metaobject_type, 'count': len(nodes)})
        return nodes

    @tracer.capture_method
    def create_metaobject(self, metaobject_type: str, handle: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        data = self.client.execute(queries.CREATE_METAOBJECT, {
            'metaobject': {'type': metaobject_type, 'handle': handle, 'fields': fields},
        })
        payload = self.client.raise_for_user_errors(data.get('metaobjectCreate'), 'metaobjectCreate')
        return payload['metaobject']

    @tracer.capture_method
    def update_metaobject(self, metaobject_id: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        data = self.client.execute(queries.UPDATE_METAOBJECT, {
            'id': metaobject_id,
            'metaobject': {'fields': fields},
        })
        payload = self.client.raise_for_user_errors(data.get('metaobjectUpdate'), 'metaobjectUpdate')
        return payload['metaobject']

    @tracer.capture_method
    def delete_metaobject(self, metaobject_id: str) -> Optional[str]:
        data = self.client.execute(queries.DELETE_METAOBJECT, {'id': metaobject_id})
        payload = self.client.raise_for_user_errors(data.get('metaobjectDelete'), 'metaobjectDelete')
        return payload.get('deletedId')

    @tracer.capture_method
    def get_by_handle(self, metaobject_type: str, handle: str) -> Optional[Dict[str, Any]]:
        """
        Look up a metaobject by handle.

        The direct ``metaobjectByHandle`` query is tried first; if it fails or finds
        nothing, the records of the type are scanned for the handle.

        Returns:
            The metaobject node, or None if no record has the handle
        """
        try:
            data = self.client.execute(queries.METAOBJECT_BY_HANDLE, {
                'handle': {'type': metaobject_type, 'handle': handle},
            })
            node = data.get('metaobjectByHandle')
            if node:
                return node
        except ExternalServiceError as exc:
            logger.warning('metaobjectByHandle lookup failed, scanning records', extra={
                'handle': handle,
                'error': exc.message,
            })

        for node in self.list_metaobjects(metaobject_type):
            if node.get('handle') == handle:
                logger.info('Metaobject found by scan', extra={'handle': handle})
                return node

        logger.info('Metaobject not found', extra={'type': metaobject_type, 'handle': handle})
        return None
