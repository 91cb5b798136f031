"""
Lazily built service dependencies for the Lambda handlers.

Clients and services are created on first use and reused by warm containers.
The Admin API token is resolved on every call, so a token read from Secrets
Manager is refreshed once the parameters cache expires and the client and the
services built on it are rebuilt for the new token. Missing platform
configuration raises ConfigurationError on the request that needs it instead
of failing the import.
"""

from functools import lru_cache
from typing import Optional

from quote_service.dal.draft_order_handler import DraftOrderHandler
from quote_service.dal.file_handler import FileStorageHandler
from quote_service.dal.metaobject_handler import MetaobjectHandler
from quote_service.dal.shopify_client import ShopifyAdminClient
from quote_service.handlers.models.env_vars import get_handler_env_vars
from quote_service.handlers.utils.errors import ConfigurationError
from quote_service.handlers.utils.observability import logger
from quote_service.handlers.utils.secrets import (
    missing_platform_settings,
    resolve_access_token,
    resolve_sendgrid_key,
)
from quote_service.logic.draft_order_service import DraftOrderService
from quote_service.logic.file_service import FileService
from quote_service.logic.notification_service import NotificationService
from quote_service.logic.quote_service import QuoteService


def get_shopify_client() -> ShopifyAdminClient:
    env_vars = get_handler_env_vars()
    missing = missing_platform_settings(env_vars)
    if missing:
        logger.error("Platform configuration missing", extra={"missing": missing})
        raise ConfigurationError(message="Missing Shopify configuration", missing=missing)

    return _build_shopify_client(env_vars.store_domain, resolve_access_token(env_vars))


@lru_cache(maxsize=1)
def _build_shopify_client(store_domain: str, access_token: str) -> ShopifyAdminClient:
    env_vars = get_handler_env_vars()
    logger.info("Building Admin API client", extra={"store_domain": store_domain})
    return ShopifyAdminClient(
        store_domain=store_domain,
        access_token=access_token,
        api_version=env_vars.SHOPIFY_API_VERSION,
        timeout=env_vars.HTTP_TIMEOUT_SECONDS,
    )


def get_quote_service() -> QuoteService:
    return _build_quote_service(get_shopify_client())


@lru_cache(maxsize=1)
def _build_quote_service(client: ShopifyAdminClient) -> QuoteService:
    env_vars = get_handler_env_vars()
    return QuoteService(
        metaobject_handler=MetaobjectHandler(client),
        quote_type=env_vars.QUOTE_METAOBJECT_TYPE,
        hard_delete=env_vars.hard_delete,
    )


def get_file_service() -> FileService:
    return _build_file_service(get_shopify_client())


@lru_cache(maxsize=1)
def _build_file_service(client: ShopifyAdminClient) -> FileService:
    return FileService(
        storage=FileStorageHandler(client),
        metaobject_handler=MetaobjectHandler(client),
        file_type=get_handler_env_vars().FILE_METAOBJECT_TYPE,
    )


def get_draft_order_service() -> DraftOrderService:
    client = get_shopify_client()
    return _build_draft_order_service(client, _build_file_service(client))


@lru_cache(maxsize=1)
def _build_draft_order_service(client: ShopifyAdminClient, file_service: FileService) -> DraftOrderService:
    return DraftOrderService(
        draft_order_handler=DraftOrderHandler(client),
        file_service=file_service,
    )


def get_notification_service() -> NotificationService:
    return _build_notification_service(resolve_sendgrid_key(get_handler_env_vars()))


@lru_cache(maxsize=1)
def _build_notification_service(sendgrid_api_key: Optional[str]) -> NotificationService:
    env_vars = get_handler_env_vars()
    return NotificationService(
        sendgrid_api_key=sendgrid_api_key,
        from_address=env_vars.EMAIL_FROM_ADDRESS,
        from_name=env_vars.EMAIL_FROM_NAME,
        timeout=env_vars.HTTP_TIMEOUT_SECONDS,
    )


def reset_dependencies() -> None:
    """Drop cached clients and services."""
    for factory in (
        _build_shopify_client,
        _build_quote_service,
        _build_file_service,
        _build_draft_order_service,
        _build_notification_service,
    ):
        factory.cache_clear()
