"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables read by
the quote service handlers. Legacy variable names used by older deployments
(SHOP, ADMIN_TOKEN) are accepted as aliases.
"""

import re
from typing import Annotated, List, Optional

from aws_lambda_env_modeler import BaseModel, get_environment_variables
from pydantic import Field

DEFAULT_CORS_ORIGINS = (
    'https://sain-pdc-test.myshopify.com,'
    'http://localhost:3000,'
    'http://127.0.0.1:3000'
)


def normalize_store_domain(domain: Optional[str]) -> Optional[str]:
    """Strip scheme and trailing slash, and append .myshopify.com to bare shop names."""
    if not domain:
        return None
    domain = re.sub(r'^https?://', '', domain.strip()).rstrip('/')
    if not domain:
        return None
    if '.' not in domain:
        domain = f'{domain}.myshopify.com'
    return domain


class QuoteServiceEnvVars(BaseModel):
    """Environment variables for the quote service Lambda handlers."""

    # Commerce platform credentials
    SHOPIFY_STORE_DOMAIN: Annotated[Optional[str], Field(
        description='Store domain, e.g. my-shop.myshopify.com'
    )] = None

    SHOP: Annotated[Optional[str], Field(
        description='Legacy alias for SHOPIFY_STORE_DOMAIN'
    )] = None

    SHOPIFY_ACCESS_TOKEN: Annotated[Optional[str], Field(
        description='Admin API access token'
    )] = None

    ADMIN_TOKEN: Annotated[Optional[str], Field(
        description='Legacy alias for SHOPIFY_ACCESS_TOKEN'
    )] = None

    SHOPIFY_ACCESS_TOKEN_SECRET_NAME: Annotated[Optional[str], Field(
        description='Secrets Manager secret holding the Admin API access token'
    )] = None

    SHOPIFY_API_VERSION: Annotated[str, Field(
        description='Admin API version',
        pattern=r'^\d{4}-\d{2}$'
    )] = '2024-01'

    HTTP_TIMEOUT_SECONDS: Annotated[float, Field(
        description='Timeout for outbound HTTP calls in seconds',
        gt=0,
        le=60
    )] = 15.0

    # API Gateway settings
    CORS_ALLOW_ORIGINS: Annotated[str, Field(
        description='Comma separated list of allowed origins, the first one is the primary origin'
    )] = DEFAULT_CORS_ORIGINS

    CORS_MAX_AGE_SECONDS: Annotated[int, Field(
        description='Preflight cache duration in seconds',
        ge=0,
        le=86400
    )] = 86400

    # Record types
    QUOTE_METAOBJECT_TYPE: Annotated[str, Field(
        description='Metaobject type used for quote records',
        min_length=1
    )] = 'quote'

    FILE_METAOBJECT_TYPE: Annotated[str, Field(
        description='Metaobject type used for uploaded file records',
        min_length=1
    )] = 'uploaded_file'

    QUOTE_DELETE_MODE: Annotated[str, Field(
        description='soft writes the Deleted status, hard removes the metaobject',
        pattern=r'^(soft|hard)$'
    )] = 'soft'

    # Notifications
    SENDGRID_API_KEY: Annotated[Optional[str], Field(
        description='SendGrid API key for quote emails'
    )] = None

    SENDGRID_SECRET_NAME: Annotated[Optional[str], Field(
        description='Secrets Manager secret holding the SendGrid API key'
    )] = None

    EMAIL_FROM_ADDRESS: Annotated[str, Field(
        description='Sender address for quote emails'
    )] = 'noreply@sain-pdc-test.myshopify.com'

    EMAIL_FROM_NAME: Annotated[str, Field(
        description='Sender display name for quote emails'
    )] = '定制化加工服务'

    # Environment name (dev, staging, prod, test)
    ENVIRONMENT: Annotated[str, Field(
        description='Deployment environment name',
        pattern=r'^(dev|staging|prod|test)$'
    )] = 'dev'

    APP_VERSION: Annotated[str, Field(
        description='Application version string'
    )] = '1.0.0'

    LOG_LEVEL: Annotated[str, Field(
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    @property
    def store_domain(self) -> Optional[str]:
        """Normalized store domain, preferring SHOPIFY_STORE_DOMAIN over SHOP."""
        return normalize_store_domain(self.SHOPIFY_STORE_DOMAIN or self.SHOP)

    @property
    def access_token(self) -> Optional[str]:
        """Access token given directly in the environment, if any."""
        return self.SHOPIFY_ACCESS_TOKEN or self.ADMIN_TOKEN

    @property
    def graphql_endpoint(self) -> Optional[str]:
        if not self.store_domain:
            return None
        return f'https://{self.store_domain}/admin/api/{self.SHOPIFY_API_VERSION}/graphql.json'

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(',') if origin.strip()]

    @property
    def hard_delete(self) -> bool:
        return self.QUOTE_DELETE_MODE == 'hard'

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == 'prod'


def get_handler_env_vars() -> QuoteServiceEnvVars:
    """
    Get typed environment variables for Lambda handlers.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=QuoteServiceEnvVars)
