"""
Secret resolution for platform credentials.

Credentials come either straight from the environment or from AWS Secrets
Manager through the Powertools parameters utility, which caches values for
``SECRET_CACHE_SECONDS``; a rotated secret is picked up once the cache expires.
"""

import json
from typing import List, Optional

from aws_lambda_powertools.utilities import parameters
from aws_lambda_powertools.utilities.parameters.exceptions import GetParameterError

from quote_service.handlers.models.env_vars import QuoteServiceEnvVars
from quote_service.handlers.utils.errors import ConfigurationError
from quote_service.handlers.utils.observability import logger, tracer

SECRET_CACHE_SECONDS = 300


@tracer.capture_method
def get_secret_value(secret_name: str, json_key: Optional[str] = None) -> str:
    """
    Fetch a secret string, optionally reading one key of a JSON secret.

    Raises:
        ConfigurationError: If the secret cannot be read or is empty
    """
    try:
        value = parameters.get_secret(secret_name, max_age=SECRET_CACHE_SECONDS)
    except GetParameterError as exc:
        logger.error("Failed to read secret", extra={"secret_name": secret_name, "error": str(exc)})
        raise ConfigurationError(
            message=f"Secret '{secret_name}' could not be read",
            missing=[secret_name],
        ) from exc

    if isinstance(value, bytes):
        value = value.decode('utf-8')

    if json_key and value.lstrip().startswith('{'):
        value = json.loads(value).get(json_key, '')

    if not value:
        raise ConfigurationError(message=f"Secret '{secret_name}' is empty", missing=[secret_name])

    logger.debug("Secret resolved", extra={"secret_name": secret_name, "length": len(value)})
    return value


def resolve_access_token(settings: QuoteServiceEnvVars) -> str:
    """Return the Admin API token from the environment or Secrets Manager."""
    if settings.access_token:
        return settings.access_token
    if settings.SHOPIFY_ACCESS_TOKEN_SECRET_NAME:
        return get_secret_value(settings.SHOPIFY_ACCESS_TOKEN_SECRET_NAME, json_key='SHOPIFY_ACCESS_TOKEN')
    raise ConfigurationError(
        message="Missing Shopify access token",
        missing=['SHOPIFY_ACCESS_TOKEN'],
    )


def resolve_sendgrid_key(settings: QuoteServiceEnvVars) -> Optional[str]:
    """Return the SendGrid key if one is configured, otherwise None."""
    if settings.SENDGRID_API_KEY:
        return settings.SENDGRID_API_KEY
    if settings.SENDGRID_SECRET_NAME:
        return get_secret_value(settings.SENDGRID_SECRET_NAME, json_key='SENDGRID_API_KEY')
    return None


def missing_platform_settings(settings: QuoteServiceEnvVars) -> List[str]:
    missing = []
    if not settings.store_domain:
        missing.append('SHOPIFY_STORE_DOMAIN')
    if not settings.access_token and not settings.SHOPIFY_ACCESS_TOKEN_SECRET_NAME:
        missing.append('SHOPIFY_ACCESS_TOKEN')
    return missing
