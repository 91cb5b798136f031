"""
Admin GraphQL API client for the commerce platform.

This module wraps the store's Admin GraphQL endpoint with httpx. It raises
service errors for transport failures, non-2xx responses and top-level GraphQL
errors, and also performs the raw HTTP legs of staged uploads and CDN downloads.
"""

import re
from typing import Any, Dict, List, Optional

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from quote_service.handlers.utils.errors import BusinessLogicError, ExternalServiceError
from quote_service.handlers.utils.observability import logger, metrics, tracer

SERVICE_NAME = 'Shopify Admin API'
DEFAULT_API_VERSION = '2024-01'
DEFAULT_CONTENT_TYPE = 'application/octet-stream'
BODY_EXCERPT_LENGTH = 500

_OPERATION_NAME = re.compile(r'^\s*(?:query|mutation)\s+(\w+)')

SHOP_QUERY = """
query ShopInfo {
  shop {
    id
    name
  }
}
"""


def operation_name(document: str) -> Optional[str]:
    match = _OPERATION_NAME.match(document)
    return match.group(1) if match else None


class ShopifyAdminClient:
    """Thin synchronous client for the Admin GraphQL API."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            store_domain: Normalized store domain, e.g. my-shop.myshopify.com
            access_token: Admin API access token
            api_version: Admin API version
            timeout: Timeout for every outbound request in seconds
            transport: Optional httpx transport, used by tests
        """
        self.store_domain = store_domain
        self.api_version = api_version
        self.endpoint = f'https://{store_domain}/admin/api/{api_version}/graphql.json'
        self._access_token = access_token
        self._http = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)
        logger.debug('Admin API client initialized', extra={
            'endpoint': self.endpoint,
            'token_length': len(access_token),
        })

    def close(self) -> None:
        self._http.close()

    @tracer.capture_method
    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.

        Args:
            query: GraphQL query or mutation document
            variables: Variables for the document

        Returns:
            The ``data`` member of the GraphQL response

        Raises:
            ExternalServiceError: On transport failure, non-2xx status or GraphQL errors
        """
        name = operation_name(query)
        payload: Dict[str, Any] = {'query': query, 'variables': variables or {}}
        if name:
            payload['operationName'] = name

        tracer.put_annotation('graphql_operation', name or 'anonymous')

        try:
            response = self._http.post(
                self.endpoint,
                json=payload,
                headers={
                    'Content-Type': 'application/json',
                    'X-Shopify-Access-Token': self._access_token,
                },
            )
        except httpx.HTTPError as exc:
            metrics.add_metric(name='AdminApiTransportError', unit=MetricUnit.Count, value=1)
            raise ExternalServiceError(
                message=f'Request failed: {exc}',
                service_name=SERVICE_NAME,
            ) from exc

        if response.is_error:
            metrics.add_metric(name='AdminApiHttpError', unit=MetricUnit.Count, value=1)
            logger.error('Admin API returned an error status', extra={
                'operation': name,
                'status_code': response.status_code,
                'body': response.text[:BODY_EXCERPT_LENGTH],
            })
            raise ExternalServiceError(
                message=f'HTTP {response.status_code}: {response.text[:BODY_EXCERPT_LENGTH]}',
                service_name=SERVICE_NAME,
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                message='Response body is not valid JSON',
                service_name=SERVICE_NAME,
                upstream_status=response.status_code,
            ) from exc

        errors = body.get('errors')
        if errors:
            metrics.add_metric(name='AdminApiGraphQLError', unit=MetricUnit.Count, value=1)
            first_message = errors[0].get('message', 'Unknown GraphQL error') if isinstance(errors, list) else str(errors)
            logger.error('GraphQL errors returned', extra={'operation': name, 'errors': errors})
            raise ExternalServiceError(
                message=f'GraphQL error: {first_message}',
                service_name=SERVICE_NAME,
                error_code='GRAPHQL_ERROR',
                errors=errors if isinstance(errors, list) else [{'message': str(errors)}],
                upstream_status=response.status_code,
            )

        return body.get('data') or {}

    @staticmethod
    def raise_for_user_errors(payload: Optional[Dict[str, Any]], mutation: str) -> Dict[str, Any]:
        """
        Return a mutation payload, raising if it reports user errors.

        Raises:
            BusinessLogicError: If ``userErrors`` is non-empty
            ExternalServiceError: If the mutation payload is missing
        """
        if payload is None:
            raise ExternalServiceError(
                message=f'{mutation} returned no payload',
                service_name=SERVICE_NAME,
            )
        user_errors: List[Dict[str, Any]] = payload.get('userErrors') or []
        if user_errors:
            logger.warning('Mutation rejected with user errors', extra={
                'mutation': mutation,
                'user_errors': user_errors,
            })
            raise BusinessLogicError(
                message=f"{mutation} failed: {user_errors[0].get('message', 'unknown error')}",
                error_code='USER_ERRORS',
                user_errors=user_errors,
            )
        return payload

    @tracer.capture_method
    def upload_to_staged_target(
        self,
        target: Dict[str, Any],
        content: bytes,
        file_name: str,
        mime_type: Optional[str] = None,
    ) -> None:
        """
        Upload raw bytes to a staged upload target.

        Targets carrying a ``policy`` parameter expect a multipart form POST with every
        parameter as a form field; signed URL targets expect a PUT of the raw bytes.

        Raises:
            ExternalServiceError: If the storage endpoint rejects the upload
        """
        parameters = {param['name']: param['value'] for param in target.get('parameters') or []}
        mime_type = mime_type or DEFAULT_CONTENT_TYPE

        try:
            if 'policy' in parameters:
                response = self._http.post(
                    target['url'],
                    data=parameters,
                    files={'file': (file_name, content, mime_type)},
                )
            else:
                response = self._http.put(
                    target['url'],
                    content=content,
                    headers={'Content-Type': parameters.get('content_type', mime_type)},
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                message=f'Staged upload failed: {exc}',
                service_name='File storage',
            ) from exc

        if response.is_error:
            logger.error('Staged upload rejected', extra={
                'status_code': response.status_code,
                'body': response.text[:BODY_EXCERPT_LENGTH],
            })
            raise ExternalServiceError(
                message=f'Staged upload failed: HTTP {response.status_code}',
                service_name='File storage',
                upstream_status=response.status_code,
            )

        logger.info('File uploaded to staged target', extra={'file_name': file_name, 'size': len(content)})

    @tracer.capture_method
    def fetch_bytes(self, url: str) -> bytes:
        """Download a file from the platform CDN."""
        try:
            response = self._http.get(url)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(message=f'Download failed: {exc}', service_name='File CDN') from exc
        if response.is_error:
            raise ExternalServiceError(
                message=f'Download failed: HTTP {response.status_code}',
                service_name='File CDN',
                upstream_status=response.status_code,
            )
        return response.content

    def ping(self) -> Dict[str, Any]:
        """Query the shop identity, used for health checks."""
        return self.execute(SHOP_QUERY).get('shop') or {}
