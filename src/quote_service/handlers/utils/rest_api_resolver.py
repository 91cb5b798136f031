"""
REST API resolver utility for AWS Lambda handlers.

This module builds the API Gateway REST resolver shared by every quote service
handler: one CORS policy, security headers, and exception handlers that turn
service errors into structured JSON responses.
"""

import json
from typing import Any, Dict, Optional, Type, TypeVar

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig, Response, content_types
from aws_lambda_powertools.event_handler.middlewares import NextMiddleware
from aws_lambda_powertools.event_handler.openapi.models import Tag
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from quote_service.handlers.models.env_vars import get_handler_env_vars
from quote_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ValidationError,
    create_error_context,
    format_error_response,
    log_error_metrics,
)
from quote_service.handlers.utils.observability import logger, metrics

ModelT = TypeVar('ModelT', bound=BaseModel)

# API path constants
QUOTES_PATH = '/api/quotes'
DRAFT_ORDERS_PATH = '/api/draft-orders'
ORDER_STATUS_PATH = '/api/order-status'
FILES_PATH = '/api/files'
NOTIFICATIONS_PATH = '/api/notifications'
HEALTH_PATH = '/health'

# OpenAPI tags for documentation
QUOTES_TAG = Tag(name='Quotes', description='Quote record operations')
DRAFT_ORDERS_TAG = Tag(name='DraftOrders', description='Draft order quote operations')
FILES_TAG = Tag(name='Files', description='File upload and download operations')
NOTIFICATIONS_TAG = Tag(name='Notifications', description='Customer notification operations')
HEALTH_TAG = Tag(name='Health', description='Health check operations')

ALLOWED_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With', 'Accept']
EXPOSED_HEADERS = ['Content-Disposition', 'X-Original-File-Size', 'X-Downloaded-File-Size', 'X-Size-Match']

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
}


def build_cors_config() -> CORSConfig:
    """Build the CORS policy from the configured origin list."""
    env_vars = get_handler_env_vars()
    origins = env_vars.cors_origins or ['*']
    return CORSConfig(
        allow_origin=origins[0],
        extra_origins=origins[1:],
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
        max_age=env_vars.CORS_MAX_AGE_SECONDS,
        allow_credentials=origins[0] != '*',
    )


def to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
    content_type: str = content_types.APPLICATION_JSON,
) -> Response:
    """Create a resolver response, serializing dicts and lists to JSON."""
    if isinstance(body, BaseModel):
        body = body.model_dump_json(by_alias=True)
    elif isinstance(body, (dict, list)):
        body = to_json(body)

    response_headers = dict(SECURITY_HEADERS)
    if headers:
        response_headers.update(headers)

    return Response(
        status_code=status_code,
        content_type=content_type,
        body=body,
        headers=response_headers,
    )


def add_security_headers(app: APIGatewayRestResolver, next_middleware: NextMiddleware) -> Response:
    """Add security headers to all route responses."""
    response = next_middleware(app)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


def handle_service_error(error: BaseServiceError) -> Response:
    log_error_metrics(error)
    env_vars = get_handler_env_vars()
    body = format_error_response(error, include_details=not env_vars.is_production)
    headers = {'Retry-After': str(error.retry_after)} if error.retry_after else None
    return create_api_response(status_code=error.status_code, body=body, headers=headers)


def handle_request_validation_error(error: PydanticValidationError) -> Response:
    logger.warning("Request validation failed", extra={
        "validation_errors": str(error),
        "error_count": error.error_count(),
    })
    metrics.add_metric(name="ValidationError", unit=MetricUnit.Count, value=1)

    field_errors = [
        {"field": ".".join(str(part) for part in detail["loc"]), "message": detail["msg"]}
        for detail in error.errors()
    ]
    validation_error = ValidationError(message="Request validation failed", field_errors=field_errors)
    return create_api_response(status_code=400, body=format_error_response(validation_error))


def handle_unexpected_error(error: Exception) -> Response:
    logger.exception("Unexpected error in handler", extra={"error": str(error)})
    metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)

    unexpected_error = BaseServiceError(
        message="An unexpected error occurred",
        error_code="INTERNAL_SERVER_ERROR",
        severity=ErrorSeverity.CRITICAL,
        category=ErrorCategory.INFRASTRUCTURE,
    )
    return create_api_response(status_code=500, body=format_error_response(unexpected_error))


def build_resolver() -> APIGatewayRestResolver:
    """
    Build a REST resolver with the shared CORS policy, middleware and error handlers.

    Returns:
        Configured APIGatewayRestResolver; OPTIONS preflight requests are answered by
        the resolver itself without reaching any route.
    """
    app = APIGatewayRestResolver(cors=build_cors_config(), enable_validation=True)
    app.use(middlewares=[add_security_headers])
    app.exception_handler(BaseServiceError)(handle_service_error)
    app.exception_handler(PydanticValidationError)(handle_request_validation_error)
    app.exception_handler(Exception)(handle_unexpected_error)
    return app


def get_request_context(app: APIGatewayRestResolver, operation: str, resource_id: Optional[str] = None) -> ErrorContext:
    """Create an error context from the current API Gateway event."""
    request_context = app.current_event.request_context
    request_id = request_context.request_id if request_context else "unknown"
    return create_error_context(request_id=request_id or "unknown", operation=operation, resource_id=resource_id)


def get_query_param(app: APIGatewayRestResolver, name: str, default: Optional[str] = None) -> Optional[str]:
    value = app.current_event.get_query_string_value(name=name, default_value=default)
    if isinstance(value, str):
        value = value.strip()
    return value or default


def require_query_param(app: APIGatewayRestResolver, name: str, context: ErrorContext) -> str:
    value = get_query_param(app, name)
    if not value:
        raise ValidationError(
            message=f"Missing required query parameter: {name}",
            field_errors=[{"field": name, "message": "Field required"}],
            context=context,
        )
    return value


def parse_json_body(app: APIGatewayRestResolver, context: ErrorContext) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Raises:
        ValidationError: If the body is not valid JSON or not an object
    """
    raw_body = app.current_event.decoded_body if app.current_event.body else None
    if not raw_body:
        return {}
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ValidationError(message="Invalid JSON in request body", context=context) from exc
    if not isinstance(payload, dict):
        raise ValidationError(message="Request body must be a JSON object", context=context)
    return payload


def parse_request(app: APIGatewayRestResolver, model: Type[ModelT], context: ErrorContext) -> ModelT:
    """Parse and validate the JSON body into a pydantic request model."""
    return model.model_validate(parse_json_body(app, context))
