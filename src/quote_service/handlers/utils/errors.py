"""
Service errors of the quote service.

Every failure a handler can report is a ``BaseServiceError`` subclass. The
subclass fixes the HTTP status, the machine error code and the severity and
category used for metrics; the resolver's exception handlers turn any of them
into the JSON error body built by ``format_error_response``.

Status codes:
    ValidationError        400
    ResourceNotFoundError  404
    BusinessLogicError     422  (platform userErrors)
    ExternalServiceError   502  (Admin API / SendGrid failures, degraded)
    ConfigurationError     503  (missing domain or token, degraded)
    FileNotReadyError      202  (platform file still processing)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, Field

from quote_service.handlers.utils.observability import logger, metrics, tracer


class ErrorSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    VALIDATION = "VALIDATION"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    CONFIGURATION = "CONFIGURATION"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class ErrorContext(BaseModel):
    """Where an error happened: the API Gateway request and the operation."""

    request_id: str = Field(description="API Gateway request id")
    operation: str = Field(description="Handler operation, e.g. submit_quote")
    resource_id: Optional[str] = Field(default=None, description="Handle, gid or file id being worked on")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    additional_data: Dict[str, Any] = Field(default_factory=dict)


class BaseServiceError(Exception):
    """Base class; subclasses override the class level classification."""

    status_code: ClassVar[int] = 500
    default_error_code: ClassVar[str] = "INTERNAL_SERVER_ERROR"
    default_severity: ClassVar[ErrorSeverity] = ErrorSeverity.MEDIUM
    default_category: ClassVar[ErrorCategory] = ErrorCategory.BUSINESS_LOGIC
    default_retry_after: ClassVar[Optional[int]] = None
    degraded: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: Optional[ErrorSeverity] = None,
        category: Optional[ErrorCategory] = None,
        context: Optional[ErrorContext] = None,
        retry_after: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.severity = severity or self.default_severity
        self.category = category or self.default_category
        self.context = context
        self.retry_after = retry_after or self.default_retry_after
        self.user_message = user_message or message
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "status_code": self.status_code,
            "error_message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.model_dump(mode="json") if self.context else None,
        }


class ValidationError(BaseServiceError):
    """Bad query parameter or request body."""

    status_code = 400
    default_error_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.LOW
    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message, context=context)
        self.field_errors = field_errors or []


class ResourceNotFoundError(BaseServiceError):
    status_code = 404
    default_error_code = "RESOURCE_NOT_FOUND"
    default_severity = ErrorSeverity.LOW

    def __init__(self, resource_type: str, resource_id: str, context: Optional[ErrorContext] = None):
        super().__init__(f"{resource_type} '{resource_id}' not found", context=context)
        self.resource_type = resource_type
        self.resource_id = resource_id


class BusinessLogicError(BaseServiceError):
    """The platform rejected a mutation; ``user_errors`` holds its userErrors."""

    status_code = 422
    default_error_code = "BUSINESS_LOGIC_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        user_errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message, error_code=error_code, context=context)
        self.user_errors = user_errors or []


class ExternalServiceError(BaseServiceError):
    """A call to the Admin API, the file CDN or SendGrid failed."""

    status_code = 502
    default_error_code = "EXTERNAL_SERVICE_ERROR"
    default_severity = ErrorSeverity.HIGH
    default_category = ErrorCategory.EXTERNAL_SERVICE
    degraded = True

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        upstream_status: Optional[int] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            error_code=error_code,
            context=context,
            user_message=f"{service_name} is temporarily unavailable: {message}",
        )
        self.service_name = service_name
        self.errors = errors or []
        self.upstream_status = upstream_status


class ConfigurationError(BaseServiceError):
    """Store domain or access token missing from the deployment."""

    status_code = 503
    default_error_code = "CONFIGURATION_ERROR"
    default_severity = ErrorSeverity.CRITICAL
    default_category = ErrorCategory.CONFIGURATION
    default_retry_after = 300
    degraded = True

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message, user_message="The quote service is not configured. Please try again later.")
        self.missing = missing or []


class FileNotReadyError(BaseServiceError):
    status_code = 202
    default_error_code = "FILE_NOT_READY"
    default_severity = ErrorSeverity.LOW
    default_category = ErrorCategory.EXTERNAL_SERVICE
    default_retry_after = 10

    def __init__(self, file_id: str, file_status: str):
        super().__init__(
            f"File '{file_id}' is still processing ({file_status})",
            user_message="The file is still being processed, please try again shortly.",
        )
        self.file_id = file_id
        self.file_status = file_status


def create_error_context(
    request_id: str,
    operation: str,
    resource_id: Optional[str] = None,
    **additional_data: Any,
) -> ErrorContext:
    return ErrorContext(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
        additional_data=additional_data,
    )


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Count the error by category and log it; 5xx errors log at error level."""
    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_metadata("error_details", error.to_dict())

    log = logger.warning if error.status_code < 500 else logger.error
    log("Service error", extra=error.to_dict())


def format_error_response(error: BaseServiceError, include_details: bool = False) -> Dict[str, Any]:
    """
    Build the JSON error body returned to the storefront.

    Args:
        error: The service error
        include_details: Add the failing operation and resource id (non-production only)

    Returns:
        ``{success: false, error, message, error_id, timestamp}`` plus ``degraded``,
        ``retry_after``, ``field_errors``, ``errors``, ``fileStatus`` and ``details``
        when they apply
    """
    body: Dict[str, Any] = {
        "success": False,
        "error": error.error_code,
        "message": error.user_message,
        "error_id": error.error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if error.degraded:
        body["degraded"] = True
    if error.retry_after:
        body["retry_after"] = error.retry_after

    if isinstance(error, ValidationError) and error.field_errors:
        body["field_errors"] = error.field_errors
    elif isinstance(error, BusinessLogicError) and error.user_errors:
        body["errors"] = error.user_errors
    elif isinstance(error, ExternalServiceError) and error.errors:
        body["errors"] = error.errors
    elif isinstance(error, FileNotReadyError):
        body["fileStatus"] = error.file_status

    if include_details and error.context:
        body["details"] = {
            "operation": error.context.operation,
            "resource_id": error.context.resource_id,
        }

    return body
