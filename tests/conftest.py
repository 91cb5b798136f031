"""
Pytest configuration and shared fixtures for the quote service.

This module provides common test fixtures used across unit and integration
tests: Lambda context, API Gateway event builder, and the fake Admin API wired
into the handler dependencies.
"""

import json
import os
from functools import partial
from typing import Any, Callable, Dict, Optional
from unittest.mock import Mock

import httpx
import pytest

# Handlers build their resolvers at import time, so the environment is set
# before any quote_service module is imported.
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "ENVIRONMENT": "test",
    "APP_VERSION": "test-1.0.0",
    "POWERTOOLS_SERVICE_NAME": "test-quote-service",
    "POWERTOOLS_METRICS_NAMESPACE": "TestQuoteService",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    "SHOPIFY_STORE_DOMAIN": "test-shop",
    "SHOPIFY_ACCESS_TOKEN": "shpat_test_token",
})

from aws_lambda_env_modeler import get_environment_variables  # noqa: E402

from fake_shopify import FakeShopify  # noqa: E402
from quote_service.dal.shopify_client import ShopifyAdminClient  # noqa: E402
from quote_service.handlers import dependencies  # noqa: E402
from quote_service.logic.notification_service import NotificationService  # noqa: E402

ALLOWED_ORIGIN = "http://localhost:3000"


@pytest.fixture(autouse=True)
def reset_cached_configuration():
    """Drop cached environment variables and services between tests."""
    get_environment_variables.cache_clear()
    dependencies.reset_dependencies()
    yield
    get_environment_variables.cache_clear()
    dependencies.reset_dependencies()


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-quote-service"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-quote-service"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-quote-service"
    context.log_stream_name = "2025/01/29/[$LATEST]test123"
    return context


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Build API Gateway REST proxy events."""

    def build(
        method: str,
        path: str,
        body: Any = None,
        query: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body, ensure_ascii=False)
        return {
            "resource": path,
            "path": path,
            "httpMethod": method,
            "headers": {
                "Content-Type": "application/json",
                "Origin": ALLOWED_ORIGIN,
                "User-Agent": "test-agent/1.0",
                **(headers or {}),
            },
            "multiValueHeaders": None,
            "body": body,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "requestTime": "29/Jan/2025:12:00:00 +0000",
                "requestTimeEpoch": 1738152000000,
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "pathParameters": None,
            "queryStringParameters": query,
            "multiValueQueryStringParameters": {k: [v] for k, v in query.items()} if query else None,
            "stageVariables": None,
            "isBase64Encoded": False,
        }

    return build


@pytest.fixture
def fake_shopify(monkeypatch) -> FakeShopify:
    """Route every Admin API call made by the handlers to a FakeShopify."""
    fake = FakeShopify()
    monkeypatch.setattr(dependencies, "ShopifyAdminClient", partial(ShopifyAdminClient, transport=fake.transport))
    return fake


@pytest.fixture
def sendgrid_requests(monkeypatch):
    """Capture SendGrid requests; set ``status_code`` on the returned list to simulate failures."""
    class Captured(list):
        status_code = 202

    captured = Captured()

    def handle(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(captured.status_code, text="")

    monkeypatch.setattr(
        dependencies,
        "NotificationService",
        partial(NotificationService, transport=httpx.MockTransport(handle)),
    )
    return captured


@pytest.fixture
def unconfigured_platform(monkeypatch):
    """Remove the platform credentials from the environment."""
    for name in ("SHOPIFY_STORE_DOMAIN", "SHOP", "SHOPIFY_ACCESS_TOKEN", "ADMIN_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    get_environment_variables.cache_clear()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
