"""
Notifications Handler - Lambda function for quote notification emails.
"""

from typing import Any, Dict

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from quote_service.handlers import dependencies
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.handlers.utils.rest_api_resolver import (
    NOTIFICATIONS_PATH,
    build_resolver,
    create_api_response,
    get_request_context,
    parse_request,
)
from quote_service.models.input import QuoteEmailRequest

app = build_resolver()


@app.post(f'{NOTIFICATIONS_PATH}/quote-email', tags=['Notifications'])
@tracer.capture_method
def send_quote_email():
    """
    Compose the quote email for a customer and send it when a provider is configured.

    Returns:
        The composed email, a mailto link and whether it was sent
    """
    context = get_request_context(app, operation="send_quote_email")
    request = parse_request(app, QuoteEmailRequest, context)
    context.resource_id = request.order_id

    response = dependencies.get_notification_service().send_quote_email(request, context=context)
    return create_api_response(status_code=200, body=response)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "notifications-api")

    return app.resolve(event, context)
