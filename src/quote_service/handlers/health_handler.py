"""
Health Handler - Lambda function checking connectivity to the Admin API.
"""

from typing import Any, Dict

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from quote_service.handlers import dependencies
from quote_service.handlers.models.env_vars import get_handler_env_vars
from quote_service.handlers.utils.errors import BaseServiceError
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.handlers.utils.rest_api_resolver import HEALTH_PATH, build_resolver, create_api_response
from quote_service.models.output import HealthCheckOutput

app = build_resolver()


@app.get(HEALTH_PATH, tags=['Health'])
@tracer.capture_method
def health_check():
    """
    Health check endpoint.

    Returns:
        200 when the shop answers, 503 otherwise
    """
    logger.info("Health check requested")
    env_vars = get_handler_env_vars()
    health = HealthCheckOutput(status='healthy', version=env_vars.APP_VERSION, environment=env_vars.ENVIRONMENT)

    try:
        health.shop = dependencies.get_shopify_client().ping()
    except BaseServiceError as e:
        logger.error("Health check failed", extra={"error": e.message})
        health.status = 'unhealthy'
        health.error = e.user_message

    if health.status == 'healthy':
        metrics.add_metric(name="HealthCheckSuccess", unit=MetricUnit.Count, value=1)
    else:
        metrics.add_metric(name="HealthCheckFailure", unit=MetricUnit.Count, value=1)

    return create_api_response(
        status_code=200 if health.status == 'healthy' else 503,
        body=health,
    )


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return app.resolve(event, context)
