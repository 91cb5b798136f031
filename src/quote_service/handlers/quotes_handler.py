"""
Quotes Handler - Lambda function for quote record CRUD.

Routes:
    GET    /api/quotes             list active quote records
    POST   /api/quotes             create a quote record
    PATCH  /api/quotes?handle=     update status, price or note
    DELETE /api/quotes?handle=     delete using the configured delete mode
    DELETE /api/quotes/all         delete every quote record
"""

from typing import Any, Dict

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from quote_service.handlers import dependencies
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.handlers.utils.rest_api_resolver import (
    QUOTES_PATH,
    build_resolver,
    create_api_response,
    get_query_param,
    get_request_context,
    parse_request,
    require_query_param,
)
from quote_service.models.input import CreateQuoteRequest, UpdateQuoteRequest

app = build_resolver()


@app.get(QUOTES_PATH, tags=['Quotes'])
@tracer.capture_method
def list_quotes():
    """
    List quote records, soft-deleted ones excluded.

    Returns:
        Records and their count
    """
    context = get_request_context(app, operation="list_quotes")
    status = get_query_param(app, 'status')

    records = dependencies.get_quote_service().list_quotes(status=status, context=context)

    return create_api_response(
        status_code=200,
        body={
            "success": True,
            "records": [record.model_dump(by_alias=True) for record in records],
            "count": len(records),
        },
    )


@app.post(QUOTES_PATH, tags=['Quotes'])
@tracer.capture_method
def create_quote():
    """
    Create a quote record.

    Returns:
        The created metaobject
    """
    context = get_request_context(app, operation="create_quote")
    request = parse_request(app, CreateQuoteRequest, context)

    tracer.put_annotation("has_invoice_url", bool(request.invoice_url))

    metaobject = dependencies.get_quote_service().create_quote(request, context=context)

    logger.info("Quote record created", extra={"handle": metaobject.get('handle')})
    return create_api_response(status_code=201, body={"success": True, "metaobject": metaobject})


@app.patch(QUOTES_PATH, tags=['Quotes'])
@tracer.capture_method
def update_quote():
    context = get_request_context(app, operation="update_quote")
    handle = require_query_param(app, 'handle', context)
    context.resource_id = handle
    request = parse_request(app, UpdateQuoteRequest, context)

    tracer.put_annotation("quote_handle", handle)

    metaobject = dependencies.get_quote_service().update_quote(handle, request, context=context)
    return create_api_response(status_code=200, body={"success": True, "metaobject": metaobject})


@app.delete(QUOTES_PATH, tags=['Quotes'])
@tracer.capture_method
def delete_quote():
    context = get_request_context(app, operation="delete_quote")
    handle = require_query_param(app, 'handle', context)
    context.resource_id = handle

    tracer.put_annotation("quote_handle", handle)

    result = dependencies.get_quote_service().delete_quote(handle, context=context)
    return create_api_response(status_code=200, body=result)


@app.delete(f'{QUOTES_PATH}/all', tags=['Quotes'])
@tracer.capture_method
def delete_all_quotes():
    """Admin purge of every quote record."""
    context = get_request_context(app, operation="delete_all_quotes")

    logger.warning("Deleting all quote records")
    result = dependencies.get_quote_service().delete_all_quotes(context=context)
    return create_api_response(status_code=200, body=result)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for quote record operations.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway proxy response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "quotes-api")

    return app.resolve(event, context)
