"""
Draft Orders Handler - Lambda function for draft order quotes.

Customers submit quotes and poll their status; staff list drafts, set prices,
send invoices, complete and delete drafts.
"""

from typing import Any, Dict

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from quote_service.handlers import dependencies
from quote_service.handlers.utils.errors import ValidationError
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.handlers.utils.rest_api_resolver import (
    DRAFT_ORDERS_PATH,
    ORDER_STATUS_PATH,
    build_resolver,
    create_api_response,
    get_query_param,
    get_request_context,
    parse_request,
    require_query_param,
)
from quote_service.models.input import DraftOrderActionRequest, SetQuotePriceRequest, SubmitQuoteRequest

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 250

app = build_resolver()


@app.post(DRAFT_ORDERS_PATH, tags=['DraftOrders'])
@tracer.capture_method
def submit_quote():
    """
    Submit a customer quote request as a draft order.

    Returns:
        Quote and draft order identifiers
    """
    context = get_request_context(app, operation="submit_quote")
    request = parse_request(app, SubmitQuoteRequest, context)

    tracer.put_annotation("customer_email", request.customer_email)

    response = dependencies.get_draft_order_service().submit_quote(request, context=context)

    logger.info("Quote submitted successfully", extra={
        "quote_id": response.quote_id,
        "draft_order_id": response.draft_order_id,
    })
    return create_api_response(status_code=201, body=response)


@app.get(DRAFT_ORDERS_PATH, tags=['DraftOrders'])
@tracer.capture_method
def list_draft_orders():
    context = get_request_context(app, operation="list_draft_orders")
    status = get_query_param(app, 'status')
    limit_param = get_query_param(app, 'limit', str(DEFAULT_LIST_LIMIT))

    try:
        limit = int(limit_param)
    except ValueError:
        raise ValidationError(message=f"Invalid limit value: {limit_param}", context=context)
    limit = max(1, min(limit, MAX_LIST_LIMIT))

    tracer.put_annotation("status_filter", status or "all")

    result = dependencies.get_draft_order_service().list_draft_orders(status=status, limit=limit)
    return create_api_response(status_code=200, body=result)


@app.get(f'{DRAFT_ORDERS_PATH}/detail', tags=['DraftOrders'])
@tracer.capture_method
def get_draft_order():
    """Fetch one draft order by global id or name."""
    context = get_request_context(app, operation="get_draft_order")
    identifier = require_query_param(app, 'id', context)
    context.resource_id = identifier

    result = dependencies.get_draft_order_service().get_draft_order_detail(identifier, context=context)
    return create_api_response(status_code=200, body=result)


@app.post(f'{DRAFT_ORDERS_PATH}/quote', tags=['DraftOrders'])
@tracer.capture_method
def set_quote_price():
    """Record the staff quote on a draft order."""
    context = get_request_context(app, operation="set_quote_price")
    request = parse_request(app, SetQuotePriceRequest, context)
    context.resource_id = request.draft_order_id

    tracer.put_annotation("draft_order_id", request.draft_order_id)

    result = dependencies.get_draft_order_service().set_quote_price(request, context=context)
    return create_api_response(status_code=200, body=result)


@app.post(f'{DRAFT_ORDERS_PATH}/invoice', tags=['DraftOrders'])
@tracer.capture_method
def send_invoice():
    context = get_request_context(app, operation="send_invoice")
    request = parse_request(app, DraftOrderActionRequest, context)
    context.resource_id = request.draft_order_id

    result = dependencies.get_draft_order_service().send_invoice(request.draft_order_id, context=context)
    return create_api_response(status_code=200, body=result)


@app.post(f'{DRAFT_ORDERS_PATH}/complete', tags=['DraftOrders'])
@tracer.capture_method
def complete_draft_order():
    context = get_request_context(app, operation="complete_draft_order")
    request = parse_request(app, DraftOrderActionRequest, context)
    context.resource_id = request.draft_order_id

    tracer.put_annotation("draft_order_id", request.draft_order_id)

    result = dependencies.get_draft_order_service().complete_draft_order(request.draft_order_id, context=context)
    return create_api_response(status_code=200, body=result)


@app.delete(DRAFT_ORDERS_PATH, tags=['DraftOrders'])
@tracer.capture_method
def delete_draft_order():
    context = get_request_context(app, operation="delete_draft_order")
    draft_order_id = require_query_param(app, 'id', context)
    context.resource_id = draft_order_id

    result = dependencies.get_draft_order_service().delete_draft_order(draft_order_id, context=context)
    return create_api_response(status_code=200, body=result)


@app.get(ORDER_STATUS_PATH, tags=['DraftOrders'])
@tracer.capture_method
def get_order_status():
    """
    Resolve the customer facing status of a draft order.

    Returns:
        Status label and code, payment and fulfillment details
    """
    context = get_request_context(app, operation="get_order_status")
    draft_order_id = require_query_param(app, 'draftOrderId', context)
    context.resource_id = draft_order_id

    tracer.put_annotation("draft_order_id", draft_order_id)

    response = dependencies.get_draft_order_service().get_order_status(draft_order_id, context=context)
    return create_api_response(status_code=200, body=response)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for draft order quote operations.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway proxy response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "draft-orders-api")

    return app.resolve(event, context)
