"""
Files Handler - Lambda function for file upload, download and cleanup.
"""

from typing import Any, Dict

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from quote_service.handlers import dependencies
from quote_service.handlers.utils.errors import ValidationError
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.handlers.utils.rest_api_resolver import (
    FILES_PATH,
    build_resolver,
    create_api_response,
    get_query_param,
    get_request_context,
    parse_request,
)
from quote_service.models.input import CleanupFilesRequest, UploadFileRequest
from quote_service.models.uploaded_file import DEFAULT_MIME_TYPE

MODE_REDIRECT = 'redirect'
MODE_DOWNLOAD = 'download'

app = build_resolver()


@app.post(FILES_PATH, tags=['Files'])
@tracer.capture_method
def upload_file():
    """
    Upload a base64 file to platform storage.

    Returns:
        Local file id, platform file id and sizes
    """
    context = get_request_context(app, operation="upload_file")
    request = parse_request(app, UploadFileRequest, context)

    tracer.put_annotation("file_name", request.file_name)

    response = dependencies.get_file_service().upload_file(request, context=context)

    logger.info("File uploaded successfully", extra={
        "file_id": response.file_id,
        "shopify_file_id": response.shopify_file_id,
        "size": response.original_file_size,
    })
    return create_api_response(status_code=201, body=response)


@app.get(FILES_PATH, tags=['Files'])
@tracer.capture_method
def download_file():
    """
    Serve a stored file, redirecting to the CDN by default or streaming its bytes.

    Query parameters:
        id: local file id or platform file gid
        shopifyFileId: platform file gid
        fileName: download file name override
        mode: redirect (default) or download
    """
    context = get_request_context(app, operation="download_file")
    file_id = get_query_param(app, 'id')
    shopify_file_id = get_query_param(app, 'shopifyFileId')
    mode = (get_query_param(app, 'mode', MODE_REDIRECT) or MODE_REDIRECT).lower()
    context.resource_id = file_id or shopify_file_id

    if mode not in (MODE_REDIRECT, MODE_DOWNLOAD):
        raise ValidationError(message=f"Invalid mode value: {mode}", context=context)

    file_service = dependencies.get_file_service()
    download = file_service.resolve_file(
        file_id=file_id,
        shopify_file_id=shopify_file_id,
        file_name=get_query_param(app, 'fileName'),
        context=context,
    )

    tracer.put_annotation("download_mode", mode)

    if mode == MODE_REDIRECT:
        logger.info("Redirecting to file CDN", extra={"file_gid": download.file.id})
        return create_api_response(
            status_code=302,
            body='',
            headers={'Location': download.file.url, **download.headers},
        )

    download = file_service.download_file(download)
    return create_api_response(
        status_code=200,
        body=download.content,
        headers=download.headers,
        content_type=download.file.mime_type or DEFAULT_MIME_TYPE,
    )


@app.post(f'{FILES_PATH}/cleanup', tags=['Files'])
@tracer.capture_method
def cleanup_files():
    """Delete uploaded file records by order id or file id."""
    context = get_request_context(app, operation="cleanup_files")
    request = parse_request(app, CleanupFilesRequest, context)

    result = dependencies.get_file_service().cleanup_files(request, context=context)
    return create_api_response(status_code=200, body=result)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for file operations.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway proxy response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "files-api")

    return app.resolve(event, context)
