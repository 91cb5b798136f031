"""
Business Logic Layer for uploaded files.

Files are stored in the platform's file storage through staged uploads. Every
upload is linked to a local file id by an ``uploaded_file`` metaobject, so
downloads and cleanups work across invocations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit

from quote_service.dal import BaseMetaobjectHandler
from quote_service.dal.file_handler import FileStorageHandler
from quote_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorContext,
    FileNotReadyError,
    ResourceNotFoundError,
    ValidationError,
)
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.models.input import CleanupFilesRequest, UploadFileRequest
from quote_service.models.output import UploadFileOutput
from quote_service.models.uploaded_file import (
    DEFAULT_MIME_TYPE,
    FileRecord,
    PlatformFile,
    decode_file_data,
    determine_content_category,
    generate_file_id,
    is_platform_gid,
    record_handle,
)

RESOURCE_TYPES = ('IMAGE', 'VIDEO', 'MODEL_3D')


@dataclass
class FileDownload:
    """A file ready to be served: either a redirect target or its bytes."""

    file: PlatformFile
    file_name: str
    content: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)


def content_disposition(file_name: str) -> str:
    safe_name = file_name.replace('"', '')
    return f'attachment; filename="{safe_name}"'


class FileService:
    """Business logic service for file uploads and downloads."""

    def __init__(
        self,
        storage: FileStorageHandler,
        metaobject_handler: BaseMetaobjectHandler,
        file_type: str = 'uploaded_file',
    ):
        self.storage = storage
        self.metaobjects = metaobject_handler
        self.file_type = file_type

    @tracer.capture_method
    def upload_file(
        self,
        request: UploadFileRequest,
        file_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ) -> UploadFileOutput:
        """
        Upload a base64 file to platform storage and record it.

        Args:
            request: Validated upload request
            file_id: Local file id to link, generated when omitted
            context: Error context for tracing

        Returns:
            UploadFileOutput with local and platform identifiers

        Raises:
            ValidationError: If the payload is not valid base64
            ExternalServiceError: If any upload step fails
        """
        try:
            content, data_uri_mime = decode_file_data(request.file_data)
        except ValueError as exc:
            raise ValidationError(
                message=str(exc),
                field_errors=[{"field": "fileData", "message": str(exc)}],
                context=context,
            ) from exc
        if not content:
            raise ValidationError(message="File data is empty", context=context)

        mime_type = request.file_type or data_uri_mime or DEFAULT_MIME_TYPE
        content_category = determine_content_category(mime_type, request.file_name)
        resource = content_category if content_category in RESOURCE_TYPES else 'FILE'
        file_id = file_id or generate_file_id()

        logger.info("Uploading file", extra={
            "file_id": file_id,
            "file_name": request.file_name,
            "size": len(content),
            "content_category": content_category,
        })

        platform_file = self.storage.upload(content, request.file_name, mime_type, resource, content_category)

        record = FileRecord(
            file_id=file_id,
            file_name=request.file_name,
            file_type=mime_type,
            shopify_file_id=platform_file['id'],
            file_size=str(len(content)),
            order_id=request.order_id or '',
        )
        self.metaobjects.create_metaobject(self.file_type, record_handle(file_id), record.to_fields())

        metrics.add_metric(name="FileUploaded", unit=MetricUnit.Count, value=1)
        metrics.add_metric(name="FileUploadBytes", unit=MetricUnit.Bytes, value=len(content))

        return UploadFileOutput(
            file_id=file_id,
            file_name=request.file_name,
            shopify_file_id=platform_file['id'],
            file_url=platform_file.get('url'),
            original_file_size=len(content),
            uploaded_file_size=len(content),
        )

    def _records(self) -> List[FileRecord]:
        return [FileRecord.from_metaobject(node) for node in self.metaobjects.list_metaobjects(self.file_type)]

    def find_record(self, file_id: str) -> Optional[FileRecord]:
        node = self.metaobjects.get_by_handle(self.file_type, record_handle(file_id))
        if not node:
            return None
        record = FileRecord.from_metaobject(node)
        return record if record.file_id == file_id else None

    @tracer.capture_method
    def resolve_file(
        self,
        file_id: Optional[str] = None,
        shopify_file_id: Optional[str] = None,
        file_name: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ) -> FileDownload:
        """
        Resolve a local file id or platform gid to a READY platform file.

        Raises:
            ValidationError: If neither identifier is given
            ResourceNotFoundError: If the record or platform file does not exist
            FileNotReadyError: If the platform is still processing the file
        """
        record = None
        if shopify_file_id:
            file_gid = shopify_file_id
        elif file_id and is_platform_gid(file_id):
            file_gid = file_id
        elif file_id:
            record = self.find_record(file_id)
            if not record or not record.shopify_file_id:
                raise ResourceNotFoundError(resource_type="File", resource_id=file_id, context=context)
            file_gid = record.shopify_file_id
        else:
            raise ValidationError(
                message="Missing required query parameter: id or shopifyFileId",
                field_errors=[{"field": "id", "message": "Field required"}],
                context=context,
            )

        platform_file = self.storage.get_file(file_gid)
        if not platform_file:
            raise ResourceNotFoundError(resource_type="File", resource_id=file_gid, context=context)
        if not platform_file.is_ready or not platform_file.url:
            raise FileNotReadyError(file_id=file_gid, file_status=platform_file.file_status or 'UNKNOWN')

        name = file_name or (record.file_name if record else None) or platform_file.file_name or platform_file.alt or 'download'
        return FileDownload(
            file=platform_file,
            file_name=name,
            headers={'Content-Disposition': content_disposition(name)},
        )

    @tracer.capture_method
    def download_file(self, download: FileDownload) -> FileDownload:
        """Fetch the bytes of a resolved file and attach size headers."""
        content = self.storage.download(download.file.url)
        original_size = download.file.original_file_size
        size_match = original_size is None or original_size == len(content)

        if not size_match:
            logger.warning("Downloaded size differs from original", extra={
                "file_gid": download.file.id,
                "original_size": original_size,
                "downloaded_size": len(content),
            })

        metrics.add_metric(name="FileDownloaded", unit=MetricUnit.Count, value=1)
        download.content = content
        download.headers.update({
            'X-Original-File-Size': str(original_size if original_size is not None else len(content)),
            'X-Downloaded-File-Size': str(len(content)),
            'X-Size-Match': 'true' if size_match else 'false',
        })
        return download

    @tracer.capture_method
    def cleanup_files(self, request: CleanupFilesRequest, context: Optional[ErrorContext] = None) -> Dict[str, Any]:
        """
        Delete ``uploaded_file`` records by file id or order id.

        Returns:
            Counts and per-file outcome details
        """
        if request.file_id:
            record = self.find_record(request.file_id)
            targets = [record] if record else []
        else:
            targets = [record for record in self._records() if record.order_id == request.order_id]

        details = []
        for record in targets:
            try:
                self.metaobjects.delete_metaobject(record.id)
                details.append({'fileId': record.file_id or 'unknown', 'success': True})
            except BaseServiceError as exc:
                logger.warning("Failed to delete file record", extra={"file_id": record.file_id, "error": exc.message})
                details.append({'fileId': record.file_id or 'unknown', 'success': False, 'error': exc.user_message})

        deleted_count = sum(1 for detail in details if detail['success'])
        metrics.add_metric(name="FileRecordsDeleted", unit=MetricUnit.Count, value=deleted_count)
        logger.info("File cleanup finished", extra={
            "order_id": request.order_id,
            "file_id": request.file_id,
            "matched": len(targets),
            "deleted": deleted_count,
        })
        return {
            'success': True,
            'deletedCount': deleted_count,
            'failedCount': len(details) - deleted_count,
            'details': details,
        }
