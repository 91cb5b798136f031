"""
Platform file storage access: staged uploads, file records and downloads.
"""

from typing import Any, Dict, Optional

from quote_service.dal import queries
from quote_service.dal.shopify_client import ShopifyAdminClient
from quote_service.handlers.utils.errors import ExternalServiceError
from quote_service.handlers.utils.observability import logger, tracer
from quote_service.models.uploaded_file import PlatformFile


class FileStorageHandler:
    """Staged upload flow: stagedUploadsCreate, raw upload, fileCreate."""

    def __init__(self, client: ShopifyAdminClient) -> None:
        self.client = client

    @tracer.capture_method
    def create_staged_target(self, file_name: str, mime_type: str, resource: str, file_size: int) -> Dict[str, Any]:
        data = self.client.execute(queries.STAGED_UPLOADS_CREATE, {
            'input': [{
                'filename': file_name,
                'mimeType': mime_type,
                'resource': resource,
                'fileSize': str(file_size),
                'httpMethod': 'POST',
            }],
        })
        payload = self.client.raise_for_user_errors(data.get('stagedUploadsCreate'), 'stagedUploadsCreate')
        targets = payload.get('stagedTargets') or []
        if not targets:
            raise ExternalServiceError(message='No staged upload target returned', service_name='Shopify Admin API')
        return targets[0]

    @tracer.capture_method
    def create_file(self, resource_url: str, content_type: str, alt: str) -> Dict[str, Any]:
        data = self.client.execute(queries.FILE_CREATE, {
            'files': [{'originalSource': resource_url, 'contentType': content_type, 'alt': alt}],
        })
        payload = self.client.raise_for_user_errors(data.get('fileCreate'), 'fileCreate')
        files = payload.get('files') or []
        if not files:
            raise ExternalServiceError(message='fileCreate returned no file', service_name='Shopify Admin API')
        logger.info('Platform file created', extra={'file_gid': files[0]['id'], 'status': files[0].get('fileStatus')})
        return files[0]

    @tracer.capture_method
    def upload(self, content: bytes, file_name: str, mime_type: str, resource: str, content_type: str) -> Dict[str, Any]:
        """Run the full staged upload flow and return the created file node."""
        target = self.create_staged_target(file_name, mime_type, resource, len(content))
        self.client.upload_to_staged_target(target, content, file_name, mime_type)
        return self.create_file(target['resourceUrl'], content_type, file_name)

    @tracer.capture_method
    def get_file(self, file_gid: str) -> Optional[PlatformFile]:
        data = self.client.execute(queries.FILE_BY_ID, {'id': file_gid})
        node = data.get('node')
        return PlatformFile.from_node(node) if node else None

    def download(self, url: str) -> bytes:
        return self.client.fetch_bytes(url)
