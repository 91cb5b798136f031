"""
Integration tests for the file upload, download and cleanup API.
"""

import base64

import pytest

from fake_shopify import CDN_BASE_URL, STAGED_UPLOAD_URL, graphql_data, metaobject_node
from proxy_response import binary_body, json_body, response_headers
from quote_service.handlers import files_handler

FILES_PATH = '/api/files'
FILE_GID = 'gid://shopify/GenericFile/9'
FILE_URL = f'{CDN_BASE_URL}bracket.step'
CONTENT = b'ISO-10303-21;bracket'


def invoke(event, lambda_context):
    return files_handler.lambda_handler(event, lambda_context)


def add_file_record(fake, file_id, order_id='', shopify_file_id=FILE_GID, file_name='bracket.step'):
    return fake.add_metaobject(metaobject_node(
        file_id.replace('_', '-'),
        {
            'file_id': file_id,
            'file_name': file_name,
            'file_type': 'model/step',
            'shopify_file_id': shopify_file_id,
            'file_url': '',
            'file_size': str(len(CONTENT)),
            'order_id': order_id,
        },
        metaobject_type='uploaded_file',
        node_id=f'gid://shopify/Metaobject/{file_id}',
    ))


def platform_file(status='READY', size=len(CONTENT)):
    return graphql_data({'node': {
        'id': FILE_GID,
        'url': FILE_URL,
        'originalFileSize': size,
        'fileStatus': status,
        'alt': 'bracket.step',
        'mimeType': 'model/step',
    }})


@pytest.fixture
def stored_file(fake_shopify):
    add_file_record(fake_shopify, 'file_1738140000000_abc123def')
    fake_shopify.on('FileById', platform_file())
    fake_shopify.cdn_files[FILE_URL] = CONTENT
    return fake_shopify


class TestUploadFile:
    """Test cases for POST /api/files."""

    def test_upload_stores_file_and_record(self, fake_shopify, api_gateway_event, lambda_context):
        fake_shopify.on('StagedUploadsCreate', graphql_data({'stagedUploadsCreate': {
            'stagedTargets': [{
                'url': STAGED_UPLOAD_URL,
                'resourceUrl': f'{STAGED_UPLOAD_URL}tmp/bracket.step',
                'parameters': [{'name': 'policy', 'value': 'cG9saWN5'}],
            }],
            'userErrors': [],
        }}))
        fake_shopify.on('FileCreate', graphql_data({'fileCreate': {
            'files': [{'id': FILE_GID, 'fileStatus': 'UPLOADED', 'alt': 'bracket.step'}],
            'userErrors': [],
        }}))

        result = invoke(
            api_gateway_event('POST', FILES_PATH, body={
                'fileData': base64.b64encode(CONTENT).decode(),
                'fileName': 'bracket.step',
                'orderId': 'gid-42',
            }),
            lambda_context,
        )

        body = json_body(result)
        assert result['statusCode'] == 201
        assert body['fileId'].startswith('file_')
        assert body['shopifyFileId'] == FILE_GID
        assert body['originalFileSize'] == len(CONTENT)
        assert body['uploadedFileSize'] == len(CONTENT)

        staged_input = fake_shopify.variables('StagedUploadsCreate')[0]['input'][0]
        assert staged_input['resource'] == 'MODEL_3D'
        assert staged_input['mimeType'] == 'application/octet-stream'

        record = next(node for node in fake_shopify.metaobjects.values() if node['type'] == 'uploaded_file')
        fields = {field['key']: field['value'] for field in record['fields']}
        assert record['handle'] == body['fileId'].replace('_', '-')
        assert fields['shopify_file_id'] == FILE_GID
        assert fields['order_id'] == 'gid-42'

    def test_upload_rejects_corrupted_base64(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(
            api_gateway_event('POST', FILES_PATH, body={'fileData': 'c29s%aWQ=', 'fileName': 'bracket.step'}),
            lambda_context,
        )

        assert result['statusCode'] == 400
        assert json_body(result)['field_errors'][0]['field'] == 'fileData'
        assert fake_shopify.calls == []

    def test_upload_requires_file_name(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('POST', FILES_PATH, body={'fileData': 'c29saWQ='}), lambda_context)

        assert result['statusCode'] == 400
        assert fake_shopify.calls == []


class TestDownloadFile:
    """Test cases for GET /api/files."""

    def test_redirects_to_cdn_by_default(self, stored_file, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', FILES_PATH, query={'id': 'file_1738140000000_abc123def'}), lambda_context)

        headers = response_headers(result)
        assert result['statusCode'] == 302
        assert headers['Location'] == FILE_URL
        assert headers['Content-Disposition'] == 'attachment; filename="bracket.step"'
        assert stored_file.variables('FileById') == [{'id': FILE_GID}]

    def test_download_mode_returns_bytes(self, stored_file, api_gateway_event, lambda_context):
        result = invoke(
            api_gateway_event('GET', FILES_PATH, query={
                'id': 'file_1738140000000_abc123def',
                'mode': 'download',
                'fileName': 'renamed.step',
            }),
            lambda_context,
        )

        headers = response_headers(result)
        assert result['statusCode'] == 200
        assert binary_body(result) == CONTENT
        assert headers['Content-Type'] == 'model/step'
        assert headers['Content-Disposition'] == 'attachment; filename="renamed.step"'
        assert headers['X-Original-File-Size'] == str(len(CONTENT))
        assert headers['X-Downloaded-File-Size'] == str(len(CONTENT))
        assert headers['X-Size-Match'] == 'true'

    def test_download_reports_size_mismatch(self, stored_file, api_gateway_event, lambda_context):
        stored_file.on('FileById', platform_file(size=4096))

        result = invoke(
            api_gateway_event('GET', FILES_PATH, query={'shopifyFileId': FILE_GID, 'mode': 'download'}),
            lambda_context,
        )

        headers = response_headers(result)
        assert headers['X-Original-File-Size'] == '4096'
        assert headers['X-Size-Match'] == 'false'

    def test_platform_gid_skips_record_lookup(self, stored_file, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', FILES_PATH, query={'id': FILE_GID}), lambda_context)

        assert result['statusCode'] == 302
        assert 'ListMetaobjects' not in stored_file.operations()

    def test_file_still_processing(self, stored_file, api_gateway_event, lambda_context):
        stored_file.on('FileById', platform_file(status='PROCESSING'))

        result = invoke(api_gateway_event('GET', FILES_PATH, query={'shopifyFileId': FILE_GID}), lambda_context)

        body = json_body(result)
        assert result['statusCode'] == 202
        assert body['error'] == 'FILE_NOT_READY'
        assert body['fileStatus'] == 'PROCESSING'
        assert response_headers(result)['Retry-After'] == '10'

    def test_local_file_id_found_among_many_records(self, stored_file, api_gateway_event, lambda_context):
        for index in range(150):
            add_file_record(stored_file, f'file_1738130000000_old{index:05d}', shopify_file_id=f'gid://shopify/GenericFile/old-{index}')
        add_file_record(stored_file, 'file_1738150000000_newest001')

        result = invoke(
            api_gateway_event('GET', FILES_PATH, query={'id': 'file_1738150000000_newest001'}),
            lambda_context,
        )

        assert result['statusCode'] == 302
        assert stored_file.variables('MetaobjectByHandle')[0]['handle'] == {
            'type': 'uploaded_file',
            'handle': 'file-1738150000000-newest001',
        }
        assert 'ListMetaobjects' not in stored_file.operations()

    def test_unknown_local_file_id(self, stored_file, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', FILES_PATH, query={'id': 'file_1_missing'}), lambda_context)

        assert result['statusCode'] == 404
        assert 'FileById' not in stored_file.operations()

    def test_requires_identifier(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', FILES_PATH), lambda_context)

        assert result['statusCode'] == 400
        assert json_body(result)['error'] == 'VALIDATION_ERROR'

    def test_rejects_unknown_mode(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', FILES_PATH, query={'id': FILE_GID, 'mode': 'inline'}), lambda_context)

        assert result['statusCode'] == 400
        assert fake_shopify.calls == []


class TestCleanupFiles:
    """Test cases for POST /api/files/cleanup."""

    def test_cleanup_by_order_id(self, fake_shopify, api_gateway_event, lambda_context):
        add_file_record(fake_shopify, 'file_1_aaa', order_id='gid-42')
        add_file_record(fake_shopify, 'file_2_bbb', order_id='gid-42')
        add_file_record(fake_shopify, 'file_3_ccc', order_id='gid-7')

        result = invoke(api_gateway_event('POST', f'{FILES_PATH}/cleanup', body={'orderId': 'gid-42'}), lambda_context)

        body = json_body(result)
        assert body['success'] is True
        assert body['deletedCount'] == 2
        assert body['failedCount'] == 0
        assert list(fake_shopify.metaobjects) == ['gid://shopify/Metaobject/file_3_ccc']

    def test_cleanup_by_file_id(self, fake_shopify, api_gateway_event, lambda_context):
        add_file_record(fake_shopify, 'file_1_aaa', order_id='gid-42')

        result = invoke(api_gateway_event('POST', f'{FILES_PATH}/cleanup', body={'fileId': 'file_1_aaa'}), lambda_context)

        assert json_body(result)['details'] == [{'fileId': 'file_1_aaa', 'success': True}]

    def test_cleanup_requires_target(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('POST', f'{FILES_PATH}/cleanup', body={}), lambda_context)

        assert result['statusCode'] == 400
