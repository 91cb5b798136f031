"""
Integration tests for the Data Access Layer.

The Admin API client and the DAL handlers run against FakeShopify through an
httpx mock transport, exercising the real request and response handling.
"""

import logging

import httpx
import pytest

from fake_shopify import (
    STAGED_UPLOAD_URL,
    FakeShopify,
    draft_order_node,
    graphql_data,
    graphql_errors,
    metaobject_node,
)
from quote_service.dal import metaobject_handler
from quote_service.dal.draft_order_handler import DraftOrderHandler
from quote_service.dal.file_handler import FileStorageHandler
from quote_service.dal.metaobject_handler import MetaobjectHandler
from quote_service.dal.shopify_client import ShopifyAdminClient
from quote_service.handlers.utils.errors import BusinessLogicError, ExternalServiceError


@pytest.fixture
def fake() -> FakeShopify:
    return FakeShopify()


@pytest.fixture
def client(fake: FakeShopify) -> ShopifyAdminClient:
    client = ShopifyAdminClient(
        store_domain='test-shop.myshopify.com',
        access_token='shpat_test_token',
        transport=fake.transport,
    )
    yield client
    client.close()


class TestShopifyAdminClient:
    """Test cases for the GraphQL client."""

    def test_execute_sends_token_and_operation_name(self, client, fake):
        shop = client.ping()

        assert shop == {'id': 'gid://shopify/Shop/1', 'name': 'Test Shop'}
        assert fake.calls[0]['operation'] == 'ShopInfo'
        assert fake.calls[0]['access_token'] == 'shpat_test_token'
        assert client.endpoint == 'https://test-shop.myshopify.com/admin/api/2024-01/graphql.json'

    def test_graphql_errors_raise_external_service_error(self, client, fake):
        fake.on('ShopInfo', graphql_errors('Access denied for shop field.', 'Second error'))

        with pytest.raises(ExternalServiceError) as exc_info:
            client.ping()

        error = exc_info.value
        assert error.error_code == 'GRAPHQL_ERROR'
        assert 'Access denied for shop field.' in error.message
        assert len(error.errors) == 2

    def test_http_error_status_raises(self, client, fake):
        fake.on('ShopInfo', httpx.Response(401, text='[API] Invalid API key or access token'))

        with pytest.raises(ExternalServiceError) as exc_info:
            client.ping()

        assert exc_info.value.upstream_status == 401
        assert 'Invalid API key' in exc_info.value.message

    def test_transport_failure_raises(self):
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        client = ShopifyAdminClient('test-shop.myshopify.com', 'token', transport=httpx.MockTransport(fail))

        with pytest.raises(ExternalServiceError):
            client.ping()

    def test_user_errors_raise_business_logic_error(self):
        with pytest.raises(BusinessLogicError) as exc_info:
            ShopifyAdminClient.raise_for_user_errors(
                {'userErrors': [{'field': ['handle'], 'message': 'Handle has already been taken'}]},
                'metaobjectCreate',
            )

        assert exc_info.value.error_code == 'USER_ERRORS'
        assert exc_info.value.user_errors[0]['message'] == 'Handle has already been taken'

    def test_staged_upload_with_policy_posts_multipart_form(self, client, fake):
        target = {
            'url': STAGED_UPLOAD_URL,
            'parameters': [
                {'name': 'key', 'value': 'tmp/model.stl'},
                {'name': 'policy', 'value': 'cG9saWN5'},
            ],
        }

        client.upload_to_staged_target(target, b'solid cube', 'model.stl', 'model/stl')

        request = fake.uploads[0]
        assert request.method == 'POST'
        assert request.headers['Content-Type'].startswith('multipart/form-data')
        assert b'tmp/model.stl' in request.content
        assert b'solid cube' in request.content

    def test_staged_upload_without_policy_puts_bytes(self, client, fake):
        target = {
            'url': f'{STAGED_UPLOAD_URL}signed?X-Goog-Signature=abc',
            'parameters': [{'name': 'content_type', 'value': 'model/stl'}],
        }

        client.upload_to_staged_target(target, b'solid cube', 'model.stl')

        request = fake.uploads[0]
        assert request.method == 'PUT'
        assert request.headers['Content-Type'] == 'model/stl'
        assert request.content == b'solid cube'


class TestMetaobjectHandler:
    """Test cases for metaobject access."""

    def test_create_and_list(self, client, fake):
        handler = MetaobjectHandler(client)

        created = handler.create_metaobject('quote', 'jane-abc123', [{'key': 'status', 'value': 'Pending'}])
        nodes = handler.list_metaobjects('quote')

        assert [node['id'] for node in nodes] == [created['id']]

    def test_list_follows_page_cursor(self, client, fake):
        for index in range(260):
            fake.add_metaobject(metaobject_node(f'quote-{index}', {'status': 'Pending'}, node_id=f'gid://shopify/Metaobject/{index}'))

        nodes = MetaobjectHandler(client).list_metaobjects('quote')

        assert len(nodes) == 260
        assert nodes[-1]['handle'] == 'quote-259'
        assert [variables['after'] for variables in fake.variables('ListMetaobjects')] == [None, '250']

    def test_list_stops_at_page_limit(self, client, fake, monkeypatch):
        monkeypatch.setattr(metaobject_handler, 'MAX_PAGES', 2)
        for index in range(7):
            fake.add_metaobject(metaobject_node(f'quote-{index}', {'status': 'Pending'}, node_id=f'gid://shopify/Metaobject/{index}'))

        nodes = MetaobjectHandler(client).list_metaobjects('quote', page_size=3)

        assert len(nodes) == 6
        assert len(fake.variables('ListMetaobjects')) == 2

    def test_get_by_handle_falls_back_to_scan(self, client, fake):
        fake.add_metaobject(metaobject_node('jane-abc123', {'status': 'Pending'}, node_id='gid://shopify/Metaobject/7'))
        fake.on('MetaobjectByHandle', graphql_errors("Field 'metaobjectByHandle' doesn't exist"))

        node = MetaobjectHandler(client).get_by_handle('quote', 'jane-abc123')

        assert node['id'] == 'gid://shopify/Metaobject/7'
        assert fake.operations() == ['MetaobjectByHandle', 'ListMetaobjects']
        assert fake.variables('ListMetaobjects')[0] == {'type': 'quote', 'first': 250, 'after': None}

    def test_get_by_handle_not_found(self, client, fake):
        assert MetaobjectHandler(client).get_by_handle('quote', 'missing') is None

    def test_update_merges_fields(self, client, fake):
        fake.add_metaobject(metaobject_node('h1', {'status': 'Pending', 'price': ''}, node_id='gid://shopify/Metaobject/1'))

        updated = MetaobjectHandler(client).update_metaobject('gid://shopify/Metaobject/1', [{'key': 'price', 'value': '99'}])

        assert {field['key']: field['value'] for field in updated['fields']} == {'status': 'Pending', 'price': '99'}


class TestDraftOrderHandler:
    """Test cases for draft order access."""

    def test_get_missing_draft_order(self, client, fake):
        fake.on('DraftOrderById', graphql_data({'draftOrder': None}))

        assert DraftOrderHandler(client).get_draft_order('gid://shopify/DraftOrder/404') is None

    def test_create_draft_order_returns_created_draft(self, client, fake, caplog):
        caplog.set_level(logging.INFO, logger='test-quote-service')
        fake.on('DraftOrderCreate', graphql_data({'draftOrderCreate': {
            'draftOrder': draft_order_node(),
            'userErrors': [],
        }}))

        draft = DraftOrderHandler(client).create_draft_order({'email': 'customer@example.com'})

        assert draft.id == 'gid://shopify/DraftOrder/1001'
        assert draft.name == '#D1001'
        assert fake.operations() == ['DraftOrderCreate']

    def test_create_draft_order_user_errors(self, client, fake):
        fake.on('DraftOrderCreate', graphql_data({'draftOrderCreate': {
            'draftOrder': None,
            'userErrors': [{'field': ['email'], 'message': 'Email is invalid'}],
        }}))

        with pytest.raises(BusinessLogicError):
            DraftOrderHandler(client).create_draft_order({'email': 'x'})

    def test_search_draft_orders(self, client, fake):
        fake.on('SearchDraftOrders', graphql_data({'draftOrders': {'edges': [{'node': draft_order_node()}]}}))

        drafts = DraftOrderHandler(client).search_draft_orders(query='name:#D1001', first=1)

        assert drafts[0].name == '#D1001'
        assert fake.variables('SearchDraftOrders') == [{'first': 1, 'query': 'name:#D1001'}]

    def test_delete_draft_order_uses_input_object(self, client, fake):
        fake.on('DraftOrderDelete', lambda variables: graphql_data({'draftOrderDelete': {
            'deletedId': variables['input']['id'],
            'userErrors': [],
        }}))

        deleted = DraftOrderHandler(client).delete_draft_order('gid://shopify/DraftOrder/1001')

        assert deleted == 'gid://shopify/DraftOrder/1001'


class TestFileStorageHandler:
    """Test cases for the staged upload flow."""

    def test_upload_runs_three_steps(self, client, fake):
        fake.on('StagedUploadsCreate', graphql_data({'stagedUploadsCreate': {
            'stagedTargets': [{
                'url': STAGED_UPLOAD_URL,
                'resourceUrl': f'{STAGED_UPLOAD_URL}tmp/model.stl',
                'parameters': [{'name': 'policy', 'value': 'cG9saWN5'}],
            }],
            'userErrors': [],
        }}))
        fake.on('FileCreate', graphql_data({'fileCreate': {
            'files': [{'id': 'gid://shopify/GenericFile/1', 'fileStatus': 'UPLOADED', 'alt': 'model.stl'}],
            'userErrors': [],
        }}))

        created = FileStorageHandler(client).upload(b'solid cube', 'model.stl', 'model/stl', 'MODEL_3D', 'MODEL_3D')

        assert created['id'] == 'gid://shopify/GenericFile/1'
        assert fake.operations() == ['StagedUploadsCreate', 'FileCreate']
        staged_input = fake.variables('StagedUploadsCreate')[0]['input'][0]
        assert staged_input['resource'] == 'MODEL_3D'
        assert staged_input['fileSize'] == '10'
        assert fake.variables('FileCreate')[0]['files'][0]['originalSource'].endswith('tmp/model.stl')
        assert len(fake.uploads) == 1
