"""
Integration tests for the quote records API.

Requests go through the Lambda entry point and the Powertools resolver down to
FakeShopify, which keeps metaobjects in memory.
"""

import pytest
from aws_lambda_env_modeler import get_environment_variables

from conftest import ALLOWED_ORIGIN
from fake_shopify import metaobject_node
from proxy_response import json_body, response_headers
from quote_service.handlers import quotes_handler

QUOTES_PATH = '/api/quotes'


def invoke(event, lambda_context):
    return quotes_handler.lambda_handler(event, lambda_context)


def create_quote(api_gateway_event, lambda_context, **body):
    payload = {'text': '3D printing request', 'author': 'Jane', 'email': 'jane@example.com'}
    payload.update(body)
    result = invoke(api_gateway_event('POST', QUOTES_PATH, body=payload), lambda_context)
    assert result['statusCode'] == 201
    return json_body(result)['metaobject']


class TestQuoteRecordsApi:
    """Test cases for quote record CRUD."""

    def test_create_then_list_includes_record(self, fake_shopify, api_gateway_event, lambda_context):
        created = create_quote(
            api_gateway_event,
            lambda_context,
            invoice_url='https://cdn.example.com/model.stl',
            parameters={'material': 'ABS', 'quantity': 2},
        )

        result = invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context)
        body = json_body(result)

        assert result['statusCode'] == 200
        assert body['success'] is True
        assert body['count'] == 1
        record = body['records'][0]
        assert record['id'] == created['id']
        assert record['handle'].startswith('jane-example-com-')
        assert record['status'] == 'Pending'
        assert record['authorName'] == 'Jane'
        assert record['parameters'] == {'material': 'ABS', 'quantity': '2'}
        assert record['invoiceUrl'] == 'https://cdn.example.com/model.stl'
        assert record['fileData'] == 'http:url'

    def test_create_then_list_past_first_page(self, fake_shopify, api_gateway_event, lambda_context):
        for index in range(300):
            fake_shopify.add_metaobject(metaobject_node(
                f'existing-{index}',
                {'status': 'Pending'},
                node_id=f'gid://shopify/Metaobject/existing-{index}',
            ))

        created = create_quote(api_gateway_event, lambda_context)
        body = json_body(invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context))

        assert body['count'] == 301
        assert created['id'] in [record['id'] for record in body['records']]
        assert len(fake_shopify.variables('ListMetaobjects')) == 2

    def test_create_with_data_uri_stores_truncated_file_data(self, fake_shopify, api_gateway_event, lambda_context):
        created = create_quote(api_gateway_event, lambda_context, invoice_url='data:model/stl;base64,' + 'A' * 3000)

        fields = {field['key']: field['value'] for field in created['fields']}
        assert fields['invoice_url'] == 'data:uri'
        assert len(fields['file_data']) == 1000

    def test_status_filter(self, fake_shopify, api_gateway_event, lambda_context):
        fake_shopify.add_metaobject(metaobject_node('a', {'status': 'Pending'}, node_id='gid://shopify/Metaobject/1'))
        fake_shopify.add_metaobject(metaobject_node('b', {'status': 'Quoted'}, node_id='gid://shopify/Metaobject/2'))
        fake_shopify.add_metaobject(metaobject_node('c', {'text': 'no status'}, node_id='gid://shopify/Metaobject/3'))

        all_records = json_body(invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context))
        quoted = json_body(invoke(api_gateway_event('GET', QUOTES_PATH, query={'status': 'Quoted'}), lambda_context))

        assert all_records['count'] == 3
        assert [record['handle'] for record in quoted['records']] == ['b']

    def test_update_quote(self, fake_shopify, api_gateway_event, lambda_context):
        created = create_quote(api_gateway_event, lambda_context)

        result = invoke(
            api_gateway_event('PATCH', QUOTES_PATH, body={'status': 'Quoted', 'price': 150}, query={'handle': created['handle']}),
            lambda_context,
        )

        fields = {field['key']: field['value'] for field in json_body(result)['metaobject']['fields']}
        assert result['statusCode'] == 200
        assert fields['status'] == 'Quoted'
        assert fields['price'] == '150'

    def test_update_requires_handle(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('PATCH', QUOTES_PATH, body={'status': 'Quoted'}), lambda_context)

        body = json_body(result)
        assert result['statusCode'] == 400
        assert body['error'] == 'VALIDATION_ERROR'
        assert body['field_errors'][0]['field'] == 'handle'

    def test_update_with_empty_body_is_rejected(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('PATCH', QUOTES_PATH, body={}, query={'handle': 'h1'}), lambda_context)

        assert result['statusCode'] == 400
        assert json_body(result)['error'] == 'VALIDATION_ERROR'

    def test_update_unknown_handle(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(
            api_gateway_event('PATCH', QUOTES_PATH, body={'status': 'Quoted'}, query={'handle': 'missing'}),
            lambda_context,
        )

        body = json_body(result)
        assert result['statusCode'] == 404
        assert body['error'] == 'RESOURCE_NOT_FOUND'
        assert body['details'] == {'operation': 'update_quote', 'resource_id': 'missing'}

    def test_invalid_json_body(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('POST', QUOTES_PATH, body='{not json'), lambda_context)

        assert result['statusCode'] == 400
        assert json_body(result)['message'] == 'Invalid JSON in request body'

    def test_soft_delete_excludes_record_from_list(self, fake_shopify, api_gateway_event, lambda_context):
        created = create_quote(api_gateway_event, lambda_context)

        result = invoke(api_gateway_event('DELETE', QUOTES_PATH, query={'handle': created['handle']}), lambda_context)
        listed = json_body(invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context))

        assert json_body(result) == {'success': True, 'handle': created['handle'], 'mode': 'soft'}
        assert listed['count'] == 0
        assert created['id'] in fake_shopify.metaobjects
        assert 'MetaobjectDelete' not in fake_shopify.operations()

    def test_hard_delete_removes_record(self, fake_shopify, api_gateway_event, lambda_context, monkeypatch):
        monkeypatch.setenv('QUOTE_DELETE_MODE', 'hard')
        get_environment_variables.cache_clear()
        created = create_quote(api_gateway_event, lambda_context)

        result = invoke(api_gateway_event('DELETE', QUOTES_PATH, query={'handle': created['handle']}), lambda_context)

        body = json_body(result)
        assert body['mode'] == 'hard'
        assert body['deletedId'] == created['id']
        assert created['id'] not in fake_shopify.metaobjects

    def test_delete_all_quotes(self, fake_shopify, api_gateway_event, lambda_context):
        create_quote(api_gateway_event, lambda_context)
        create_quote(api_gateway_event, lambda_context, email='bob@example.com')

        result = invoke(api_gateway_event('DELETE', f'{QUOTES_PATH}/all'), lambda_context)
        listed = json_body(invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context))

        body = json_body(result)
        assert body['success'] is True
        assert body['total'] == 2
        assert body['deleted'] == 2
        assert body['failed'] == 0
        assert listed['count'] == 0


class TestQuotesApiCrossCutting:
    """Test cases for CORS, security headers and configuration errors."""

    def test_preflight_answered_without_platform_calls(self, fake_shopify, api_gateway_event, lambda_context):
        event = api_gateway_event('OPTIONS', QUOTES_PATH, headers={'Access-Control-Request-Method': 'POST'})

        result = invoke(event, lambda_context)

        headers = response_headers(result)
        assert result['statusCode'] == 204
        assert headers['Access-Control-Allow-Origin'] == ALLOWED_ORIGIN
        assert 'POST' in headers['Access-Control-Allow-Methods']
        assert fake_shopify.calls == []

    def test_responses_carry_cors_and_security_headers(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context)

        headers = response_headers(result)
        assert headers['Access-Control-Allow-Origin'] == ALLOWED_ORIGIN
        assert headers['X-Content-Type-Options'] == 'nosniff'
        assert headers['X-Frame-Options'] == 'DENY'

    def test_error_responses_carry_security_headers(self, fake_shopify, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('DELETE', QUOTES_PATH), lambda_context)

        assert result['statusCode'] == 400
        assert response_headers(result)['X-Content-Type-Options'] == 'nosniff'

    @pytest.mark.usefixtures('unconfigured_platform')
    def test_unconfigured_platform_is_degraded(self, api_gateway_event, lambda_context):
        result = invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context)

        body = json_body(result)
        assert result['statusCode'] == 503
        assert body['degraded'] is True
        assert body['error'] == 'CONFIGURATION_ERROR'
        assert response_headers(result)['Retry-After'] == '300'

    def test_platform_failure_is_degraded(self, fake_shopify, api_gateway_event, lambda_context):
        fake_shopify.on('ListMetaobjects', {'errors': [{'message': 'Throttled'}]})

        result = invoke(api_gateway_event('GET', QUOTES_PATH), lambda_context)

        body = json_body(result)
        assert result['statusCode'] == 502
        assert body['degraded'] is True
        assert body['error'] == 'GRAPHQL_ERROR'
