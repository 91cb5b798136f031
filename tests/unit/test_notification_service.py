"""
Unit tests for the quote notification email.
"""

import json

import httpx
import pytest

from quote_service.handlers.utils.errors import ExternalServiceError
from quote_service.logic.notification_service import (
    NotificationService,
    build_mailto,
    build_subject,
    compose_quote_email,
)
from quote_service.models.input import QuoteEmailRequest


def make_request(**overrides) -> QuoteEmailRequest:
    payload = {
        'orderId': 'gid-123456789',
        'email': 'customer@example.com',
        'amount': '1500.00',
        'files': ['bracket.stl'],
    }
    payload.update(overrides)
    return QuoteEmailRequest.model_validate(payload)


class TestComposeQuoteEmail:
    """Test cases for composing the email."""

    def test_subject_uses_order_prefix(self):
        assert build_subject('gid-123456789') == '报价通知 - 订单 #gid-1234'
        assert build_subject(None) == '报价通知 - 订单 #N/A'

    def test_bodies_contain_quote_details(self):
        email = compose_quote_email(make_request(note='含运费'), '定制化加工服务')

        assert email.to == 'customer@example.com'
        assert '报价金额：¥1500.00' in email.text_body
        assert '报价备注：含运费' in email.text_body
        assert 'bracket.stl' in email.html_body

    def test_html_body_escapes_user_content(self):
        email = compose_quote_email(make_request(note='<script>alert(1)</script>'), 'Shop')

        assert '<script>' not in email.html_body
        assert '&lt;script&gt;' in email.html_body

    def test_mailto_link_is_encoded(self):
        email = compose_quote_email(make_request(), 'Shop')

        mailto = build_mailto(email)

        assert mailto.startswith('mailto:customer@example.com?subject=')
        assert ' ' not in mailto


class TestNotificationService:
    """Test cases for sending through SendGrid."""

    def test_without_key_the_email_is_only_composed(self):
        service = NotificationService(sendgrid_api_key=None, from_address='noreply@example.com', from_name='Shop')

        result = service.send_quote_email(make_request())

        assert result.sent is False
        assert result.provider is None
        assert result.email.subject == '报价通知 - 订单 #gid-1234'

    def test_sends_through_sendgrid(self):
        requests = []

        def handle(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        service = NotificationService(
            sendgrid_api_key='SG.test',
            from_address='noreply@example.com',
            from_name='Shop',
            transport=httpx.MockTransport(handle),
        )

        result = service.send_quote_email(make_request())

        assert result.sent is True
        assert result.provider == 'SendGrid'
        assert requests[0].headers['Authorization'] == 'Bearer SG.test'
        payload = json.loads(requests[0].content)
        assert payload['personalizations'][0]['to'] == [{'email': 'customer@example.com'}]
        assert payload['from'] == {'email': 'noreply@example.com', 'name': 'Shop'}

    def test_sendgrid_failure_raises(self):
        service = NotificationService(
            sendgrid_api_key='SG.test',
            from_address='noreply@example.com',
            from_name='Shop',
            transport=httpx.MockTransport(lambda request: httpx.Response(401, text='unauthorized')),
        )

        with pytest.raises(ExternalServiceError) as exc_info:
            service.send_quote_email(make_request())

        assert exc_info.value.error_code == 'EMAIL_SEND_FAILED'
        assert exc_info.value.status_code == 502
