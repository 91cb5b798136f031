"""
Business Logic Layer for quote notification emails.

The email is always composed and returned to the caller together with a
mailto link. When a SendGrid key is configured it is also sent.
"""

from html import escape
from typing import Optional
from urllib.parse import quote

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from quote_service.handlers.utils.errors import ErrorContext, ExternalServiceError
from quote_service.handlers.utils.observability import logger, metrics, tracer
from quote_service.models.input import QuoteEmailRequest
from quote_service.models.output import EmailContentOutput, QuoteEmailOutput

SENDGRID_URL = 'https://api.sendgrid.com/v3/mail/send'
SENDGRID_PROVIDER = 'SendGrid'
ORDER_ID_PREFIX_LENGTH = 8

TEXT_TEMPLATE = """尊敬的客户，

您好！您的询价请求已经完成报价，详情如下：

订单信息：
- 订单号：{order_id}
- 文件信息：{files}
- 报价金额：¥{amount}
{note_line}
支付说明：
请刷新您的购物车页面查看报价。如果购物车中没有显示报价，请直接联系客服确认。

如有任何疑问，请随时联系我们的客服团队。

感谢您选择我们的服务！

----
此邮件由系统自动发送，请勿回复。"""

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>报价通知</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: #f8f9fa; padding: 20px; border-radius: 8px; text-align: center;">
        <h2>报价已完成</h2>
        <p>{sender}</p>
    </div>
    <p>尊敬的客户，</p>
    <p>您好！您的询价请求已经完成报价，详情如下：</p>
    <ul>
        <li><strong>订单号：</strong>{order_id}</li>
        <li><strong>文件信息：</strong>{files}</li>
        {note_item}
    </ul>
    <p style="background: #fff3e0; padding: 15px; border-radius: 6px; font-size: 18px; font-weight: bold; color: #f57c00;">报价金额：¥{amount}</p>
    <p>请刷新您的购物车页面查看报价。如果购物车中没有显示报价，请直接联系客服确认。</p>
    <p>感谢您选择我们的服务！</p>
    <p style="margin-top: 30px; font-size: 12px; color: #666; text-align: center;">此邮件由系统自动发送，请勿回复。</p>
</body>
</html>"""


def build_subject(order_id: Optional[str]) -> str:
    reference = order_id[:ORDER_ID_PREFIX_LENGTH] if order_id else 'N/A'
    return f'报价通知 - 订单 #{reference}'


def compose_quote_email(request: QuoteEmailRequest, sender_name: str) -> EmailContentOutput:
    """Compose the text and HTML bodies; user content is escaped in the HTML body."""
    order_id = request.order_id or 'N/A'
    files = request.files_text or 'N/A'
    amount = str(request.amount)

    text_body = TEXT_TEMPLATE.format(
        order_id=order_id,
        files=files,
        amount=amount,
        note_line=f'- 报价备注：{request.note}\n' if request.note else '',
    )
    html_body = HTML_TEMPLATE.format(
        sender=escape(sender_name),
        order_id=escape(order_id),
        files=escape(files),
        amount=escape(amount),
        note_item=f'<li><strong>报价备注：</strong>{escape(request.note)}</li>' if request.note else '',
    )
    return EmailContentOutput(
        to=request.email,
        subject=build_subject(request.order_id),
        text_body=text_body,
        html_body=html_body,
    )


def build_mailto(email: EmailContentOutput) -> str:
    return f'mailto:{email.to}?subject={quote(email.subject)}&body={quote(email.text_body)}'


class NotificationService:
    """Composes quote emails and sends them through SendGrid when configured."""

    def __init__(
        self,
        sendgrid_api_key: Optional[str],
        from_address: str,
        from_name: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.sendgrid_api_key = sendgrid_api_key
        self.from_address = from_address
        self.from_name = from_name
        self._http = httpx.Client(timeout=timeout, transport=transport)

    @tracer.capture_method
    def _send_via_sendgrid(self, email: EmailContentOutput) -> None:
        try:
            response = self._http.post(
                SENDGRID_URL,
                headers={'Authorization': f'Bearer {self.sendgrid_api_key}'},
                json={
                    'personalizations': [{'to': [{'email': email.to}], 'subject': email.subject}],
                    'from': {'email': self.from_address, 'name': self.from_name},
                    'content': [
                        {'type': 'text/plain', 'value': email.text_body},
                        {'type': 'text/html', 'value': email.html_body},
                    ],
                },
            )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(message=f'Request failed: {exc}', service_name=SENDGRID_PROVIDER) from exc

        if response.is_error:
            logger.error("SendGrid rejected the email", extra={
                "status_code": response.status_code,
                "body": response.text[:500],
            })
            raise ExternalServiceError(
                message=f'HTTP {response.status_code}',
                service_name=SENDGRID_PROVIDER,
                error_code='EMAIL_SEND_FAILED',
                upstream_status=response.status_code,
            )

    @tracer.capture_method
    def send_quote_email(self, request: QuoteEmailRequest, context: Optional[ErrorContext] = None) -> QuoteEmailOutput:
        """
        Compose the quote email and send it if a provider is configured.

        Raises:
            ExternalServiceError: If SendGrid is configured and the send fails
        """
        email = compose_quote_email(request, self.from_name)
        sent = False
        provider = None

        if self.sendgrid_api_key:
            self._send_via_sendgrid(email)
            sent = True
            provider = SENDGRID_PROVIDER
            metrics.add_metric(name="QuoteEmailSent", unit=MetricUnit.Count, value=1)
        else:
            metrics.add_metric(name="QuoteEmailComposed", unit=MetricUnit.Count, value=1)

        logger.info("Quote email processed", extra={
            "order_id": request.order_id,
            "sent": sent,
            "provider": provider,
        })
        return QuoteEmailOutput(sent=sent, provider=provider, email=email, mailto=build_mailto(email))
