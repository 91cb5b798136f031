"""
Powertools logger, tracer and metrics shared by the quote service.

Handlers, services and the Admin API client all import these instances, so log
lines carry one service name and correlation id and every business metric
(QuoteCreated, DraftOrderSubmitted, FileUploaded, StatusResolved, ...) lands in
one CloudWatch namespace.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

METRICS_NAMESPACE = 'QuoteService'

# Service name from POWERTOOLS_SERVICE_NAME, level from LOG_LEVEL
logger: Logger = Logger(utc=True)

# POWERTOOLS_TRACE_DISABLED=true in tests and local runs
tracer: Tracer = Tracer()

metrics = Metrics(namespace=METRICS_NAMESPACE)
