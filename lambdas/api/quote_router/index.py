"""
Main handler for the Quote Router.

Receives a SOAP quote request from API Gateway, routes it to the backend
owning the caller's identity, and relays the backend's response.
"""

import logging
import os
from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent
from aws_lambda_powertools.utilities.typing import LambdaContext
from models.errors import RouterError
from models.internal import InboundRequest
from services.backend_client import BackendClient
from services.destination_resolver import DestinationResolver
from services.forwarding_engine import ForwardingEngine
from services.mapping_loader import load_destination_mapping
from services.token_cache import InMemoryTokenCache, SsmTokenCache, TokenCache
from services.token_provider import TokenProvider
from settings import RouterSettings
from utils.deadline import RequestDeadline
from utils.response import create_error_result, error_result_for

# Initialize AWS Lambda Powertools
logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace=os.environ.get("POWERTOOLS_METRICS_NAMESPACE", "QuoteRouter"))

logging.getLogger().setLevel(logging.INFO)

# Reused across warm invocations
_settings: Optional[RouterSettings] = None
_token_cache: Optional[TokenCache] = None
_token_provider: Optional[TokenProvider] = None
_backend_client: Optional[BackendClient] = None


def get_settings() -> RouterSettings:
    global _settings
    if _settings is None:
        _settings = RouterSettings.from_environment()
    return _settings


def build_token_cache(settings: RouterSettings) -> TokenCache:
    if settings.token_cache_backend == "memory":
        logger.warning("Using in-memory token cache; tokens are not shared")
        return InMemoryTokenCache()
    return SsmTokenCache(
        parameter_prefix=settings.parameter_prefix,
        kms_key_id=settings.token_cache_kms_key_id,
    )


def build_engine(settings: RouterSettings) -> ForwardingEngine:
    """
    Build the forwarding engine for this invocation.

    Transport clients and the token cache are created once per container;
    the destination mapping is reloaded each time (secret reads are cached
    by Powertools for MAPPING_CACHE_SECONDS).
    """
    global _token_cache, _token_provider, _backend_client

    if _token_cache is None:
        _token_cache = build_token_cache(settings)
    if _token_provider is None:
        _token_provider = TokenProvider(
            timeout=settings.token_timeout_seconds,
            default_ttl_seconds=settings.default_token_ttl_seconds,
        )
    if _backend_client is None:
        _backend_client = BackendClient(timeout=settings.backend_timeout_seconds)

    mapping = load_destination_mapping(settings)
    return ForwardingEngine(
        resolver=DestinationResolver(mapping),
        token_cache=_token_cache,
        token_provider=_token_provider,
        backend_client=_backend_client,
        expiry_margin_seconds=settings.token_expiry_margin_seconds,
        metrics=metrics,
    )


def to_inbound_request(event: APIGatewayProxyEvent) -> InboundRequest:
    body = event.decoded_body if event.is_base64_encoded else event.body
    return InboundRequest(
        body=body or "",
        headers=dict(event.raw_event.get("headers") or {}),
        method=event.http_method or "POST",
        path=event.path or "/",
    )


@logger.inject_lambda_context(
    correlation_id_path=correlation_paths.API_GATEWAY_REST, clear_state=True
)
@tracer.capture_lambda_handler(capture_response=False)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for quote routing.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway response carrying the backend's (or a normalized error)
        status, body and headers
    """
    try:
        proxy_event = APIGatewayProxyEvent(event)
        logger.info(f"INCOMING REQUEST: {proxy_event.http_method} {proxy_event.path}")

        settings = get_settings()
        logger.append_keys(environment=settings.environment)
        metrics.add_metric(name="QuoteRequests", unit=MetricUnit.Count, value=1)

        engine = build_engine(settings)
        result = engine.forward(
            to_inbound_request(proxy_event), deadline=RequestDeadline(context)
        )

        logger.info(f"Request completed. Status: {result.status_code}")
        return result.to_lambda_response()

    except RouterError as e:
        logger.error(f"Router setup failed with {e.error_code}: {e.message}")
        metrics.add_metric(name="ConfigurationErrors", unit=MetricUnit.Count, value=1)
        return error_result_for(e).to_lambda_response()

    except Exception as e:
        logger.exception(f"UNHANDLED ERROR in lambda_handler: {str(e)}")
        metrics.add_metric(name="UnhandledErrors", unit=MetricUnit.Count, value=1)
        return create_error_result(
            error_code="INTERNAL_SERVER_ERROR",
            error_message="An unexpected error occurred",
            status_code=500,
            details=str(e),
        ).to_lambda_response()
