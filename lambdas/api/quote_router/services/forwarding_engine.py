"""
Forwarding engine: the per-request orchestration of the Quote Router.

extract identity -> resolve destination -> obtain token -> call backend,
with a single re-mint and retry when the backend answers 401.
"""

import time
from typing import Callable, Optional

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from models.errors import BackendError, RouterError, TokenCacheError, UnknownCluster
from models.internal import ForwardResult, InboundRequest, ResolvedDestination
from services.backend_client import BackendClient
from services.destination_resolver import DestinationResolver
from services.identity_extractor import extract_identity
from services.token_cache import TokenCache
from services.token_provider import TokenProvider
from utils.deadline import RequestDeadline, effective_timeout
from utils.response import error_result_for

logger = Logger(child=True)
tracer = Tracer()


class ForwardingEngine:
    """Routes one inbound envelope to its backend and normalizes the outcome."""

    def __init__(
        self,
        resolver: DestinationResolver,
        token_cache: TokenCache,
        token_provider: TokenProvider,
        backend_client: BackendClient,
        extractor: Callable[[str], str] = extract_identity,
        clock: Callable[[], float] = time.time,
        expiry_margin_seconds: float = 0,
        metrics: Optional[Metrics] = None,
    ):
        self.resolver = resolver
        self.token_cache = token_cache
        self.token_provider = token_provider
        self.backend_client = backend_client
        self.extractor = extractor
        self.clock = clock
        self.expiry_margin_seconds = expiry_margin_seconds
        self.metrics = metrics

    def _count(self, name: str) -> None:
        if self.metrics is not None:
            self.metrics.add_metric(name=name, unit=MetricUnit.Count, value=1)

    @tracer.capture_method(capture_response=False)
    def forward(
        self, request: InboundRequest, deadline: Optional[RequestDeadline] = None
    ) -> ForwardResult:
        """
        Forward an inbound envelope and return the caller-facing result.

        Handled failures are returned as normalized error results and never
        raised. Backend responses other than 2xx are relayed verbatim.
        """
        identity = None
        host_alias = None
        try:
            identity = self.extractor(request.body)
            logger.append_keys(routed_identity=identity)

            destination = self.resolver.resolve(identity)
            host_alias = destination.host_alias
            logger.append_keys(
                host_alias=destination.host_alias, cluster=destination.cluster_name
            )

            return self._forward_with_retry(destination, request, deadline)

        except RouterError as e:
            if isinstance(e, UnknownCluster):
                host_alias = e.host_alias
            logger.warning(f"Request failed with {e.error_code}: {e.message}")
            self._count(_metric_name(e.error_code))
            return error_result_for(e, identity=identity, host_alias=host_alias)

    def _forward_with_retry(
        self,
        destination: ResolvedDestination,
        request: InboundRequest,
        deadline: Optional[RequestDeadline],
    ) -> ForwardResult:
        token = self.obtain_token(destination, deadline)
        try:
            return self._send(destination, request, token, deadline)
        except BackendError as e:
            if not e.is_unauthorized:
                return self._relay(e)
            logger.warning(
                f"Backend rejected the token for cluster {destination.cluster_name}, "
                "minting a new one and retrying once"
            )
            self._count("BackendUnauthorizedRetry")

        token = self.mint_token(destination, deadline)
        try:
            return self._send(destination, request, token, deadline)
        except BackendError as e:
            return self._relay(e)

    def obtain_token(
        self, destination: ResolvedDestination, deadline: Optional[RequestDeadline] = None
    ) -> str:
        """Return a valid cached token for the cluster, minting one when needed."""
        cached = self.token_cache.get(destination.cluster_name)
        if cached is not None and cached.is_valid(
            self.clock(), self.expiry_margin_seconds
        ):
            logger.info(f"Using cached token for cluster {destination.cluster_name}")
            self._count("TokenCacheHit")
            return cached.token

        if cached is None:
            logger.info(f"No cached token for cluster {destination.cluster_name}")
        else:
            logger.info(f"Cached token for cluster {destination.cluster_name} expired")
        self._count("TokenCacheMiss")
        return self.mint_token(destination, deadline)

    def mint_token(
        self, destination: ResolvedDestination, deadline: Optional[RequestDeadline] = None
    ) -> str:
        """Mint a token unconditionally and write it through to the cache."""
        token, ttl_seconds = self.token_provider.mint(
            destination.credentials,
            destination.hostname,
            token_path=destination.token_path,
            timeout=effective_timeout(self.token_provider.timeout, deadline),
        )
        self._count("TokenMinted")

        try:
            self.token_cache.put(destination.cluster_name, token, ttl_seconds)
        except TokenCacheError as e:
            logger.warning(f"Continuing without caching the token: {str(e)}")
            self._count("TokenCacheWriteFailed")

        return token

    def _send(
        self,
        destination: ResolvedDestination,
        request: InboundRequest,
        token: str,
        deadline: Optional[RequestDeadline],
    ) -> ForwardResult:
        result = self.backend_client.send(
            destination,
            request.body,
            request.headers,
            token,
            timeout=effective_timeout(self.backend_client.timeout, deadline),
        )
        self._count("ForwardSucceeded")
        return result

    def _relay(self, error: BackendError) -> ForwardResult:
        logger.info(f"Relaying backend status {error.status_code} to the caller")
        self._count("BackendErrorRelayed")
        return ForwardResult(
            status_code=error.status_code, body=error.body, headers=error.headers
        )


def _metric_name(error_code: str) -> str:
    return "".join(part.capitalize() for part in error_code.split("_"))
