"""
Outbound call to the quoting backend.
"""

from typing import Dict, Mapping, Optional

import requests
from aws_lambda_powertools import Logger, Tracer
from models.errors import BackendError, BackendUnreachable
from models.internal import ForwardRequest, ForwardResult, ResolvedDestination

logger = Logger(child=True)
tracer = Tracer()

DEFAULT_BACKEND_TIMEOUT_SECONDS = 30
SOAP_CONTENT_TYPE = "application/soap+xml"

ROUTED_USERNAME_HEADER = "x-routed-username"
RESPONSE_HOST_HEADER = "x-response-host"

# Owned by the transport on each hop, or set by the router itself.
REQUEST_HEADERS_DROPPED = {"host", "content-length", "content-type", "authorization"}
RESPONSE_HEADERS_DROPPED = {
    "content-length",
    "content-encoding",
    "transfer-encoding",
    "connection",
    ROUTED_USERNAME_HEADER,
    RESPONSE_HOST_HEADER,
}


def routing_headers(identity: Optional[str], host_alias: Optional[str]) -> Dict[str, str]:
    headers = {}
    if identity:
        headers[ROUTED_USERNAME_HEADER] = identity
    if host_alias:
        headers[RESPONSE_HOST_HEADER] = host_alias
    return headers


def outbound_headers(inbound: Mapping[str, str], bearer_token: str) -> Dict[str, str]:
    headers = {
        name: value
        for name, value in inbound.items()
        if name.lower() not in REQUEST_HEADERS_DROPPED
    }
    headers["Content-Type"] = SOAP_CONTENT_TYPE
    headers["Authorization"] = f"Bearer {bearer_token}"
    return headers


def relayed_headers(
    response_headers: Mapping[str, str], destination: ResolvedDestination
) -> Dict[str, str]:
    headers = {
        name: value
        for name, value in response_headers.items()
        if name.lower() not in RESPONSE_HEADERS_DROPPED
    }
    headers.update(routing_headers(destination.identity, destination.host_alias))
    return headers


class BackendClient:
    """Sends the envelope to the resolved backend with a bearer token."""

    def __init__(
        self,
        timeout: float = DEFAULT_BACKEND_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()

    @tracer.capture_method(capture_response=False)
    def send(
        self,
        destination: ResolvedDestination,
        envelope_body: str,
        headers: Mapping[str, str],
        bearer_token: str,
        timeout: Optional[float] = None,
    ) -> ForwardResult:
        """
        POST the envelope to the backend.

        Args:
            destination: Resolved destination
            envelope_body: Original envelope, forwarded unchanged
            headers: Inbound request headers
            bearer_token: Token for the Authorization header
            timeout: Overrides the configured timeout for this call

        Returns:
            ForwardResult for a 2xx response, annotated with routing metadata

        Raises:
            BackendError: Backend responded with a non-2xx status
            BackendUnreachable: No response was received
        """
        timeout = self.timeout if timeout is None else timeout
        request = ForwardRequest(
            envelope_body=envelope_body,
            inbound_headers=dict(headers),
            resolved_host=destination.hostname,
            bearer_token=bearer_token,
        )
        url = f"https://{request.resolved_host}{destination.backend_path}"

        if timeout <= 0:
            raise BackendUnreachable(f"No time left to call backend {url}")

        logger.info(f"Forwarding envelope to {url}")
        try:
            response = self.session.post(
                url,
                data=request.envelope_body.encode("utf-8"),
                headers=outbound_headers(request.inbound_headers, request.bearer_token),
                timeout=timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Backend {url} timed out after {timeout}s")
            raise BackendUnreachable(
                f"Backend {destination.hostname} timed out after {timeout}s",
                details=str(e),
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Backend {url} is unreachable: {str(e)}")
            raise BackendUnreachable(
                f"Backend {destination.hostname} is unreachable", details=str(e)
            )

        result_headers = relayed_headers(response.headers, destination)
        logger.info(f"Backend {url} responded with status {response.status_code}")

        if not 200 <= response.status_code < 300:
            raise BackendError(response.status_code, response.text, result_headers)

        return ForwardResult(
            status_code=response.status_code,
            body=response.text,
            headers=result_headers,
        )
