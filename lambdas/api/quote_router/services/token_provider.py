"""
Mints bearer tokens through the cluster's client-credentials token endpoint.
"""

import base64
from typing import Optional, Tuple

import requests
from aws_lambda_powertools import Logger, Tracer
from models.errors import TokenAcquisitionFailed
from models.internal import CredentialSet

logger = Logger(child=True)
tracer = Tracer()

DEFAULT_TOKEN_TIMEOUT_SECONDS = 10


def basic_authorization(credentials: CredentialSet) -> str:
    pair = f"{credentials.client_id}:{credentials.client_secret.get_secret_value()}"
    return "Basic " + base64.b64encode(pair.encode("utf-8")).decode("ascii")


class TokenProvider:
    """Client for the token endpoint exposed on each backend host."""

    def __init__(
        self,
        timeout: float = DEFAULT_TOKEN_TIMEOUT_SECONDS,
        default_ttl_seconds: int = 300,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the token provider.

        Args:
            timeout: Token request timeout in seconds
            default_ttl_seconds: TTL applied when the endpoint omits expires_in
            session: HTTP session, a new one is created when omitted
        """
        self.timeout = timeout
        self.default_ttl_seconds = default_ttl_seconds
        self.session = session or requests.Session()

    def _headers(self, credentials: CredentialSet) -> dict:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            "Authorization": basic_authorization(credentials),
        }
        if credentials.token_username:
            headers["username"] = credentials.token_username
        if credentials.token_password:
            headers["password"] = credentials.token_password.get_secret_value()
        return headers

    def _form(self, credentials: CredentialSet) -> dict:
        form = {"grant_type": credentials.grant_type}
        if credentials.scope:
            form["scope"] = credentials.scope
        return form

    @tracer.capture_method(capture_response=False)
    def mint(
        self,
        credentials: CredentialSet,
        hostname: str,
        token_path: str = "/user-token",
        timeout: Optional[float] = None,
    ) -> Tuple[str, int]:
        """
        Exchange the credential set for a fresh bearer token.

        Args:
            credentials: Cluster credential set
            hostname: Host serving the token endpoint
            token_path: Path of the token endpoint
            timeout: Overrides the configured timeout for this call

        Returns:
            Tuple of (token, ttl_seconds)

        Raises:
            TokenAcquisitionFailed: On transport error, timeout, non-2xx
                status or an unusable response body
        """
        timeout = self.timeout if timeout is None else timeout
        if timeout <= 0:
            raise TokenAcquisitionFailed(
                f"No time left to request a token from {hostname}"
            )

        url = f"https://{hostname}{token_path}"
        logger.info(f"Requesting token from {url} for client {credentials.client_id}")

        try:
            response = self.session.post(
                url,
                headers=self._headers(credentials),
                data=self._form(credentials),
                timeout=timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TokenAcquisitionFailed(
                f"Token request to {hostname} timed out after {timeout}s",
                details=str(e),
            )
        except requests.exceptions.RequestException as e:
            raise TokenAcquisitionFailed(
                f"Token request to {hostname} failed", details=str(e)
            )

        if not 200 <= response.status_code < 300:
            logger.error(
                f"Token endpoint {url} responded with status {response.status_code}"
            )
            raise TokenAcquisitionFailed(
                f"Token endpoint responded with status {response.status_code}",
                details=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenAcquisitionFailed(
                "Token endpoint returned a non-JSON body", details=str(e)
            )

        token = None
        if isinstance(payload, dict):
            token = payload.get("access_token") or payload.get("token")
        if not isinstance(token, str) or not token.strip():
            raise TokenAcquisitionFailed("Token endpoint response carries no token")

        try:
            ttl_seconds = int(payload.get("expires_in", self.default_ttl_seconds))
        except (TypeError, ValueError):
            ttl_seconds = self.default_ttl_seconds

        logger.info(f"Minted token for client {credentials.client_id}, ttl {ttl_seconds}s")
        return token, ttl_seconds
