"""
Error taxonomy for the Quote Router.

Every handled failure derives from RouterError and carries the error code and
HTTP status it is reported with. BackendError is not a failure of the router
itself: it carries the backend's response so it can be relayed verbatim.
"""

from typing import Dict, Optional


class RouterError(Exception):
    """Base exception for routing failures."""

    error_code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(RouterError):
    """Raised when runtime settings or the destination mapping are unusable."""

    error_code = "CONFIGURATION_ERROR"
    status_code = 500


class MalformedEnvelope(RouterError):
    """Raised when the identity cannot be extracted from the envelope."""

    error_code = "MALFORMED_ENVELOPE"
    status_code = 400


class UnknownIdentity(RouterError):
    """Raised when the identity has no host mapping."""

    error_code = "UNKNOWN_IDENTITY"
    status_code = 403

    def __init__(self, identity: str):
        super().__init__(f"No destination is configured for identity '{identity}'")
        self.identity = identity


class UnknownCluster(RouterError):
    """Raised when a host alias has no cluster or a cluster has no credentials."""

    error_code = "UNKNOWN_CLUSTER"
    status_code = 500

    def __init__(self, host_alias: str, cluster_name: Optional[str] = None):
        if cluster_name:
            message = (
                f"No credential set is configured for cluster '{cluster_name}' "
                f"(host '{host_alias}')"
            )
        else:
            message = f"No cluster is configured for host '{host_alias}'"
        super().__init__(message)
        self.host_alias = host_alias
        self.cluster_name = cluster_name


class TokenAcquisitionFailed(RouterError):
    """Raised when a bearer token cannot be minted."""

    error_code = "TOKEN_ACQUISITION_FAILED"
    status_code = 502


class BackendUnreachable(RouterError):
    """Raised when the backend produced no response at all."""

    error_code = "BACKEND_UNREACHABLE"
    status_code = 500


class TokenCacheError(Exception):
    """Raised when the token cache cannot persist a token."""


class BackendError(Exception):
    """Non-2xx response from the backend."""

    def __init__(self, status_code: int, body: str, headers: Dict[str, str]):
        super().__init__(f"Backend responded with status {status_code}")
        self.status_code = status_code
        self.body = body
        self.headers = headers

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401
