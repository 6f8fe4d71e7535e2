"""
Internal domain models for the Quote Router.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_BACKEND_PATH = "/quoting-service/microservices/quoting/ws/quoting"
DEFAULT_TOKEN_PATH = "/user-token"


class CamelModel(BaseModel):
    """Base model accepting both camelCase config keys and snake_case names."""

    model_config = ConfigDict(populate_by_name=True)


class CredentialSet(CamelModel):
    """OAuth client-credentials bundle for one cluster."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    client_id: str = Field(..., alias="clientId", min_length=1)
    client_secret: SecretStr = Field(..., alias="clientSecret")
    scope: Optional[str] = Field(default=None, description="Requested scope")
    grant_type: str = Field(default="client_credentials", alias="grantType")
    token_username: Optional[str] = Field(default=None, alias="tokenUsername")
    token_password: Optional[SecretStr] = Field(default=None, alias="tokenPassword")


class DestinationMapping(CamelModel):
    """Three-level routing table: identity -> host alias -> cluster -> credentials."""

    identities: Dict[str, str] = Field(..., description="Identity to host alias")
    hosts: Dict[str, str] = Field(..., description="Host alias to cluster name")
    clusters: Dict[str, CredentialSet] = Field(
        ..., description="Cluster name to credential set"
    )
    host_domain: Optional[str] = Field(
        default=None,
        alias="hostDomain",
        description="DNS suffix appended to bare host aliases",
    )
    backend_path: str = Field(default=DEFAULT_BACKEND_PATH, alias="backendPath")
    backend_paths: Dict[str, str] = Field(
        default_factory=dict,
        alias="backendPaths",
        description="Per-cluster backend path overrides",
    )
    token_path: str = Field(default=DEFAULT_TOKEN_PATH, alias="tokenPath")

    def hostname_for(self, host_alias: str) -> str:
        if self.host_domain and "." not in host_alias:
            return f"{host_alias}.{self.host_domain.strip('.')}"
        return host_alias

    def backend_path_for(self, cluster_name: str) -> str:
        return self.backend_paths.get(cluster_name, self.backend_path)


class ResolvedDestination(BaseModel):
    """Outcome of resolving an identity against the DestinationMapping."""

    model_config = ConfigDict(frozen=True)

    identity: str
    host_alias: str
    cluster_name: str
    credentials: CredentialSet
    hostname: str
    backend_path: str = DEFAULT_BACKEND_PATH
    token_path: str = DEFAULT_TOKEN_PATH


class CachedToken(CamelModel):
    """Bearer token as persisted in the token cache."""

    token: str = Field(..., min_length=1)
    expiration_timestamp: float = Field(..., alias="expirationTimestamp")

    def is_valid(self, now: float, margin_seconds: float = 0) -> bool:
        return now < self.expiration_timestamp - margin_seconds


class InboundRequest(BaseModel):
    """Request as received from the caller."""

    body: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    method: str = "POST"
    path: str = "/"


class ForwardRequest(BaseModel):
    """Single outbound call to a backend; built per attempt and discarded."""

    envelope_body: str
    inbound_headers: Dict[str, str] = Field(default_factory=dict)
    resolved_host: str
    bearer_token: str = Field(..., repr=False)


class ForwardResult(BaseModel):
    """Canonical response shape returned to the caller."""

    status_code: int
    body: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)

    def to_lambda_response(self) -> Dict[str, object]:
        return {
            "statusCode": self.status_code,
            "body": self.body,
            "headers": dict(self.headers),
        }
