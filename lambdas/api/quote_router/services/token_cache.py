"""
Token cache implementations.

The cache is a plain store: it returns whatever was last written for a
cluster and leaves the expiry decision to the ForwardingEngine.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from models.errors import TokenCacheError
from models.internal import CachedToken
from pydantic import ValidationError

logger = Logger(child=True)


class TokenCache(ABC):
    """Key-value store of one bearer token per cluster."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    @abstractmethod
    def get(self, cluster_name: str) -> Optional[CachedToken]:
        """Return the stored token for a cluster, or None on a miss."""

    @abstractmethod
    def put(self, cluster_name: str, token: str, ttl_seconds: float) -> CachedToken:
        """
        Store a token for a cluster, replacing any previous one.

        Raises:
            TokenCacheError: If the token could not be persisted
        """

    def _entry(self, token: str, ttl_seconds: float) -> CachedToken:
        return CachedToken(token=token, expiration_timestamp=self.clock() + ttl_seconds)


class InMemoryTokenCache(TokenCache):
    """Dict-backed cache for tests and local runs."""

    def __init__(self, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self._entries: Dict[str, CachedToken] = {}

    def get(self, cluster_name: str) -> Optional[CachedToken]:
        return self._entries.get(cluster_name)

    def put(self, cluster_name: str, token: str, ttl_seconds: float) -> CachedToken:
        entry = self._entry(token, ttl_seconds)
        self._entries[cluster_name] = entry
        return entry


class SsmTokenCache(TokenCache):
    """
    Token cache backed by SSM Parameter Store.

    Each cluster owns one SecureString parameter at {prefix}/{cluster_name}
    holding {"token": ..., "expirationTimestamp": ...}.
    """

    def __init__(
        self,
        parameter_prefix: str,
        kms_key_id: Optional[str] = None,
        ssm_client: Any = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(clock)
        self.parameter_prefix = parameter_prefix.rstrip("/")
        self.kms_key_id = kms_key_id
        self.ssm = ssm_client or boto3.client("ssm")

    def parameter_name(self, cluster_name: str) -> str:
        return f"{self.parameter_prefix}/{cluster_name}"

    def get(self, cluster_name: str) -> Optional[CachedToken]:
        name = self.parameter_name(cluster_name)
        try:
            response = self.ssm.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ParameterNotFound":
                logger.info(f"No cached token for cluster {cluster_name}")
                return None
            logger.warning(f"Failed to read cached token from {name}: {str(e)}")
            return None
        except BotoCoreError as e:
            logger.warning(f"Failed to read cached token from {name}: {str(e)}")
            return None

        try:
            return CachedToken.model_validate_json(response["Parameter"]["Value"])
        except (KeyError, ValidationError) as e:
            logger.warning(f"Ignoring malformed cached token in {name}: {str(e)}")
            return None

    def put(self, cluster_name: str, token: str, ttl_seconds: float) -> CachedToken:
        entry = self._entry(token, ttl_seconds)
        name = self.parameter_name(cluster_name)
        request = {
            "Name": name,
            "Value": json.dumps(entry.model_dump(by_alias=True)),
            "Type": "SecureString",
            "Overwrite": True,
            # Standard tier caps values at 4 KB
            "Tier": "Intelligent-Tiering",
        }
        if self.kms_key_id:
            request["KeyId"] = self.kms_key_id

        try:
            self.ssm.put_parameter(**request)
        except (BotoCoreError, ClientError) as e:
            raise TokenCacheError(f"Failed to store token in {name}: {str(e)}") from e

        logger.info(f"Stored token for cluster {cluster_name} in {name}")
        return entry
