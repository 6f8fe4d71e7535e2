"""
Runtime settings for the Quote Router, read from Lambda environment variables.
"""

import os
from typing import Literal, Mapping, Optional

from models.errors import ConfigurationError
from pydantic import BaseModel, Field, ValidationError


class RouterSettings(BaseModel):
    """Typed view of the function's environment."""

    environment: str = Field(default="dev", description="Deployment environment")
    destination_mapping: Optional[str] = Field(
        default=None, description="Inline destination mapping JSON"
    )
    destination_mapping_secret_id: Optional[str] = Field(
        default=None, description="Secrets Manager secret holding the mapping JSON"
    )
    mapping_cache_seconds: int = Field(default=300, ge=0)
    token_cache_backend: Literal["ssm", "memory"] = Field(default="ssm")
    token_cache_parameter_prefix: Optional[str] = Field(default=None)
    token_cache_kms_key_id: Optional[str] = Field(default=None)
    token_timeout_seconds: float = Field(default=10, gt=0)
    backend_timeout_seconds: float = Field(default=30, gt=0)
    token_expiry_margin_seconds: float = Field(default=30, ge=0)
    default_token_ttl_seconds: int = Field(default=300, gt=0)

    @property
    def parameter_prefix(self) -> str:
        prefix = (
            self.token_cache_parameter_prefix
            or f"/quote-router/{self.environment}/tokens"
        )
        return prefix.rstrip("/")

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "RouterSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If a value is present but invalid
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            raw = environ.get(field_name.upper())
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError("Invalid router settings", details=str(e))
