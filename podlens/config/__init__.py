"""Configuration for podlens.

Settings are read from the environment (and an optional ``.env`` file).
"""

import logging
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .kubernetes import KubernetesConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = Field(default="INFO", description="Log level name")
    log_format: Literal["json", "console"] = Field(default="console", description="Log renderer")

    # -- Kubernetes ------------------------------------------------------------
    kubeconfig: str | None = Field(default=None, description="Path to a kubeconfig file")
    k8s_context: str | None = Field(default=None, description="Kubeconfig context to use")
    k8s_namespace: str = Field(default="", description="Default namespace for pod lookups")
    k8s_request_timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")

    # -- Streaming -------------------------------------------------------------
    stream_reconnect_attempts: int = Field(
        default=3,
        ge=0,
        description="Reconnect attempts for followed log streams before giving up",
    )
    stream_reconnect_backoff_seconds: float = Field(default=1.0, gt=0)
    stream_reconnect_max_backoff_seconds: float = Field(default=30.0, gt=0)

    # -- Validators ------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {v}")
        return level

    @field_validator("kubeconfig", "k8s_context", mode="before")
    @classmethod
    def _empty_string_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to ``None``.

        ConfigMaps and Helm values often set ``KUBECONFIG: ""``, which should
        mean "not set" rather than a path to an empty file name.
        """
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> "Settings":
        if self.stream_reconnect_max_backoff_seconds < self.stream_reconnect_backoff_seconds:
            logger.warning(
                "STREAM_RECONNECT_MAX_BACKOFF_SECONDS is below STREAM_RECONNECT_BACKOFF_SECONDS; "
                "using the base backoff as the cap"
            )
            self.stream_reconnect_max_backoff_seconds = self.stream_reconnect_backoff_seconds
        return self

    # -- Helpers ---------------------------------------------------------------

    @property
    def kubernetes(self) -> KubernetesConfig:
        """Kubernetes client configuration derived from these settings."""
        return KubernetesConfig(
            namespace=self.k8s_namespace,
            kubeconfig=self.kubeconfig,
            context=self.k8s_context,
            request_timeout_seconds=self.k8s_request_timeout,
            reconnect_attempts=self.stream_reconnect_attempts,
            reconnect_backoff_seconds=self.stream_reconnect_backoff_seconds,
            reconnect_max_backoff_seconds=self.stream_reconnect_max_backoff_seconds,
        )


settings = Settings()

__all__ = ["Settings", "KubernetesConfig", "settings"]
