"""
Configuration schemas for awsconnect.

This module defines Pydantic models for the optional config file
(``.awsconnect.yaml`` or ``~/.config/awsconnect/config.yaml``):
- Credential vault settings
- Remote-exec transport settings
- Retry policy for eventually consistent task listings
"""

import signal
from collections.abc import Iterator
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VaultExportFormat(str, Enum):
    """How credentials are read back from the vault."""

    JSON = "json"  # aws-vault export --format=json <profile>
    ENV = "env"  # aws-vault exec <profile> -- env


class RetryPolicy(BaseModel):
    """
    Bounded exponential backoff for polling the control plane.

    ``max_attempts`` counts listings, not sleeps: a policy with 5 attempts lists
    tasks at most 5 times and sleeps at most 4 times in between.

    Example:
    -------
        max_attempts: 5
        initial_delay: 1.0
        multiplier: 2.0
        max_delay: 10.0

        Delays between attempts: 1.0, 2.0, 4.0, 8.0

    """

    model_config = ConfigDict(frozen=True)

    max_attempts: Annotated[int, Field(default=5, ge=1, description="Total listing attempts")]
    initial_delay: Annotated[float, Field(default=1.0, ge=0, description="Seconds before the second attempt")]
    multiplier: Annotated[float, Field(default=2.0, ge=1, description="Delay growth factor")]
    max_delay: Annotated[float, Field(default=10.0, ge=0, description="Cap on a single delay")]

    @classmethod
    def immediate(cls, max_attempts: int) -> "RetryPolicy":
        """Policy with the given attempt budget and no waiting between attempts."""
        return cls(max_attempts=max_attempts, initial_delay=0.0, max_delay=0.0)

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry (``max_attempts - 1`` values)."""
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield min(delay, self.max_delay)
            delay *= self.multiplier


class VaultConfig(BaseModel):
    """Credential vault (aws-vault) settings."""

    binary: Annotated[str, Field(default="aws-vault", description="Vault executable name or path")]
    export_format: Annotated[VaultExportFormat, Field(default=VaultExportFormat.JSON)]
    timeout_seconds: Annotated[
        int,
        Field(default=300, gt=0, description="Upper bound for a login, including MFA/SSO prompts"),
    ]
    default_ttl_seconds: Annotated[
        int,
        Field(default=3600, gt=0, description="Assumed lifetime when the vault reports no expiry"),
    ]


class TransportConfig(BaseModel):
    """Remote-exec transport (aws ecs execute-command) settings."""

    binary: Annotated[str, Field(default="aws", description="AWS CLI executable name or path")]
    command: Annotated[
        list[str],
        Field(
            default_factory=lambda: ["/usr/bin/env", "bash"],
            min_length=1,
            description="Command run inside the container when none is given",
        ),
    ]
    safety_margin_seconds: Annotated[
        int,
        Field(default=60, ge=0, description="Refuse to launch if credentials expire sooner than this"),
    ]
    forward_signals: Annotated[
        list[str],
        Field(
            default_factory=lambda: ["SIGINT", "SIGTERM", "SIGHUP"],
            description="Signals forwarded to the session while attached",
        ),
    ]

    @field_validator("forward_signals")
    @classmethod
    def validate_signal_names(cls, value: list[str]) -> list[str]:
        """Validate that every name is a signal known to this platform."""
        unknown = [name for name in value if not hasattr(signal, name)]
        if unknown:
            raise ValueError(f"Unknown signal names: {', '.join(unknown)}")
        return value

    def signal_numbers(self) -> list[signal.Signals]:
        """Resolve forward_signals to signal numbers."""
        return [getattr(signal, name) for name in self.forward_signals]


class AwsConnectConfig(BaseModel):
    """
    awsconnect configuration.

    Example:
    -------
        default_profile: dev
        default_region: eu-west-1
        vault:
          binary: aws-vault
          export_format: json
        transport:
          command: ["/bin/sh"]
          safety_margin_seconds: 120
        retry:
          max_attempts: 6
          initial_delay: 2.0

    """

    model_config = ConfigDict(extra="forbid")

    default_profile: str | None = None
    default_region: str | None = None
    vault: VaultConfig = Field(default_factory=VaultConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
