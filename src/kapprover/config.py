"""Controller configuration loader with Pydantic v2 validation.

Loads and validates a ``kapprover.yaml`` file into a typed
:class:`ControllerConfig` object.  Unknown keys are allowed to support
future schema additions without breakage.

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string('''
... policy: group=system:nodes,username
... approver: always
... retry:
...   max_attempts: 3
... ''')
>>> config.retry.to_policy().max_attempts
3
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from kapprover.store.retry import RetryPolicy


class RetryConfig(BaseModel):
    """Configuration for the conflict retry loop."""

    model_config = {"extra": "allow"}

    max_attempts: int = Field(default=5, ge=1)
    base_backoff_seconds: float = Field(default=0.1, ge=0)
    max_backoff_seconds: float = Field(default=5.0, ge=0)
    jitter: bool = Field(default=True)

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_backoff_seconds=self.base_backoff_seconds,
            max_backoff_seconds=self.max_backoff_seconds,
            jitter=self.jitter,
        )


class ControllerConfig(BaseModel):
    """Top-level controller configuration schema.

    Loaded from ``kapprover.yaml``.  All sections are optional and fall
    back to sensible defaults.
    """

    model_config = {"extra": "allow"}

    policy: str = Field(default="")
    approver: str | None = Field(default="always")
    retry: RetryConfig = Field(default_factory=RetryConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = Field(default=None)


class ConfigLoader:
    """Loads and validates controller YAML configuration."""

    def load(self, config_path: Path) -> ControllerConfig:
        """Load and validate a controller YAML file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Controller config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        return ControllerConfig.model_validate(raw)

    def load_string(self, yaml_content: str) -> ControllerConfig:
        """Load and validate a YAML string directly."""
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return ControllerConfig.model_validate(raw)

    def defaults(self) -> ControllerConfig:
        """Return a default configuration with all defaults applied."""
        return ControllerConfig()
