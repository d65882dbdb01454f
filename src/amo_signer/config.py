"""Signing client configuration from config.yaml and environment variables."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from amo_signer.api.client import DEFAULT_API_URL_PREFIX
from amo_signer.common.exceptions import ValidationError

# Default config path: config.yaml in the current directory
DEFAULT_CONFIG_PATH = Path("config.yaml")

_TRUE_VALUES = ("true", "1", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class SignerConfig:
    """Signing API connection and polling configuration.

    Load from environment using SignerConfig.from_env() or from config.yaml
    plus environment using load_config(). All timing values in seconds.
    """

    # Credentials
    api_key: str = ""
    api_secret: str = ""

    # Connection
    api_url_prefix: str = DEFAULT_API_URL_PREFIX
    api_proxy: Optional[str] = None
    request_timeout: float = 120.0
    token_expires_in: int = 60

    # Status polling
    signed_status_check_interval: float = 1.0
    signed_status_check_timeout: float = 900.0  # 15 minutes

    # Output
    download_dir: Optional[str] = None
    debug_logging: bool = False

    @classmethod
    def from_env(cls) -> "SignerConfig":
        """Load configuration from environment variables.

        Optional environment variables (with defaults):
            AMO_API_KEY: JWT issuer ("")
            AMO_API_SECRET: JWT secret ("")
            AMO_API_URL_PREFIX: https://addons.mozilla.org/api/v3 (default)
            AMO_API_PROXY: unset (default)
            AMO_STATUS_CHECK_INTERVAL: 1 (default)
            AMO_STATUS_CHECK_TIMEOUT: 900 (default)
            AMO_REQUEST_TIMEOUT: 120 (default)
            AMO_DOWNLOAD_DIR: current directory (default)
            AMO_DEBUG: false (default)

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(**_env_values({}))

    def validate(self) -> None:
        """Check credentials and timings.

        Raises:
            ValidationError: Missing credentials or invalid timing values
        """
        if not self.api_key or not self.api_secret:
            raise ValidationError(
                "API key/secret was not specified. Set AMO_API_KEY and "
                "AMO_API_SECRET or pass --api-key/--api-secret."
            )
        if not self.api_url_prefix:
            raise ValidationError("api_url_prefix must not be empty")
        for name in (
            "signed_status_check_interval",
            "signed_status_check_timeout",
            "request_timeout",
        ):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.token_expires_in <= 0:
            raise ValidationError(
                f"token_expires_in must be > 0, got {self.token_expires_in}"
            )


def _env_values(base: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay AMO_* environment variables onto base values."""
    values = dict(base)

    string_vars = {
        "api_key": "AMO_API_KEY",
        "api_secret": "AMO_API_SECRET",
        "api_url_prefix": "AMO_API_URL_PREFIX",
        "api_proxy": "AMO_API_PROXY",
        "download_dir": "AMO_DOWNLOAD_DIR",
    }
    for key, env_name in string_vars.items():
        if os.getenv(env_name):
            values[key] = os.getenv(env_name)

    float_vars = {
        "signed_status_check_interval": "AMO_STATUS_CHECK_INTERVAL",
        "signed_status_check_timeout": "AMO_STATUS_CHECK_TIMEOUT",
        "request_timeout": "AMO_REQUEST_TIMEOUT",
    }
    for key, env_name in float_vars.items():
        if os.getenv(env_name):
            values[key] = float(os.getenv(env_name, ""))

    values["debug_logging"] = _env_bool("AMO_DEBUG", values.get("debug_logging", False))
    return values


def load_config(
    config_path: Optional[Union[str, Path]] = None, **overrides: Any
) -> SignerConfig:
    """Load signing configuration from config.yaml and environment variables.

    Configuration priority (highest to lowest):
    1. Explicit overrides (None values are ignored)
    2. Environment variables
    3. config.yaml file (under 'amo:' key)
    4. Dataclass defaults

    Raises:
        ValueError: Unknown keys in the 'amo:' section or overrides
    """
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    amo_data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r") as f:
            yaml_data = yaml.safe_load(f) or {}
        amo_data = yaml_data.get("amo", {}) or {}

    known = {f.name for f in fields(SignerConfig)}
    unknown = (set(amo_data) | set(overrides)) - known
    if unknown:
        raise ValueError(f"Unknown signing config keys: {sorted(unknown)}")

    values = _env_values(amo_data)
    values.update({key: value for key, value in overrides.items() if value is not None})
    return SignerConfig(**values)
