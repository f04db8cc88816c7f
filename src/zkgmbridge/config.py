"""
Configuration for zkgmbridge.

Defaults suit mainnet; every field can be overridden from the environment
with a ``ZKGM_*`` variable.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from .constants import CHAIN_TAGS, UNION_GRAPHQL_URL
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

RPC_ENV_PREFIX = "ZKGM_RPC_"

_TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass
class BridgeConfig:
    """Bridge client configuration."""

    indexer_url: str = UNION_GRAPHQL_URL
    indexer_timeout: float = 30.0
    track_timeout: float = 300.0
    poll_interval: float = 15.0
    poll_backoff: str = "fixed"
    allowance_poll_interval: float = 2.0
    allowance_timeout: float = 120.0
    compute_packet_hash: bool = True
    # Chain tag -> RPC URL
    rpc_urls: Dict[str, str] = field(default_factory=dict)
    routes_file: Optional[str] = None
    log_level: str = "info"
    log_format: str = "text"
    environment_overrides: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject values no component can work with."""
        for name in (
            "indexer_timeout",
            "track_timeout",
            "poll_interval",
            "allowance_poll_interval",
            "allowance_timeout",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(
                    f"{name} must be positive", config_key=name, config_value=value
                )
        if self.poll_backoff not in ("fixed", "linear", "exponential"):
            raise ConfigurationError(
                f"Unknown poll backoff: {self.poll_backoff}",
                config_key="poll_backoff",
                config_value=self.poll_backoff,
            )
        if self.log_format not in ("text", "json"):
            raise ConfigurationError(
                f"Unknown log format: {self.log_format}",
                config_key="log_format",
                config_value=self.log_format,
            )
        unknown = [tag for tag in self.rpc_urls if tag.lower() not in CHAIN_TAGS]
        if unknown:
            raise ConfigurationError(
                f"RPC URLs given for unknown chains: {', '.join(sorted(unknown))}",
                config_key="rpc_urls",
                config_value=unknown,
            )

    def rpc_overrides(self) -> Dict[str, str]:
        """RPC URLs keyed by universal chain id."""
        return {CHAIN_TAGS[tag.lower()]: url for tag, url in self.rpc_urls.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "indexer_url": self.indexer_url,
            "indexer_timeout": self.indexer_timeout,
            "track_timeout": self.track_timeout,
            "poll_interval": self.poll_interval,
            "poll_backoff": self.poll_backoff,
            "allowance_poll_interval": self.allowance_poll_interval,
            "allowance_timeout": self.allowance_timeout,
            "compute_packet_hash": self.compute_packet_hash,
            "rpc_urls": dict(self.rpc_urls),
            "routes_file": self.routes_file,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "BridgeConfig":
        """Create configuration from dictionary."""
        known = {f.name for f in fields(cls)} - {"environment_overrides"}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                config_value=sorted(unknown),
            )
        return cls(**config_dict)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **defaults
    ) -> "BridgeConfig":
        """Defaults (or ``defaults``) overlaid with ``ZKGM_*`` variables."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = dict(defaults)
        overrides: Dict[str, Any] = {}

        env_mappings = {
            "ZKGM_INDEXER_URL": ("indexer_url", str),
            "ZKGM_INDEXER_TIMEOUT": ("indexer_timeout", float),
            "ZKGM_TRACK_TIMEOUT": ("track_timeout", float),
            "ZKGM_POLL_INTERVAL": ("poll_interval", float),
            "ZKGM_POLL_BACKOFF": ("poll_backoff", str),
            "ZKGM_ALLOWANCE_POLL_INTERVAL": ("allowance_poll_interval", float),
            "ZKGM_ALLOWANCE_TIMEOUT": ("allowance_timeout", float),
            "ZKGM_COMPUTE_PACKET_HASH": ("compute_packet_hash", bool),
            "ZKGM_ROUTES_FILE": ("routes_file", str),
            "ZKGM_LOG_LEVEL": ("log_level", str),
            "ZKGM_LOG_FORMAT": ("log_format", str),
        }

        for env_var, (attr_name, attr_type) in env_mappings.items():
            env_value = environ.get(env_var)
            if env_value is None:
                continue
            try:
                if attr_type is bool:
                    value = env_value.lower() in _TRUE_VALUES
                else:
                    value = attr_type(env_value)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid environment variable {env_var}={env_value}",
                    config_key=env_var,
                    config_value=env_value,
                    cause=e,
                ) from e
            values[attr_name] = value
            overrides[env_var] = value

        rpc_urls = dict(values.get("rpc_urls", {}))
        for env_var, env_value in environ.items():
            if env_var.startswith(RPC_ENV_PREFIX) and env_value:
                tag = env_var[len(RPC_ENV_PREFIX):].lower()
                rpc_urls[tag] = env_value
                overrides[env_var] = env_value
        values["rpc_urls"] = rpc_urls

        config = cls(**values)
        config.environment_overrides = overrides
        if overrides:
            logger.debug(f"Applied environment overrides: {sorted(overrides)}")
        return config
