"""
Startup configuration for the dual-transport server.

The configuration is always handed to the server by its caller. The CLI
(serving.run_server) builds it from a YAML file and command line flags.

Example YAML:
    http_address: 0.0.0.0:1987
    grpc_address: 0.0.0.0:1976
    tls_disable: true

    serialize_inference: false
    log_level: info

    ranking:
      max_answer_length: 20
      min_confidence: 0.1
      max_candidate_logits: 3
      max_answers: 3
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ranking import RankingConfig

LOG_LEVELS = ("debug", "info", "warning", "error")


def split_address(address: str) -> Tuple[str, int]:
    """
    Split a "host:port" bind address.

    Args:
        address: e.g. "0.0.0.0:1987", ":1987" or "[::]:1987"

    Returns:
        Tuple of (host, port); an empty host means all interfaces.

    Raises:
        ValueError: If the port is missing or not a number
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid bind address '{address}', expected host:port")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


@dataclass
class ServerConfig:
    """
    Configuration of both listeners and of the service behind them.

    Attributes:
        http_address: HTTP bind address, host:port (default: 0.0.0.0:1987)
        grpc_address: gRPC bind address, host:port (default: 0.0.0.0:1976)
        tls_cert: Path to the TLS certificate (PEM)
        tls_key: Path to the TLS private key (PEM)
        tls_disable: Accept plaintext connections on both listeners (default: False)
            When False, tls_cert and tls_key are required.
        serialize_inference: Serialize model calls behind a lock (default: False)
        log_level: Logging level for the process (default: info)
        grpc_grace_seconds: Time in-flight gRPC calls get to finish on shutdown
        ranking: Answer assembly thresholds
    """

    http_address: str = "0.0.0.0:1987"
    grpc_address: str = "0.0.0.0:1976"
    tls_cert: Optional[Path] = None
    tls_key: Optional[Path] = None
    tls_disable: bool = False
    serialize_inference: bool = False
    log_level: str = "info"
    grpc_grace_seconds: float = 5.0
    ranking: RankingConfig = field(default_factory=RankingConfig)

    def __post_init__(self):
        """Validate configuration."""
        if isinstance(self.tls_cert, str):
            self.tls_cert = Path(self.tls_cert)
        if isinstance(self.tls_key, str):
            self.tls_key = Path(self.tls_key)
        if self.ranking is None:
            self.ranking = RankingConfig()
        elif isinstance(self.ranking, dict):
            self.ranking = RankingConfig.from_dict(self.ranking)
        elif not isinstance(self.ranking, RankingConfig):
            raise ValueError(
                f"ranking must be a mapping of thresholds, got {type(self.ranking).__name__}"
            )

        # Fail early on malformed addresses
        split_address(self.http_address)
        split_address(self.grpc_address)

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Valid levels: {LOG_LEVELS}")
        if not self.tls_disable and (self.tls_cert is None or self.tls_key is None):
            raise ValueError("tls_cert and tls_key are required unless tls_disable is set")
        if self.grpc_grace_seconds < 0:
            raise ValueError(
                f"grpc_grace_seconds must be non-negative, got {self.grpc_grace_seconds}"
            )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ServerConfig":
        """
        Create config from a dictionary.

        Raises:
            ValueError: If the dictionary holds unknown keys
        """
        unknown = set(config_dict) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: Path, **overrides: Any) -> "ServerConfig":
        """
        Load configuration from a YAML file.

        Args:
            yaml_path: Path to YAML config file
            **overrides: Values taking precedence over the file (None is ignored)

        Returns:
            ServerConfig instance
        """
        with open(yaml_path) as f:
            config_dict = yaml.safe_load(f) or {}

        config_dict.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "http_address": self.http_address,
            "grpc_address": self.grpc_address,
            "tls_cert": str(self.tls_cert) if self.tls_cert else None,
            "tls_key": str(self.tls_key) if self.tls_key else None,
            "tls_disable": self.tls_disable,
            "serialize_inference": self.serialize_inference,
            "log_level": self.log_level,
            "grpc_grace_seconds": self.grpc_grace_seconds,
            "ranking": self.ranking.to_dict(),
        }
