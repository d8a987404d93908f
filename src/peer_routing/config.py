"""Configuration management for peer_routing.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from peer_routing.domain.semantics import SemanticDomain

__all__ = [
    "RouterSettings",
    "TopologySettings",
    "SpecializationSettings",
    "LoggingSettings",
    "PeerRoutingConfig",
]


class RouterSettings(BaseSettings):
    """Expertise routing settings."""

    model_config = SettingsConfigDict(
        env_prefix="PEER_ROUTING_ROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    relevance_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    max_target_nodes: int = Field(default=10, ge=1)
    use_square_root_scaling: bool = True
    min_target_nodes: int = Field(default=3, ge=1)  # Floor for sqrt(N) scaling
    active_window_seconds: float = Field(default=60.0, gt=0.0)


class TopologySettings(BaseSettings):
    """Hierarchical room topology settings.

    Level 2 work-groups are only created when ``levels`` is 3.
    """

    model_config = SettingsConfigDict(
        env_prefix="PEER_ROUTING_TOPOLOGY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    levels: int = Field(default=3, ge=2, le=3)
    branch_factor: int = Field(default=4, ge=1)
    max_peers_per_room: int = Field(default=16, ge=1)
    default_domain: SemanticDomain = SemanticDomain.PERCEPTUAL


class SpecializationSettings(BaseSettings):
    """Per-node specialization settings."""

    model_config = SettingsConfigDict(
        env_prefix="PEER_ROUTING_SPECIALIZATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_history: int = Field(default=100, ge=1)
    metrics_window: int = Field(default=50, ge=1)
    handle_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    specialization_strength: float = Field(default=0.7, ge=0.0, le=1.0)


class LoggingSettings(BaseSettings):
    """Structured logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="PEER_ROUTING_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    json_output: bool = False
    add_timestamp: bool = True
    quiet_loggers: list[str] = Field(default_factory=list)


class PeerRoutingConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = PeerRoutingConfig()
        threshold = config.router.relevance_threshold
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    router: RouterSettings = Field(default_factory=RouterSettings)
    topology: TopologySettings = Field(default_factory=TopologySettings)
    specialization: SpecializationSettings = Field(default_factory=SpecializationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
