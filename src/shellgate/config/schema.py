"""Pydantic models for shellgate.yaml configuration."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SSHConfig(BaseModel):
    """Remote host connection settings."""

    host: str | None = Field(default=None, description="SSH host (name or IP address)")
    user: str = Field(default="root", description="SSH user")
    key_path: str = Field(default="~/.ssh/id_rsa", description="Path to the SSH private key")
    port: int = Field(default=22, description="SSH port", ge=1, le=65535)
    connect_timeout: int = Field(default=10, description="Connection timeout in seconds", ge=1)


class PluginsConfig(BaseModel):
    """Plugin enablement."""

    enabled: list[str] = Field(
        default_factory=lambda: ["system", "docker"],
        description="Plugins enabled when loaded (the proxy plugin is always enabled)",
    )
    disabled: list[str] = Field(
        default_factory=list,
        description="Plugins never enabled at startup, even if listed in 'enabled'",
    )
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-plugin settings keyed by plugin name",
    )


class ExecutionConfig(BaseModel):
    """Command execution settings."""

    max_output_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum output captured from a local command",
        ge=1024,
    )
    output_mode: Literal["raw", "quiet", "json"] = Field(
        default="json",
        description="Default CLI output mode",
    )
    json_fields: list[str] | None = Field(
        default=None,
        description="Top-level keys kept in JSON responses (None = all)",
    )


class AuditConfig(BaseModel):
    """Audit log settings."""

    logs_dir: str = Field(
        default="~/.shellgate/data/logs",
        description="Directory for proxy_commands.log and blocked_commands.log",
    )
    redact_sensitive: bool = Field(
        default=True,
        description="Redact passwords, tokens and keys before writing audit records",
    )


class GatewayConfig(BaseModel):
    """Root configuration schema for shellgate."""

    ssh: SSHConfig = Field(default_factory=SSHConfig)
    local_mode: bool = Field(
        default=False,
        description="Execute commands on this machine instead of the SSH host",
    )
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
