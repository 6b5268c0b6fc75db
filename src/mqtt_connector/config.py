"""Configuration models for the MQTT connector."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mqtt_connector.transport.bootstrap import ChannelOption


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    model_config = ConfigDict(frozen=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"


class MqttConfiguration(BaseModel):
    """Process-wide settings shared by every connector of a client instance."""

    model_config = ConfigDict(frozen=True)

    socket_options: dict[ChannelOption, bool | int | float] = Field(default_factory=dict)
    """Channel options applied to each transport bootstrap."""

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    """Logging settings."""

    @field_validator("socket_options")
    @classmethod
    def check_socket_options(
        cls, value: dict[ChannelOption, Any]
    ) -> dict[ChannelOption, Any]:
        """Reject option values the bootstrap would refuse."""
        for option, option_value in value.items():
            option.validate(option_value)
        return value


class MqttConnectParameter(BaseModel):
    """Target endpoint and credentials for one logical connection.

    The presence of ``client_certificate_file`` and ``client_private_key_file``
    decides between single-direction and mutual TLS authentication.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=1883, ge=1, le=65535)
    client_id: str = "mqtt-connector"
    mqtt_version: Literal["3.1.1", "5"] = "3.1.1"
    username: str | None = None
    password: SecretStr | None = None
    keep_alive_seconds: int = Field(default=60, ge=0)
    clean_session: bool = True

    ssl: bool = False
    """Wrap the transport in TLS."""

    client_certificate_file: Path | None = None
    """Client certificate (PEM) presented for mutual authentication."""

    client_private_key_file: Path | None = None
    """Private key (PEM) matching ``client_certificate_file``."""

    root_certificate_file: Path | None = None
    """CA bundle used to verify the broker. The system trust store is used when unset."""


class ConnectorConfig(BaseModel):
    """Root configuration document."""

    configuration: MqttConfiguration = Field(default_factory=MqttConfiguration)
    connect: MqttConnectParameter = Field(default_factory=MqttConnectParameter)

    @classmethod
    def from_yaml(cls, path: Path) -> "ConnectorConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})


class ConnectorSettings(BaseSettings):
    """Environment-based settings that locate the config file."""

    model_config = SettingsConfigDict(
        env_prefix="MQTT_CONNECTOR_",
    )

    config_file: Path = Path("config/config.yaml")


def load_config(settings: ConnectorSettings | None = None) -> ConnectorConfig:
    """Load configuration from file, falling back to defaults when it is absent."""
    if settings is None:
        settings = ConnectorSettings()

    if settings.config_file.exists():
        return ConnectorConfig.from_yaml(settings.config_file)
    return ConnectorConfig()
