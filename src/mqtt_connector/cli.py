"""Command-line interface for the MQTT connector."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mqtt_connector import __version__
from mqtt_connector.config import ConnectorConfig, ConnectorSettings, load_config
from mqtt_connector.connector import (
    MqttConnector,
    TcpMqttConnector,
    WebSocketMqttConnector,
    select_auth_mode,
)
from mqtt_connector.connector.tls import lone_credential_file
from mqtt_connector.errors import MqttConnectorError
from mqtt_connector.observability.logging import setup_logging

app = typer.Typer(
    name="mqtt-connector",
    help="MQTT connector: check broker endpoints and TLS authentication settings",
    no_args_is_help=True,
)


def _load(config: Optional[Path]) -> ConnectorConfig:
    settings = ConnectorSettings(config_file=config) if config else ConnectorSettings()
    return load_config(settings)


def _build_connector(
    cfg: ConnectorConfig, transport: str, ws_path: str
) -> MqttConnector:
    if transport == "websocket":
        return WebSocketMqttConnector(cfg.configuration, cfg.connect, ws_path)
    return TcpMqttConnector(cfg.configuration, cfg.connect)


@app.callback()
def callback() -> None:
    """MQTT connector CLI."""
    pass


@app.command()
def validate(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to config.yaml"),
    ] = None,
) -> None:
    """Validate the configuration and show the TLS authentication mode."""
    try:
        cfg = _load(config)
    except Exception as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    params = cfg.connect
    typer.echo(f"Broker: {params.host}:{params.port}")
    typer.echo(f"  MQTT version: {params.mqtt_version}")
    if not params.ssl:
        typer.echo("  TLS: disabled")
    else:
        typer.echo(f"  TLS: {select_auth_mode(params).name} authentication")
        lone = lone_credential_file(params)
        if lone is not None:
            typer.echo(f"  Warning: {lone} is ignored without its certificate/key counterpart")
    typer.echo(f"  Socket options: {len(cfg.configuration.socket_options)}")


@app.command()
def check(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to config.yaml"),
    ] = None,
    transport: Annotated[
        str,
        typer.Option("--transport", "-t", help="Transport: tcp or websocket"),
    ] = "tcp",
    ws_path: Annotated[
        str,
        typer.Option("--ws-path", help="WebSocket endpoint path"),
    ] = "/mqtt",
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="Seconds to wait for CONNACK"),
    ] = 10.0,
) -> None:
    """Connect to the configured broker once and disconnect."""
    if transport not in ("tcp", "websocket"):
        typer.echo(f"Unknown transport: {transport}", err=True)
        raise typer.Exit(2)

    try:
        cfg = _load(config)
    except Exception as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    obs = cfg.configuration.observability
    setup_logging(obs.log_level, obs.log_format)

    try:
        connector = _build_connector(cfg, transport, ws_path)
        connector.connect()
    except (MqttConnectorError, OSError) as e:
        typer.echo(f"Connection failed: {e}", err=True)
        raise typer.Exit(1)

    handler = connector.delegate_handler
    try:
        if not handler.wait_for_connection(timeout):
            typer.echo(f"No CONNACK within {timeout}s", err=True)
            raise typer.Exit(1)
        typer.echo(f"Connected to {cfg.connect.host}:{cfg.connect.port}")
    finally:
        handler.disconnect()


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"mqtt-connector {__version__}")


if __name__ == "__main__":
    app()
