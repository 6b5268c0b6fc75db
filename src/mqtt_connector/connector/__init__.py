"""Connectors: transport authentication and delegate handler ownership."""

from mqtt_connector.connector.base import (
    ConnectorState,
    DelegateHandlerFactory,
    MqttConnector,
    apply_options,
)
from mqtt_connector.connector.factory import FactoryMqttConnector
from mqtt_connector.connector.tcp import TcpMqttConnector
from mqtt_connector.connector.tls import (
    MutualAuth,
    SingleAuth,
    TlsAuthMode,
    TlsHandler,
    build_tls_handler,
    select_auth_mode,
)
from mqtt_connector.connector.websocket import WebSocketMqttConnector

__all__ = [
    "ConnectorState",
    "DelegateHandlerFactory",
    "FactoryMqttConnector",
    "MqttConnector",
    "MutualAuth",
    "SingleAuth",
    "TcpMqttConnector",
    "TlsAuthMode",
    "TlsHandler",
    "WebSocketMqttConnector",
    "apply_options",
    "build_tls_handler",
    "select_auth_mode",
]
