"""MQTT connector: transport authentication and hand-off to the protocol handler."""

__version__ = "0.1.0"

from mqtt_connector.config import MqttConfiguration, MqttConnectParameter
from mqtt_connector.connector import (
    FactoryMqttConnector,
    MqttConnector,
    TcpMqttConnector,
    WebSocketMqttConnector,
)
from mqtt_connector.errors import (
    HandlerCreationError,
    MqttConnectorError,
    TlsConfigurationError,
)

__all__ = [
    "__version__",
    "FactoryMqttConnector",
    "HandlerCreationError",
    "MqttConfiguration",
    "MqttConnectParameter",
    "MqttConnector",
    "MqttConnectorError",
    "TcpMqttConnector",
    "TlsConfigurationError",
    "WebSocketMqttConnector",
]
