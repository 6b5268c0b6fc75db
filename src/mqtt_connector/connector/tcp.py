"""Plain TCP transport."""

from typing import Any

from mqtt_connector.connector.base import MqttConnector
from mqtt_connector.errors import HandlerCreationError
from mqtt_connector.mqtt.handler import MqttCallbacks, MqttDelegateHandler


class TcpMqttConnector(MqttConnector):
    """Connects over TCP, optionally wrapped in TLS when ``ssl`` is set."""

    transport_name = "tcp"

    def create_delegate_handler(self, *handler_create_args: Any) -> MqttDelegateHandler:
        """Create a paho-backed handler using the TCP transport.

        Accepts an optional ``MqttCallbacks`` as the only argument.
        """
        if len(handler_create_args) > 1:
            raise HandlerCreationError(
                f"tcp transport takes at most one argument, got {len(handler_create_args)}"
            )
        callbacks = handler_create_args[0] if handler_create_args else None
        if callbacks is not None and not isinstance(callbacks, MqttCallbacks):
            raise HandlerCreationError(f"Expected MqttCallbacks, got {type(callbacks).__name__}")

        return MqttDelegateHandler(self.connect_parameter, transport="tcp", callbacks=callbacks)
