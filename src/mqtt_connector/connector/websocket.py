"""MQTT over WebSocket transport."""

from typing import Any

from mqtt_connector.connector.base import MqttConnector
from mqtt_connector.errors import HandlerCreationError
from mqtt_connector.mqtt.handler import MqttCallbacks, MqttDelegateHandler

DEFAULT_WEBSOCKET_PATH = "/mqtt"


class WebSocketMqttConnector(MqttConnector):
    """Connects through a WebSocket upgrade, ``wss`` when ``ssl`` is set."""

    transport_name = "websocket"

    def create_delegate_handler(
        self,
        path: str = DEFAULT_WEBSOCKET_PATH,
        headers: dict[str, str] | None = None,
        callbacks: MqttCallbacks | None = None,
        *extra: Any,
    ) -> MqttDelegateHandler:
        """Create a paho-backed handler using the websockets transport.

        Args:
            path: Request path of the WebSocket endpoint; must start with '/'.
            headers: Extra HTTP headers sent with the upgrade request.
            callbacks: Optional application hooks.
        """
        if extra:
            raise HandlerCreationError(f"Unexpected websocket arguments: {extra!r}")
        if not isinstance(path, str) or not path.startswith("/"):
            raise HandlerCreationError(f"WebSocket path must start with '/': {path!r}")
        if callbacks is not None and not isinstance(callbacks, MqttCallbacks):
            raise HandlerCreationError(f"Expected MqttCallbacks, got {type(callbacks).__name__}")

        handler = MqttDelegateHandler(
            self.connect_parameter, transport="websockets", callbacks=callbacks
        )
        handler.client.ws_set_options(path=path, headers=headers)
        self._path = path
        return handler

    @property
    def url(self) -> str:
        """WebSocket URL of the broker endpoint."""
        params = self.connect_parameter
        scheme = "wss" if params.ssl else "ws"
        return f"{scheme}://{params.host}:{params.port}{self._path}"
