"""Protocol delegate handler backed by paho-mqtt."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion, MQTTErrorCode

from mqtt_connector.config import MqttConnectParameter

logger = logging.getLogger(__name__)

# Type alias for message callbacks
MessageCallback = Callable[[str, bytes], None]

_PROTOCOLS = {
    "3.1.1": mqtt.MQTTv311,
    "5": mqtt.MQTTv5,
}


class MqttHandlerError(Exception):
    """Raised when an MQTT operation on the delegate handler fails."""

    pass


@dataclass(frozen=True, slots=True)
class MqttCallbacks:
    """Application hooks invoked by the delegate handler."""

    on_connect: Callable[[], None] | None = None
    on_disconnect: Callable[[], None] | None = None
    on_message: MessageCallback | None = None


class MqttDelegateHandler:
    """Processes MQTT traffic once the transport connection is established.

    Wraps a paho-mqtt v2 client. The connector that creates the handler owns it;
    the transport bootstrap uses :attr:`client` to perform the network connect.
    Reconnection is left to the caller, so paho's automatic reconnect is disabled.
    """

    def __init__(
        self,
        connect_parameter: MqttConnectParameter,
        transport: Literal["tcp", "websockets"] = "tcp",
        callbacks: MqttCallbacks | None = None,
    ):
        """Initialize the delegate handler.

        Args:
            connect_parameter: Connection identity and credentials.
            transport: paho transport name.
            callbacks: Optional application hooks.
        """
        self.connect_parameter = connect_parameter
        self.transport = transport
        self._callbacks = callbacks or MqttCallbacks()

        protocol = _PROTOCOLS[connect_parameter.mqtt_version]
        self._client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=connect_parameter.client_id,
            # paho rejects clean_session for MQTT v5
            clean_session=connect_parameter.clean_session if protocol != mqtt.MQTTv5 else None,
            protocol=protocol,
            transport=transport,
            reconnect_on_failure=False,
        )

        self._connected = threading.Event()
        self._subscriptions: dict[str, MessageCallback] = {}
        self._lock = threading.Lock()

        self._client.on_connect = self._handle_connect
        self._client.on_disconnect = self._handle_disconnect
        self._client.on_message = self._handle_message

        if connect_parameter.username:
            password = (
                connect_parameter.password.get_secret_value()
                if connect_parameter.password
                else None
            )
            self._client.username_pw_set(connect_parameter.username, password)

    @property
    def client(self) -> mqtt.Client:
        """The underlying paho client."""
        return self._client

    def _handle_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: mqtt.ConnectFlags,
        reason_code: Any,
        properties: Any | None,
    ) -> None:
        """Handle connection callback."""
        is_success = (
            reason_code == 0
            or (hasattr(reason_code, "value") and reason_code.value == 0)
            or (hasattr(reason_code, "is_failure") and not reason_code.is_failure)
        )
        if not is_success:
            logger.error("Connection refused by broker: %s", reason_code)
            return

        logger.info(
            "Connected to MQTT broker %s:%d",
            self.connect_parameter.host,
            self.connect_parameter.port,
        )
        self._connected.set()

        with self._lock:
            for topic in self._subscriptions:
                self._client.subscribe(topic)
                logger.debug("Resubscribed to %s", topic)

        if self._callbacks.on_connect:
            self._callbacks.on_connect()

    def _handle_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        disconnect_flags: mqtt.DisconnectFlags,
        reason_code: Any,
        properties: Any | None,
    ) -> None:
        """Handle disconnection callback."""
        self._connected.clear()
        logger.warning("Disconnected from MQTT broker: %s", reason_code)

        if self._callbacks.on_disconnect:
            self._callbacks.on_disconnect()

    def _handle_message(
        self,
        client: mqtt.Client,
        userdata: Any,
        message: mqtt.MQTTMessage,
    ) -> None:
        """Dispatch an incoming message to matching subscriptions."""
        with self._lock:
            callbacks = [
                callback
                for pattern, callback in self._subscriptions.items()
                if mqtt.topic_matches_sub(pattern, message.topic)
            ]
        if self._callbacks.on_message:
            callbacks.append(self._callbacks.on_message)

        for callback in callbacks:
            try:
                callback(message.topic, message.payload)
            except Exception as e:
                logger.error("Error in message callback for %s: %s", message.topic, e)

    def start(self) -> None:
        """Start the paho network loop in a background thread."""
        self._client.loop_start()

    def disconnect(self) -> None:
        """Disconnect from the broker and stop the network loop."""
        self._client.disconnect()
        self._client.loop_stop()
        self._connected.clear()
        logger.info("Disconnected from MQTT broker")

    def is_connected(self) -> bool:
        """Check if the broker accepted the connection."""
        return self._connected.is_set()

    def wait_for_connection(self, timeout: float | None = None) -> bool:
        """Wait for the broker to accept the connection.

        Args:
            timeout: Maximum time to wait in seconds, or None to wait forever.

        Returns:
            True if connected, False if timeout occurred.
        """
        return self._connected.wait(timeout)

    def publish(
        self,
        topic: str,
        payload: bytes | str,
        qos: int = 0,
        retain: bool = False,
    ) -> None:
        """Publish a message to a topic.

        Raises:
            MqttHandlerError: If not connected or paho rejects the publish.
        """
        if not self.is_connected():
            raise MqttHandlerError("Not connected to broker")

        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        result = self._client.publish(topic, payload, qos=qos, retain=retain)
        if result.rc != MQTTErrorCode.MQTT_ERR_SUCCESS:
            raise MqttHandlerError(f"Publish failed: {result.rc}")

        logger.debug("Published to %s (qos=%d, retain=%s)", topic, qos, retain)

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Subscribe to a topic pattern with a callback.

        The subscription is recorded immediately and sent to the broker on the
        next successful connect if the handler is not connected yet. A
        subscription paho rejects is forgotten before the error is raised.
        """
        with self._lock:
            self._subscriptions[topic] = callback

        if self.is_connected():
            result = self._client.subscribe(topic)
            if result[0] != MQTTErrorCode.MQTT_ERR_SUCCESS:
                with self._lock:
                    self._subscriptions.pop(topic, None)
                raise MqttHandlerError(f"Subscribe failed for {topic}: {result[0]}")
            logger.debug("Subscribed to %s", topic)

    def unsubscribe(self, topic: str) -> None:
        """Unsubscribe from a topic pattern."""
        with self._lock:
            self._subscriptions.pop(topic, None)

        if self.is_connected():
            self._client.unsubscribe(topic)
            logger.debug("Unsubscribed from %s", topic)
