"""Protocol delegate handler layer."""

from mqtt_connector.mqtt.handler import MqttCallbacks, MqttDelegateHandler, MqttHandlerError

__all__ = ["MqttCallbacks", "MqttDelegateHandler", "MqttHandlerError"]
