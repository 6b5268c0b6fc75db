"""Observability components: logging and metrics."""

from mqtt_connector.observability.logging import bind_connection, get_logger, setup_logging
from mqtt_connector.observability.metrics import MQTT_CONNECTOR_METRICS

__all__ = ["setup_logging", "get_logger", "bind_connection", "MQTT_CONNECTOR_METRICS"]
