"""Prometheus metrics for the MQTT connector."""

from prometheus_client import Counter


class ConnectorMetrics:
    """Collection of Prometheus metrics for connection establishment."""

    def __init__(self) -> None:
        """Initialize metrics."""
        self.connectors_created_total = Counter(
            "mqtt_connector_connectors_created_total",
            "Total number of connectors constructed",
            ["transport"],  # 'tcp', 'websocket', ...
        )

        self.handler_creation_errors_total = Counter(
            "mqtt_connector_handler_creation_errors_total",
            "Total number of delegate handler factory failures",
            ["transport"],
        )

        self.tls_handlers_total = Counter(
            "mqtt_connector_tls_handlers_total",
            "Total number of TLS handlers built",
            ["mode"],  # 'single' or 'mutual'
        )

        self.tls_configuration_errors_total = Counter(
            "mqtt_connector_tls_configuration_errors_total",
            "Total number of TLS context build failures",
        )

        self.tls_lone_credential_total = Counter(
            "mqtt_connector_tls_lone_credential_total",
            "Times a client certificate or key was supplied without its counterpart",
        )

        self.socket_options_applied_total = Counter(
            "mqtt_connector_socket_options_applied_total",
            "Total number of socket options applied to opened sockets",
        )


# Global metrics instance
MQTT_CONNECTOR_METRICS = ConnectorMetrics()
