"""Exceptions raised while building an MQTT connection."""


class MqttConnectorError(Exception):
    """Base class for connector errors."""

    pass


class HandlerCreationError(MqttConnectorError):
    """Raised when a transport cannot produce its protocol delegate handler."""

    pass


class TlsConfigurationError(MqttConnectorError):
    """Raised when a TLS context cannot be built from the supplied credential files.

    Covers missing or unreadable files, malformed PEM material and a private key
    that does not match its certificate.
    """

    pass
