"""Abstract MQTT connector shared by every transport variant."""

from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from mqtt_connector.config import MqttConfiguration, MqttConnectParameter
from mqtt_connector.connector.tls import BufferAllocator, TlsHandler, build_tls_handler
from mqtt_connector.errors import HandlerCreationError
from mqtt_connector.observability.logging import bind_connection
from mqtt_connector.observability.metrics import MQTT_CONNECTOR_METRICS
from mqtt_connector.transport.bootstrap import Bootstrap

if TYPE_CHECKING:
    from mqtt_connector.mqtt.handler import MqttDelegateHandler

logger = logging.getLogger(__name__)


class DelegateHandlerFactory(Protocol):
    """Creates the protocol delegate handler for a transport."""

    def __call__(self, *handler_create_args: Any) -> MqttDelegateHandler: ...


class OptionTarget(Protocol):
    """Anything that accepts channel options, typically a Bootstrap."""

    def set(self, key: Any, value: Any) -> Any: ...


class ConnectorState(str, Enum):
    """Lifecycle of a connector up to the hand-off to the runtime."""

    CONSTRUCTED = "constructed"
    OPTIONS_APPLIED = "options_applied"
    TLS_HANDLER_ATTACHED = "tls_handler_attached"
    HANDED_OFF = "handed_off"


def apply_options(target: OptionTarget, option_set: Mapping[Any, Any]) -> None:
    """Set every option in ``option_set`` on ``target``.

    One ``set`` call per entry; options must not depend on application order.
    Rejections raised by the target propagate to the caller.
    """
    for key, value in option_set.items():
        target.set(key, value)


class MqttConnector(ABC):
    """Owns the connection configuration and the protocol delegate handler.

    Subclasses provide :meth:`create_delegate_handler`, which the constructor
    calls exactly once. Everything else is shared between transports.
    """

    transport_name: str = "abstract"

    def __init__(
        self,
        configuration: MqttConfiguration,
        connect_parameter: MqttConnectParameter,
        *handler_create_args: Any,
    ):
        """Initialize the connector and create its delegate handler.

        Args:
            configuration: Process-wide client configuration.
            connect_parameter: Target endpoint and credential files.
            *handler_create_args: Passed through to create_delegate_handler.

        Raises:
            HandlerCreationError: If the delegate handler cannot be created.
        """
        self._configuration = configuration
        self._connect_parameter = connect_parameter

        try:
            handler = self.create_delegate_handler(*handler_create_args)
            if handler is None:
                raise HandlerCreationError(
                    f"{self.transport_name} transport returned no delegate handler"
                )
        except HandlerCreationError:
            self._count_creation_error()
            raise
        except Exception as e:
            self._count_creation_error()
            raise HandlerCreationError(
                f"{self.transport_name} transport could not create its delegate handler: {e}"
            ) from e

        self._delegate_handler = handler
        self._state = ConnectorState.CONSTRUCTED
        self._prepared_bootstrap: Bootstrap | None = None
        MQTT_CONNECTOR_METRICS.connectors_created_total.labels(
            transport=self.transport_name
        ).inc()
        logger.debug(
            "Created %s connector for %s:%d",
            self.transport_name,
            connect_parameter.host,
            connect_parameter.port,
        )

    def _count_creation_error(self) -> None:
        MQTT_CONNECTOR_METRICS.handler_creation_errors_total.labels(
            transport=self.transport_name
        ).inc()

    @abstractmethod
    def create_delegate_handler(self, *handler_create_args: Any) -> MqttDelegateHandler:
        """Create the protocol delegate handler for this transport.

        Called once from ``__init__``; ``self.configuration`` and
        ``self.connect_parameter`` are already available.
        """

    @property
    def delegate_handler(self) -> MqttDelegateHandler:
        return self._delegate_handler

    @property
    def configuration(self) -> MqttConfiguration:
        return self._configuration

    @property
    def connect_parameter(self) -> MqttConnectParameter:
        return self._connect_parameter

    @property
    def state(self) -> ConnectorState:
        return self._state

    def get_delegate_handler(self) -> MqttDelegateHandler:
        """Return the delegate handler created at construction."""
        return self._delegate_handler

    def get_configuration(self) -> MqttConfiguration:
        """Return the client configuration."""
        return self._configuration

    def apply_options(self, target: OptionTarget, option_set: Mapping[Any, Any]) -> None:
        """Set every option in ``option_set`` on ``target``. Connector state is untouched."""
        apply_options(target, option_set)

    def get_tls_handler(self, allocator: BufferAllocator = ssl.MemoryBIO) -> TlsHandler:
        """Build a TLS handler bound to the connect parameter's host and port.

        The authentication mode is recomputed on every call and the handler is
        not retained, so concurrent connection attempts may share a connector.

        Raises:
            TlsConfigurationError: If the TLS context cannot be built.
        """
        return build_tls_handler(self._connect_parameter, allocator)

    def prepare(self, bootstrap: Bootstrap) -> Bootstrap:
        """Apply configured socket options and, for TLS, attach a TLS handler.

        Preparing the same bootstrap again is a no-op, so one connection
        attempt never carries more than one TLS handler.

        Raises:
            TlsConfigurationError: If TLS is enabled and the context cannot be built.
        """
        if bootstrap is self._prepared_bootstrap:
            return bootstrap

        self.apply_options(bootstrap, self._configuration.socket_options)
        self._state = ConnectorState.OPTIONS_APPLIED

        if self._connect_parameter.ssl:
            bootstrap.add_first(self.get_tls_handler())
            self._state = ConnectorState.TLS_HANDLER_ATTACHED
        self._prepared_bootstrap = bootstrap
        return bootstrap

    def connect(self, bootstrap: Bootstrap | None = None) -> Bootstrap:
        """Prepare ``bootstrap`` unless already prepared and hand the connection off.

        Starts the delegate handler's network loop once paho accepted the
        connect request. Waiting for the broker's CONNACK is up to the caller
        (see ``MqttDelegateHandler.wait_for_connection``).
        """
        if bootstrap is None:
            bootstrap = Bootstrap()
        self.prepare(bootstrap)

        params = self._connect_parameter
        bootstrap.connect(
            self._delegate_handler,
            params.host,
            params.port,
            keep_alive=params.keep_alive_seconds,
        )
        self._state = ConnectorState.HANDED_OFF
        bind_connection(params.host, params.port, self.transport_name)
        self._delegate_handler.start()
        return bootstrap
