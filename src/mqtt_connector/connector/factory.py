"""Connector whose delegate handler comes from a supplied factory."""

from typing import Any

from mqtt_connector.config import MqttConfiguration, MqttConnectParameter
from mqtt_connector.connector.base import DelegateHandlerFactory, MqttConnector
from mqtt_connector.errors import HandlerCreationError
from mqtt_connector.mqtt.handler import MqttDelegateHandler


class FactoryMqttConnector(MqttConnector):
    """Connector that delegates handler creation to a DelegateHandlerFactory.

    Lets a new transport plug in without subclassing::

        connector = FactoryMqttConnector(config, params, make_handler, "arg")
    """

    transport_name = "custom"

    def __init__(
        self,
        configuration: MqttConfiguration,
        connect_parameter: MqttConnectParameter,
        factory: DelegateHandlerFactory,
        *handler_create_args: Any,
        transport_name: str | None = None,
    ):
        if not callable(factory):
            raise HandlerCreationError(f"Delegate handler factory is not callable: {factory!r}")
        self._factory = factory
        if transport_name:
            self.transport_name = transport_name
        super().__init__(configuration, connect_parameter, *handler_create_args)

    def create_delegate_handler(self, *handler_create_args: Any) -> MqttDelegateHandler:
        return self._factory(*handler_create_args)
