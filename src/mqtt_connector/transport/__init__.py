"""Transport bootstrap used to hand a prepared connection to the paho runtime."""

from mqtt_connector.transport.bootstrap import Bootstrap, ChannelOption

__all__ = ["Bootstrap", "ChannelOption"]
