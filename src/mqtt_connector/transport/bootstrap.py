"""Transport bootstrap: channel options, pipeline and the paho hand-off."""

from __future__ import annotations

import logging
import socket
from enum import Enum
from typing import TYPE_CHECKING, Any

from mqtt_connector.observability.metrics import MQTT_CONNECTOR_METRICS

if TYPE_CHECKING:
    import paho.mqtt.client as mqtt

    from mqtt_connector.connector.tls import TlsHandler
    from mqtt_connector.mqtt.handler import MqttDelegateHandler

logger = logging.getLogger(__name__)


class ChannelOption(str, Enum):
    """Options understood by the bootstrap.

    Socket-level members map to a ``(level, optname)`` pair passed to
    ``setsockopt``; ``CONNECT_TIMEOUT`` (seconds) is consumed by the runtime.
    """

    TCP_NODELAY = "TCP_NODELAY"
    SO_KEEPALIVE = "SO_KEEPALIVE"
    SO_RCVBUF = "SO_RCVBUF"
    SO_SNDBUF = "SO_SNDBUF"
    SO_REUSEADDR = "SO_REUSEADDR"
    CONNECT_TIMEOUT = "CONNECT_TIMEOUT"

    @property
    def sockopt(self) -> tuple[int, int] | None:
        """Return the ``(level, optname)`` pair, or None for runtime options."""
        return _SOCKOPTS.get(self)

    def validate(self, value: Any) -> None:
        """Raise ValueError if ``value`` is not acceptable for this option."""
        if self in _FLAG_OPTIONS:
            if not isinstance(value, (bool, int)):
                raise ValueError(f"{self.value} expects a boolean, got {value!r}")
        elif self is ChannelOption.CONNECT_TIMEOUT:
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"{self.value} expects a positive number, got {value!r}")
        elif isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{self.value} expects a positive integer, got {value!r}")


_SOCKOPTS: dict[ChannelOption, tuple[int, int]] = {
    ChannelOption.TCP_NODELAY: (socket.IPPROTO_TCP, socket.TCP_NODELAY),
    ChannelOption.SO_KEEPALIVE: (socket.SOL_SOCKET, socket.SO_KEEPALIVE),
    ChannelOption.SO_RCVBUF: (socket.SOL_SOCKET, socket.SO_RCVBUF),
    ChannelOption.SO_SNDBUF: (socket.SOL_SOCKET, socket.SO_SNDBUF),
    ChannelOption.SO_REUSEADDR: (socket.SOL_SOCKET, socket.SO_REUSEADDR),
}

_FLAG_OPTIONS = frozenset(
    {ChannelOption.TCP_NODELAY, ChannelOption.SO_KEEPALIVE, ChannelOption.SO_REUSEADDR}
)


class Bootstrap:
    """Collects options and pipeline handlers for one connection attempt.

    The bootstrap is the seam between the connector and the paho runtime: the
    connector only calls :meth:`set` and :meth:`add_first`, and :meth:`connect`
    performs the actual network connect.
    """

    def __init__(self) -> None:
        self._options: dict[ChannelOption, Any] = {}
        self._pipeline: list[Any] = []

    def set(self, key: ChannelOption, value: Any) -> Bootstrap:
        """Record a channel option. A later value for the same key replaces the earlier one.

        Raises:
            TypeError: If ``key`` is not a ChannelOption.
            ValueError: If ``value`` is not valid for ``key``.
        """
        if not isinstance(key, ChannelOption):
            raise TypeError(f"Unknown channel option: {key!r}")
        key.validate(value)
        self._options[key] = value
        return self

    @property
    def options(self) -> dict[ChannelOption, Any]:
        """Copy of the recorded options."""
        return dict(self._options)

    def add_first(self, handler: Any) -> Bootstrap:
        """Install a handler at the head of the pipeline."""
        self._pipeline.insert(0, handler)
        return self

    @property
    def pipeline(self) -> list[Any]:
        """Copy of the pipeline, head first."""
        return list(self._pipeline)

    @property
    def tls_handler(self) -> TlsHandler | None:
        """The TLS handler at the head of the pipeline, if one is installed."""
        from mqtt_connector.connector.tls import TlsHandler

        if self._pipeline and isinstance(self._pipeline[0], TlsHandler):
            return self._pipeline[0]
        return None

    def connect(
        self,
        delegate_handler: MqttDelegateHandler,
        host: str,
        port: int,
        keep_alive: int = 60,
    ) -> None:
        """Hand the prepared connection to the paho runtime and connect.

        Errors raised by paho (socket errors, handshake failures) propagate
        unchanged.
        """
        client = delegate_handler.client

        tls_handler = self.tls_handler
        if tls_handler is not None:
            client.tls_set_context(tls_handler.context)
            logger.debug("TLS context installed (%s) for %s:%d", tls_handler.mode_name, host, port)

        timeout = self._options.get(ChannelOption.CONNECT_TIMEOUT)
        if timeout is not None:
            client.connect_timeout = float(timeout)

        client.on_socket_open = self._handle_socket_open

        logger.info("Connecting to MQTT broker %s:%d", host, port)
        client.connect(host, port, keepalive=keep_alive)

    def _handle_socket_open(self, client: mqtt.Client, userdata: Any, sock: Any) -> None:
        """Apply socket-level options once paho has opened the socket."""
        # The websocket transport hands over a wrapper around the real socket
        if not isinstance(sock, socket.socket):
            sock = sock._socket
        self.apply_socket_options(sock)

    def apply_socket_options(self, sock: socket.socket) -> None:
        """Apply every recorded socket-level option to ``sock``."""
        for option, value in self._options.items():
            sockopt = option.sockopt
            if sockopt is None:
                continue
            level, optname = sockopt
            sock.setsockopt(level, optname, int(value))
            MQTT_CONNECTOR_METRICS.socket_options_applied_total.inc()
            logger.debug("Applied socket option %s=%s", option.value, value)
