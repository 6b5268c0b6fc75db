"""Unit tests for the transport bootstrap and the paho hand-off."""

import socket
from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from mqtt_connector.config import MqttConnectParameter
from mqtt_connector.connector.tls import build_tls_handler
from mqtt_connector.transport import Bootstrap, ChannelOption


class TestBootstrapOptions:
    """Tests for recording channel options."""

    def test_set_records_option(self) -> None:
        bootstrap = Bootstrap()

        result = bootstrap.set(ChannelOption.SO_RCVBUF, 8192)

        assert result is bootstrap
        assert bootstrap.options == {ChannelOption.SO_RCVBUF: 8192}

    def test_later_value_replaces_earlier(self) -> None:
        bootstrap = Bootstrap()

        bootstrap.set(ChannelOption.TCP_NODELAY, False).set(ChannelOption.TCP_NODELAY, True)

        assert bootstrap.options == {ChannelOption.TCP_NODELAY: True}

    def test_options_copy_is_detached(self) -> None:
        bootstrap = Bootstrap().set(ChannelOption.SO_KEEPALIVE, True)

        bootstrap.options.clear()

        assert ChannelOption.SO_KEEPALIVE in bootstrap.options

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(TypeError):
            Bootstrap().set("TCP_NODELAY", True)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("option", "value"),
        [
            (ChannelOption.TCP_NODELAY, "yes"),
            (ChannelOption.SO_RCVBUF, 0),
            (ChannelOption.SO_SNDBUF, True),
            (ChannelOption.SO_SNDBUF, 1.5),
            (ChannelOption.CONNECT_TIMEOUT, -1),
            (ChannelOption.CONNECT_TIMEOUT, False),
        ],
    )
    def test_invalid_value_rejected(self, option: ChannelOption, value: object) -> None:
        with pytest.raises(ValueError):
            Bootstrap().set(option, value)

    def test_sockopt_mapping(self) -> None:
        assert ChannelOption.TCP_NODELAY.sockopt == (socket.IPPROTO_TCP, socket.TCP_NODELAY)
        assert ChannelOption.SO_RCVBUF.sockopt == (socket.SOL_SOCKET, socket.SO_RCVBUF)
        assert ChannelOption.CONNECT_TIMEOUT.sockopt is None


class TestBootstrapPipeline:
    """Tests for the handler pipeline."""

    def test_add_first_prepends(self) -> None:
        bootstrap = Bootstrap()

        bootstrap.add_first("codec").add_first("tls")

        assert bootstrap.pipeline == ["tls", "codec"]

    def test_tls_handler_only_at_head(self, single_auth_params: MqttConnectParameter) -> None:
        tls_handler = build_tls_handler(single_auth_params)
        bootstrap = Bootstrap()

        assert bootstrap.tls_handler is None
        bootstrap.add_first(tls_handler)
        assert bootstrap.tls_handler is tls_handler
        bootstrap.add_first("other")
        assert bootstrap.tls_handler is None


class TestSocketOptions:
    """Tests for applying socket-level options once paho opens the socket."""

    def test_apply_socket_options(self) -> None:
        bootstrap = (
            Bootstrap()
            .set(ChannelOption.TCP_NODELAY, True)
            .set(ChannelOption.SO_RCVBUF, 65536)
            .set(ChannelOption.CONNECT_TIMEOUT, 5)
        )
        sock = MagicMock(spec=socket.socket)

        bootstrap.apply_socket_options(sock)

        assert sock.setsockopt.call_count == 2
        sock.setsockopt.assert_has_calls(
            [
                call(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1),
                call(socket.SOL_SOCKET, socket.SO_RCVBUF, 65536),
            ],
            any_order=True,
        )

    def test_socket_open_callback_plain_socket(self) -> None:
        bootstrap = Bootstrap().set(ChannelOption.SO_KEEPALIVE, True)
        sock = MagicMock(spec=socket.socket)

        bootstrap._handle_socket_open(MagicMock(), None, sock)

        sock.setsockopt.assert_called_once_with(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

    def test_socket_open_callback_unwraps_websocket(self) -> None:
        bootstrap = Bootstrap().set(ChannelOption.SO_KEEPALIVE, True)
        raw = MagicMock(spec=socket.socket)
        wrapper = SimpleNamespace(_socket=raw)

        bootstrap._handle_socket_open(MagicMock(), None, wrapper)

        raw.setsockopt.assert_called_once_with(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)


class TestBootstrapConnect:
    """Tests for handing the connection to paho."""

    def test_plain_connect(self) -> None:
        delegate = MagicMock()
        bootstrap = Bootstrap()

        bootstrap.connect(delegate, "broker.example.com", 1883, keep_alive=30)

        client = delegate.client
        client.tls_set_context.assert_not_called()
        client.connect.assert_called_once_with("broker.example.com", 1883, keepalive=30)
        assert client.on_socket_open == bootstrap._handle_socket_open

    def test_tls_connect_installs_context(self, mutual_auth_params: MqttConnectParameter) -> None:
        delegate = MagicMock()
        tls_handler = build_tls_handler(mutual_auth_params)
        bootstrap = Bootstrap().add_first(tls_handler)

        bootstrap.connect(delegate, "broker.example.com", 8883)

        delegate.client.tls_set_context.assert_called_once_with(tls_handler.context)
        delegate.client.connect.assert_called_once_with("broker.example.com", 8883, keepalive=60)

    def test_connect_timeout_applied(self) -> None:
        delegate = MagicMock()
        bootstrap = Bootstrap().set(ChannelOption.CONNECT_TIMEOUT, 7)

        bootstrap.connect(delegate, "broker.example.com", 1883)

        assert delegate.client.connect_timeout == 7.0

    def test_runtime_errors_propagate(self) -> None:
        delegate = MagicMock()
        delegate.client.connect.side_effect = OSError("unreachable")

        with pytest.raises(OSError, match="unreachable"):
            Bootstrap().connect(delegate, "broker.example.com", 1883)
