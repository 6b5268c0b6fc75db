"""TLS negotiation policy: pick the authentication mode and build a TLS handler.

The mode is derived from the connect parameter alone:

- client certificate AND client private key supplied -> mutual authentication
- anything else -> single-direction (server-only) authentication

A lone certificate or key is ignored and the connection falls back to
single-direction authentication; this is logged as a warning and counted in
``tls_lone_credential_total`` so the misconfiguration is visible.
"""

import logging
import ssl
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from mqtt_connector.config import MqttConnectParameter
from mqtt_connector.errors import TlsConfigurationError
from mqtt_connector.observability.logging import get_logger
from mqtt_connector.observability.metrics import MQTT_CONNECTOR_METRICS

logger = logging.getLogger(__name__)

# Produces the memory buffers a TLS engine reads from and writes to
BufferAllocator = Callable[[], ssl.MemoryBIO]


def _client_context(root_certificate_file: Path | None) -> ssl.SSLContext:
    cafile = str(root_certificate_file) if root_certificate_file else None
    # create_default_context falls back to the system store when cafile is None
    return ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=cafile)


@dataclass(frozen=True, slots=True)
class SingleAuth:
    """Only the broker presents identity; the client verifies it."""

    root_certificate_file: Path | None = None

    name: ClassVar[str] = "single"

    def build_context(self) -> ssl.SSLContext:
        """Build a client context that trusts ``root_certificate_file``."""
        return _client_context(self.root_certificate_file)


@dataclass(frozen=True, slots=True)
class MutualAuth:
    """Both sides present certificates."""

    client_certificate_file: Path
    client_private_key_file: Path
    root_certificate_file: Path | None = None

    name: ClassVar[str] = "mutual"

    def build_context(self) -> ssl.SSLContext:
        """Build a client context that trusts the root and presents the client identity."""
        context = _client_context(self.root_certificate_file)
        context.load_cert_chain(
            certfile=str(self.client_certificate_file),
            keyfile=str(self.client_private_key_file),
        )
        return context


TlsAuthMode = SingleAuth | MutualAuth


def select_auth_mode(connect_parameter: MqttConnectParameter) -> TlsAuthMode:
    """Choose the authentication mode for ``connect_parameter``.

    Pure function of the credential fields; called afresh for every handler.
    """
    cert = connect_parameter.client_certificate_file
    key = connect_parameter.client_private_key_file
    if cert is not None and key is not None:
        return MutualAuth(
            client_certificate_file=cert,
            client_private_key_file=key,
            root_certificate_file=connect_parameter.root_certificate_file,
        )
    return SingleAuth(root_certificate_file=connect_parameter.root_certificate_file)


def lone_credential_file(connect_parameter: MqttConnectParameter) -> Path | None:
    """Return the client cert or key if exactly one of the two was supplied."""
    cert = connect_parameter.client_certificate_file
    key = connect_parameter.client_private_key_file
    if (cert is None) == (key is None):
        return None
    return cert if cert is not None else key


@dataclass(frozen=True, slots=True)
class TlsHandler:
    """Per-connection TLS artifact bound to one broker endpoint.

    ``engine`` is an unconnected ``ssl.SSLObject`` over the allocated buffers,
    with ``server_hostname`` set so the handshake verifies the broker name.
    Runtimes that manage their own sockets use ``context`` instead.
    """

    context: ssl.SSLContext
    engine: ssl.SSLObject
    incoming: ssl.MemoryBIO
    outgoing: ssl.MemoryBIO
    auth_mode: TlsAuthMode
    host: str
    port: int

    @property
    def mode_name(self) -> str:
        return self.auth_mode.name

    @property
    def is_mutual(self) -> bool:
        return isinstance(self.auth_mode, MutualAuth)


def build_tls_handler(
    connect_parameter: MqttConnectParameter,
    allocator: BufferAllocator = ssl.MemoryBIO,
) -> TlsHandler:
    """Build a fresh TLS handler for the connect parameter's endpoint.

    Args:
        connect_parameter: Endpoint and credential files.
        allocator: Factory for the engine's incoming and outgoing buffers.

    Returns:
        A new TlsHandler; nothing is cached between calls.

    Raises:
        TlsConfigurationError: If a credential file is missing, unreadable or
            malformed, or the key does not match the certificate.
    """
    auth_mode = select_auth_mode(connect_parameter)

    lone = lone_credential_file(connect_parameter)
    if lone is not None:
        MQTT_CONNECTOR_METRICS.tls_lone_credential_total.inc()
        logger.warning(
            "Ignoring %s: client certificate and private key must both be set for "
            "mutual TLS, falling back to single-direction authentication",
            lone,
        )

    host = connect_parameter.host
    port = connect_parameter.port
    try:
        context = auth_mode.build_context()
        incoming = allocator()
        outgoing = allocator()
        engine = context.wrap_bio(incoming, outgoing, server_side=False, server_hostname=host)
    except (OSError, ValueError) as e:
        # ssl.SSLError is an OSError subclass
        MQTT_CONNECTOR_METRICS.tls_configuration_errors_total.inc()
        get_logger().warning(
            "tls_context_rejected", host=host, port=port, mode=auth_mode.name, error=str(e)
        )
        raise TlsConfigurationError(
            f"Cannot build {auth_mode.name} TLS context for {host}:{port}: {e}"
        ) from e

    MQTT_CONNECTOR_METRICS.tls_handlers_total.labels(mode=auth_mode.name).inc()
    get_logger().info(
        "tls_handler_built",
        host=host,
        port=port,
        mode=auth_mode.name,
        ignored_credential=str(lone) if lone is not None else None,
    )
    logger.debug("Built %s TLS handler for %s:%d", auth_mode.name, host, port)

    return TlsHandler(
        context=context,
        engine=engine,
        incoming=incoming,
        outgoing=outgoing,
        auth_mode=auth_mode,
        host=host,
        port=port,
    )
