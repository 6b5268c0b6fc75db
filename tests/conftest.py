"""Shared pytest fixtures for MQTT connector tests."""

import datetime
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from mqtt_connector.config import MqttConfiguration, MqttConnectParameter

BROKER_HOST = "broker.example.com"
BROKER_TLS_PORT = 8883


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers.

    Note: Markers are also defined in pyproject.toml [tool.pytest.ini_options].
    """
    config.addinivalue_line("markers", "security: security and input validation tests")
    config.addinivalue_line("markers", "integration: integration tests requiring an MQTT broker")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        if "/security/" in str(item.fspath):
            item.add_marker(pytest.mark.security)


@dataclass(frozen=True)
class TlsMaterial:
    """PEM files for a throwaway PKI."""

    ca_cert: Path
    client_cert: Path
    client_key: Path
    other_key: Path
    garbage: Path


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(
    subject: x509.Name,
    public_key: Any,
    issuer: x509.Name,
    issuer_key: ec.EllipticCurvePrivateKey,
    ca: bool,
) -> x509.Certificate:
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(issuer_key, hashes.SHA256())
    )


def _write_key(path: Path, key: ec.EllipticCurvePrivateKey) -> Path:
    path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return path


def _write_cert(path: Path, cert: x509.Certificate) -> Path:
    path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    return path


@pytest.fixture(scope="session")
def tls_material(tmp_path_factory: pytest.TempPathFactory) -> TlsMaterial:
    """Generate a CA, a client certificate signed by it and a non-matching key."""
    directory = tmp_path_factory.mktemp("certs")

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_name = _name("Test Root CA")
    ca_cert = _certificate(ca_name, ca_key.public_key(), ca_name, ca_key, ca=True)

    client_key = ec.generate_private_key(ec.SECP256R1())
    client_cert = _certificate(
        _name("test-client"), client_key.public_key(), ca_name, ca_key, ca=False
    )

    garbage = directory / "garbage.pem"
    garbage.write_text("this is not PEM material\n")

    return TlsMaterial(
        ca_cert=_write_cert(directory / "ca.pem", ca_cert),
        client_cert=_write_cert(directory / "client.pem", client_cert),
        client_key=_write_key(directory / "client.key", client_key),
        other_key=_write_key(directory / "other.key", ec.generate_private_key(ec.SECP256R1())),
        garbage=garbage,
    )


@pytest.fixture
def configuration() -> MqttConfiguration:
    """Default client configuration."""
    return MqttConfiguration()


@pytest.fixture
def single_auth_params(tls_material: TlsMaterial) -> MqttConnectParameter:
    """TLS connect parameter trusting the test CA, no client identity."""
    return MqttConnectParameter(
        host=BROKER_HOST,
        port=BROKER_TLS_PORT,
        ssl=True,
        root_certificate_file=tls_material.ca_cert,
    )


@pytest.fixture
def mutual_auth_params(tls_material: TlsMaterial) -> MqttConnectParameter:
    """TLS connect parameter with client certificate and key."""
    return MqttConnectParameter(
        host=BROKER_HOST,
        port=BROKER_TLS_PORT,
        ssl=True,
        root_certificate_file=tls_material.ca_cert,
        client_certificate_file=tls_material.client_cert,
        client_private_key_file=tls_material.client_key,
    )
