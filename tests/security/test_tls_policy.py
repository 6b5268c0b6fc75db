"""Security tests for TLS authentication settings.

These tests verify that:
1. Every TLS mode verifies the broker certificate and host name
2. A lone client certificate or key never yields a half-configured mutual context
3. Credentials do not leak through string representations
"""

import ssl
from typing import Any

import pytest
from pydantic import SecretStr

from mqtt_connector.config import MqttConnectParameter
from mqtt_connector.connector.tls import build_tls_handler


class TestBrokerVerification:
    """Server verification is never relaxed."""

    @pytest.mark.security
    def test_single_mode_verifies(self, single_auth_params: MqttConnectParameter) -> None:
        context = build_tls_handler(single_auth_params).context

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname

    @pytest.mark.security
    def test_mutual_mode_verifies(self, mutual_auth_params: MqttConnectParameter) -> None:
        context = build_tls_handler(mutual_auth_params).context

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname

    @pytest.mark.security
    def test_legacy_protocols_disabled(self, single_auth_params: MqttConnectParameter) -> None:
        context = build_tls_handler(single_auth_params).context

        assert context.minimum_version >= ssl.TLSVersion.TLSv1_2


class TestLoneCredential:
    """A lone certificate or key is not presented to the broker."""

    @pytest.mark.security
    def test_lone_certificate_not_loaded(self, tls_material: Any) -> None:
        params = MqttConnectParameter(
            host="broker.example.com",
            port=8883,
            ssl=True,
            root_certificate_file=tls_material.ca_cert,
            client_certificate_file=tls_material.client_cert,
        )

        handler = build_tls_handler(params)

        assert handler.mode_name == "single"
        assert not hasattr(handler.auth_mode, "client_certificate_file")


class TestSecretHandling:
    """Passwords stay masked."""

    @pytest.mark.security
    def test_password_not_in_repr(self) -> None:
        params = MqttConnectParameter(username="device", password=SecretStr("hunter2"))

        assert "hunter2" not in repr(params)
        assert "hunter2" not in str(params)
        assert "hunter2" not in params.model_dump_json()
