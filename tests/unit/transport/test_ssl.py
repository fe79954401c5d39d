"""Tests for the TLS policy."""

import ssl

import httpx
import pytest

from eryph_clientruntime.transport import SSLConfig, TokenEndpointRetry, create_ssl_context, create_token_transport


class TestSSLConfig:
    """Test building SSLConfig from caller options."""

    @pytest.mark.unit
    def test_defaults_verify(self):
        config = SSLConfig.from_mapping(None)

        assert config.verify_ssl is True
        assert config.verify_hostname is True
        assert config.ca_file is None

    @pytest.mark.unit
    def test_from_mapping(self):
        config = SSLConfig.from_mapping({"verify_ssl": False, "ca_file": "/etc/eryph/ca.pem"})

        assert config.verify_ssl is False
        assert config.ca_file == "/etc/eryph/ca.pem"

    @pytest.mark.unit
    def test_instance_is_passed_through(self):
        config = SSLConfig(verify_hostname=False)

        assert SSLConfig.from_mapping(config) is config

    @pytest.mark.unit
    def test_home_expansion(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))

        config = SSLConfig.from_mapping({"ca_file": "~/ca.pem"})

        assert config.ca_file == str(tmp_path / "ca.pem")

    @pytest.mark.unit
    def test_unknown_keys_are_ignored_with_warning(self, caplog):
        config = SSLConfig.from_mapping({"verify_ssl": True, "use_system_ca": True})

        assert config == SSLConfig()
        assert "use_system_ca" in caplog.text


class TestCreateSSLContext:
    """Test translating SSLConfig into an ssl.SSLContext."""

    @pytest.mark.unit
    def test_verifying_context(self):
        context = create_ssl_context(SSLConfig())

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname is True

    @pytest.mark.unit
    def test_verification_disabled(self):
        context = create_ssl_context(SSLConfig(verify_ssl=False))

        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False

    @pytest.mark.unit
    def test_hostname_check_disabled(self):
        context = create_ssl_context(SSLConfig(verify_hostname=False))

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname is False

    @pytest.mark.unit
    def test_missing_ca_file(self, tmp_path):
        with pytest.raises(OSError):
            create_ssl_context(SSLConfig(ca_file=str(tmp_path / "missing.pem")))


class TestCreateTokenTransport:
    """Test the default token transport stack."""

    @pytest.mark.unit
    async def test_wraps_http_transport_with_retry(self):
        transport = create_token_transport(SSLConfig(verify_ssl=False), max_retries=5)

        assert isinstance(transport, TokenEndpointRetry)
        assert transport.max_retries == 5
        assert isinstance(transport._wrapped_transport, httpx.AsyncHTTPTransport)
        await transport.aclose()
