"""Tests for the non-raising health checks."""

import pytest

from eryph_clientruntime import create_credentials_lookup, credentials_available, zero_endpoints, zero_running

ZERO_ENDPOINTS = {
    "identity": "https://localhost:8080/identity",
    "compute": "https://localhost:8080/compute",
}


class TestCredentialsAvailable:
    """Test credentials_available."""

    @pytest.mark.unit
    def test_available(self, environment, test_config):
        environment.add_config("user", "test", test_config)

        assert credentials_available("test", environment=environment) is True
        assert credentials_available(environment=environment) is True

    @pytest.mark.unit
    def test_nothing_configured(self, environment):
        assert credentials_available(environment=environment) is False
        assert credentials_available("test", environment=environment) is False

    @pytest.mark.unit
    def test_ambiguous_configurations(self, environment, test_config):
        environment.add_config("user", "test", test_config)
        environment.add_config("user", "staging", test_config)

        assert credentials_available(environment=environment) is False

    @pytest.mark.unit
    def test_unknown_client(self, environment, test_config):
        environment.add_config("user", "test", test_config)

        assert credentials_available("test", client_id="other", environment=environment) is False

    @pytest.mark.unit
    def test_missing_secret_material(self, environment):
        environment.add_config("user", "test", {"clients": [{"id": "client-a", "secretEnv": "TEST_SECRET"}]})

        assert credentials_available("test", environment=environment) is False

    @pytest.mark.unit
    def test_create_credentials_lookup(self, environment, test_config):
        environment.add_config("user", "test", test_config)

        lookup = create_credentials_lookup("test", client_id="client-a", environment=environment)

        assert lookup.config_name == "test"
        assert lookup.find_credentials().client_id == "client-a"


class TestZeroRunning:
    """Test zero_running and zero_endpoints."""

    @pytest.mark.unit
    def test_running(self, environment):
        environment.add_local_instance("zero", endpoints=ZERO_ENDPOINTS)

        assert zero_running(environment=environment) is True
        assert zero_endpoints(environment=environment) == ZERO_ENDPOINTS

    @pytest.mark.unit
    def test_not_installed(self, environment):
        assert zero_running(environment=environment) is False
        assert zero_endpoints(environment=environment) == {}

    @pytest.mark.unit
    def test_stale_lock_file(self, environment):
        environment.add_local_instance("zero", endpoints=ZERO_ENDPOINTS, running=False)

        assert zero_running(environment=environment) is False
        assert zero_endpoints(environment=environment) == {}

    @pytest.mark.unit
    def test_other_instance_name(self, environment):
        environment.add_local_instance("local", endpoints=ZERO_ENDPOINTS)

        assert zero_running(environment=environment) is False
        assert zero_running(identity_provider_name="local", environment=environment) is True

    @pytest.mark.unit
    def test_corrupt_lock_file(self, environment):
        environment.running_processes.add(("eryph-zero", 4242))
        environment.add_file("/test/appdata/eryph/zero/.lock", "{not json")

        assert zero_running(environment=environment) is False
        assert zero_endpoints(environment=environment) == {}


class TestMalformedContent:
    """The checks report False / {} for corrupt files instead of raising."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "client",
        [
            {"id": "client-a", "secretEnv": 5},
            {"id": "client-a", "secret": 1234},
            {"id": "client-a", "keyFile": ["a.pem"]},
            {"id": "client-a", "name": {"first": "A"}},
        ],
    )
    def test_wrong_typed_client_fields(self, environment, client):
        environment.add_config("user", "test", {"clients": [client]})

        assert credentials_available("test", environment=environment) is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "lock",
        [
            '{"processName": "eryph-zero", "processId": 1e999}',
            '{"processName": "eryph-zero", "processId": "4242"}',
            '{"processName": 42, "processId": 4242}',
            '{"processName": "eryph-zero", "processId": 0}',
        ],
    )
    def test_corrupt_process_fields(self, environment, lock):
        environment.running_processes.add(("eryph-zero", 4242))
        environment.add_file("/test/appdata/eryph/zero/.lock", lock)

        assert zero_running(environment=environment) is False
        assert zero_endpoints(environment=environment) == {}
