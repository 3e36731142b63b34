"""
Tests for Settings parsing and validation.
"""

import pytest

from peitho.config import Settings


def make_settings(**overrides):
    values = dict(
        docker_endpoint="unix:///var/run/docker.sock",
        registry_server_address="registry.example.com:5000",
        registry_project="fabric",
        k8s_namespace="peitho",
        _env_file=None,
    )
    values.update(overrides)
    return Settings(**values)


class TestValidateOptions:

    def test_valid_configuration(self):
        assert make_settings().validate_options() == []

    def test_required_options(self):
        problems = make_settings(docker_endpoint="", registry_project="", k8s_namespace="").validate_options()

        assert "docker endpoint can not be empty" in problems
        assert "registry project can not be empty" in problems
        assert "namespace can not be empty" in problems

    def test_missing_kubeconfig_file(self, tmp_path):
        problems = make_settings(kubeconfig=str(tmp_path / "missing")).validate_options()
        assert len(problems) == 1

    def test_invalid_image_mode(self):
        assert make_settings(image_mode="ftp").validate_options()

    def test_delivery_mode_requires_puller(self):
        settings = make_settings(image_mode="delivery")

        assert settings.is_delivery_mode
        assert len(settings.validate_options()) == 2

        settings = make_settings(image_mode="delivery", puller_image="puller", puller_access_address="http://peitho:8080")
        assert settings.validate_options() == []

    def test_sweeper_interval_must_be_positive(self):
        assert make_settings(sweeper_interval=0).validate_options()

    def test_bad_dns_entry(self):
        assert make_settings(k8s_dns="10.0.0.5").validate_options()


class TestDerivedValues:

    def test_dns_entries(self):
        settings = make_settings(k8s_dns="10.0.0.5:peer0.org1.example.com, 10.0.0.6:orderer.example.com,")
        assert settings.dns_entries == ["10.0.0.5:peer0.org1.example.com", "10.0.0.6:orderer.example.com"]

    def test_sweeper_prefixes(self):
        assert make_settings().sweeper_prefix_list == ["dev-", "chaincode-"]
        assert make_settings(sweeper_prefixes="cc-").sweeper_prefix_list == ["cc-"]

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("SWEEPER_INTERVAL", "15")
        monkeypatch.setenv("IMAGE_MODE", "delivery")

        settings = Settings(_env_file=None)

        assert settings.sweeper_interval == 15
        assert settings.is_delivery_mode
