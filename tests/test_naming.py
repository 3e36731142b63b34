"""
Unit tests for identifier classification and workload naming.
"""

import hashlib

import pytest

from peitho.services.naming import (
    IdentifierKind,
    classify,
    config_volume_name,
    configmap_name,
    derive_workload_name,
    is_engine_handle,
)


class TestDeriveWorkloadName:
    """Test derive_workload_name function."""

    def test_short_name_replaces_dots(self):
        assert derive_workload_name("dev.peer0.org1") == "dev-peer0-org1"

    def test_name_at_limit_is_unchanged(self):
        ref = "a" * 53
        assert derive_workload_name(ref) == ref

    def test_long_name_is_hashed(self):
        ref = "dev-peer0.org1.example.com-mycc-1.0-" + "f" * 64
        normalized = ref.replace(".", "-")

        name = derive_workload_name(ref)

        expected = "chaincode-" + normalized[:10] + "-" + hashlib.md5(normalized.encode()).hexdigest()
        assert name == expected
        assert len(name) == 53

    def test_derivation_is_deterministic(self):
        ref = "dev-peer1.org2.example.com-basic_1.0-" + "0123456789abcdef" * 4
        assert derive_workload_name(ref) == derive_workload_name(ref)
        assert len(derive_workload_name(ref)) <= 63

    def test_distinct_long_names_differ(self):
        first = derive_workload_name("x" * 60 + ".a")
        second = derive_workload_name("x" * 60 + ".b")
        assert first != second


class TestClassify:
    """Test engine handle detection."""

    def test_hex_id_is_engine_handle(self):
        container_id = "0123456789abcdef" * 4
        assert is_engine_handle(container_id)
        assert classify(container_id) == IdentifierKind.ENGINE_HANDLE

    def test_dotted_name_is_workload_ref(self):
        assert not is_engine_handle("dev.peer0.org1.mycc.v1.0")
        assert classify("dev.peer0.org1.mycc.v1.0") == IdentifierKind.WORKLOAD_REF

    def test_hex_prefix_with_suffix_is_engine_handle(self):
        assert classify("a" * 64 + "-anything") == IdentifierKind.ENGINE_HANDLE

    @pytest.mark.parametrize("identifier", [
        "a" * 63,
        "A" * 64,
        "",
        "g" + "a" * 63,
    ])
    def test_non_handles(self, identifier):
        assert classify(identifier) == IdentifierKind.WORKLOAD_REF


def test_companion_object_names():
    assert configmap_name("dev-peer0-mycc") == "dev-peer0-mycc-configmap"
    assert config_volume_name("dev-peer0-mycc") == "dev-peer0-mycc-config"
