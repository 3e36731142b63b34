"""
Identifier classification and workload naming.

Peitho receives two kinds of identifiers on the same container API:
- Engine handles: 64-char lowercase hex IDs assigned by Docker
- Workload references: dotted names chosen by the caller
  (e.g. "dev-peer0.org1.example.com-mycc-1.0")

Workload references are turned into Kubernetes object names without any
lookup table, so the derivation must be a pure function: Upload, Start and
Remove re-derive the name that Create used.
"""

import hashlib
import re
from enum import Enum

# Prefix match on purpose: anything that starts with 64 hex chars is
# treated as an engine handle, even with a suffix.
ENGINE_HANDLE_PATTERN = re.compile(r"^[0-9a-f]{64}")

# Kubernetes object names are capped at 63 chars; 10 chars are left for
# suffixes the cluster appends (replica set hash, pod hash).
MAX_PLAIN_NAME_LENGTH = 53

LONG_NAME_PREFIX = "chaincode-"


class IdentifierKind(str, Enum):
    """Which backend an identifier belongs to."""

    ENGINE_HANDLE = "engine_handle"
    WORKLOAD_REF = "workload_ref"

    def __str__(self) -> str:
        return self.value


def is_engine_handle(identifier: str) -> bool:
    """Check whether an identifier was assigned by the Docker engine."""
    return ENGINE_HANDLE_PATTERN.match(identifier) is not None


def classify(identifier: str) -> IdentifierKind:
    if is_engine_handle(identifier):
        return IdentifierKind.ENGINE_HANDLE
    return IdentifierKind.WORKLOAD_REF


def derive_workload_name(ref: str) -> str:
    """
    Map a workload reference to a valid Kubernetes object name.

    Dots become dashes. Names longer than 53 chars are shortened to
    "chaincode-<first 10 chars>-<md5 hex>", which is exactly 53 chars.

    Args:
        ref: Workload reference as sent by the caller

    Returns:
        Deployment name for the workload
    """
    normalized = ref.replace(".", "-")
    if len(normalized) <= MAX_PLAIN_NAME_LENGTH:
        return normalized

    digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()
    return f"{LONG_NAME_PREFIX}{normalized[:10]}-{digest}"


def configmap_name(workload_name: str) -> str:
    return f"{workload_name}-configmap"


def config_volume_name(workload_name: str) -> str:
    return f"{workload_name}-config"
