"""
Mode Enumerations

Type-safe enums for the two runtime switches peitho has:
- ImageMode: how workload images reach cluster nodes
- ProvisioningVariant: which TLS mount set a workload deployment receives
"""

from enum import Enum
from typing import Dict, List, Tuple

# Mutual TLS client key and cert paths inside the workload container
TLS_CLIENT_KEY_PATH = "/etc/hyperledger/fabric/client.key"
TLS_CLIENT_CERT_PATH = "/etc/hyperledger/fabric/client.crt"
TLS_CLIENT_ROOT_CERT_PATH = "/etc/hyperledger/fabric/peer.crt"

TLS_CLIENT_KEY_FILE = "/etc/hyperledger/fabric/client_pem.key"
TLS_CLIENT_CERT_FILE = "/etc/hyperledger/fabric/client_pem.crt"

BASELINE_MOUNTS: List[Tuple[str, str]] = [
    ("client.key", TLS_CLIENT_KEY_PATH),
    ("client.crt", TLS_CLIENT_CERT_PATH),
    ("peer.crt", TLS_CLIENT_ROOT_CERT_PATH),
]

EXTENDED_MOUNTS: List[Tuple[str, str]] = BASELINE_MOUNTS + [
    ("client_pem.key", TLS_CLIENT_KEY_FILE),
    ("client_pem.crt", TLS_CLIENT_CERT_FILE),
]

BASELINE_FILE_COUNT = len(BASELINE_MOUNTS)


class ImageMode(str, Enum):
    """
    Supported image delivery modes.

    Attributes:
        REGISTRY: Built images are pushed to the private registry
        DELIVERY: Built images are saved as <tag>.tar for an init-container puller
    """

    REGISTRY = "registry"
    DELIVERY = "delivery"

    @classmethod
    def from_string(cls, value: str) -> "ImageMode":
        """
        Convert a string to ImageMode enum.

        Raises:
            ValueError: If value is not a valid image mode
        """
        value_lower = value.lower().strip()
        for mode in cls:
            if mode.value == value_lower:
                return mode
        valid_modes = ", ".join([m.value for m in cls])
        raise ValueError(
            f"Invalid image mode: '{value}'. Valid modes: {valid_modes}"
        )

    @property
    def is_registry(self) -> bool:
        return self == ImageMode.REGISTRY

    @property
    def is_delivery(self) -> bool:
        return self == ImageMode.DELIVERY

    def __str__(self) -> str:
        return self.value


class ProvisioningVariant(str, Enum):
    """
    TLS material layouts a workload deployment can be provisioned with.

    Attributes:
        BASELINE: client.key, client.crt, peer.crt
        EXTENDED: baseline plus client_pem.key and client_pem.crt
    """

    BASELINE = "baseline"
    EXTENDED = "extended"

    @classmethod
    def for_file_count(cls, count: int) -> "ProvisioningVariant":
        """Select the extended layout when more than the baseline files were uploaded."""
        if count > BASELINE_FILE_COUNT:
            return cls.EXTENDED
        return cls.BASELINE

    @property
    def mounts(self) -> List[Tuple[str, str]]:
        """(configmap key, absolute mount path) pairs for this variant."""
        if self == ProvisioningVariant.EXTENDED:
            return list(EXTENDED_MOUNTS)
        return list(BASELINE_MOUNTS)

    @property
    def keys(self) -> List[str]:
        return [key for key, _ in self.mounts]

    @property
    def mount_paths(self) -> Dict[str, str]:
        return dict(self.mounts)

    def __str__(self) -> str:
        return self.value
