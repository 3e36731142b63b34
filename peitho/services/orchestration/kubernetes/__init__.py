"""
Kubernetes orchestrator backend.

Workloads run as single-container Deployments; TLS material is mounted
from a per-workload ConfigMap.
"""

from .client import KubernetesOrchestrator

__all__ = ["KubernetesOrchestrator"]
