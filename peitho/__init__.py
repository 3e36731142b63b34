"""
Peitho - Docker-compatible container API that runs workloads on Kubernetes.
"""

__version__ = "0.1.0"
