"""EKS Anywhere lifecycle - Python control plane.

Orchestrates the multi-stage creation of a managed Kubernetes cluster:
a temporary bootstrap cluster provisions the workload cluster, cluster
management is moved onto the workload cluster, and the bootstrap cluster
is torn down again.
"""

try:
    from importlib.metadata import version

    __version__ = version("eksa-lifecycle")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
