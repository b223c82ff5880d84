"""
Custom exceptions for Klog.

This module defines custom exception classes used throughout the Klog
application to provide more specific error handling and better error messages
for different failure scenarios.

Exception Hierarchy:
- KlogError: Base exception for all Klog-specific errors
  - KubernetesConnectionError: Raised when unable to load config or build a client
  - InvalidPatternError: Raised when an invalid regex pattern is provided
  - ConfigurationError: Raised when there's a configuration issue
  - PodNotFoundError: Raised when no pod matches the requested pattern
  - NamespaceNotFoundError: Raised when the requested namespace does not exist
  - LogStreamError: Raised when a pod log stream cannot be opened or read

Example:
    ```python
    try:
        pods = resolve_pods(core, pattern, "prod")
    except (PodNotFoundError, NamespaceNotFoundError) as e:
        print(f"Resolution failed: {e}")
    ```
"""


class KlogError(Exception):
    """Base exception for Klog errors."""
    pass


class KubernetesConnectionError(KlogError):
    """Raised when unable to connect to Kubernetes cluster."""
    pass


class InvalidPatternError(KlogError):
    """Raised when an invalid regex pattern is provided."""
    pass


class ConfigurationError(KlogError):
    """Raised when there's a configuration issue."""
    pass


class PodNotFoundError(KlogError):
    """Raised when no pod matches the requested pattern."""
    pass


class NamespaceNotFoundError(KlogError):
    """Raised when the requested namespace does not exist."""
    pass


class LogStreamError(KlogError):
    """Raised when a pod log stream cannot be opened or read."""

    def __init__(self, pod: str, message: str):
        super().__init__(f"{pod}: {message}")
        self.pod = pod
