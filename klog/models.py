"""
Data models for Klog.

This module defines the data structures used throughout the Klog application.
It provides type-safe representations of severities, resolved pods, log
retrieval options and per-run rendering configuration.

Key Models:
- Severity: Classification bucket assigned to one log line
- PodRef: A resolved pod with its namespace and container names
- LogOptions: Options passed to the Kubernetes log endpoint
- RenderContext: Per-run rendering configuration

All models use dataclasses (or enums) for clean, type-safe data structures
with proper default values. Everything that is shared between concurrent
streaming tasks is frozen.

Example:
    ```python
    ctx = RenderContext(show_timestamp=True, show_pod_name=True)
    opts = LogOptions(follow=True, tail_lines=100)
    pod = PodRef(name="api-7d9f", namespace="prod", containers=("app",))
    ```
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Pattern, Tuple


class Severity(Enum):
    """
    Severity detected for a single log line.

    Members are declared in rule evaluation order: the classifier walks the
    rule groups in this order and the first group that matches wins.
    ``NORMAL`` is the fallback when nothing matches.
    """
    ERROR = "error"
    WARNING = "warning"
    PANIC = "panic"
    DEBUG = "debug"
    NORMAL = "normal"


@dataclass(frozen=True)
class PodRef:
    """
    A pod matched by the resolver.

    Attributes:
        name: Pod name
        namespace: Kubernetes namespace holding the pod
        containers: Container names from the pod spec, in spec order

    Example:
        ```python
        pod = PodRef(name="api-7d9f", namespace="prod", containers=("app", "sidecar"))
        ```
    """
    name: str
    namespace: str
    containers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LogOptions:
    """
    Options for reading a container log.

    Attributes:
        follow: Keep the stream open and tail new lines
        previous: Read the log of the previous (terminated) container instance
        timestamps: Ask the API server to prefix each line with an RFC3339 timestamp
        since_hours: Only return lines newer than this many hours
        tail_lines: Only return this many lines from the end of the log

    Example:
        ```python
        opts = LogOptions(follow=False, since_hours=2)
        core.read_namespaced_pod_log(name, namespace, **opts.to_api_kwargs())
        ```
    """
    follow: bool = True
    previous: bool = False
    timestamps: bool = True
    since_hours: Optional[int] = None
    tail_lines: Optional[int] = None

    def to_api_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``CoreV1Api.read_namespaced_pod_log``."""
        kwargs: Dict[str, Any] = {
            'follow': self.follow,
            'previous': self.previous,
            'timestamps': self.timestamps,
        }
        if self.since_hours is not None:
            kwargs['since_seconds'] = self.since_hours * 3600
        if self.tail_lines is not None:
            kwargs['tail_lines'] = self.tail_lines
        return kwargs


@dataclass(frozen=True)
class RenderContext:
    """
    Rendering configuration for one program run.

    Built once from the command line and shared read-only by every streaming
    task.

    Attributes:
        show_timestamp: Split and reformat the leading timestamp token
        show_pod_name: Prefix each line with ``[pod-name]``
        keyword: Compiled keyword pattern to highlight (None disables highlighting)
        keyword_only: Drop lines in which the keyword does not occur

    Example:
        ```python
        ctx = RenderContext(
            show_timestamp=True,
            show_pod_name=False,
            keyword=re.compile("timeout"),
            keyword_only=True,
        )
        ```
    """
    show_timestamp: bool = True
    show_pod_name: bool = False
    keyword: Optional[Pattern[str]] = field(default=None)
    keyword_only: bool = False
