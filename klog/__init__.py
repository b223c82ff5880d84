"""
Klog - Colorized Kubernetes Pod Log Viewer.

Klog streams logs from one or more Kubernetes pods to the terminal, coloring
each line by its detected severity. Severity comes from a fixed table of
plain-text rules and, for JSON log lines, from the record's ``level`` field.

Key Features:
- Pod selection by regex, with interactive pod and container pickers
- Level-based coloring for plain-text and JSON structured logs
- Timestamp normalization to a compact display format
- Keyword highlighting and keyword-only filtering
- Concurrent streaming of every matched pod with per-pod name prefixes

Example:
    Follow a single pod:
    ```bash
    klog '^api-'
    ```

    Follow every matching pod, highlighting a keyword:
    ```bash
    klog '^api-' --all-pods -k 'timeout'
    ```

    Show the last 100 lines of a previous container without following:
    ```bash
    klog api-7d9f --previous --tail 100 --no-follow
    ```
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
