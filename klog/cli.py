"""
Command-line interface for Klog.

This module provides the command-line interface for the Klog application,
handling argument parsing, input validation, pod resolution and the choice
between single-pod and all-pods streaming.

Key Functions:
- build_parser: Create and configure the argument parser
- setup_logging: Configure diagnostics logging on stderr
- main: Main entry point for the CLI application

Rendered log lines go to stdout; banners, prompts and diagnostics go to
stderr so the output can be piped.

Exit codes:
    0    Streams ended normally
    1    Kubernetes connection or resolution failure, or every stream failed
    2    Invalid arguments
    128  Missing pod name pattern
    130  Interrupted

Example:
    ```bash
    # Follow one pod, picking it interactively among the matches
    klog '^api-'

    # Follow every matched pod in a namespace, highlighting a keyword
    klog '^api-' -n prod --all-pods -k 'timeout'
    ```
"""

import argparse
import asyncio
import functools
import logging
import os
import sys
from typing import List, Optional, Tuple

from kubernetes.client import ApiException
from rich.console import Console

from .constants import (
    DEFAULT_LOG_LEVEL, DEFAULT_MAX_CONCURRENCY, ENV_LOG_LEVEL, ENV_MAX_CONCURRENCY,
    ENV_NAMESPACE, EXIT_CONFIGURATION_ERROR, EXIT_INTERRUPTED, EXIT_MISSING_ARGUMENT,
    EXIT_RESOLUTION_ERROR,
)
from .exceptions import (
    ConfigurationError, InvalidPatternError, KlogError, LogStreamError,
)
from .kube import KubeContext, load_kube, open_log_stream
from .models import LogOptions, PodRef, RenderContext
from .pod_processing import resolve_pods, select_container, select_pod
from .streaming import OutputSink, fan_out, follow_pod
from .validation import (
    validate_keyword, validate_max_concurrency, validate_regex_pattern,
    validate_since_hours, validate_tail_lines,
)

log = logging.getLogger('klog')


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        log.warning(f"[config] Invalid {name}, using default: {default}")
        return default


def setup_logging(verbose: bool = False) -> None:
    """Configure logging (level via KLOG_LOG_LEVEL env, DEBUG with --verbose)."""
    level_name = 'DEBUG' if verbose else os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format='[%(asctime)s] %(levelname)s %(message)s',
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build and configure the command-line argument parser.

    Environment variables are used as defaults where appropriate.

    Returns:
        argparse.ArgumentParser: Configured argument parser with all options

    Environment Variables:
        KLOG_NAMESPACE: Default namespace (default: all namespaces)
        KLOG_MAX_CONCURRENCY: Default cap on concurrent streams (default: 10)
    """
    env_namespace = os.getenv(ENV_NAMESPACE) or None
    env_max_concurrency = _env_int(ENV_MAX_CONCURRENCY, DEFAULT_MAX_CONCURRENCY)

    p = argparse.ArgumentParser("klog", description="Stream Kubernetes pod logs with level-based coloring")
    p.add_argument("pod", nargs="?", help="Regex pattern to match pod names (e.g. ^api-)")
    p.add_argument("-c", "--container", default=None, help="Container name (prompted when the pod has several)")
    p.add_argument("-n", "--namespace", default=env_namespace, help="Namespace to search (env: KLOG_NAMESPACE, default: all)")
    p.add_argument("-k", "--keyword", default=None, help="Regex to highlight in each line")
    p.add_argument("--keyword-only", action="store_true", help="Only show lines containing the keyword")
    p.add_argument("--no-timestamp", action="store_true", help="Do not request or show timestamps")
    p.add_argument("--no-follow", action="store_true", help="Print the current log and exit instead of following")
    p.add_argument("-p", "--previous", action="store_true", help="Show the log of the previous container instance")
    p.add_argument("-s", "--since", type=int, default=None, metavar="HOURS", help="Only show lines newer than HOURS hours")
    p.add_argument("-t", "--tail", type=int, default=None, metavar="LINES", help="Only show the last LINES lines")
    p.add_argument("-a", "--all-pods", action="store_true", help="Stream every matched pod, prefixing lines with the pod name")
    p.add_argument("--max-concurrency", type=int, default=env_max_concurrency, help="Maximum pods streamed at once with --all-pods (env: KLOG_MAX_CONCURRENCY)")
    p.add_argument("--kubeconfig", default=None, help="Path to kubeconfig (defaults to kube rules)")
    p.add_argument("--context", default=None, help="Kubecontext override")
    p.add_argument("--no-color", action="store_true", help="Disable colors")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return p


async def _resolve(args: argparse.Namespace, pod_regex) -> Tuple[KubeContext, List[PodRef]]:
    kube = await load_kube(args.kubeconfig, args.context)
    pods = await resolve_pods(kube.core, pod_regex, args.namespace)
    log.info(f"[pods] {len(pods)} pods match '{pod_regex.pattern}'")
    return kube, pods


def _banner(status: Console, container: Optional[str], pods: List[PodRef]) -> None:
    names = ", ".join(p.name for p in pods)
    what = f"container '{container}'" if container else "default container"
    status.print(f"Showing logs of {what} in pod(s) '{names}'", style="bold", markup=False, highlight=False)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the Klog CLI application.

    The function performs the following steps:
    1. Parse and validate command-line arguments
    2. Load the Kubernetes configuration and resolve matching pods
    3. Pick the pod and container (interactively when ambiguous)
    4. Stream one pod on the main thread, or all pods concurrently

    Raises:
        SystemExit: With the exit codes listed in the module docstring
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.pod:
        parser.print_usage(sys.stderr)
        print("Error: the pod name pattern is required", file=sys.stderr)
        sys.exit(EXIT_MISSING_ARGUMENT)

    # Validate inputs
    try:
        pod_regex = validate_regex_pattern(args.pod)
        keyword = validate_keyword(args.keyword)
        max_concurrency = validate_max_concurrency(args.max_concurrency)
        since_hours = validate_since_hours(args.since)
        tail_lines = validate_tail_lines(args.tail)
    except (InvalidPatternError, ConfigurationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIGURATION_ERROR)

    options = LogOptions(
        follow=not args.no_follow,
        previous=args.previous,
        timestamps=not args.no_timestamp,
        since_hours=since_hours,
        tail_lines=tail_lines,
    )
    context = RenderContext(
        show_timestamp=not args.no_timestamp,
        show_pod_name=args.all_pods,
        keyword=keyword,
        keyword_only=args.keyword_only,
    )
    no_color = True if args.no_color else None
    sink = OutputSink(Console(highlight=False, soft_wrap=True, no_color=no_color))
    status = Console(stderr=True, no_color=no_color)

    try:
        kube, pods = asyncio.run(_resolve(args, pod_regex))
    except KlogError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_RESOLUTION_ERROR)
    except ApiException as e:
        print(f"Kubernetes API error: {e.status} {e.reason}", file=sys.stderr)
        sys.exit(EXIT_RESOLUTION_ERROR)
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)

    open_stream = functools.partial(open_log_stream, kube.core)

    try:
        if args.all_pods:
            container = select_container(pods[0], args.container)
            _banner(status, container, pods)
            failed = asyncio.run(fan_out(pods, container, options, context, sink, open_stream, max_concurrency))
            if failed and len(failed) == len(pods):
                sys.exit(EXIT_RESOLUTION_ERROR)
        else:
            pod = select_pod(pods, args.pod.strip())
            container = select_container(pod, args.container)
            _banner(status, container, [pod])
            follow_pod(pod, container, options, context, sink, open_stream)
    except LogStreamError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_RESOLUTION_ERROR)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":  # pragma: no cover
    main()
