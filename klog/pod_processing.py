"""
Pod resolution and selection utilities.

This module turns Kubernetes pod objects into ``PodRef`` values and picks the
pod(s) and container whose logs will be shown. When a choice is ambiguous the
user is asked through a numbered terminal prompt.

Key Functions:
- pod_to_ref: Convert a Kubernetes pod object to a PodRef
- match_pods: Filter pods whose name matches a regex
- resolve_pods: List, check and match pods for a pattern
- select_pod: Pick one pod among the matches
- select_container: Pick the container to stream
- prompt_choice: Numbered terminal prompt used for interactive selection

Example:
    ```python
    pods = await resolve_pods(kube.core, re.compile("^api-"), "prod")
    pod = select_pod(pods, "^api-")
    container = select_container(pod, None)
    ```
"""

from typing import Any, Callable, List, Optional, Pattern, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import IntPrompt

from .exceptions import NamespaceNotFoundError, PodNotFoundError
from .kube import list_pods, namespace_exists
from .models import PodRef
from .validation import sanitize_pod_name

ChoiceFn = Callable[[str, Sequence[str]], int]


def pod_to_ref(p: Any) -> PodRef:
    """Convert Kubernetes pod object to PodRef."""
    containers = []
    for c in getattr(p.spec, 'containers', None) or []:
        containers.append(c.name)
    return PodRef(
        name=p.metadata.name,
        namespace=p.metadata.namespace,
        containers=tuple(containers),
    )


def match_pods(pods: Sequence[Any], pattern: Pattern[str]) -> List[PodRef]:
    """Pods whose name contains a match for pattern, sorted by namespace and name."""
    matched = [pod_to_ref(p) for p in pods if pattern.search(p.metadata.name or "")]
    matched.sort(key=lambda ref: (ref.namespace, ref.name))
    return matched


async def resolve_pods(core: Any, pattern: Pattern[str], namespace: Optional[str]) -> List[PodRef]:
    """
    Find the pods matching pattern.

    Args:
        core: CoreV1Api client
        pattern: Compiled pod name pattern
        namespace: Namespace to search, or None for all namespaces

    Returns:
        List[PodRef]: Matching pods, never empty

    Raises:
        NamespaceNotFoundError: If namespace is given and does not exist
        PodNotFoundError: If no pod matches
    """
    if namespace and not await namespace_exists(core, namespace):
        raise NamespaceNotFoundError(f"Namespace not found: {namespace}")

    matched = match_pods(await list_pods(core, namespace), pattern)
    if not matched:
        where = f" in namespace {namespace}" if namespace else ""
        raise PodNotFoundError(f"No pod found matching: {pattern.pattern}{where}")
    return matched


def prompt_choice(label: str, items: Sequence[str], console: Optional[Console] = None) -> int:
    """Show a numbered list and return the index the user picked."""
    console = console or Console(stderr=True)
    console.print(label, style="bold")
    for i, item in enumerate(items, start=1):
        console.print(f"  [cyan]{i}[/cyan]) {escape(item)}", highlight=False)
    choice = IntPrompt.ask(
        "Number",
        console=console,
        choices=[str(i) for i in range(1, len(items) + 1)],
        show_choices=False,
    )
    return choice - 1


def select_pod(pods: Sequence[PodRef], pattern_text: str, choose: ChoiceFn = prompt_choice) -> PodRef:
    """
    Pick one pod among the matches.

    A single match, or a pod whose name equals the pattern text, is used
    directly. Otherwise the user is asked.
    """
    if len(pods) == 1:
        return pods[0]
    for pod in pods:
        if pod.name == pattern_text:
            return pod
    labels = [f"{sanitize_pod_name(p.name)} ({p.namespace})" for p in pods]
    return pods[choose("Select the pod:", labels)]


def select_container(pod: PodRef, container: Optional[str], choose: ChoiceFn = prompt_choice) -> Optional[str]:
    """
    Pick the container to stream.

    An explicit container name wins. A pod with one container (or whose spec
    lists none) needs no choice; otherwise the user is asked.
    """
    if container:
        return container
    if not pod.containers:
        return None
    if len(pod.containers) == 1:
        return pod.containers[0]
    return pod.containers[choose("Select the container:", list(pod.containers))]
