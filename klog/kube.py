"""
Kubernetes client and API interactions for Klog.

This module provides the interface between Klog and the Kubernetes API.
It handles configuration loading, namespace checks, pod discovery and log
streaming with proper error translation.

Key Components:
- KubeContext: Container for Kubernetes API clients
- load_kube: Initialize Kubernetes client with config loading
- namespace_exists: Check whether a namespace exists
- list_pods: List pods in one namespace or across all namespaces
- PodLogStream: Line iterator over a streamed container log
- open_log_stream: Open a container log stream

The module supports both external kubeconfig files and in-cluster
configuration, with automatic fallback between them.

Example:
    ```python
    kube = await load_kube(kubeconfig=None, context=None)
    pods = await list_pods(kube.core, "default")
    stream = open_log_stream(kube.core, pod, "app", LogOptions(tail_lines=10))
    for line in stream:
        print(line)
    ```
"""

from __future__ import annotations
import asyncio
import codecs
import logging
import socket
import threading
from typing import Any, Iterator, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client import ApiException

from .constants import LOG_STREAM_ENCODING
from .exceptions import KubernetesConnectionError, LogStreamError
from .models import LogOptions, PodRef

log = logging.getLogger('klog.kube')


class KubeContext:
    """
    Container for Kubernetes API clients.

    Attributes:
        core: CoreV1Api client for pod, namespace and log operations

    Example:
        ```python
        kube = await load_kube(kubeconfig, context)
        pods = kube.core.list_pod_for_all_namespaces()
        ```
    """

    def __init__(self, core: client.CoreV1Api):
        self.core = core


async def load_kube(kubeconfig: Optional[str], context: Optional[str]) -> KubeContext:
    """
    Load and initialize the Kubernetes API client.

    An explicit kubeconfig path or context is loaded as given. Otherwise the
    default kubeconfig is tried first, then the in-cluster service account.

    Args:
        kubeconfig: Path to kubeconfig file (optional, uses default if None)
        context: Kubernetes context name (optional, uses current context if None)

    Returns:
        KubeContext: Initialized context

    Raises:
        KubernetesConnectionError: If no configuration can be loaded
    """
    def _load():
        if kubeconfig or context:
            config.load_kube_config(config_file=kubeconfig, context=context)
        else:
            try:
                config.load_kube_config()
            except Exception:
                config.load_incluster_config()
        return client.CoreV1Api()
    loop = asyncio.get_event_loop()
    try:
        core = await loop.run_in_executor(None, _load)
    except Exception as e:
        raise KubernetesConnectionError(f"Failed to load Kubernetes configuration: {e}") from e
    return KubeContext(core)


async def namespace_exists(core: client.CoreV1Api, namespace: str) -> bool:
    """
    Check whether a namespace exists.

    Returns False on 404; other API errors propagate.
    """
    loop = asyncio.get_event_loop()
    def _get():
        try:
            core.read_namespace(name=namespace)
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise
    return await loop.run_in_executor(None, _get)


async def list_pods(core: client.CoreV1Api, namespace: Optional[str]) -> List[Any]:
    """
    List pods in a namespace, or in every namespace when namespace is None.

    Returns:
        List[Any]: ``V1Pod`` objects as returned by the client
    """
    loop = asyncio.get_event_loop()
    def _list():
        if namespace:
            return core.list_namespaced_pod(namespace=namespace)
        return core.list_pod_for_all_namespaces()
    resp = await loop.run_in_executor(None, _list)
    return list(resp.items or [])


def _response_socket(resp: Any) -> Optional[socket.socket]:
    """The socket under a streamed urllib3 response, if it is still attached."""
    sock = getattr(getattr(resp, 'connection', None), 'sock', None)
    if sock is None:
        fp = getattr(getattr(resp, '_fp', None), 'fp', None)
        sock = getattr(getattr(fp, 'raw', None), '_sock', None)
    return sock


def _shutdown_socket(resp: Any) -> None:
    """Wake up any thread blocked reading from resp."""
    sock = _response_socket(resp)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        log.debug(f"[stream] socket shutdown: {e}")


class PodLogStream:
    """
    Line iterator over one streamed container log.

    The API server sends the log as arbitrary chunks; the iterator buffers
    them and yields complete lines without their line terminator. A trailing
    line without newline is yielded when the stream ends.

    ``close()`` may be called from another thread to unblock a pending read,
    which is how cancelled streaming tasks give their connection back.

    Attributes:
        pod: The pod this stream belongs to
        container: Container name
    """

    def __init__(self, resp: Any, pod: PodRef, container: Optional[str]):
        self._resp = resp
        self.pod = pod
        self.container = container
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __iter__(self) -> Iterator[str]:
        decoder = codecs.getincrementaldecoder(LOG_STREAM_ENCODING)("replace")
        buffer = ""
        try:
            for chunk in self._resp.stream(decode_content=True):
                if self.closed:
                    return
                if isinstance(chunk, bytes):
                    chunk = decoder.decode(chunk)
                buffer += chunk
                while "\n" in buffer:
                    line, buffer = buffer.split("\n", 1)
                    yield line.rstrip("\r")
        except Exception as e:
            # A close() from another thread surfaces here as a read error.
            if self.closed:
                return
            if isinstance(e, (urllib3.exceptions.HTTPError, OSError)):
                raise LogStreamError(self.pod.name, f"log stream interrupted: {e}") from e
            raise
        buffer += decoder.decode(b"", final=True)
        if buffer and not self.closed:
            yield buffer.rstrip("\r")

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        # A reader blocked in recv() holds the response's buffer lock, so
        # closing the response alone would wait for the next chunk.
        _shutdown_socket(self._resp)
        try:
            self._resp.close()
        finally:
            self._resp.release_conn()


def open_log_stream(core: client.CoreV1Api, pod: PodRef, container: Optional[str],
                    options: LogOptions) -> PodLogStream:
    """
    Open the log of one container.

    Args:
        core: CoreV1Api client
        pod: Pod to read from
        container: Container name (None lets the API server pick the only container)
        options: Follow, previous, timestamps, since and tail settings

    Returns:
        PodLogStream: Line iterator; the caller must close it

    Raises:
        LogStreamError: If the API server refuses the request
    """
    kwargs = options.to_api_kwargs()
    if container:
        kwargs['container'] = container
    try:
        resp = core.read_namespaced_pod_log(
            name=pod.name, namespace=pod.namespace, _preload_content=False, **kwargs
        )
    except ApiException as e:
        raise LogStreamError(pod.name, f"cannot open log ({e.status} {e.reason})") from e
    except (urllib3.exceptions.HTTPError, OSError) as e:
        raise LogStreamError(pod.name, f"cannot open log: {e}") from e
    log.debug(f"[stream] opened {pod.namespace}/{pod.name} container={container}")
    return PodLogStream(resp, pod, container)
