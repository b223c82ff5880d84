import io
import socket
import os
import sys
import threading
from types import SimpleNamespace

import pytest
import urllib3
from kubernetes.client import ApiException
from rich.console import Console

# Add project root to path so we can import klog without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from klog.streaming import OutputSink


class FakeStream:
    """In-memory log stream with the PodLogStream interface."""

    def __init__(self, lines, fail_with=None, block=False, delay=0.0):
        self.lines = list(lines)
        self.fail_with = fail_with
        self.block = block
        self.delay = delay
        self.closed = threading.Event()

    def __iter__(self):
        for line in self.lines:
            if self.closed.is_set():
                return
            if self.delay:
                self.closed.wait(self.delay)
            yield line
        if self.fail_with is not None:
            raise self.fail_with
        if self.block:
            self.closed.wait()

    def close(self):
        self.closed.set()


def make_pod(name, namespace="default", containers=("app",)):
    """A stand-in for a kubernetes V1Pod."""
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace),
        spec=SimpleNamespace(containers=[SimpleNamespace(name=c) for c in containers]),
    )


class FakeCore:
    """Stand-in for CoreV1Api."""

    def __init__(self, pods=(), namespaces=("default", "prod"), log_response=None, log_error=None):
        self.pods = list(pods)
        self.namespaces = set(namespaces)
        self.log_response = log_response
        self.log_error = log_error
        self.log_calls = []

    def read_namespace(self, name):
        if name not in self.namespaces:
            raise ApiException(status=404, reason="Not Found")
        return SimpleNamespace(metadata=SimpleNamespace(name=name))

    def list_namespaced_pod(self, namespace):
        return SimpleNamespace(items=[p for p in self.pods if p.metadata.namespace == namespace])

    def list_pod_for_all_namespaces(self):
        return SimpleNamespace(items=list(self.pods))

    def read_namespaced_pod_log(self, **kwargs):
        self.log_calls.append(kwargs)
        if self.log_error is not None:
            raise self.log_error
        return self.log_response


@pytest.fixture
def console():
    """A colorless console writing to a buffer."""
    return Console(file=io.StringIO(), width=500, color_system=None, force_terminal=False,
                   highlight=False, soft_wrap=True)


@pytest.fixture
def sink(console):
    return OutputSink(console)


@pytest.fixture
def output(console):
    """Lines written to the console fixture so far."""
    return lambda: console.file.getvalue().splitlines()


class HeldLogServer:
    """
    Local HTTP server that sends a chunked log and then keeps the connection
    open without writing, like the API server following a quiet container.
    """

    def __init__(self, chunks=(b"hello\n",)):
        self.chunks = chunks
        self.release = threading.Event()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(8)
        self._listener.settimeout(0.2)
        self.url = "http://127.0.0.1:%d/log" % self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self.release.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn):
        with conn:
            request = b""
            while b"\r\n\r\n" not in request:
                data = conn.recv(4096)
                if not data:
                    return
                request += data
            conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n"
                         b"Transfer-Encoding: chunked\r\n\r\n")
            for chunk in self.chunks:
                conn.sendall(b"%x\r\n%s\r\n" % (len(chunk), chunk))
            self.release.wait()

    def open(self):
        """A streamed response, as returned by the client with _preload_content=False."""
        http = urllib3.PoolManager()
        return http.request("GET", self.url, preload_content=False, retries=False)

    def stop(self):
        self.release.set()
        self._listener.close()


@pytest.fixture
def log_server():
    server = HeldLogServer()
    yield server
    server.stop()


def finishes_within(seconds, fn):
    """Run fn on a daemon thread; True if it returned in time (fn's errors are re-raised)."""
    outcome = {}

    def target():
        try:
            outcome['value'] = fn()
        except BaseException as e:
            outcome['error'] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join(seconds)
    if thread.is_alive():
        return False
    if 'error' in outcome:
        raise outcome['error']
    return True
