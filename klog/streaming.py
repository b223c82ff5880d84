"""
Log streaming to the terminal.

This module drives the log streams: it reads lines from one or more pod log
streams, renders them and writes them to a shared output sink. A single pod
is followed on the calling thread; several pods are streamed concurrently
under a fixed cap on open streams.

Key Components:
- OutputSink: Serialized line writer over a rich Console
- pump_lines: Render and write every line of one stream
- follow_pod: Stream one pod on the calling thread
- stream_pod_task: Stream one pod inside the fan-out
- fan_out: Stream many pods concurrently with bounded concurrency

Lines of one pod are written in stream order. Lines of different pods are
interleaved in whatever order they arrive, but never within a line.

Example:
    ```python
    sink = OutputSink()
    open_stream = functools.partial(open_log_stream, kube.core)
    failed = await fan_out(pods, "app", LogOptions(), ctx, sink, open_stream, max_concurrency=10)
    ```
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, List, Optional, Sequence

from rich.console import Console
from rich.text import Text

from .constants import DEFAULT_MAX_CONCURRENCY
from .exceptions import LogStreamError
from .models import LogOptions, PodRef, RenderContext
from .rendering import color_for, render_line

log = logging.getLogger('klog.streaming')

# (pod, container, options) -> iterable of lines with a close() method
OpenStreamFn = Callable[[PodRef, Optional[str], LogOptions], Any]


def _log_exception(msg: str, exc: Exception, level: int = logging.WARNING):
    """Log an exception with proper formatting."""
    log.log(level, f"{msg}: {exc.__class__.__name__}: {exc}")


class OutputSink:
    """
    Thread-safe line writer.

    Every ``write`` prints one complete line while holding a lock, so lines
    from concurrent streams never mix.

    Attributes:
        console: Rich console the lines are printed to
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)
        self._lock = threading.Lock()

    def write(self, text: Text) -> None:
        with self._lock:
            self.console.print(text)


def pump_lines(lines: Iterable[str], pod_name: str, pod_color: str,
               context: RenderContext, sink: OutputSink) -> int:
    """Render every line and write the ones not filtered out. Returns the written count."""
    written = 0
    for line in lines:
        rendered = render_line(line, context, pod_name, pod_color)
        if rendered is not None:
            sink.write(rendered)
            written += 1
    return written


def follow_pod(pod: PodRef, container: Optional[str], options: LogOptions,
               context: RenderContext, sink: OutputSink, open_stream: OpenStreamFn) -> int:
    """
    Stream one pod on the calling thread until the log ends.

    Raises:
        LogStreamError: If the stream cannot be opened or breaks
    """
    stream = open_stream(pod, container, options)
    try:
        return pump_lines(stream, pod.name, color_for(pod.name), context, sink)
    finally:
        stream.close()


class _StreamSlot:
    """Hands the open stream of a worker thread over to the cancelling task."""

    def __init__(self):
        self._lock = threading.Lock()
        self._stream = None
        self._cancelled = False

    def attach(self, stream: Any) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._stream = stream
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            stream = self._stream
        if stream is not None:
            stream.close()


async def stream_pod_task(pod: PodRef, container: Optional[str], options: LogOptions,
                          context: RenderContext, sink: OutputSink, open_stream: OpenStreamFn,
                          semaphore: asyncio.Semaphore, executor: ThreadPoolExecutor) -> bool:
    """
    Stream one pod while holding a concurrency slot.

    The blocking read runs on the executor. Errors are logged with the pod
    name and end only this task. Cancellation closes the stream so the worker
    thread returns.

    Returns:
        bool: True if the stream ended normally, False if it failed
    """
    loop = asyncio.get_event_loop()
    color = color_for(pod.name)
    slot = _StreamSlot()

    def _run():
        stream = open_stream(pod, container, options)
        if not slot.attach(stream):
            stream.close()
            return 0
        try:
            return pump_lines(stream, pod.name, color, context, sink)
        finally:
            stream.close()

    async with semaphore:
        log.debug(f"[stream] start {pod.namespace}/{pod.name}")
        try:
            written = await loop.run_in_executor(executor, _run)
        except asyncio.CancelledError:
            slot.cancel()
            raise
        except LogStreamError as e:
            log.error(f"[stream] {e}")
            return False
        except Exception as e:
            _log_exception(f"[stream] {pod.name} failed", e, logging.ERROR)
            return False
        log.debug(f"[stream] end {pod.namespace}/{pod.name} lines={written}")
        return True


async def fan_out(pods: Sequence[PodRef], container: Optional[str], options: LogOptions,
                  context: RenderContext, sink: OutputSink, open_stream: OpenStreamFn,
                  max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> List[PodRef]:
    """
    Stream every pod concurrently, at most ``max_concurrency`` at a time.

    Waits until every stream has ended. Cancelling the returned coroutine
    cancels all pod tasks, closing their streams.

    Args:
        pods: Pods to stream
        container: Container name used for every pod (None for the default container)
        options: Log request options
        context: Rendering configuration
        sink: Shared output sink
        open_stream: Log stream provider
        max_concurrency: Maximum number of streams open at once

    Returns:
        List[PodRef]: Pods whose stream failed
    """
    semaphore = asyncio.Semaphore(max_concurrency)
    executor = ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix='klog-stream')
    log.info(f"[fan-out] streaming {len(pods)} pods, max concurrency={max_concurrency}")
    try:
        results = await asyncio.gather(*(
            stream_pod_task(pod, container, options, context, sink, open_stream, semaphore, executor)
            for pod in pods
        ))
    finally:
        executor.shutdown(wait=False)
    return [pod for pod, ok in zip(pods, results) if not ok]
