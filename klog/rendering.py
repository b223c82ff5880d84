"""
Log line rendering for the terminal.

This module turns one raw log line into a styled ``rich.text.Text`` ready to
be printed. It extracts and reformats the leading timestamp, picks the line
style from its severity, highlights keyword matches and adds the pod prefix.

Key Functions:
- extract_timestamp: Split off and normalize the leading timestamp token
- highlight: Style a line with alternating base and keyword spans
- color_for: Stable palette color for a pod name
- severity_style: Rich style for a severity
- render_line: Full pipeline for one line (None when filtered out)

Nothing in this module raises on malformed input: unparseable timestamps are
kept verbatim and broken JSON falls back to the plain-text severity.

Example:
    ```python
    ctx = RenderContext(show_timestamp=True, show_pod_name=True)
    text = render_line("2024-01-01T00:00:00.5Z ERROR boom", ctx, "api-1", color_for("api-1"))
    console.print(text)
    ```
"""

import re
from datetime import datetime
from typing import Optional, Pattern, Tuple

from rich.text import Text

from .classification import detect_severity
from .constants import (
    DEBUG_STYLE, ERROR_STYLE, KEYWORD_STYLE, NORMAL_STYLE, PANIC_STYLE,
    POD_COLOR_PALETTE, TIMESTAMP_DISPLAY_FORMAT, TIMESTAMP_STYLE, WARNING_STYLE,
)
from .models import RenderContext, Severity

SEVERITY_STYLES = {
    Severity.ERROR: ERROR_STYLE,
    Severity.WARNING: WARNING_STYLE,
    Severity.PANIC: PANIC_STYLE,
    Severity.DEBUG: DEBUG_STYLE,
    Severity.NORMAL: NORMAL_STYLE,
}

# RFC3339 with optional fractional seconds, as written by the kubelet.
_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)
_FIRST_WHITESPACE_RE = re.compile(r"\s+")

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


def parse_rfc3339(value: str) -> Optional[datetime]:
    """Parse an RFC3339 timestamp, truncating fractions beyond microseconds."""
    m = _RFC3339_RE.match(value)
    if not m:
        return None
    date, clock, fraction, offset = m.groups()
    micros = (fraction or "0")[:6].ljust(6, "0")
    offset = "+00:00" if offset in ("Z", "z") else offset
    try:
        return datetime.strptime(f"{date}T{clock}.{micros}{offset}", "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        return None


def format_timestamp(ts: datetime) -> str:
    """Format as ``YYYY-MM-DDThh:mm:ss.sss`` in the timestamp's own offset."""
    return f"{ts.strftime(TIMESTAMP_DISPLAY_FORMAT)}.{ts.microsecond // 1000:03d}"


def extract_timestamp(line: str, enabled: bool) -> Tuple[Optional[str], str]:
    """
    Split the leading timestamp token off a log line.

    The line is split at its first whitespace run. A head that parses as
    RFC3339 is reformatted for display; any other head is returned as is, so
    with the feature enabled the first word of a line without a timestamp
    ends up in the timestamp column.

    Args:
        line: Raw log line
        enabled: Whether timestamp extraction is on

    Returns:
        Tuple[Optional[str], str]: (timestamp or None when disabled, remainder)

    Example:
        ```python
        extract_timestamp("2024-01-01T00:00:00.000000000Z INFO up", True)
        # ("2024-01-01T00:00:00.000", "INFO up")
        ```
    """
    if not enabled:
        return None, line

    parts = _FIRST_WHITESPACE_RE.split(line, maxsplit=1)
    candidate = parts[0]
    rest = parts[1] if len(parts) > 1 else ""

    parsed = parse_rfc3339(candidate)
    if parsed is None:
        return candidate, rest
    return format_timestamp(parsed), rest


def highlight(line: str, pattern: Optional[Pattern[str]], base_style: str,
              highlight_style: str = KEYWORD_STYLE) -> Text:
    """
    Style a line, giving every keyword match its own span.

    Walks the non-overlapping matches left to right once, appending the gap
    before each match in ``base_style`` and the match in ``highlight_style``.
    The plain text of the result is always identical to ``line``.
    """
    text = Text()
    if pattern is None or not pattern.pattern:
        text.append(line, style=base_style)
        return text

    pos = 0
    for m in pattern.finditer(line):
        start, end = m.span()
        if start == end:
            continue
        text.append(line[pos:start], style=base_style)
        text.append(line[start:end], style=highlight_style)
        pos = end
    text.append(line[pos:], style=base_style)
    return text


def fnv1a_32(data: bytes) -> int:
    """32-bit FNV-1a hash."""
    h = _FNV32_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV32_PRIME) & 0xFFFFFFFF
    return h


def color_for(pod_name: str) -> str:
    """Palette color for a pod; the same name always gets the same color."""
    return POD_COLOR_PALETTE[fnv1a_32(pod_name.encode("utf-8")) % len(POD_COLOR_PALETTE)]


def severity_style(severity: Severity) -> str:
    return SEVERITY_STYLES[severity]


def render_line(line: str, context: RenderContext, pod_name: str = "",
                pod_color: str = NORMAL_STYLE) -> Optional[Text]:
    """
    Render one raw log line.

    Args:
        line: Raw log line as read from the pod
        context: Rendering configuration for this run
        pod_name: Name used for the ``[pod]`` prefix
        pod_color: Style of the prefix, usually ``color_for(pod_name)``

    Returns:
        Optional[Text]: The styled line, or None when keyword-only mode drops it
    """
    timestamp, body = extract_timestamp(line, context.show_timestamp)
    severity = detect_severity(body)

    keyword = context.keyword
    if context.keyword_only and keyword is not None and keyword.pattern:
        if keyword.search(body) is None:
            return None

    out = Text()
    if context.show_pod_name:
        out.append(f"[{pod_name}] ", style=pod_color)
    if timestamp:
        out.append(timestamp, style=TIMESTAMP_STYLE)
        out.append(" ")
    out.append_text(highlight(body, context.keyword, severity_style(severity)))
    return out
