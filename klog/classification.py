"""
Log line severity classification.

This module decides which severity a raw log line belongs to. Plain-text
lines are matched against fixed rule groups; lines that are a whole JSON
object are additionally classified by their ``level`` field, which takes
precedence over the plain-text verdict.

Key Functions:
- classify: Match a line against the rule groups (first group wins)
- try_override: Severity from a JSON record's ``level`` field, if any
- detect_severity: Combined verdict used by the renderer

Rule groups are evaluated Error, Warning, Panic, Debug. Patterns are case
sensitive. Bare words (``ERROR``, ``WARN``...) are anchored with ``\\b`` so
that e.g. ``ERR`` does not fire inside ``ERRONEOUS``; bracketed and
``key=value`` tokens carry their own delimiters and are not anchored.

Example:
    ```python
    classify("level=error something failed")        # Severity.ERROR
    detect_severity('{"level":"warn","msg":"ERROR"}')  # Severity.WARNING
    ```
"""

import json
import re
from typing import Optional, Pattern, Tuple

from .models import Severity


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


ERROR_RULES = _compile(
    r"\[ERROR\]",
    r"\[ERR\]",
    r"\[FATAL\]",
    r"\[CRITICAL\]",
    r"level=error",
    r"level=fatal",
    r"level=critical",
    r'level="error"',
    r"\bERROR\b",
    r"\bERR\b",
    r"\bFATAL\b",
    r"\bCRITICAL\b",
    r"^E\d{4} ",
)

WARNING_RULES = _compile(
    r"\[WARN\]",
    r"\[WARNING\]",
    r"level=warn",
    r'level="warn',
    r"\bWARN\b",
    r"\bWARNING\b",
    r"^W\d{4} ",
)

PANIC_RULES = _compile(
    r"\[PANIC\]",
    r"level=panic",
    r"\bPANIC\b",
    r"\bpanic:",
    r"^goroutine \d+ \[",
    r"^Traceback \(most recent call last\):",
)

DEBUG_RULES = _compile(
    r"\[DEBUG\]",
    r"\[TRACE\]",
    r"level=debug",
    r"level=trace",
    r"\bDEBUG\b",
    r"\bTRACE\b",
)

RULE_GROUPS = (
    (Severity.ERROR, ERROR_RULES),
    (Severity.WARNING, WARNING_RULES),
    (Severity.PANIC, PANIC_RULES),
    (Severity.DEBUG, DEBUG_RULES),
)

# Structured ``level`` values, compared after lower-casing.
ERROR_LEVELS = frozenset({"error", "critical", "fatal"})
WARNING_LEVELS = frozenset({"warn", "warning", "panic"})
DEBUG_LEVELS = frozenset({"debug"})


def classify(line: str) -> Severity:
    """Return the severity of the first rule group with a matching pattern."""
    for severity, rules in RULE_GROUPS:
        if any(rule.search(line) for rule in rules):
            return severity
    return Severity.NORMAL


def _level_field(record: dict) -> Optional[object]:
    if 'level' in record:
        return record['level']
    for key, value in record.items():
        if isinstance(key, str) and key.lower() == 'level':
            return value
    return None


def try_override(line: str) -> Optional[Severity]:
    """
    Severity declared by a JSON structured record.

    The whole line must decode to a JSON object, otherwise None is returned
    and the plain-text verdict stands. When it does decode, the record always
    yields a severity: a missing or unrecognized ``level`` maps to
    ``Severity.NORMAL``, which downgrades whatever the plain-text rules found.

    Args:
        line: Raw log line, without the timestamp prefix

    Returns:
        Optional[Severity]: Severity from the record, or None if the line is
        not a JSON object
    """
    if not line.lstrip().startswith('{'):
        return None
    try:
        record = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if not isinstance(record, dict):
        return None

    level = _level_field(record)
    if not isinstance(level, str):
        return Severity.NORMAL
    level = level.strip().lower()
    if level in ERROR_LEVELS:
        return Severity.ERROR
    if level in WARNING_LEVELS:
        return Severity.WARNING
    if level in DEBUG_LEVELS:
        return Severity.DEBUG
    return Severity.NORMAL


def detect_severity(line: str) -> Severity:
    """Plain-text classification, replaced by the structured level when present."""
    severity = classify(line)
    override = try_override(line)
    if override is not None:
        return override
    return severity
