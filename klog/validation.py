"""
Input validation for Klog.

This module provides validation functions for the command-line arguments and
environment values of the Klog application: regex patterns for pod names and
keywords, the concurrency cap, and the since/tail window of the log request.

Key Functions:
- validate_regex_pattern: Validates and compiles the pod name pattern
- validate_keyword: Compiles an optional keyword pattern
- validate_max_concurrency: Validates the fan-out concurrency cap
- validate_since_hours: Validates the since window in hours
- validate_tail_lines: Validates the tail line count
- sanitize_pod_name: Trims pod names for display

All validation functions raise appropriate exceptions (InvalidPatternError,
ConfigurationError) with descriptive error messages when validation fails.

Example:
    ```python
    try:
        pattern = validate_regex_pattern("^api-")
        cap = validate_max_concurrency(10)
    except (InvalidPatternError, ConfigurationError) as e:
        print(f"Validation failed: {e}")
    ```
"""

import re
from typing import Optional

from .exceptions import InvalidPatternError, ConfigurationError


def validate_regex_pattern(pattern: str) -> re.Pattern:
    """
    Validate and compile a regex pattern for pod name matching.

    The pattern is trimmed of whitespace before validation and is later
    searched (not anchored) in each pod name.

    Args:
        pattern: The regex pattern string to validate and compile

    Returns:
        re.Pattern: Compiled regex pattern ready for use

    Raises:
        InvalidPatternError: If the pattern is empty or invalid regex syntax
    """
    if not pattern or not pattern.strip():
        raise InvalidPatternError("Pattern cannot be empty")

    try:
        return re.compile(pattern.strip())
    except re.error as e:
        raise InvalidPatternError(f"Invalid regex pattern: {e}")


def validate_keyword(keyword: Optional[str]) -> Optional[re.Pattern]:
    """
    Compile the keyword to highlight.

    Unlike pod patterns the keyword is not trimmed, since leading or trailing
    spaces can be part of what the user wants to find. An empty keyword
    disables highlighting.

    Raises:
        InvalidPatternError: If the keyword is not a valid regex
    """
    if not keyword:
        return None
    try:
        return re.compile(keyword)
    except re.error as e:
        raise InvalidPatternError(f"Invalid keyword pattern: {e}")


def validate_max_concurrency(value: int) -> int:
    """
    Validate the maximum number of pod log streams open at once.

    Raises:
        ConfigurationError: If the value is not a positive integer
    """
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ConfigurationError(f"Max concurrency must be a positive integer, got: {value}")
    return value


def validate_since_hours(hours: Optional[int]) -> Optional[int]:
    """
    Validate the ``--since`` window.

    Raises:
        ConfigurationError: If hours is given and not a positive integer
    """
    if hours is None:
        return None
    if not isinstance(hours, int) or hours < 1:
        raise ConfigurationError(f"Since hours must be a positive integer, got: {hours}")
    return hours


def validate_tail_lines(lines: Optional[int]) -> Optional[int]:
    """
    Validate the ``--tail`` line count. Zero is allowed and means no history.

    Raises:
        ConfigurationError: If lines is given and negative
    """
    if lines is None:
        return None
    if not isinstance(lines, int) or lines < 0:
        raise ConfigurationError(f"Tail lines must be zero or a positive integer, got: {lines}")
    return lines


def sanitize_pod_name(name: str) -> str:
    """
    Sanitize pod name for display in prompts and prefixes.

    Args:
        name: Pod name to sanitize

    Returns:
        str: Trimmed pod name (max 253 characters)
    """
    if not name:
        return ""

    return name.strip()[:253]  # DNS name length limit
