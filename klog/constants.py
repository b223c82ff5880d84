"""
Constants and configuration for Klog.

This module contains the configuration constants used throughout the Klog
application, including streaming defaults, display styles, timestamp formats
and the pod color palette.

Constants are organized by category:
- Streaming: Concurrency cap and chunk decoding
- Display styles: Rich style strings for severities, timestamps and keywords
- Timestamps: Display format
- Pod colors: Fixed palette indexed by pod name hash
- Logging: Default log level
- Environment: Variable names read by the CLI
- Exit codes: Process exit codes
"""

# Streaming
DEFAULT_MAX_CONCURRENCY = 10
LOG_STREAM_ENCODING = "utf-8"

# Display styles (rich style strings)
ERROR_STYLE = "red"
WARNING_STYLE = "yellow"
PANIC_STYLE = "yellow"
DEBUG_STYLE = "cyan"
NORMAL_STYLE = "white"
TIMESTAMP_STYLE = "bright_black"
KEYWORD_STYLE = "on magenta"

# Timestamps
# Milliseconds are appended separately, strftime only goes down to %f.
TIMESTAMP_DISPLAY_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Pod colors
POD_COLOR_PALETTE = (
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "bright_red",
    "bright_green",
    "bright_yellow",
    "bright_blue",
    "bright_magenta",
    "bright_cyan",
)

# Logging
DEFAULT_LOG_LEVEL = "WARNING"

# Environment
ENV_LOG_LEVEL = "KLOG_LOG_LEVEL"
ENV_NAMESPACE = "KLOG_NAMESPACE"
ENV_MAX_CONCURRENCY = "KLOG_MAX_CONCURRENCY"

# Exit codes
EXIT_RESOLUTION_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_MISSING_ARGUMENT = 128
EXIT_INTERRUPTED = 130
