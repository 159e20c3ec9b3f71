"""
================================================================================
Browser Observability
================================================================================

Console and JavaScript error capture. Only attached in development mode.

Components:
    - console_logger: ring buffer of console messages
    - error_tracker: ring buffer of uncaught page errors

Author: Automation Team
License: MIT
================================================================================
"""

from .console_logger import ConsoleEntry, ConsoleLogger
from .error_tracker import ErrorTracker, JavaScriptError

__all__ = [
    "ConsoleEntry",
    "ConsoleLogger",
    "ErrorTracker",
    "JavaScriptError",
]
