"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- logging_setup: Process-wide logging configuration
"""

from core.clock import ClockProtocol, MockClock, SystemClock
from core.logging_setup import setup_logging


__all__ = [
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "setup_logging",
]
