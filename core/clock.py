"""
Core Module - System Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a unified, testable clock abstraction.

- Snapshot timestamps (last_updated) MUST use this clock
- Enables deterministic testing of latest-wins retrieval
- Ensures consistent epoch-second timestamps across modules

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only - no timezone conversions in business logic
- Mockable for testing
- Thread-safe

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading
import time


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for system clock."""
    
    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass
    
    @abstractmethod
    def timestamp(self) -> float:
        """Get current Unix timestamp."""
        pass
    
    def epoch_seconds(self) -> int:
        """Get current Unix timestamp truncated to whole seconds."""
        return int(self.timestamp())
    
    def format_iso(self, dt: Optional[datetime] = None) -> str:
        """Format datetime as ISO 8601."""
        dt = dt or self.now()
        return dt.isoformat()


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """
    Production clock using actual system time.
    
    All times are in UTC.
    """
    
    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)
    
    def timestamp(self) -> float:
        """Get current Unix timestamp."""
        return time.time()


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.
    
    Allows time manipulation for deterministic tests.
    """
    
    def __init__(self, initial_time: Optional[datetime] = None):
        """
        Initialize mock clock.
        
        Args:
            initial_time: Starting time (defaults to current UTC)
        """
        self._time = initial_time or datetime.now(timezone.utc)
        if self._time.tzinfo is None:
            self._time = self._time.replace(tzinfo=timezone.utc)
        self._lock = threading.Lock()
    
    def now(self) -> datetime:
        """Get current (mocked) datetime."""
        with self._lock:
            return self._time
    
    def timestamp(self) -> float:
        """Get current (mocked) timestamp."""
        with self._lock:
            return self._time.timestamp()
    
    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            if new_time.tzinfo is None:
                new_time = new_time.replace(tzinfo=timezone.utc)
            self._time = new_time
    
    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.
        
        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            delta = timedelta(seconds=seconds, **kwargs)
            self._time = self._time + delta
