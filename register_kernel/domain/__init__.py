"""register_kernel.domain -- pure kernel primitives (clock)."""

from register_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = ["Clock", "DeterministicClock", "SystemClock"]
