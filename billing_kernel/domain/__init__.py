"""
Pure domain helpers with no ORM or database dependencies.
"""

from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
