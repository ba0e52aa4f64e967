"""
Tamper detection heuristics

Two independent signals:

* clock tampering: the wall clock moved further than the monotonic clock
  since startup, someone changed the local time;
* execution tampering: a call or a fixed-cost operation took far longer than
  it should, the process was likely stopped or stepped through a debugger.

Neither is proof of anything, they are meant to catch coarse attempts at
stretching the daily budget.
"""

import functools
import logging
import time
from typing import Callable, Optional

from .errors import ExecutionTamperingError

logger = logging.getLogger(__name__)

# Calls slower than this (seconds) are treated as stalled
DEFAULT_GUARD_THRESHOLD = 1.0

DEFAULT_CALIBRATION_SAMPLES = 20
DEFAULT_TOLERANCE = 50.0
# Never flag a measurement below this many seconds, scheduler noise alone
# can exceed a microsecond baseline by orders of magnitude
MIN_FLAGGED_DURATION = 0.25
# Wall clock may run ahead of the monotonic clock by this much (NTP slew)
CLOCK_TOLERANCE = 1.0


def boot_clock() -> float:
    """Monotonic clock that keeps counting while the machine is suspended"""
    if hasattr(time, "CLOCK_BOOTTIME"):
        return time.clock_gettime(time.CLOCK_BOOTTIME)
    return time.monotonic()


class ClockBaseline:
    """Wall clock and monotonic clock read at the same instant"""

    def __init__(self, wall: Callable[[], float] = time.time,
                 monotonic: Optional[Callable[[], float]] = None):
        self.wall = wall
        self.monotonic = monotonic or boot_clock
        self.wall_start = self.wall()
        self.monotonic_start = self.monotonic()

    def wall_elapsed(self) -> float:
        return self.wall() - self.wall_start

    def monotonic_elapsed(self) -> float:
        return self.monotonic() - self.monotonic_start

    def divergence(self) -> float:
        """Seconds the wall clock is ahead of the monotonic clock"""
        return self.wall_elapsed() - self.monotonic_elapsed()


def with_timing_guard(operation: Callable, threshold: float = DEFAULT_GUARD_THRESHOLD,
                      name: Optional[str] = None, clock: Optional[Callable[[], float]] = None):
    """Run operation, raise ExecutionTamperingError if it took over threshold seconds"""
    clock = clock or time.monotonic
    start = clock()
    result = operation()
    elapsed = clock() - start
    if elapsed > threshold:
        raise ExecutionTamperingError(name or getattr(operation, "__name__", repr(operation)), elapsed)
    return result


def timing_guard(threshold: float = DEFAULT_GUARD_THRESHOLD):
    """Decorator form of with_timing_guard"""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return with_timing_guard(
                lambda: func(*args, **kwargs), threshold=threshold, name=func.__qualname__
            )
        return wrapper
    return decorator


def fixed_cost_operation(rounds: int = 2000) -> int:
    """Deterministic side-effect free busy work used as a timing probe"""
    acc = 0
    for i in range(rounds):
        acc = (acc * 31 + i) % 1_000_003
    return acc


class ExecutionBaseline:
    """Average duration of a fixed-cost operation, measured at startup"""

    def __init__(self, average: float, operation: Callable = fixed_cost_operation,
                 clock: Callable[[], float] = time.perf_counter):
        self.average = average
        self.operation = operation
        self.clock = clock

    @classmethod
    def calibrate(cls, samples: int = DEFAULT_CALIBRATION_SAMPLES,
                  operation: Callable = fixed_cost_operation,
                  clock: Callable[[], float] = time.perf_counter) -> "ExecutionBaseline":
        if samples < 1:
            raise ValueError("at least one calibration sample is required")

        total = 0.0
        for _ in range(samples):
            start = clock()
            operation()
            total += clock() - start

        baseline = cls(total / samples, operation, clock)
        logger.debug(f"Execution baseline: {baseline.average * 1000:.3f} ms over {samples} samples")
        return baseline

    def measure(self) -> float:
        start = self.clock()
        self.operation()
        return self.clock() - start

    def check(self, tolerance: float = DEFAULT_TOLERANCE) -> float:
        """Measure once, raise ExecutionTamperingError if far above the baseline"""
        elapsed = self.measure()
        limit = max(self.average * tolerance, MIN_FLAGGED_DURATION)
        if elapsed > limit:
            raise ExecutionTamperingError(getattr(self.operation, "__name__", "probe"), elapsed)
        return elapsed
