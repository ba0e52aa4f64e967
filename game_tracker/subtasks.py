"""
Behaviours run by the scheduler once per scan

Every subtask gets the shared GameTracker after it has been refreshed. A
subtask either returns normally or raises a GameTrackerError, which aborts
the remaining subtasks of that scan.
"""

import logging
from datetime import timedelta
from typing import Optional

from .errors import ClockTamperingError, DesynchronizedTimerError
from .notifier import Notifier
from .store import StatisticsStore
from .tamper import CLOCK_TOLERANCE, DEFAULT_TOLERANCE, ClockBaseline, ExecutionBaseline
from .timeparse import format_duration
from .tracker import GameTracker

logger = logging.getLogger(__name__)

SESSION_OVER_MESSAGE = "Play time's over buddy! Go touch grass :-)"


class SubTask:
    def execute(self, tracker: GameTracker):
        raise NotImplementedError


class GamesLogger(SubTask):
    """Log every tracked game process and how long it has been running"""

    def execute(self, tracker):
        if not tracker.gametime_tracker():
            logger.info("No games have been found yet!")
            return

        lines = ["All games found:"]
        for game, proc in sorted(tracker.tracked_processes(), key=lambda e: (e[0], e[1].pid)):
            duration = format_duration(timedelta(seconds=proc.run_time))
            lines.append(f"  {proc.pid} '{game}' has been running for: {duration}")
        lines.append(f"  Total time played: {format_duration(tracker.total_time_played())}")
        logger.info("\n".join(lines))


class SessionEndGameKiller(SubTask):
    """Kill every tracked game once the daily session has ended"""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def execute(self, tracker):
        session = tracker.session
        if session is None or not session.ended:
            return

        self.notifier.notify(SESSION_OVER_MESSAGE)
        for game, proc in list(tracker.tracked_processes()):
            logger.warning(f"Session over, killing '{game}' (PID: {proc.pid})")
            tracker.kill(proc)


class WarnSessionEnding(SubTask):
    """Send one notification once play time goes past a share of the budget"""

    def __init__(self, notifier: Notifier, threshold: float, duration: timedelta,
                 rearm_on_new_day: bool = False):
        self.notifier = notifier
        self.threshold = threshold
        self.duration = duration
        self.rearm_on_new_day = rearm_on_new_day
        self.was_warned = False
        self._day: Optional[int] = None

    def execute(self, tracker):
        session = tracker.session
        if session is None:
            self.was_warned = False
            self._day = None
            return

        if self.rearm_on_new_day and self._day is not None and session.day != self._day:
            self.was_warned = False
        self._day = session.day

        if self.was_warned or session.ended:
            return

        if tracker.total_time_played() >= self.duration:
            logger.info(f"Warning threshold reached: {self.threshold}%")
            self.was_warned = True
            self.notifier.notify(
                f"{self.threshold}% of session gaming played ({format_duration(self.duration)})"
            )


class ClockTampering(SubTask):
    """Raise ClockTamperingError once if the wall clock runs ahead of the monotonic clock"""

    def __init__(self, baseline: Optional[ClockBaseline] = None, tolerance: float = CLOCK_TOLERANCE):
        self.baseline = baseline if baseline is not None else ClockBaseline()
        self.tolerance = tolerance
        self.detected = False
        self.desynchronized = False

    def execute(self, tracker):
        if self.detected:
            return

        divergence = self.baseline.divergence()
        if divergence > self.tolerance:
            self.detected = True
            raise ClockTamperingError(divergence)

        # clock set backwards, reported once as well
        if divergence < -self.tolerance and not self.desynchronized:
            self.desynchronized = True
            raise DesynchronizedTimerError(-divergence)


class ExecutionTampering(SubTask):
    """Re-measure the fixed-cost probe against its startup baseline"""

    def __init__(self, baseline: ExecutionBaseline, tolerance: float = DEFAULT_TOLERANCE):
        self.baseline = baseline
        self.tolerance = tolerance

    def execute(self, tracker):
        self.baseline.check(self.tolerance)


class SaveStatistics(SubTask):
    def __init__(self, store: StatisticsStore):
        self.store = store

    def execute(self, tracker):
        entries = list(tracker.tracked_processes())
        if entries:
            self.store.upsert_all(entries)


class RampageMode(SubTask):
    """Kill every tracked game on every scan, whatever the session says"""

    def execute(self, tracker):
        for game, proc in list(tracker.tracked_processes()):
            logger.warning(f"Rampage mode, killing '{game}' (PID: {proc.pid})")
            tracker.kill(proc)
