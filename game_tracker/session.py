"""Daily gaming session: a play time budget that resets at midnight"""

import logging
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from .errors import CalculateEndOfDayError

logger = logging.getLogger(__name__)


def calculate_end_of_day(moment: datetime) -> datetime:
    """Midnight strictly after moment"""
    try:
        next_day = moment.date() + timedelta(days=1)
        return datetime.combine(next_day, time.min, tzinfo=moment.tzinfo)
    except (OverflowError, ValueError) as e:
        raise CalculateEndOfDayError(moment) from e


class DailyGamingSession:
    def __init__(self, duration: timedelta, now: Optional[datetime] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.duration = duration
        self.start_time = now if now is not None else self.clock()
        self.end_of_day = calculate_end_of_day(self.start_time)
        self.ended = False
        # bumped on every restart, lets subtasks notice a new day
        self.day = 0

    def day_ended(self, now: Optional[datetime] = None) -> bool:
        now = now if now is not None else self.clock()
        return now >= self.end_of_day

    def should_end(self, time_played: timedelta) -> bool:
        return self.duration <= time_played

    def end(self):
        if not self.ended:
            logger.info(f"Gaming session ended (budget {self.duration} reached)")
        self.ended = True

    def restart(self, now: Optional[datetime] = None):
        start_time = now if now is not None else self.clock()
        end_of_day = calculate_end_of_day(start_time)

        self.start_time = start_time
        self.end_of_day = end_of_day
        self.ended = False
        self.day += 1
        logger.info(f"New gaming day started, session resets until {self.end_of_day.isoformat()}")

    def remaining(self, time_played: timedelta) -> timedelta:
        return max(timedelta(0), self.duration - time_played)

    def __repr__(self):
        return (f"DailyGamingSession(start_time={self.start_time.isoformat()}, "
                f"end_of_day={self.end_of_day.isoformat()}, duration={self.duration}, ended={self.ended})")
