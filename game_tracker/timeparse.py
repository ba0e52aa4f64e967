"""Session duration strings ("1h 30m", "01:30:00") and duration formatting"""

import math
import re
from dataclasses import dataclass
from datetime import timedelta

from .errors import InvalidThresholdError, SessionDurationParserError

UNIT_FORM = re.compile(r"^(\d+[hHmMsS]\s?)+$")
COLON_FORM = re.compile(r"^(\d+):(\d+):(\d+)$")
UNIT_TOKEN = re.compile(r"(\d+)([hHmMsS])")


@dataclass
class SessionDuration:
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @classmethod
    def parse(cls, text: str) -> "SessionDuration":
        """Parse '30h 20m 10s' (units may repeat and add up) or 'HH:MM:SS'"""
        value = (text or "").strip()
        duration = cls()

        if UNIT_FORM.match(value):
            for amount, unit in UNIT_TOKEN.findall(value):
                unit = unit.lower()
                if unit == "h":
                    duration.hours += int(amount)
                elif unit == "m":
                    duration.minutes += int(amount)
                else:
                    duration.seconds += int(amount)
            return duration

        match = COLON_FORM.match(value)
        if match:
            duration.hours, duration.minutes, duration.seconds = (int(g) for g in match.groups())
            return duration

        raise SessionDurationParserError(text)

    def total_seconds(self) -> int:
        return self.hours * 3600 + self.minutes * 60 + self.seconds

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.total_seconds())

    def __str__(self) -> str:
        return format_duration(self.to_timedelta())


def format_duration(duration: timedelta) -> str:
    total = int(duration.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{days} days {hours} hour(s) {minutes} minute(s) {seconds} second(s)"


def parse_threshold(value) -> float:
    """Warning threshold as a percentage in [0, 100]"""
    try:
        threshold = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidThresholdError(value) from e

    if math.isnan(threshold) or not 0.0 <= threshold <= 100.0:
        raise InvalidThresholdError(value)
    return threshold


def warning_duration(threshold: float, session_duration: timedelta) -> timedelta:
    """Play time after which the session end warning is sent"""
    seconds = math.floor((threshold / 100.0) * session_duration.total_seconds())
    return timedelta(seconds=seconds)
