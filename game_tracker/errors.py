"""
Error types raised by the game tracker

Every error derives from GameTrackerError so the daemon loop can tell its own
failures apart from programming errors.
"""


class GameTrackerError(Exception):
    """Base class for all game tracker errors"""


class SessionDurationParserError(GameTrackerError):
    """Session duration is neither 'XhYmZs' nor 'HH:MM:SS'"""

    def __init__(self, value: str = ""):
        self.value = value
        super().__init__(f"could not parse session duration: {value!r}")


class InvalidThresholdError(GameTrackerError):
    def __init__(self, value=None):
        self.value = value
        super().__init__(f"threshold value must be between 0 and 100 (got {value!r})")


class CalculateEndOfDayError(GameTrackerError):
    def __init__(self, moment=None):
        self.moment = moment
        super().__init__(f"could not calculate when tomorrow is (from {moment})")


class ConfigError(GameTrackerError):
    """Game location file is missing, unreadable or malformed"""


class NotificationError(GameTrackerError):
    """Desktop notification could not be delivered"""


class DatabaseError(GameTrackerError):
    """Statistics database access failed"""


class TamperingError(GameTrackerError):
    """Base class for every tampering signal"""


class ClockTamperingError(TamperingError):
    def __init__(self, divergence: float = 0.0):
        self.divergence = divergence
        super().__init__(f"clock tampering detected (wall clock ahead by {divergence:.0f} seconds)")


class DesynchronizedTimerError(TamperingError):
    """Wall clock went backwards relative to a timer"""

    def __init__(self, seconds: float = 0.0):
        self.seconds = seconds
        super().__init__(f"timer desynchronized from system clock by {seconds:.0f} seconds")


class ExecutionTamperingError(TamperingError):
    def __init__(self, name: str, duration: float):
        self.name = name
        self.duration = duration
        super().__init__(f"tampering detected - execution of {name} lasted {duration:.3f} seconds")
