#!/usr/bin/env python3
"""
Game Tracker daemon
Tracks time spent in games and enforces a daily gaming session on Linux
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from .config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DB_PATH,
    DEFAULT_LOG_PATH,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_WARNING_THRESHOLD,
)
from .errors import DatabaseError, GameTrackerError, TamperingError
from .locator import GameRegistry
from .notifier import Notifier
from .scheduler import GameTrackerScheduler
from .session import DailyGamingSession
from .store import StatisticsStore
from .subtasks import (
    ClockTampering,
    ExecutionTampering,
    GamesLogger,
    RampageMode,
    SaveStatistics,
    SessionEndGameKiller,
    WarnSessionEnding,
)
from .tamper import ExecutionBaseline
from .timeparse import SessionDuration, format_duration, parse_threshold, warning_duration
from .tracker import GameTracker

logger = logging.getLogger("game_tracker")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_ARGUMENTS = 2


def setup_logging(log_path, verbose: bool = False):
    """Setup logging configuration"""
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler()
        ]
    )


class GameTrackerDaemon:
    def __init__(self, args: argparse.Namespace, session_duration: Optional[SessionDuration],
                 threshold: float, registry: GameRegistry, tracker: Optional[GameTracker] = None,
                 notifier: Optional[Notifier] = None, store: Optional[StatisticsStore] = None):
        self.args = args
        self.session_duration = session_duration
        self.threshold = threshold
        self.notifier = notifier if notifier is not None else Notifier()
        self.store = store
        self.tracker = tracker if tracker is not None else GameTracker(registry)
        self.scheduler = GameTrackerScheduler(args.scan_interval, self.tracker)
        self.build_scheduler()

    def signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {signum}, shutting down...")
        if self.store is not None:
            self.store.close()
        sys.exit(EXIT_OK)

    def build_scheduler(self):
        """Register subtasks in execution order"""
        args = self.args
        self.scheduler.add(GamesLogger())
        self.scheduler.add(ClockTampering())

        if args.execution_check:
            self.scheduler.add(ExecutionTampering(ExecutionBaseline.calibrate()))

        if self.store is not None:
            self.scheduler.add(SaveStatistics(self.store))

        if self.session_duration is None:
            logger.info("No session duration, monitoring only")
            return

        total = self.session_duration.to_timedelta()
        logger.info(f"Session duration enabled - total duration: {self.session_duration}")
        self.tracker.add_gaming_session(DailyGamingSession(total))

        if not args.monitor_only:
            self.scheduler.add(SessionEndGameKiller(self.notifier))

        if args.warn:
            warn_after = warning_duration(self.threshold, total)
            logger.info(f"User warning enabled - threshold={self.threshold}%, "
                        f"warning_after=\"{format_duration(warn_after)}\"")
            self.scheduler.add(WarnSessionEnding(
                self.notifier, self.threshold, warn_after, rearm_on_new_day=args.rearm_warning_daily
            ))

    def handle_tampering(self, error: TamperingError):
        if not self.args.rampage_mode:
            logger.warning(f"Potential tampering detected - {error}. Restarting scheduler...")
            return

        if self.scheduler.has(RampageMode):
            logger.warning(f"Tampering detected again - {error}")
        else:
            logger.warning(f"Tampering detected - {error}. Rampage mode activated, "
                           "every game will be killed on sight")
            self.scheduler.add(RampageMode())

    def run(self) -> int:
        """Main monitoring loop"""
        logger.info("Game Tracker started")
        while True:
            try:
                self.scheduler.start()
            except TamperingError as e:
                self.handle_tampering(e)
            except GameTrackerError as e:
                logger.error(f"There was an unexpected error: {e}")
                return EXIT_FAILURE
            except Exception:
                logger.exception("There was an unexpected error")
                return EXIT_FAILURE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Game time tracker and daily session enforcer')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to game locations file (TOML)')
    parser.add_argument('--database', default=DEFAULT_DB_PATH, help='Path to statistics database')
    parser.add_argument('--log', default=DEFAULT_LOG_PATH, help='Path to log file')
    parser.add_argument('--session-duration',
                        help='Session duration (ex.: "30h 20m 10s", "3:30:00", "30h 2h 30m 6s 6s")')
    parser.add_argument('--scan-interval', type=int, default=DEFAULT_SCAN_INTERVAL,
                        help='Delay between process scans in seconds')
    parser.add_argument('--warn', action='store_true', help='Send warning of imminent session end')
    parser.add_argument('--warning-threshold', default=str(DEFAULT_WARNING_THRESHOLD),
                        help='Percentage of session played before sending warning')
    parser.add_argument('--rearm-warning-daily', action='store_true',
                        help='Send the warning again on every new day')
    parser.add_argument('--monitor-only', action='store_true', help='Monitor games only, never kill')
    parser.add_argument('--rampage-mode', action='store_true',
                        help='Kill every game for good once tampering is detected')
    parser.add_argument('--execution-check', action='store_true',
                        help='Detect stalled execution against a startup timing baseline')
    parser.add_argument('--no-save', action='store_true', help='Do not save statistics to the database')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log, args.verbose)

    try:
        session_duration = None
        if args.session_duration is not None:
            session_duration = SessionDuration.parse(args.session_duration)
        threshold = parse_threshold(args.warning_threshold)
        registry = GameRegistry.from_file(args.config)
    except GameTrackerError as e:
        logger.error(f"{e}")
        return EXIT_BAD_ARGUMENTS

    store = None
    if not args.no_save:
        try:
            store = StatisticsStore(args.database)
        except DatabaseError as e:
            logger.error(f"Will not save statistics to database: {e}")

    daemon = GameTrackerDaemon(args, session_duration, threshold, registry, store=store)
    signal.signal(signal.SIGTERM, daemon.signal_handler)
    signal.signal(signal.SIGINT, daemon.signal_handler)
    return daemon.run()


if __name__ == "__main__":
    sys.exit(main())
