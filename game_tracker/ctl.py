#!/usr/bin/env python3
"""
Game Tracker Management Utility
Reporting on recorded play time, discovered games and daemon logs
"""

import argparse
import subprocess
import sys
from datetime import date, timedelta
from pathlib import Path

from .config import DEFAULT_CONFIG_PATH, DEFAULT_DB_PATH, DEFAULT_LOG_PATH
from .errors import GameTrackerError
from .locator import GameRegistry
from .store import StatisticsStore
from .timeparse import format_duration


class GameTrackerManager:
    def __init__(self, config_path=DEFAULT_CONFIG_PATH, db_path=DEFAULT_DB_PATH, log_path=DEFAULT_LOG_PATH):
        self.config_path = Path(config_path)
        self.db_path = Path(db_path)
        self.log_path = Path(log_path)

    def show_usage(self, day: date):
        """Display play time recorded for a day"""
        if not self.db_path.exists():
            print(f"No statistics database at {self.db_path}")
            return

        store = StatisticsStore(self.db_path)
        try:
            games = store.games_played_by_date(day)
            total = store.time_played_by_date(day)
        finally:
            store.close()

        print(f"\n=== Play time on {day.isoformat()} ===")
        if not games:
            print("No usage data available")
            return

        for game, seconds in games.items():
            print(f"  - {game}: {format_duration(timedelta(seconds=seconds))}")
        print(f"\nTotal: {format_duration(timedelta(seconds=total))}")

    def list_games(self):
        """List games discovered from the configured locations"""
        registry = GameRegistry.from_file(self.config_path)
        print("\n=== Discovered Games ===")
        if not registry.platforms:
            print("No platforms configured")
            return

        for name, platform in registry.platforms.items():
            print(f"\n{name} ({platform.entity_kind.value}, {len(platform.games)} games):")
            for game in platform.games:
                print(f"  - {game}")

    def view_logs(self, lines: int = 50):
        """View recent log entries"""
        print(f"\n=== Last {lines} log entries ===")
        result = subprocess.run(['tail', '-n', str(lines), str(self.log_path)],
                                capture_output=True, text=True)
        print(result.stdout)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Game Tracker Management Utility')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to game locations file')
    parser.add_argument('--database', default=DEFAULT_DB_PATH, help='Path to statistics database')
    parser.add_argument('--log', default=DEFAULT_LOG_PATH, help='Path to log file')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    usage_parser = subparsers.add_parser('usage', help='Show play time for a day')
    usage_parser.add_argument('--date', type=date.fromisoformat, default=None,
                              help='Day to report (YYYY-MM-DD, default today)')

    subparsers.add_parser('games', help='List discovered games')

    logs_parser = subparsers.add_parser('logs', help='View recent logs')
    logs_parser.add_argument('-n', '--lines', type=int, default=50, help='Number of lines to show')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    manager = GameTrackerManager(args.config, args.database, args.log)
    try:
        if args.command == 'usage':
            manager.show_usage(args.date or date.today())
        elif args.command == 'games':
            manager.list_games()
        elif args.command == 'logs':
            manager.view_logs(args.lines)
    except (GameTrackerError, OSError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
