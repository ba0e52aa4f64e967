"""Play time statistics stored in SQLite"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Tuple

from .errors import DatabaseError
from .process_tree import ProcessInfo

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS game_tracker (
    pid INTEGER NOT NULL,
    name TEXT,
    cmd TEXT,
    game_name TEXT,
    run_time INTEGER NOT NULL,
    start_time DATETIME NOT NULL,
    PRIMARY KEY (pid, name, cmd, start_time)
)
"""

UPSERT = """
INSERT INTO game_tracker (pid, name, cmd, game_name, run_time, start_time)
    VALUES (?, ?, ?, ?, ?, DATETIME(?, 'unixepoch', 'localtime'))
ON CONFLICT (pid, name, cmd, start_time) DO UPDATE SET run_time = excluded.run_time
"""


class StatisticsStore:
    """One row per game process, keyed by (pid, name, cmd, start_time)"""

    def __init__(self, db_path):
        self.db_path = str(db_path)
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)
            self.conn.execute(SCHEMA)
            self.conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise DatabaseError(f"Could not open statistics database {self.db_path}: {e}") from e

    @contextmanager
    def transaction(self):
        try:
            yield self.conn
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise DatabaseError(f"Statistics database error: {e}") from e

    def upsert(self, proc: ProcessInfo, game_name: str):
        with self.transaction() as conn:
            conn.execute(UPSERT, self._params(proc, game_name))

    def upsert_all(self, entries: Iterable[Tuple[str, ProcessInfo]]):
        """Upsert (game, process) pairs in a single transaction"""
        with self.transaction() as conn:
            conn.executemany(UPSERT, [self._params(proc, game) for game, proc in entries])

    @staticmethod
    def _params(proc: ProcessInfo, game_name: str):
        return (proc.pid, proc.name, proc.cmdline, game_name, int(proc.run_time), int(proc.start_time))

    def time_played_by_date(self, day: date) -> int:
        """Total run time in seconds of processes started on day (local time)"""
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT COALESCE(SUM(run_time), 0) FROM game_tracker WHERE date(start_time) = ?",
                (day.isoformat(),),
            ).fetchone()
        return int(row[0])

    def games_played_by_date(self, day: date) -> Dict[str, int]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT game_name, SUM(run_time) FROM game_tracker "
                "WHERE date(start_time) = ? GROUP BY game_name ORDER BY game_name",
                (day.isoformat(),),
            ).fetchall()
        return {game: int(total) for game, total in rows}

    def close(self):
        self.conn.close()
