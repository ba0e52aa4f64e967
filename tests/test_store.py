from datetime import date, datetime

import pytest

from game_tracker.errors import DatabaseError
from game_tracker.process_tree import ProcessInfo
from game_tracker.store import StatisticsStore


def epoch(*args):
    return int(datetime(*args).timestamp())


@pytest.fixture
def store(tmp_path):
    store = StatisticsStore(tmp_path / "stats" / "statistics.sqlite")
    yield store
    store.close()


def test_conflict_updates_run_time(store):
    proc = ProcessInfo(300, "wine", ("wine", "mygame.exe"), run_time=5, start_time=epoch(2024, 3, 9, 20))
    store.upsert(proc, "mygame")
    store.upsert(ProcessInfo(300, "wine", ("wine", "mygame.exe"), run_time=50,
                             start_time=epoch(2024, 3, 9, 20)), "mygame")

    rows = store.conn.execute("SELECT pid, name, cmd, game_name, run_time FROM game_tracker").fetchall()
    assert rows == [(300, "wine", "wine mygame.exe", "mygame", 50)]


def test_time_played_by_date(store):
    store.upsert_all([
        ("mygame", ProcessInfo(1, "a", run_time=100, start_time=epoch(2024, 3, 9, 10))),
        ("other", ProcessInfo(2, "b", run_time=20, start_time=epoch(2024, 3, 9, 23, 59))),
        ("mygame", ProcessInfo(3, "a", run_time=7, start_time=epoch(2024, 3, 10, 0, 1))),
    ])

    assert store.time_played_by_date(date(2024, 3, 9)) == 120
    assert store.time_played_by_date(date(2024, 3, 10)) == 7
    assert store.time_played_by_date(date(2024, 3, 11)) == 0
    assert store.games_played_by_date(date(2024, 3, 9)) == {"mygame": 100, "other": 20}


def test_unopenable_database(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")

    with pytest.raises(DatabaseError):
        StatisticsStore(blocker / "statistics.sqlite")
