import logging
from datetime import timedelta

import pytest

from game_tracker.errors import (
    ClockTamperingError,
    DesynchronizedTimerError,
    ExecutionTamperingError,
    NotificationError,
)
from game_tracker.session import DailyGamingSession
from game_tracker.store import StatisticsStore
from game_tracker.subtasks import (
    SESSION_OVER_MESSAGE,
    ClockTampering,
    ExecutionTampering,
    GamesLogger,
    RampageMode,
    SaveStatistics,
    SessionEndGameKiller,
    WarnSessionEnding,
)
from game_tracker.tamper import ExecutionBaseline
from tests.conftest import FakeNotifier, row


class FakeBaseline:
    def __init__(self, *divergences):
        self.divergences = list(divergences)

    def divergence(self):
        return self.divergences.pop(0)


def play(tracker, processes, run_time):
    processes.rows = [row(300, None, "mygame", run_time=run_time)]
    tracker.refresh()


def test_logger_without_games(tracker, caplog):
    caplog.set_level(logging.INFO)
    GamesLogger().execute(tracker)

    assert "No games have been found yet!" in caplog.text


def test_logger_lists_games(tracker, processes, caplog):
    caplog.set_level(logging.INFO)
    play(tracker, processes, 65)
    GamesLogger().execute(tracker)

    assert "300 'mygame' has been running for: 0 days 0 hour(s) 1 minute(s) 5 second(s)" in caplog.text


def test_killer_idle_without_session(tracker, processes, notifier):
    play(tracker, processes, 100)
    SessionEndGameKiller(notifier).execute(tracker)

    assert processes.killed == []
    assert notifier.messages == []


def test_killer_kills_when_session_ended(tracker, processes, notifier):
    tracker.add_gaming_session(DailyGamingSession(timedelta(seconds=10)))
    play(tracker, processes, 5)
    SessionEndGameKiller(notifier).execute(tracker)
    assert processes.killed == []

    play(tracker, processes, 10)
    SessionEndGameKiller(notifier).execute(tracker)

    assert processes.killed == [300]
    assert notifier.messages == [SESSION_OVER_MESSAGE]


def test_killer_notification_failure_propagates(tracker, processes):
    tracker.add_gaming_session(DailyGamingSession(timedelta(0)))
    play(tracker, processes, 1)

    with pytest.raises(NotificationError):
        SessionEndGameKiller(FakeNotifier(fail=True)).execute(tracker)
    assert processes.killed == []


def test_warn_once(tracker, processes, notifier):
    tracker.add_gaming_session(DailyGamingSession(timedelta(seconds=100)))
    warn = WarnSessionEnding(notifier, 50.0, timedelta(seconds=50))

    for run_time in (10, 51, 60, 70):
        play(tracker, processes, run_time)
        warn.execute(tracker)

    assert len(notifier.messages) == 1
    assert notifier.messages[0].startswith("50.0% of session gaming played")


def test_warn_fires_at_warning_duration(tracker, processes, notifier):
    tracker.add_gaming_session(DailyGamingSession(timedelta(seconds=100)))
    warn = WarnSessionEnding(notifier, 50.0, timedelta(seconds=50))
    play(tracker, processes, 49)
    warn.execute(tracker)
    assert notifier.messages == []

    play(tracker, processes, 50)
    warn.execute(tracker)
    assert len(notifier.messages) == 1


def test_warn_skipped_when_session_ended(tracker, processes, notifier):
    tracker.add_gaming_session(DailyGamingSession(timedelta(seconds=10)))
    warn = WarnSessionEnding(notifier, 50.0, timedelta(seconds=5))
    play(tracker, processes, 20)
    warn.execute(tracker)

    assert notifier.messages == []
    assert not warn.was_warned


def test_warn_rearms_when_session_absent(tracker, processes, notifier):
    warn = WarnSessionEnding(notifier, 50.0, timedelta(seconds=5))
    warn.was_warned = True
    warn.execute(tracker)

    assert not warn.was_warned


@pytest.mark.parametrize("rearm,expected", [(False, 1), (True, 2)])
def test_warn_on_new_day(tracker, processes, notifier, rearm, expected):
    session = DailyGamingSession(timedelta(seconds=100))
    tracker.add_gaming_session(session)
    warn = WarnSessionEnding(notifier, 50.0, timedelta(seconds=5), rearm_on_new_day=rearm)

    play(tracker, processes, 10)
    warn.execute(tracker)
    session.restart()
    warn.execute(tracker)

    assert len(notifier.messages) == expected


def test_clock_tampering_latches(tracker):
    task = ClockTampering(FakeBaseline(0, 30, 60, 90))
    task.execute(tracker)

    with pytest.raises(ClockTamperingError) as excinfo:
        task.execute(tracker)
    assert excinfo.value.divergence == 30

    task.execute(tracker)
    task.execute(tracker)
    assert task.detected


def test_clock_going_backwards_is_reported_once(tracker):
    task = ClockTampering(FakeBaseline(-3600, -3600, 0.5))

    with pytest.raises(DesynchronizedTimerError):
        task.execute(tracker)
    task.execute(tracker)
    task.execute(tracker)

    assert not task.detected
    assert task.desynchronized


def test_small_divergence_is_tolerated(tracker):
    task = ClockTampering(FakeBaseline(0.9, -0.9))
    task.execute(tracker)
    task.execute(tracker)

    assert not task.detected


def test_execution_tampering_subtask(tracker):
    ticks = [0.0, 5.0]
    baseline = ExecutionBaseline(0.001, operation=lambda: None, clock=lambda: ticks.pop(0))

    with pytest.raises(ExecutionTamperingError):
        ExecutionTampering(baseline).execute(tracker)


def test_save_statistics_upserts(tracker, processes):
    store = StatisticsStore(":memory:")
    task = SaveStatistics(store)

    for run_time in (5, 12):
        play(tracker, processes, run_time)
        task.execute(tracker)

    rows = store.conn.execute("SELECT pid, game_name, run_time FROM game_tracker").fetchall()
    assert rows == [(300, "mygame", 12)]


def test_rampage_kills_without_session(tracker, processes):
    play(tracker, processes, 1)
    RampageMode().execute(tracker)
    RampageMode().execute(tracker)

    assert processes.killed == [300, 300]


def test_reused_pid_is_not_killed(tracker, processes, notifier):
    processes.rows = [row(300, None, "mygame", run_time=20, start_time=1000)]
    tracker.add_gaming_session(DailyGamingSession(timedelta(seconds=10)))
    tracker.refresh()
    processes.rows = [row(300, None, "vim", cmd=["vim", "notes.txt"], start_time=5000)]
    tracker.refresh()

    SessionEndGameKiller(notifier).execute(tracker)
    RampageMode().execute(tracker)

    assert processes.killed == []
