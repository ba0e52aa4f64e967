import pytest

from game_tracker import daemon
from game_tracker.errors import ClockTamperingError, DatabaseError, ExecutionTamperingError
from game_tracker.locator import GameRegistry
from game_tracker.subtasks import (
    ClockTampering,
    GamesLogger,
    RampageMode,
    SaveStatistics,
    SessionEndGameKiller,
    WarnSessionEnding,
)
from game_tracker.store import StatisticsStore
from game_tracker.timeparse import SessionDuration
from game_tracker.tracker import GameTracker
from tests.conftest import FakeNotifier, FakeProcesses


def parse(*argv):
    return daemon.build_parser().parse_args(list(argv))


def make_daemon(args, store=None):
    duration = SessionDuration.parse(args.session_duration) if args.session_duration else None
    tracker = GameTracker(GameRegistry(), FakeProcesses())
    return daemon.GameTrackerDaemon(
        args, duration, float(args.warning_threshold), GameRegistry(),
        tracker=tracker, notifier=FakeNotifier(), store=store,
    )


def task_types(d):
    return [type(t) for t in d.scheduler.sub_tasks]


def test_defaults():
    args = parse()

    assert args.scan_interval == 15
    assert float(args.warning_threshold) == 90.0
    assert not args.warn and not args.monitor_only and not args.rampage_mode


def test_monitor_without_session():
    d = make_daemon(parse())

    assert task_types(d) == [GamesLogger, ClockTampering]
    assert d.tracker.session is None


def test_session_with_warning():
    d = make_daemon(parse("--session-duration", "1h 30m", "--warn", "--warning-threshold", "50"),
                    store=StatisticsStore(":memory:"))

    assert task_types(d) == [GamesLogger, ClockTampering, SaveStatistics, SessionEndGameKiller, WarnSessionEnding]
    assert d.tracker.session.duration.total_seconds() == 5400
    warn = d.scheduler.sub_tasks[-1]
    assert warn.duration.total_seconds() == 2700
    assert not warn.rearm_on_new_day


def test_monitor_only_never_kills():
    d = make_daemon(parse("--session-duration", "10s", "--monitor-only"))

    assert SessionEndGameKiller not in task_types(d)
    assert d.tracker.session is not None


def test_tampering_without_rampage_mode_restarts(caplog):
    d = make_daemon(parse())
    d.handle_tampering(ClockTamperingError(30))

    assert not d.scheduler.has(RampageMode)
    assert "Restarting scheduler" in caplog.text


def test_tampering_activates_rampage_mode_once():
    d = make_daemon(parse("--rampage-mode"))
    d.handle_tampering(ClockTamperingError(30))
    d.handle_tampering(ExecutionTamperingError("GameTracker.refresh", 3.0))

    assert task_types(d).count(RampageMode) == 1


def test_run_continues_after_tampering_and_stops_on_other_errors(monkeypatch):
    d = make_daemon(parse("--rampage-mode"))
    errors = iter([ClockTamperingError(30), DatabaseError("disk full")])

    def start():
        raise next(errors)

    monkeypatch.setattr(d.scheduler, "start", start)

    assert d.run() == daemon.EXIT_FAILURE
    assert d.scheduler.has(RampageMode)


@pytest.mark.parametrize("argv", [
    ["--session-duration", "10x"],
    ["--warning-threshold", "120"],
    ["--config", "/nonexistent/games.toml"],
])
def test_main_rejects_bad_startup_input(tmp_path, argv):
    config = tmp_path / "games.toml"
    config.write_text("")
    base = ["--config", str(config), "--log", str(tmp_path / "log" / "tracker.log"), "--no-save"]

    assert daemon.main(base + argv) == daemon.EXIT_BAD_ARGUMENTS
