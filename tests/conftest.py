import pytest

from game_tracker.errors import NotificationError
from game_tracker.locator import GameLocator, GameRegistry
from game_tracker.process_tree import ProcessRow
from game_tracker.tracker import GameTracker


def row(pid, ppid, name, cmd=None, run_time=0, start_time=1700000000):
    return ProcessRow(pid, ppid, name, tuple(cmd if cmd is not None else [name]), run_time, start_time)


class FakeProcesses:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.killed = []

    def snapshot(self):
        return list(self.rows)

    def kill(self, pid, start_time=None):
        self.killed.append(pid)
        return True


class FakeNotifier:
    def __init__(self, fail=False):
        self.messages = []
        self.fail = fail

    def notify(self, message, summary=None):
        if self.fail:
            raise NotificationError("no notification daemon")
        self.messages.append(message)


def make_registry(**platforms):
    return GameRegistry({
        name: GameLocator(name=name, games=list(games)) for name, games in platforms.items()
    })


@pytest.fixture
def processes():
    return FakeProcesses()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def tracker(processes):
    return GameTracker(make_registry(steam=["mygame"]), processes)
