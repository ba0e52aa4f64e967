"""Game time accounting across process snapshots"""

import logging
from datetime import timedelta
from typing import Dict, Iterator, Optional, Set, Tuple

from .locator import GameRegistry
from .process_tree import ProcessInfo, ProcessTree
from .processes import ProcessSource
from .session import DailyGamingSession
from .tamper import DEFAULT_GUARD_THRESHOLD, timing_guard, with_timing_guard

logger = logging.getLogger(__name__)


class GameTracker:
    def __init__(self, registry: GameRegistry, processes=None,
                 guard_threshold: Optional[float] = DEFAULT_GUARD_THRESHOLD):
        self.registry = registry
        self.processes = processes if processes is not None else ProcessSource()
        self.guard_threshold = guard_threshold
        self.snapshot = ProcessTree()
        # game id -> processes attributed to it, one entry per process identity
        self.games_found: Dict[str, Set[ProcessInfo]] = {}
        self.gaming_session: Optional[DailyGamingSession] = None

    def add_gaming_session(self, session: DailyGamingSession):
        self.gaming_session = session

    @property
    def session(self) -> Optional[DailyGamingSession]:
        return self.gaming_session

    def gametime_tracker(self) -> Dict[str, Set[ProcessInfo]]:
        return self.games_found

    def tracked_processes(self) -> Iterator[Tuple[str, ProcessInfo]]:
        for game, processes in self.games_found.items():
            for proc in processes:
                yield game, proc

    def total_time_played(self) -> timedelta:
        """Sum of the latest run time of every tracked process"""
        return timedelta(seconds=sum(proc.run_time for _, proc in self.tracked_processes()))

    def refresh(self):
        """Take a new snapshot and update game times and the session

        Processes found on previous days stay in games_found, so a game still
        running after midnight counts its whole run time against the new day.
        """
        if self.guard_threshold is None:
            return self._refresh()
        return with_timing_guard(self._refresh, self.guard_threshold, name="GameTracker.refresh")

    def _refresh(self):
        self.snapshot = ProcessTree.build(self.processes.snapshot())
        logger.debug(f"Process snapshot:\n{self.snapshot.render()}")

        for root in self.snapshot.roots:
            found = self.registry.match_game(self.snapshot, root)
            if found is None:
                continue
            game, proc = found
            game_processes = self.games_found.setdefault(game, set())
            if proc not in game_processes:
                logger.info(f"Game found: '{game}' (PID: {proc.pid})")
            # set.add keeps the stale member, swap it for the fresh run time
            game_processes.discard(proc)
            game_processes.add(proc)

        time_played = self.total_time_played()
        session = self.gaming_session
        if session is not None:
            if session.day_ended():
                session.restart()
            elif not session.ended and session.should_end(time_played):
                session.end()

    @timing_guard()
    def kill(self, proc: ProcessInfo) -> bool:
        """Terminate a tracked process, unless its pid now belongs to another process"""
        current = self.snapshot.get(proc.pid)
        if current is None or current != proc or current.start_time != proc.start_time:
            logger.debug(f"'{proc.name}' (PID: {proc.pid}) is no longer running, not killing")
            return True
        return self.processes.kill(proc.pid, proc.start_time)
