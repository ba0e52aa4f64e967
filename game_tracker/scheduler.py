"""Fixed interval scan loop"""

import logging
import time
from typing import Callable, List

from .subtasks import SubTask
from .tracker import GameTracker

logger = logging.getLogger(__name__)


class GameTrackerScheduler:
    def __init__(self, frequency: float, tracker: GameTracker,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.frequency = frequency
        self.tracker = tracker
        self.sub_tasks: List[SubTask] = []
        self.sleep = sleep
        self.clock = clock

    def add(self, sub_task: SubTask) -> "GameTrackerScheduler":
        self.sub_tasks.append(sub_task)
        return self

    def has(self, sub_task_type) -> bool:
        return any(isinstance(t, sub_task_type) for t in self.sub_tasks)

    def tick(self):
        """Refresh the tracker then run every subtask in order"""
        self.tracker.refresh()
        for sub_task in self.sub_tasks:
            sub_task.execute(self.tracker)

    def start(self):
        """Scan forever, errors propagate to the caller"""
        logger.info(f"Scanning every {self.frequency} seconds with {len(self.sub_tasks)} subtasks")
        while True:
            start = self.clock()
            self.tick()
            remainder = self.frequency - (self.clock() - start)
            if remainder > 0:
                self.sleep(remainder)
