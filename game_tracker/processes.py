"""OS process enumeration and termination, backed by psutil"""

import logging
import time
from typing import List, Optional

import psutil

from .process_tree import ProcessRow

logger = logging.getLogger(__name__)


class ProcessSource:
    """Lists running processes and terminates them"""

    def snapshot(self) -> List[ProcessRow]:
        """Capture every visible process"""
        now = time.time()
        rows = []
        for proc in psutil.process_iter(['pid', 'ppid', 'name', 'cmdline', 'create_time']):
            try:
                pinfo = proc.info
                create_time = pinfo['create_time'] or now
                rows.append(ProcessRow(
                    pid=pinfo['pid'],
                    ppid=pinfo['ppid'] or None,
                    name=pinfo['name'] or "",
                    cmd=tuple(pinfo['cmdline'] or ()),
                    run_time=max(0, int(now - create_time)),
                    start_time=int(create_time),
                ))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        return rows

    def kill(self, pid: int, start_time: Optional[int] = None) -> bool:
        """Request termination; True when accepted or the process is already gone

        With start_time, a pid now held by a newer process counts as gone.
        """
        try:
            proc = psutil.Process(pid)
            if start_time is not None and int(proc.create_time()) != start_time:
                logger.debug(f"PID {pid} was reused, not terminating it")
                return True
            name = proc.name()
            proc.kill()
            logger.warning(f"Terminated process: {name} (PID: {pid})")
            return True
        except psutil.NoSuchProcess:
            return True
        except psutil.AccessDenied as e:
            logger.error(f"Could not terminate process {pid}: {e}")
            return False
