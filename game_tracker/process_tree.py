"""
Process snapshot tree

A flat list of processes captured at one instant is arranged into a
parent/child hierarchy so games launched through wrappers (steam, reaper,
wine, proton...) can be found below their launcher.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

# Children of init are re-parented orphans and daemons, keep them as roots
INIT_PID = 1


@dataclass(frozen=True)
class ProcessInfo:
    """Identity snapshot of one process

    Two snapshots of the same logical process compare equal even though
    their run time differs, so a set keyed by ProcessInfo keeps one entry
    per process.
    """
    pid: int
    name: str
    cmd: Tuple[str, ...] = ()
    run_time: int = field(default=0, compare=False)
    start_time: int = field(default=0, compare=False)

    @property
    def cmdline(self) -> str:
        return " ".join(self.cmd)

    def contains(self, substring: str) -> bool:
        return substring in self.cmdline or substring in self.name


class ProcessRow(NamedTuple):
    """One process as returned by the OS enumeration"""
    pid: int
    ppid: Optional[int]
    name: str
    cmd: Tuple[str, ...]
    run_time: int
    start_time: int

    def to_info(self) -> ProcessInfo:
        return ProcessInfo(
            pid=self.pid,
            name=self.name,
            cmd=tuple(self.cmd),
            run_time=self.run_time,
            start_time=self.start_time,
        )


class ProcessTree:
    """Arena of processes addressed by pid

    Rebuilt from scratch on every scan, nodes are never shared between
    snapshots.
    """

    def __init__(self):
        self._nodes: Dict[int, ProcessInfo] = {}
        self._parents: Dict[int, Optional[int]] = {}
        self._children: Dict[int, List[int]] = {}
        self.roots: List[int] = []

    @classmethod
    def build(cls, rows: Iterable[ProcessRow]) -> "ProcessTree":
        """Build a tree from a flat process list, in any order"""
        tree = cls()
        ordered = sorted(rows, key=lambda r: r.pid)
        wanted_parent = {}

        for row in ordered:
            tree._nodes[row.pid] = row.to_info()
            tree._children[row.pid] = []
            wanted_parent[row.pid] = row.ppid

        for row in ordered:
            ppid = wanted_parent[row.pid]
            if tree._can_attach(row.pid, ppid, wanted_parent):
                tree._parents[row.pid] = ppid
                tree._children[ppid].append(row.pid)
            else:
                tree._parents[row.pid] = None
                tree.roots.append(row.pid)

        return tree

    def _can_attach(self, pid: int, ppid: Optional[int], wanted_parent: Dict[int, Optional[int]]) -> bool:
        if ppid is None or ppid == INIT_PID or ppid not in self._nodes:
            return False

        # refuse links that would close a loop through pid (pid reuse between reads)
        # placed pids are followed through their accepted link, the rest through ppid
        seen = {pid}
        current = ppid
        while current is not None and current != INIT_PID and current in self._nodes:
            if current in seen:
                return current != pid
            seen.add(current)
            if current in self._parents:
                current = self._parents[current]
            else:
                current = wanted_parent.get(current)
        return True

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, pid) -> bool:
        return pid in self._nodes

    def get(self, pid: int) -> Optional[ProcessInfo]:
        return self._nodes.get(pid)

    def parent_of(self, pid: int) -> Optional[int]:
        return self._parents.get(pid)

    def children_of(self, pid: int) -> List[int]:
        return list(self._children.get(pid, []))

    def iter_roots(self) -> Iterator[ProcessInfo]:
        for pid in self.roots:
            yield self._nodes[pid]

    def walk(self, pid: Optional[int] = None) -> Iterator[Tuple[int, ProcessInfo]]:
        """Depth-first (depth, process) walk of one subtree or of every root"""
        start = [pid] if pid is not None else self.roots
        stack = [(0, p) for p in reversed(start) if p in self._nodes]
        while stack:
            depth, current = stack.pop()
            yield depth, self._nodes[current]
            for child in reversed(self._children[current]):
                stack.append((depth + 1, child))

    def find(self, substring: str) -> Optional[ProcessInfo]:
        """First process whose name or command line contains substring"""
        for _, proc in self.walk():
            if proc.contains(substring):
                return proc
        return None

    def find_from(self, pid: int, substring: str) -> Optional[ProcessInfo]:
        for _, proc in self.walk(pid):
            if proc.contains(substring):
                return proc
        return None

    def render(self) -> str:
        lines = []
        for depth, proc in self.walk():
            lines.append(f"{' ' * depth}|__<{proc.pid}> {proc.cmdline or proc.name}")
        return "\n".join(lines)
