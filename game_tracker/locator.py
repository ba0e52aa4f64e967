"""
Game locator registry

Each platform (steam, lutris, heroic...) lists folders where installed games
live. The folder entries found there at startup are the identifiers searched
for in process names and command lines.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .config import load_games_config
from .errors import ConfigError
from .process_tree import ProcessInfo, ProcessTree

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    EXECUTABLE = "EXECUTABLE"
    DIRECTORY = "DIRECTORY"
    BOTH = "BOTH"

    def matches(self, path: Path) -> bool:
        if self is EntityKind.EXECUTABLE:
            return path.is_file()
        if self is EntityKind.DIRECTORY:
            return path.is_dir()
        return path.is_file() or path.is_dir()


def should_be_ignored(name: str, ignore: List[str]) -> bool:
    return any(name.startswith(prefix) for prefix in ignore)


@dataclass
class GameLocator:
    name: str
    home_paths: List[Path] = field(default_factory=list)
    absolute_paths: List[Path] = field(default_factory=list)
    entity_kind: EntityKind = EntityKind.BOTH
    ignore: List[str] = field(default_factory=list)
    games: List[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, name: str, entry: dict) -> "GameLocator":
        kind = entry.get("search_entity_type", EntityKind.BOTH.value)
        try:
            entity_kind = EntityKind(str(kind).upper())
        except ValueError as e:
            raise ConfigError(
                f"Platform '{name}': search_entity_type must be one of "
                f"{', '.join(k.value for k in EntityKind)}, got {kind!r}"
            ) from e

        return cls(
            name=name,
            home_paths=[Path(p) for p in entry.get("home_paths", [])],
            absolute_paths=[Path(p) for p in entry.get("absolute_paths", [])],
            entity_kind=entity_kind,
            ignore=list(entry.get("ignore", [])),
        )

    def load(self, home: Optional[Path] = None):
        """Fill games from the configured search locations"""
        if home is None:
            try:
                home = Path.home()
            except (RuntimeError, KeyError):
                home = None

        if home is not None:
            for p in self.home_paths:
                self.load_game_names_from_path(home / p)
        elif self.home_paths:
            logger.warning(
                f"Could not find home directory - cannot load {self.name} home paths "
                f"{[str(p) for p in self.home_paths]}"
            )

        for p in self.absolute_paths:
            self.load_game_names_from_path(p)

        logger.info(f"Platform {self.name}: {len(self.games)} games found")

    def load_game_names_from_path(self, path: Path):
        try:
            entries = sorted(path.iterdir())
        except OSError as e:
            logger.debug(f"Skipping {path}: {e}")
            return

        for entry in entries:
            if not self.entity_kind.matches(entry):
                continue
            if should_be_ignored(entry.name, self.ignore):
                continue
            self.games.append(entry.name)


class GameRegistry:
    """Platform name -> GameLocator, iterated in platform name order"""

    def __init__(self, platforms: Optional[Dict[str, GameLocator]] = None):
        self.platforms: Dict[str, GameLocator] = dict(sorted((platforms or {}).items()))

    @classmethod
    def resolve(cls, config: dict, home: Optional[Path] = None) -> "GameRegistry":
        platforms = {}
        for name, entry in config.items():
            locator = GameLocator.from_config(name, entry)
            locator.load(home)
            platforms[name] = locator
        return cls(platforms)

    @classmethod
    def from_file(cls, config_path, home: Optional[Path] = None) -> "GameRegistry":
        return cls.resolve(load_games_config(config_path), home)

    def known_games(self) -> Iterator[Tuple[str, str]]:
        for platform in self.platforms.values():
            for game in platform.games:
                yield platform.name, game

    def match_game(self, tree: ProcessTree, root_pid: Optional[int] = None) -> Optional[Tuple[str, ProcessInfo]]:
        """First (game, process) hit in platform then identifier order"""
        for _, game in self.known_games():
            if root_pid is None:
                found = tree.find(game)
            else:
                found = tree.find_from(root_pid, game)
            if found is not None:
                return game, found
        return None

    def __len__(self) -> int:
        return sum(len(p.games) for p in self.platforms.values())
