"""Default locations and game location file loading"""

import logging
import os
import tomllib
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_CONFIG_PATH = os.environ.get(
    "GAME_TRACKER_CONFIG", str(Path("~/.config/game-tracker/games.toml").expanduser())
)
DEFAULT_DB_PATH = os.environ.get(
    "GAME_TRACKER_DB", str(Path("~/.local/share/game-tracker/statistics.sqlite").expanduser())
)
DEFAULT_LOG_PATH = str(Path("~/.local/share/game-tracker/game-tracker.log").expanduser())

DEFAULT_SCAN_INTERVAL = 15
DEFAULT_WARNING_THRESHOLD = 90.0


def load_games_config(config_path) -> dict:
    """Load game locations from a TOML file"""
    path = Path(config_path)
    try:
        with open(path, 'rb') as f:
            config = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found at {path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Error parsing config file {path}: {e}") from e

    for platform, entry in config.items():
        if not isinstance(entry, dict):
            raise ConfigError(f"Platform '{platform}' must be a table, got {type(entry).__name__}")

    logger.info(f"Configuration loaded from {path} ({len(config)} platforms)")
    return config
