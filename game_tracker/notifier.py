"""Desktop notifications through notify-send"""

import logging
import shutil
import subprocess

from .errors import NotificationError

logger = logging.getLogger(__name__)

APP_NAME = "game-tracker"


class Notifier:
    def __init__(self, summary: str = "WARNING", urgency: str = "critical", timeout: int = 2):
        self.summary = summary
        self.urgency = urgency
        self.timeout = timeout

    def notify(self, message: str, summary: str = None):
        """Show a desktop notification, raise NotificationError on failure"""
        if shutil.which("notify-send") is None:
            raise NotificationError("notify-send is not installed")

        cmd = [
            "notify-send",
            "--urgency", self.urgency,
            "--app-name", APP_NAME,
            summary or self.summary,
            message,
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise NotificationError("notify-send timed out") from e
        except OSError as e:
            raise NotificationError(f"notify-send failed: {e}") from e

        if result.returncode != 0:
            raise NotificationError(
                f"notify-send exited with {result.returncode}: {result.stderr.strip()}"
            )
        logger.info(f"Sent notification: {message}")
