"""User notification module for fpenroll

This module contains:
- Message constants shown during enrollment
- deliver: best-effort dispatch that never lets a notifier break enrollment
- NullNotifier, LoggingNotifier: silent and log-only notifiers
- PopupNotifier: short-lived X11 pop-ups through xmessage
- BackgroundNotifier: runs any notifier on a worker thread

"""

from __future__ import annotations
import os
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fpenroll.collaborators import Notifier
from fpenroll.config import POPUP_COMMAND, POPUP_TIMEOUT_SECONDS
from fpenroll.logger import get_logger


logger = get_logger("notifications")


# ---------------------------------------------------------------------------
# Messages


MSG_BAD_SWIPE = "bad swipe, please try again"
MSG_GOOD_SWIPES = {
    1: "1 good swipe captured 2 to go",
    2: "2 good swipes captured 1 to go",
    3: "3 good swipes captured DONE",
}
MSG_SUCCESS = "Enrollment Success"
MSG_NOT_ENOUGH_SWIPES = "Enrollment Failure, not enough good swipes"
MSG_INCONSISTENT_IMAGES = "Enrollment Failure, inconsistent images"


def good_swipes_message(count: int) -> str:
    """Progress message after ``count`` accepted samples."""
    return MSG_GOOD_SWIPES.get(count, f"{count} good swipes captured")


def deliver(notifier: Optional[Notifier], message: str) -> None:
    """Send ``message`` and swallow any notifier failure.

    Args:
        notifier: Target notifier (None disables notifications)
        message: User-facing text
    """
    if notifier is None:
        return
    try:
        notifier.notify(message)
    except Exception as e:
        logger.warning(f"Notifier {type(notifier).__name__} failed on {message!r}: {e}")


# ---------------------------------------------------------------------------
# Notifiers


class NullNotifier:
    """Discards every message."""

    def notify(self, message: str) -> None:
        pass


class LoggingNotifier:
    """Writes messages to the enrollment log."""

    def __init__(self, name: str = "user") -> None:
        self._logger = get_logger(name)

    def notify(self, message: str) -> None:
        self._logger.info(message)


class PopupNotifier:
    """Centered pop-up that closes itself after a short timeout.

    Only active when an X display is available and ``xmessage`` is installed;
    otherwise messages are dropped. The pop-up process is not waited for.

    Attributes:
        command: Resolved pop-up executable, or None when unavailable
        timeout: Seconds before the pop-up closes
    """

    def __init__(self, command: str = POPUP_COMMAND, timeout: int = POPUP_TIMEOUT_SECONDS) -> None:
        self.command = shutil.which(command)
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return self.command is not None and bool(os.environ.get("DISPLAY"))

    def notify(self, message: str) -> None:
        if not self.available:
            return
        subprocess.Popen(
            [self.command, "-timeout", str(self.timeout), "-center", message],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )


class BackgroundNotifier:
    """Forwards messages to another notifier on a single worker thread.

    Messages keep their order. Failures of the wrapped notifier are logged
    on the worker thread.
    """

    def __init__(self, inner: Notifier) -> None:
        self.inner = inner
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fpenroll-notify")

    def notify(self, message: str) -> None:
        self._executor.submit(deliver, self.inner, message)

    def close(self, wait: bool = True) -> None:
        """Stop the worker; pending messages are flushed when ``wait`` is True."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundNotifier":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
