from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from gippy.errors import ThreadDecodeError, ThreadNotFound
from gippy.fileio import atomic_write_text
from gippy.models import Thread
from gippy.paths import StoragePaths
from gippy.thread_store import ThreadStore

logger = logging.getLogger(__name__)

NEW_THREAD_ANSWER = "n"


@dataclass(frozen=True)
class Resolution:
    thread: Thread
    created: bool


@dataclass(frozen=True)
class SessionStore:
    """Tracks which thread is current via a one-line marker file."""

    paths: StoragePaths
    threads: ThreadStore

    def get_active_id(self) -> Optional[str]:
        path = self.paths.active_thread_file
        if not path.exists():
            return None
        if not path.is_file():
            logger.warning("Active thread marker %s is not a file, ignoring it", path)
            return None
        try:
            tid = path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Active thread marker %s is unreadable, ignoring it: %s", path, e)
            return None
        return tid or None

    def set_active_id(self, thread_id: str) -> None:
        atomic_write_text(self.paths.active_thread_file, thread_id)

    def load_active(self) -> Optional[Thread]:
        """The active thread, or None when the pointer is unset or dangling."""
        tid = self.get_active_id()
        if tid is None:
            return None
        try:
            return self.threads.load(tid)
        except ThreadNotFound:
            logger.info("Active thread [%s] no longer exists", tid)
            return None
        except ThreadDecodeError as e:
            logger.warning("Active thread [%s] is corrupt, ignoring it: %s", tid, e.reason)
            return None

    def resolve_or_create(
        self,
        interactive: bool,
        read_line: Optional[Callable[[str], str]] = None,
    ) -> Resolution:
        """Pick the thread the next exchange runs on.

        Neither persists a created thread nor moves the active pointer; the
        caller does both once an exchange has completed.
        """
        existing = self.load_active()
        if existing is None:
            return Resolution(thread=self.threads.create(), created=True)
        if not interactive:
            return Resolution(thread=existing, created=False)

        print(f"You have an active thread: [{existing.id}].")
        reader = read_line or input
        try:
            choice = reader("Press ENTER to continue with this thread, or type 'n' for new: ")
        except EOFError:
            choice = ""

        if choice.strip().lower() == NEW_THREAD_ANSWER:
            return Resolution(thread=self.threads.create(), created=True)

        print(f"Continuing thread [{existing.id}]...")
        return Resolution(thread=existing, created=False)
