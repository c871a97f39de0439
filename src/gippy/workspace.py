from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gippy.config_store import ConfigStore
from gippy.paths import StoragePaths
from gippy.session_store import SessionStore
from gippy.thread_store import ThreadStore


@dataclass(frozen=True)
class Workspace:
    """All on-disk state for one invocation, rooted at a single directory."""

    paths: StoragePaths
    threads: ThreadStore
    sessions: SessionStore
    config: ConfigStore

    @staticmethod
    def open(root: Optional[Path] = None) -> "Workspace":
        paths = StoragePaths.default(root)
        threads = ThreadStore(paths=paths)
        return Workspace(
            paths=paths,
            threads=threads,
            sessions=SessionStore(paths=paths, threads=threads),
            config=ConfigStore(paths=paths),
        )
