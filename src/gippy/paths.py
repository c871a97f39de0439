from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

STATE_DIR_NAME = ".gippy"


@dataclass(frozen=True)
class StoragePaths:
    root: Path

    @staticmethod
    def for_home(home: Path) -> "StoragePaths":
        return StoragePaths(root=home / STATE_DIR_NAME)

    @staticmethod
    def default(root: Optional[Path] = None) -> "StoragePaths":
        # An explicit root wins; otherwise ~/.gippy
        if root is not None:
            return StoragePaths(root=root)
        return StoragePaths.for_home(Path.home())

    @property
    def config_file(self) -> Path:
        return self.root / "config.json"

    @property
    def active_thread_file(self) -> Path:
        return self.root / "activeThread.txt"

    @property
    def threads_dir(self) -> Path:
        return self.root / "threads"

    def thread_file(self, thread_id: str) -> Path:
        return self.threads_dir / f"{thread_id}.json"
