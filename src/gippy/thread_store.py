from __future__ import annotations
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import List

from gippy.errors import ThreadDecodeError, ThreadNotFound
from gippy.fileio import atomic_write_text
from gippy.models import Thread
from gippy.paths import StoragePaths
from gippy.telemetry import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer("gippy.threads")


@dataclass(frozen=True)
class ThreadStore:
    paths: StoragePaths

    def create(self) -> Thread:
        # Nothing touches disk until save()
        return Thread(id=str(uuid.uuid4()))

    def save(self, thread: Thread) -> None:
        with tracer.start_as_current_span("threads.save") as span:
            span.set_attribute("thread.id", thread.id)
            span.set_attribute("thread.messages", len(thread.messages))
            t0 = time.perf_counter()
            try:
                payload = json.dumps(thread.to_dict(), ensure_ascii=False, indent=2)
                atomic_write_text(self.paths.thread_file(thread.id), payload)
            finally:
                span.set_attribute("threads.save_ms", int((time.perf_counter() - t0) * 1000))

    def load(self, thread_id: str) -> Thread:
        """Read one thread record.

        Raises ThreadNotFound when no file exists for ``thread_id`` and
        ThreadDecodeError when the file is unreadable or malformed.
        """
        path = self.paths.thread_file(thread_id)
        if not path.is_file():
            raise ThreadNotFound(thread_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            thread = Thread.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
            raise ThreadDecodeError(thread_id, str(e)) from e
        if thread.id != thread_id:
            raise ThreadDecodeError(thread_id, f"record id {thread.id!r} does not match file name")
        return thread

    def load_all(self) -> List[Thread]:
        threads_dir = self.paths.threads_dir
        if not threads_dir.is_dir():
            return []

        results: List[Thread] = []
        for path in threads_dir.iterdir():
            if path.suffix != ".json" or not path.is_file():
                continue
            try:
                results.append(self.load(path.stem))
            except ThreadDecodeError as e:
                logger.warning("Skipping corrupt thread file %s: %s", path.name, e.reason)
        return results
