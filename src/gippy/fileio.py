from __future__ import annotations
import os
from pathlib import Path

from gippy.errors import StoreWriteError


def atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a sibling temp file and a rename.

    Readers see either the previous file or the complete new one, never a
    truncated record.
    """
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(path)
    except OSError as e:
        raise StoreWriteError(f"Failed to write {path}: {e}") from e
    finally:
        # Only left behind when the rename did not happen
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
