"""Advisory file locks and atomic JSON writes for state shared across runs."""
from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    fcntl.flock(f.fileno(), op)


def _unlock(f) -> None:
    fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@contextmanager
def locked(path: Path, exclusive: bool = True) -> Iterator[None]:
    """Hold a lock on ``<path>.lock`` so the data file itself can be replaced."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_name(path.name + ".lock")
    with open(lock_path, "a+") as f:
        _lock(f, exclusive)
        try:
            yield
        finally:
            _unlock(f)


def read_json(path: Path) -> Any | None:
    """Parsed contents, or None when the file does not exist."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None


def write_json_atomic(path: Path, data: Any) -> None:
    """Write to a temp file in the same directory, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
