"""
Crash-safe file persistence.

Every file written into an incident directory goes through this module.
Content is written to a hidden temporary sibling and then renamed over
the target, so an observer only ever sees the old file or the new one.
"""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path

logger = logging.getLogger(__name__)


class AtomicWriteError(OSError):
    """Base class for persistence failures. The target file is left untouched."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {self.path}")


class WriteError(AtomicWriteError):
    """Writing the temporary file failed."""


class RenameError(AtomicWriteError):
    """Replacing the target with the temporary file failed."""


def _temp_path_for(path: Path) -> Path:
    # Same directory as the target so os.replace never crosses a mount
    return path.parent / f".{path.name}.{secrets.token_hex(8)}.tmp"


def _discard(tmp: Path) -> None:
    try:
        tmp.unlink()
    except OSError:
        pass


def atomic_write(path: str | Path, content: str | bytes, mode: int | None = None) -> None:
    """
    Replace the file at `path` with `content`.

    Args:
        path: Target file. Its parent directory must exist.
        content: Text (encoded as UTF-8) or bytes.
        mode: Permission bits for the new file. Applied to the temporary
              file before the rename, so the target never exists with
              looser permissions.

    Raises:
        WriteError: The temporary file could not be written.
        RenameError: The temporary file could not be moved over the target.
    """
    path = Path(path)
    data = content.encode("utf-8") if isinstance(content, str) else content
    tmp = _temp_path_for(path)

    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)

    try:
        fd = os.open(tmp, flags, 0o666 if mode is None else mode)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            # umask may have stripped bits from the creation mode
            os.chmod(tmp, mode)
    except OSError as e:
        _discard(tmp)
        raise WriteError(path, f"could not write temporary file ({e})") from e

    try:
        os.replace(tmp, path)
    except OSError as e:
        _discard(tmp)
        raise RenameError(path, f"could not replace target ({e})") from e

    logger.debug(f"Wrote {len(data)} bytes to {path}")


def atomic_append(path: str | Path, content: str | bytes) -> None:
    """
    Append `content` to the file at `path` without ever exposing a half-appended file.

    The existing content is read and rewritten together with the new data
    through `atomic_write`. There is no locking: two processes appending to
    the same path concurrently can lose one of the appends.

    Raises:
        WriteError: The existing file could not be read, or the write failed.
        RenameError: The final replace failed.
    """
    path = Path(path)
    data = content.encode("utf-8") if isinstance(content, str) else content

    try:
        existing = path.read_bytes()
    except FileNotFoundError:
        existing = b""
    except OSError as e:
        raise WriteError(path, f"could not read existing file ({e})") from e

    atomic_write(path, existing + data)
