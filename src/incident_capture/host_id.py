"""
Persistent host identifier.

A UUID stored next to the incidents so every incident captured on the
same machine can be correlated, even if the hostname changes.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from incident_capture.atomic import AtomicWriteError, atomic_write

logger = logging.getLogger(__name__)

HOST_ID_FILENAME = "host-id"


def _get_host_id_path(output_dir: str | Path) -> Path:
    output_path = Path(output_dir).expanduser()
    if output_path.is_file():
        return output_path.parent / HOST_ID_FILENAME
    return output_path / HOST_ID_FILENAME


def _store_host_id(path: Path, host_id: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(path, host_id + "\n", mode=0o600)
        logger.info(f"Stored host ID {host_id} at {path}")
    except (AtomicWriteError, OSError) as e:
        logger.warning(f"Failed to store host ID at {path}: {e}. Using ephemeral ID.")


def get_host_id(output_dir: str | Path) -> str:
    """
    Get or create the persistent host ID.

    Args:
        output_dir: Directory the ID is stored in.

    Returns:
        The host UUID as a string.
    """
    path = _get_host_id_path(output_dir)

    if path.exists():
        try:
            host_id = path.read_text().strip()
            uuid.UUID(host_id)
            return host_id
        except (ValueError, OSError) as e:
            logger.warning(f"Invalid or unreadable host ID file: {e}. Generating new ID.")

    host_id = str(uuid.uuid4())
    _store_host_id(path, host_id)
    return host_id


def reset_host_id(output_dir: str | Path) -> str:
    """Replace the stored host ID with a new one and return it."""
    host_id = str(uuid.uuid4())
    _store_host_id(_get_host_id_path(output_dir), host_id)
    return host_id
