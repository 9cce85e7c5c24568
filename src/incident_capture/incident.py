"""
Incident records.

An incident is a directory holding the sanitized command logs of one
capture session, an event trail, and an ``incident.json`` metadata file
with the command log of the run.
"""

from __future__ import annotations

import json
import logging
import platform
import secrets
import socket
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import distro
import psutil

from incident_capture import SCHEMA_VERSION, __version__
from incident_capture.atomic import atomic_append, atomic_write
from incident_capture.capabilities import Platform, detect_platform, resolve_platform
from incident_capture.host_id import get_host_id

if TYPE_CHECKING:
    from incident_capture.config import Config

logger = logging.getLogger(__name__)

METADATA_FILENAME = "incident.json"
EVENTS_FILENAME = "events.jsonl"
LOGS_DIRNAME = "logs"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CommandLog:
    """Audit record of one capture module run."""

    name: str
    command: str
    started_at: str
    ended_at: str
    exit_code: int
    output_len: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Incident:
    """On-disk working directory and command log of one capture session."""

    incident_id: str
    path: Path
    created_at: str
    label: str | None = None
    platform: str | None = None
    commands: list[CommandLog] = field(default_factory=list)

    @property
    def logs_path(self) -> Path:
        return self.path / LOGS_DIRNAME

    @property
    def metadata_path(self) -> Path:
        return self.path / METADATA_FILENAME

    @property
    def events_path(self) -> Path:
        return self.path / EVENTS_FILENAME

    @classmethod
    def create(cls, base_dir: str | Path, label: str | None = None) -> Incident:
        """
        Create a new incident directory under `base_dir`.

        The incident ID is the UTC creation time plus a random suffix, so
        listing the base directory sorts incidents chronologically.
        """
        now = datetime.now(timezone.utc)
        incident_id = f"{now:%Y%m%dT%H%M%SZ}-{secrets.token_hex(4)}"
        path = Path(base_dir) / incident_id
        (path / LOGS_DIRNAME).mkdir(parents=True)

        logger.info(f"Created incident {incident_id} at {path}")
        return cls(incident_id=incident_id, path=path, created_at=now.isoformat(), label=label)

    @classmethod
    def load(cls, path: str | Path) -> Incident:
        """Load an incident from its directory."""
        path = Path(path)
        data = json.loads((path / METADATA_FILENAME).read_text(encoding="utf-8"))

        return cls(
            incident_id=data["incident_id"],
            path=path,
            created_at=data["created_at"],
            label=data.get("label"),
            platform=data.get("platform"),
            commands=[CommandLog(**entry) for entry in data.get("commands", [])],
        )

    def record_event(self, event: str, **fields: Any) -> None:
        """Append an event line to the incident's event trail."""
        payload = {"ts": utc_now(), "event": event}
        payload.update(fields)
        atomic_append(self.events_path, json.dumps(payload, sort_keys=True, default=str) + "\n")


def collect_host_facts(output_dir: str | Path) -> dict[str, Any]:
    """Gather identifying facts about the host for the incident metadata."""
    facts: dict[str, Any] = {
        "hostname": socket.gethostname(),
        "host_id": get_host_id(output_dir),
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
        "distro": distro.name(pretty=True) if detect_platform() == Platform.LINUX else "",
        "boot_time": None,
        "cpu_count": None,
        "memory_total": None,
    }

    try:
        facts["boot_time"] = datetime.fromtimestamp(psutil.boot_time(), timezone.utc).isoformat()
        facts["cpu_count"] = psutil.cpu_count()
        facts["memory_total"] = psutil.virtual_memory().total
    except (psutil.Error, OSError) as e:
        logger.debug(f"Could not read host facts: {e}")

    return facts


def build_metadata(incident: Incident, config: Config) -> dict[str, Any]:
    """
    Build the incident.json document.

    The platform is the one the capture ran against, as recorded on the
    incident by the orchestrator. Incidents that never ran fall back to
    the configured or detected platform.
    """
    if incident.platform:
        plat = resolve_platform(incident.platform)
    elif config.platform:
        plat = resolve_platform(config.platform)
    else:
        plat = detect_platform()

    return {
        "schema_version": SCHEMA_VERSION,
        "tool_version": __version__,
        "incident_id": incident.incident_id,
        "label": incident.label,
        "created_at": incident.created_at,
        "updated_at": utc_now(),
        "dry_run": config.dry_run,
        "platform": plat.value,
        "host": collect_host_facts(config.output_dir),
        "commands": [entry.to_dict() for entry in incident.commands],
    }


def update_incident_metadata(incident: Incident, config: Config) -> None:
    """
    Persist the incident metadata, including the full command log.

    Safe to call repeatedly: each call atomically replaces incident.json.

    Raises:
        AtomicWriteError: incident.json could not be written.
    """
    metadata = build_metadata(incident, config)
    atomic_write(incident.metadata_path, json.dumps(metadata, indent=2, default=str) + "\n")
    logger.debug(f"Updated metadata for incident {incident.incident_id}")
