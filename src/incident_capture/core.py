"""
Capture orchestration for Incident Capture.

Runs every capture module in order, redacts the output, persists it into
the incident directory, and records one command log entry per module.
"""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Callable

from rich.console import Console

from incident_capture.atomic import AtomicWriteError, atomic_write
from incident_capture.capabilities import Platform, detect_platform, resolve_platform
from incident_capture.config import Config
from incident_capture.executor import run_command
from incident_capture.incident import CommandLog, Incident, update_incident_metadata, utc_now
from incident_capture.modules import CaptureModule, CaptureResult, build_modules
from incident_capture.redaction import Redactor

logger = logging.getLogger(__name__)

Executor = Callable[[str], tuple[int, str]]
MetadataUpdater = Callable[[Incident, Config], None]


def format_block(command: str, output: str) -> str:
    """Label a command's output for the module log."""
    body = output.rstrip("\n")
    return f"=== {command} ===\n{body}\n"


def dry_run_block(command: str) -> str:
    return f"[dry-run] would execute: {command}\n"


class CaptureOrchestrator:
    """
    Runs the capture modules for one incident.

    Modules run one at a time in category order, and commands within a
    module run in list order. No command or module failure aborts the run.
    """

    def __init__(
        self,
        config: Config | None = None,
        platform: Platform | str | None = None,
        executor: Executor | None = None,
        redactor: Redactor | None = None,
        metadata_updater: MetadataUpdater | None = None,
        console: Console | None = None,
    ):
        self.config = config or Config()

        if platform is None:
            platform = self.config.platform or detect_platform()
        self.platform = resolve_platform(platform)

        self.executor = executor or partial(run_command, timeout=self.config.command_timeout)
        self.redactor = redactor or Redactor(extra_expressions=self.config.extra_redaction_patterns)
        self.metadata_updater = metadata_updater or update_incident_metadata
        self.console = console or Console()
        self.modules = build_modules(self.platform)

    def run(self, incident: Incident) -> list[CaptureResult]:
        """
        Capture every module into `incident`.

        Returns:
            One CaptureResult per module, in capture order.

        Raises:
            AtomicWriteError: The final metadata update failed. Module logs
                written before the failure are kept.
        """
        mode = " (dry run)" if self.config.dry_run else ""
        logger.info(
            f"Capturing {len(self.modules)} modules for incident "
            f"{incident.incident_id} on {self.platform.value}{mode}"
        )

        incident.platform = self.platform.value
        results = [self._run_module(module, incident) for module in self.modules]

        try:
            self.metadata_updater(incident, self.config)
        except AtomicWriteError as e:
            logger.error(f"Failed to update metadata for incident {incident.incident_id}: {e}")
            raise

        return results

    def _execute_commands(self, module: CaptureModule) -> tuple[str, int]:
        """Run a module's commands and return (raw output, number of successes)."""
        blocks = []
        succeeded = 0

        for command in module.commands:
            if self.config.dry_run:
                blocks.append(dry_run_block(command))
                succeeded += 1
                continue

            try:
                exit_code, output = self.executor(command)
            except Exception as e:
                logger.warning(f"Command '{command}' could not be executed: {e}")
                continue

            if exit_code != 0:
                logger.warning(f"Command '{command}' exited with status {exit_code}")
                continue

            blocks.append(format_block(command, output))
            succeeded += 1

        return "".join(blocks), succeeded

    def _run_module(self, module: CaptureModule, incident: Incident) -> CaptureResult:
        started_at = utc_now()
        start = time.perf_counter()

        raw, succeeded = self._execute_commands(module)
        output = self.redactor.redact(raw)
        success = succeeded > 0
        error_msg = None

        if not module.commands:
            error_msg = f"no commands available on {self.platform.value}"
        elif not success:
            error_msg = f"all {len(module.commands)} command(s) failed"

        if success and output and not self.config.dry_run:
            log_path = incident.logs_path / f"{module.name}.log"
            try:
                atomic_write(log_path, output)
            except AtomicWriteError as e:
                success = False
                error_msg = f"failed to write {log_path}: {e}"
                logger.error(error_msg)

        duration = (time.perf_counter() - start) * 1000
        incident.commands.append(
            CommandLog(
                name=module.name,
                command="; ".join(module.commands),
                started_at=started_at,
                ended_at=utc_now(),
                exit_code=0 if success else 1,
                output_len=len(output.encode("utf-8")),
            )
        )
        logger.debug(f"Module '{module.name}' completed in {duration:.2f}ms")

        if success:
            self.console.print(f"  [green]✓[/] {module.display_name}")
        else:
            self.console.print(f"  [yellow]–[/] {module.display_name}")

        return CaptureResult(
            name=module.name,
            success=success,
            output=output,
            error_msg=error_msg,
            duration=duration,
        )


def run_capture(
    incident: Incident,
    config: Config | None = None,
    **kwargs,
) -> list[CaptureResult]:
    """
    Convenience function to run a capture.

    Args:
        incident: Incident to capture into. Its logs directory must exist.
        config: Optional configuration. Uses defaults if not provided.
        **kwargs: Passed through to CaptureOrchestrator.

    Returns:
        The per-module results.
    """
    return CaptureOrchestrator(config, **kwargs).run(incident)
