"""
Capture module registry.

One module per category, built once per run from the capability table
and iterated in category declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass

from incident_capture.capabilities import Category, Platform, commands_for


@dataclass(frozen=True)
class CaptureModule:
    """A category bound to the commands resolved for the current platform."""

    name: str
    display_name: str
    commands: tuple[str, ...]

    @classmethod
    def for_category(cls, category: Category, platform: Platform) -> CaptureModule:
        return cls(
            name=category.value,
            display_name=category.display_name,
            commands=commands_for(category, platform),
        )


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of running a single capture module."""

    name: str
    success: bool
    output: str = ""
    error_msg: str | None = None
    duration: float = 0.0


def build_modules(platform: Platform) -> list[CaptureModule]:
    """Build the capture modules for `platform` in category order."""
    return [CaptureModule.for_category(category, platform) for category in Category]


def list_categories() -> list[str]:
    """List all category names in capture order."""
    return [category.value for category in Category]


__all__ = [
    "CaptureModule",
    "CaptureResult",
    "build_modules",
    "list_categories",
]
