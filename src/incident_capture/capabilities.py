"""
Platform capability table.

Maps every (category, platform) pair to the read-only commands used to
capture it. Resolution is a pure lookup: nothing here touches the system
except `detect_platform`, which only inspects the interpreter.
"""

from __future__ import annotations

import logging
import platform as _platform
from enum import Enum
from types import MappingProxyType

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    """Platform families with their own command sets."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


class Category(str, Enum):
    """Capture categories, in the order they are captured."""

    OS_VERSION = "os_version"
    UPTIME = "uptime"
    DISK_FREE = "disk_free"
    MEMORY = "memory"
    NETWORK_SUMMARY = "network_summary"
    PROCESS_SUMMARY = "process_summary"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Category.OS_VERSION: "OS version",
    Category.UPTIME: "Uptime",
    Category.DISK_FREE: "Disk free space",
    Category.MEMORY: "Memory",
    Category.NETWORK_SUMMARY: "Network summary",
    Category.PROCESS_SUMMARY: "Process summary",
}

# Every command must be read-only and non-interactive.
_LINUX = {
    Category.OS_VERSION: ("uname -a", "cat /etc/os-release"),
    Category.UPTIME: ("uptime",),
    Category.DISK_FREE: ("df -h", "df -i"),
    Category.MEMORY: ("free -m", "cat /proc/meminfo"),
    Category.NETWORK_SUMMARY: ("ip -brief address", "ip route", "ss -s"),
    Category.PROCESS_SUMMARY: ("ps aux --sort=-%cpu | head -n 25",),
}

_MACOS = {
    Category.OS_VERSION: ("sw_vers", "uname -a"),
    Category.UPTIME: ("uptime",),
    Category.DISK_FREE: ("df -h",),
    Category.MEMORY: ("vm_stat", "sysctl hw.memsize"),
    Category.NETWORK_SUMMARY: ("ifconfig -a", "netstat -rn"),
    Category.PROCESS_SUMMARY: ("ps aux -r | head -n 25",),
}

_WINDOWS = {
    Category.OS_VERSION: ("ver", 'systeminfo | findstr /B /C:"OS Name" /C:"OS Version"'),
    Category.UPTIME: ("net statistics workstation",),
    Category.DISK_FREE: (
        'powershell -NoProfile -Command "Get-PSDrive -PSProvider FileSystem"',
    ),
    Category.MEMORY: (
        'powershell -NoProfile -Command "Get-CimInstance Win32_OperatingSystem '
        '| Select-Object TotalVisibleMemorySize,FreePhysicalMemory"',
    ),
    Category.NETWORK_SUMMARY: ("ipconfig", "route print"),
    Category.PROCESS_SUMMARY: ("tasklist",),
}

# Fallback for unrecognized platforms; empty means the category is skipped
_GENERIC = {
    Category.OS_VERSION: ("uname -a",),
    Category.UPTIME: ("uptime",),
    Category.DISK_FREE: ("df -k",),
    Category.MEMORY: (),
    Category.NETWORK_SUMMARY: (),
    Category.PROCESS_SUMMARY: ("ps",),
}

CAPABILITY_TABLE: MappingProxyType[tuple[Category, Platform], tuple[str, ...]] = MappingProxyType(
    {
        (category, plat): commands[category]
        for plat, commands in (
            (Platform.LINUX, _LINUX),
            (Platform.MACOS, _MACOS),
            (Platform.WINDOWS, _WINDOWS),
            (Platform.UNKNOWN, _GENERIC),
        )
        for category in Category
    }
)


def commands_for(category: Category | str, platform: Platform | str) -> tuple[str, ...]:
    """
    Return the commands that capture `category` on `platform`.

    Unknown platforms get the generic command set. An empty tuple means
    there is no safe command for the category on that platform.
    """
    category = Category(category)
    platform = resolve_platform(platform)
    return CAPABILITY_TABLE.get((category, platform), CAPABILITY_TABLE[(category, Platform.UNKNOWN)])


_SYSTEM_NAMES = {
    "linux": Platform.LINUX,
    "darwin": Platform.MACOS,
    "macos": Platform.MACOS,
    "windows": Platform.WINDOWS,
}


def resolve_platform(name: Platform | str | None) -> Platform:
    """Map a platform or system name to a Platform, falling back to UNKNOWN."""
    if isinstance(name, Platform):
        return name
    if not name:
        return Platform.UNKNOWN

    key = name.strip().lower()
    if key in _SYSTEM_NAMES:
        return _SYSTEM_NAMES[key]
    if key == Platform.UNKNOWN.value:
        return Platform.UNKNOWN

    logger.info(f"Unrecognized platform '{name}', using generic commands")
    return Platform.UNKNOWN


def detect_platform(system: str | None = None) -> Platform:
    """Detect the running platform family from `platform.system()`."""
    return resolve_platform(system if system is not None else _platform.system())
