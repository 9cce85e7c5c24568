"""
Incident Capture - Read-only diagnostic snapshots for incident response.

Runs a fixed set of system-inspection commands, redacts credentials and
personal data from their output, and stores the results in a per-incident
directory with an audit trail of every command that was run.
"""

__version__ = "0.3.0"
__author__ = "Sluggisty"

# Version of the incident.json layout
SCHEMA_VERSION = 1

__all__ = ["__version__", "SCHEMA_VERSION"]
