"""
Redaction of credentials and personal data from captured text.

Patterns are applied in a fixed order. Each one replaces every match in
the output of the previous one with the sentinel ``[REDACTED]``, which
none of the patterns match, so redacting twice changes nothing.

A pattern that fails to compile is logged and skipped; the remaining
patterns still run.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"


@dataclass(frozen=True)
class RedactionPattern:
    """A named regular expression whose matches are replaced with the sentinel."""

    name: str
    expression: str


DEFAULT_PATTERNS: tuple[RedactionPattern, ...] = (
    RedactionPattern(
        "credential_assignment",
        r"(?i)\b[\w.-]{0,64}?(?:password|passwd|secret|token|api[_-]?key|private[_-]?key)[\w.-]{0,64}"
        r"[\"']?[ \t]*[=:][ \t]*[\"']?[^\s\"',;]+[\"']?",
    ),
    RedactionPattern(
        "aws_access_key_id",
        r"\b(?:AKIA|ASIA|AGPA|AIDA|AROA|ANPA|ANVA|AIPA)[A-Z0-9]{16}\b",
    ),
    RedactionPattern(
        "aws_secret_access_key",
        r"(?i)aws_?secret_?access_?key[\"']?[ \t]*[=:][ \t]*[\"']?[A-Za-z0-9/+=]{40}[\"']?",
    ),
    RedactionPattern(
        "key_like_value",
        r"(?i)\b[\w-]{0,64}key[\"']?[ \t]*[=:][ \t]*[\"']?[A-Za-z0-9+/_-]{32,}={0,2}[\"']?",
    ),
    RedactionPattern(
        "email",
        r"(?<![A-Za-z0-9._%+-])[A-Za-z0-9._%+-]{1,64}@[A-Za-z0-9.-]{1,253}\.[A-Za-z]{2,}",
    ),
    RedactionPattern(
        "payment_card",
        r"\b(?:\d{4}[ -]?){3}\d{4}\b|\b3[47]\d{2}[ -]?\d{6}[ -]?\d{5}\b",
    ),
    RedactionPattern(
        "national_id",
        r"\b\d{3}-\d{2}-\d{4}\b",
    ),
    RedactionPattern(
        "pem_private_key",
        r"-----BEGIN[A-Z ]*PRIVATE KEY-----(?:[\s\S]*?-----END[A-Z ]*PRIVATE KEY-----)?",
    ),
    RedactionPattern(
        "bearer_token",
        r"(?i)\bbearer[ \t]+[A-Za-z0-9\-._~+/]+=*",
    ),
    RedactionPattern(
        "vendor_token",
        r"\b(?:gh[pousr]_[A-Za-z0-9]{36,}"
        r"|github_pat_[A-Za-z0-9_]{22,}"
        r"|glpat-[A-Za-z0-9_-]{20,}"
        r"|xox[abposr]-[A-Za-z0-9-]{10,}"
        r"|sk-[A-Za-z0-9_-]{20,}"
        r"|AIza[0-9A-Za-z_-]{35})",
    ),
    RedactionPattern(
        "shell_export",
        r"(?im)^[ \t]*export[ \t]+[A-Z0-9_]{0,64}(?:PASSWORD|PASSWD|SECRET|TOKEN|KEY|CREDENTIAL|AUTH)"
        r"[A-Z0-9_]{0,64}=.*$",
    ),
)


def compile_patterns(patterns: Iterable[RedactionPattern]) -> list[tuple[str, re.Pattern[str]]]:
    """
    Compile patterns in order, skipping any that are malformed.

    Returns:
        List of (name, compiled pattern) pairs in the original order.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append((pattern.name, re.compile(pattern.expression)))
        except re.error as e:
            logger.warning(f"Skipping redaction pattern '{pattern.name}': {e}")
    return compiled


class Redactor:
    """
    Applies an ordered list of redaction patterns to text.

    Extra expressions (from configuration) run after the built-in patterns.
    """

    def __init__(
        self,
        patterns: Iterable[RedactionPattern] | None = None,
        extra_expressions: Iterable[str] | None = None,
    ):
        all_patterns = list(DEFAULT_PATTERNS if patterns is None else patterns)
        for i, expression in enumerate(extra_expressions or []):
            all_patterns.append(RedactionPattern(f"extra_{i}", expression))

        self.patterns = compile_patterns(all_patterns)

    @property
    def pattern_names(self) -> list[str]:
        return [name for name, _ in self.patterns]

    def redact(self, text: str | None) -> str:
        """Return `text` with every pattern match replaced by the sentinel."""
        if text is None:
            return ""
        if not isinstance(text, str):
            text = str(text)

        for _, regex in self.patterns:
            text = regex.sub(REDACTED, text)
        return text


@lru_cache(maxsize=1)
def default_redactor() -> Redactor:
    """Shared redactor built from the default patterns."""
    return Redactor()


def redact(text: str | None) -> str:
    """Redact `text` with the default patterns."""
    return default_redactor().redact(text)


def contains_sensitive(text: str) -> bool:
    """Check whether the default patterns would change `text`."""
    return redact(text) != text
