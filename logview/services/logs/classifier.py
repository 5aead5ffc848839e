"""Heuristic severity classification for free-form log messages.

Rule groups are evaluated in order and the first group with a matching
pattern decides the severity. Error and warning come before success and
info so that a line such as ``"failed to complete successfully"`` is never
shown as a success.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Pattern, Tuple

from .ansi import strip_ansi
from .parser import ParsedLine


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"
    DEBUG = "debug"


@dataclass(frozen=True)
class RuleGroup:
    severity: Severity
    patterns: Tuple[Pattern[str], ...]

    def matches(self, message: str) -> bool:
        return any(pattern.search(message) for pattern in self.patterns)


def _rules(severity: Severity, *expressions: str) -> RuleGroup:
    return RuleGroup(
        severity=severity,
        patterns=tuple(re.compile(expression, re.IGNORECASE) for expression in expressions),
    )


ERROR_RULES = _rules(
    Severity.ERROR,
    r"(?:^|\s)(?:error|err):?\s",
    r"\b(?:exception|failed|failure)\b",
    r"stack\s?trace:\s*$",
    r"^\s*at\s+[\w.$<>]+\s*\(?.+:\d+:\d+\)?",
    r"\b(?:uncaught|unhandled)\s+(?:exception|error)\b",
    r"\[(?:error|err|fatal)\]",
    r"\b(?:crash|critical|fatal)\b",
)

WARNING_RULES = _rules(
    Severity.WARNING,
    r"(?:^|\s)(?:warning|warn):?\s",
    r"\[(?:warn(?:ing)?|attention)\]",
    r"deprecated|obsolete",
    r"\b(?:caution|attention|notice):\s",
    r"⚠",
)

SUCCESS_RULES = _rules(
    Severity.SUCCESS,
    r"(?:successfully|completed?)\s+(?:initialized|started|completed|created|done|deployed)",
    r"\[(?:success|ok|done)\]",
    r"(?:listening|running)\s+(?:on|at)\s+(?:port\s+)?\d+",
    r"(?:connected|established|ready)\s+(?:to|for|on)",
    r"✓|√|✅|done!",
    r"\b(?:success(?:ful)?|completed|ready)\b",
)

INFO_RULES = _rules(
    Severity.INFO,
    r"(?:^|\s)(?:info|inf|information):?\s",
    r"\[(?:info|information)\]",
    r"\b(?:status|state|current|progress)\b:?\s",
    r"\b(?:processing|executing|performing)\b",
    r"\b(?:cloning|building|installing|downloading|fetching)\b",
)

RULE_GROUPS: Tuple[RuleGroup, ...] = (ERROR_RULES, WARNING_RULES, SUCCESS_RULES, INFO_RULES)

DEFAULT_SEVERITY = Severity.DEBUG


def classify(message: str) -> Severity:
    """Return the severity of *message*; terminal color codes are ignored."""
    plain = strip_ansi(message)
    for group in RULE_GROUPS:
        if group.matches(plain):
            return group.severity
    return DEFAULT_SEVERITY


@dataclass(frozen=True)
class ClassifiedLine:
    parsed: ParsedLine
    severity: Severity


def classify_line(parsed: ParsedLine) -> ClassifiedLine:
    return ClassifiedLine(parsed=parsed, severity=classify(parsed.message))


__all__ = [
    "ClassifiedLine",
    "DEFAULT_SEVERITY",
    "RULE_GROUPS",
    "RuleGroup",
    "Severity",
    "classify",
    "classify_line",
]
