"""
Build Diagnostics
================

A structured channel for the notes, warnings and fatal conditions raised while
building a template. Instead of scattering logger calls through the mapping
code, each component records a Diagnostic on the accumulator it was handed.
The accumulator mirrors every entry to the standard logger, so console output
stays the same, while callers (and tests) can inspect what happened.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
FATAL = "fatal"

_LOG_LEVELS = {
    INFO: logging.INFO,
    WARNING: logging.WARNING,
    FATAL: logging.ERROR,
}


@dataclass
class Diagnostic:
    """
    A single diagnostic record.

    Attributes:
        severity: One of "info", "warning" or "fatal"
        code: Short machine-readable code (e.g. "duplicate-resource-name")
        message: Human-readable description
        source: Identifier of the document the record is about, if any
    """

    severity: str
    code: str
    message: str
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "source": self.source,
        }

    def __str__(self) -> str:
        suffix = f" [{self.source}]" if self.source else ""
        return f"{self.severity.upper()} {self.code}: {self.message}{suffix}"


@dataclass
class Diagnostics:
    """Accumulator of Diagnostic records for one customer build."""

    records: List[Diagnostic] = field(default_factory=list)

    def add(self, severity: str, code: str, message: str,
            source: Optional[str] = None) -> Diagnostic:
        """
        Record a diagnostic and mirror it to the log.

        Args:
            severity: "info", "warning" or "fatal"
            code: Machine-readable code
            message: Human-readable message
            source: Optional document identifier

        Returns:
            Diagnostic: The stored record
        """
        if severity not in _LOG_LEVELS:
            raise ValueError(f"Invalid diagnostic severity: {severity}")

        record = Diagnostic(severity, code, message, source)
        self.records.append(record)
        logger.log(_LOG_LEVELS[severity], str(record))
        return record

    def info(self, code: str, message: str, source: Optional[str] = None) -> Diagnostic:
        return self.add(INFO, code, message, source)

    def warning(self, code: str, message: str, source: Optional[str] = None) -> Diagnostic:
        return self.add(WARNING, code, message, source)

    def fatal(self, code: str, message: str, source: Optional[str] = None) -> Diagnostic:
        return self.add(FATAL, code, message, source)

    def by_code(self, code: str) -> List[Diagnostic]:
        return [r for r in self.records if r.code == code]

    @property
    def has_fatal(self) -> bool:
        return any(r.severity == FATAL for r in self.records)

    def summary(self) -> Dict[str, int]:
        """Count records per severity."""
        counts = {INFO: 0, WARNING: 0, FATAL: 0}
        for record in self.records:
            counts[record.severity] += 1
        return counts

    def __len__(self) -> int:
        return len(self.records)
