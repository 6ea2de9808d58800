"""Core data model for secret scanning.

Finding is one reported occurrence; ScanResult aggregates the findings of
a single scan pass together with file and line counters.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

CONTEXT_LINES = 2
TRUNCATE_LENGTH = 20


class FindingType(Enum):
    """Which engine produced a finding."""

    PATTERN = "pattern"
    ENTROPY = "entropy"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def truncate_match(match: str, max_length: int = TRUNCATE_LENGTH) -> str:
    """Shorten a match for display as ``head...tail``.

    Args:
        match: The full matched string.
        max_length: Matches at or under this length are returned unchanged.

    Returns:
        The display form of the match.
    """
    if len(match) <= max_length:
        return match
    half = (max_length - 3) // 2
    return f"{match[:half]}...{match[-half:]}"


def redact_secret(secret: str, visible_chars: int = 4) -> str:
    """Redact a secret, showing only first and last few characters.

    Args:
        secret: The secret string to redact.
        visible_chars: Number of characters to show at start and end.

    Returns:
        Redacted string like "AKIA****MPLE".
    """
    if len(secret) <= visible_chars * 2:
        return "*" * len(secret)
    return f"{secret[:visible_chars]}{'*' * (len(secret) - visible_chars * 2)}{secret[-visible_chars:]}"


def get_context(lines: list[str], line_index: int, size: int = CONTEXT_LINES) -> tuple[str, ...]:
    """Return up to ``size`` lines either side of ``line_index``, inclusive."""
    start = max(0, line_index - size)
    end = min(len(lines), line_index + size + 1)
    return tuple(lines[start:end])


@dataclass(frozen=True)
class Finding:
    """A detected secret occurrence.

    Columns are 0-indexed offsets into the line, end exclusive. For a match
    that spans several lines ``column_end`` is ``column_start + len(match)``.

    Attributes:
        type: Engine that produced the finding.
        category: Category tag, e.g. "aws-access-key" or "high-entropy".
        file_path: Path of the scanned file as given to the scanner.
        line_number: 1-indexed line the match starts on.
        column_start: Offset of the match in its starting line.
        column_end: Exclusive end offset.
        match: Full matched text. Sensitive.
        truncated_match: Display form of the match.
        confidence: Confidence score in [0, 1], if known.
        context: Lines surrounding the match.
        description: Human readable description of the detection.
        entropy: Shannon entropy of the match (entropy findings only).
        context_type: Extractor that proposed the candidate (entropy findings only).
        context_key: Key name the value was assigned to, if any.
        timestamp: Creation time, ISO 8601 UTC.
    """

    type: FindingType
    category: str
    file_path: str
    line_number: int
    column_start: int
    column_end: int
    match: str
    truncated_match: str = ""
    confidence: float | None = None
    context: tuple[str, ...] = ()
    description: str = ""
    entropy: float | None = None
    context_type: str | None = None
    context_key: str | None = None
    timestamp: str = field(default_factory=_utcnow, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.type, FindingType):
            raise ValueError(f"Finding type must be a FindingType, got {self.type!r}")
        if not self.category:
            raise ValueError("Finding category is required")
        if not self.file_path:
            raise ValueError("Finding file_path is required")
        if self.line_number < 1:
            raise ValueError("Finding line_number must be a positive integer")
        if self.column_start < 0:
            raise ValueError("Finding column_start must be non-negative")
        if self.column_end <= self.column_start:
            raise ValueError("Finding column_end must be greater than column_start")
        if not self.match:
            raise ValueError("Finding match is required")
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Finding confidence must be between 0 and 1")
        if not self.truncated_match:
            object.__setattr__(self, "truncated_match", truncate_match(self.match))
        if not isinstance(self.context, tuple):
            object.__setattr__(self, "context", tuple(self.context))

    @property
    def key(self) -> tuple[str, int, int, int, str]:
        """Identity used for deduplication."""
        return (self.file_path, self.line_number, self.column_start, self.column_end, self.match)

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.match

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report format."""
        return {
            "type": self.type.value,
            "category": self.category,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "columnStart": self.column_start,
            "columnEnd": self.column_end,
            "match": self.match,
            "truncatedMatch": self.truncated_match,
            "confidence": self.confidence,
            "context": list(self.context),
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        location = f"{self.file_path}:{self.line_number}:{self.column_start}"
        confidence = f" (confidence: {self.confidence * 100:.1f}%)" if self.confidence is not None else ""
        return (
            f"[{self.type.value.upper()}] {self.category} detected at {location}{confidence}\n"
            f"  Match: {self.truncated_match}"
        )


@dataclass(frozen=True)
class FileError:
    """A non-fatal error encountered while scanning one file."""

    file_path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"filePath": self.file_path, "error": self.message}


def _ms_since_epoch() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass
class ScanResult:
    """Findings and statistics for one scan pass.

    The orchestrator appends findings and updates counters while scanning,
    then calls ``mark_completed`` exactly once.
    """

    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0
    total_lines: int = 0
    errors: list[FileError] = field(default_factory=list)
    start_time: int = field(default_factory=_ms_since_epoch)
    end_time: int | None = None

    @property
    def has_secrets(self) -> bool:
        return bool(self.findings)

    @property
    def scan_duration(self) -> int:
        """Duration in milliseconds (0 until completed)."""
        if self.end_time is None:
            return 0
        return self.end_time - self.start_time

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    def add_finding(self, finding: Finding) -> None:
        if not isinstance(finding, Finding):
            raise TypeError("Only Finding instances can be added to ScanResult")
        self.findings.append(finding)

    def add_findings(self, findings: list[Finding]) -> None:
        for finding in findings:
            self.add_finding(finding)

    def add_error(self, file_path: str, message: str) -> None:
        self.errors.append(FileError(file_path=file_path, message=message))

    def update_stats(
        self,
        files_scanned: int | None = None,
        total_lines: int | None = None,
        files_skipped: int | None = None,
    ) -> None:
        """Overwrite counters; negative values are ignored."""
        if files_scanned is not None and files_scanned >= 0:
            self.files_scanned = files_scanned
        if total_lines is not None and total_lines >= 0:
            self.total_lines = total_lines
        if files_skipped is not None and files_skipped >= 0:
            self.files_skipped = files_skipped

    def deduplicate_findings(self) -> None:
        """Remove duplicate findings.

        Findings are duplicates when their identity keys are equal. A
        pattern finding replaces an entropy finding with the same key, so the
        named category wins; otherwise the first occurrence is kept.
        """
        kept: dict[tuple, int] = {}
        unique: list[Finding] = []
        for finding in self.findings:
            index = kept.get(finding.key)
            if index is None:
                kept[finding.key] = len(unique)
                unique.append(finding)
            elif unique[index].type is FindingType.ENTROPY and finding.type is FindingType.PATTERN:
                unique[index] = finding
        self.findings = unique

    def mark_completed(self) -> None:
        self.end_time = _ms_since_epoch()

    def group_by_file(self) -> dict[str, list[Finding]]:
        grouped: dict[str, list[Finding]] = defaultdict(list)
        for finding in self.findings:
            grouped[finding.file_path].append(finding)
        return dict(grouped)

    def group_by_category(self) -> dict[str, list[Finding]]:
        grouped: dict[str, list[Finding]] = defaultdict(list)
        for finding in self.findings:
            grouped[finding.category].append(finding)
        return dict(grouped)

    def group_by_type(self) -> dict[FindingType, list[Finding]]:
        grouped: dict[FindingType, list[Finding]] = defaultdict(list)
        for finding in self.findings:
            grouped[finding.type].append(finding)
        return dict(grouped)

    def filter_by_confidence(self, threshold: float) -> list[Finding]:
        """Return findings whose confidence is at least ``threshold``.

        Raises:
            ValueError: If threshold is outside [0, 1].
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("Confidence threshold must be a number between 0 and 1")
        return [f for f in self.findings if f.confidence is not None and f.confidence >= threshold]

    def filter_by_category(self, categories: str | list[str]) -> list[Finding]:
        wanted = {categories} if isinstance(categories, str) else set(categories)
        return [f for f in self.findings if f.category in wanted]

    def filter_by_file_path(self, pattern: str | re.Pattern[str]) -> list[Finding]:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [f for f in self.findings if regex.search(f.file_path)]

    def average_confidence(self) -> float | None:
        scores = [f.confidence for f in self.findings if f.confidence is not None]
        if not scores:
            return None
        return sum(scores) / len(scores)

    def merge(self, other: ScanResult) -> None:
        """Fold another result into this one."""
        if not isinstance(other, ScanResult):
            raise TypeError("Can only merge with another ScanResult instance")
        self.add_findings(other.findings)
        self.errors.extend(other.errors)
        self.files_scanned += other.files_scanned
        self.files_skipped += other.files_skipped
        self.total_lines += other.total_lines
        self.start_time = min(self.start_time, other.start_time)
        if other.end_time is not None:
            self.end_time = max(self.end_time or other.end_time, other.end_time)

    def get_summary(self) -> dict[str, Any]:
        by_type = self.group_by_type()
        return {
            "totalFindings": len(self.findings),
            "hasSecrets": self.has_secrets,
            "filesScanned": self.files_scanned,
            "filesWithSecrets": len(self.group_by_file()),
            "totalLines": self.total_lines,
            "scanDuration": self.scan_duration,
            "findingsByType": {t.value: len(by_type.get(t, [])) for t in FindingType},
            "findingsByCategory": {c: len(f) for c, f in self.group_by_category().items()},
            "averageConfidence": self.average_confidence(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report format."""

        def _iso(ms: int | None) -> str | None:
            if ms is None:
                return None
            return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()

        return {
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.get_summary(),
            "errors": [e.to_dict() for e in self.errors],
            "metadata": {
                "startTime": _iso(self.start_time),
                "endTime": _iso(self.end_time),
                "scanDuration": self.scan_duration,
            },
        }
