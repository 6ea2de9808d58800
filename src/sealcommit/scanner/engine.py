"""Scan orchestration.

The SecretScanner is responsible for:
- Skipping ignored and binary files before any I/O
- Running the pattern and entropy engines on each eligible file
- Dropping allowlisted matches
- Scanning files in parallel with a bounded worker pool
- Aggregating and deduplicating findings into one ScanResult
- Recording per-file failures without aborting the batch
"""

from __future__ import annotations

import fnmatch
import logging
import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sealcommit.audit import SCAN_COMPLETED, SCAN_FILE_ERROR, LoggingNotifier, Notifier, emit
from sealcommit.config import SealConfig
from sealcommit.scanner.allowlist import Allowlist
from sealcommit.scanner.base import Finding, ScanResult
from sealcommit.scanner.entropy import CharsetFilters, EntropyEngine
from sealcommit.scanner.patterns import PatternEngine

logger = logging.getLogger(__name__)

BINARY_EXTENSIONS = frozenset(
    {
        ".exe", ".dll", ".so", ".dylib", ".bin", ".dat",
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
        ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac",
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".zip", ".tar", ".gz", ".rar", ".7z",
        ".class", ".jar", ".war", ".ear",
        ".woff", ".woff2", ".ttf", ".eot",
    }
)  # fmt: skip


@dataclass
class FileScanOutcome:
    """What scanning one file produced. Built by a single worker."""

    file_path: str
    findings: list[Finding] = field(default_factory=list)
    line_count: int = 0
    scanned: bool = False
    skipped: str | None = None
    error: str | None = None


def read_text(path: Path) -> str:
    """Read a file as UTF-8 without newline translation.

    Undecodable bytes are replaced so that one bad byte does not hide the
    rest of the file from the scan.
    """
    return path.read_bytes().decode("utf-8", errors="replace")


class SecretScanner:
    """Scan files for secrets with the pattern and entropy engines.

    Example:
        scanner = SecretScanner(SealConfig(max_concurrency=4))
        result = scanner.scan_files(["app/settings.py", ".env"])
        print(f"Found {len(result.findings)} secrets")
    """

    def __init__(
        self,
        config: SealConfig | dict[str, Any] | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Build both engines from configuration.

        Args:
            config: Resolved configuration (or a raw mapping). Defaults if None.
            notifier: Audit sink. Logs events if None.

        Raises:
            ConfigurationError: If a custom pattern or the entropy settings
                are invalid.
        """
        if isinstance(config, dict):
            config = SealConfig.from_dict(config)
        self.config = config or SealConfig()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.max_concurrency = self.config.max_concurrency

        self.pattern_engine = PatternEngine(
            custom_patterns=self.config.patterns.custom,
            disabled=self.config.patterns.disabled,
        )
        entropy = self.config.entropy
        self.entropy_engine = EntropyEngine(
            threshold=entropy.threshold,
            min_length=entropy.min_length,
            max_length=entropy.max_length,
            charset_filters=CharsetFilters(min_alphanumeric_ratio=entropy.min_alphanumeric_ratio),
        )
        self.allowlist = Allowlist(self.config.allowlist)

    def scan_files(self, file_paths: Iterable[str | Path]) -> ScanResult:
        """Scan the given files in parallel.

        Files are admitted to the worker pool in input order. Each worker
        returns its own outcome; outcomes are folded into the result only
        after every worker has finished.

        Args:
            file_paths: Files to scan.

        Returns:
            Completed ScanResult with deduplicated findings.
        """
        scan_result = ScanResult()
        paths = [str(p) for p in file_paths]

        eligible = [p for p in paths if not self.should_ignore_file(p)]
        ignored = len(paths) - len(eligible)

        outcomes: list[FileScanOutcome] = []
        if eligible:
            with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
                futures = [executor.submit(self.scan_file, p) for p in eligible]
                outcomes = [future.result() for future in futures]

        files_scanned = 0
        files_skipped = ignored
        total_lines = 0
        for outcome in outcomes:
            scan_result.add_findings(outcome.findings)
            total_lines += outcome.line_count
            if outcome.scanned:
                files_scanned += 1
            elif outcome.skipped:
                files_skipped += 1
            if outcome.error:
                scan_result.add_error(outcome.file_path, outcome.error)
                emit(self.notifier, SCAN_FILE_ERROR, file_path=outcome.file_path, error=outcome.error)

        scan_result.update_stats(
            files_scanned=files_scanned,
            total_lines=total_lines,
            files_skipped=files_skipped,
        )
        scan_result.deduplicate_findings()
        scan_result.mark_completed()

        emit(
            self.notifier,
            SCAN_COMPLETED,
            files_scanned=scan_result.files_scanned,
            files_skipped=scan_result.files_skipped,
            findings=len(scan_result.findings),
            errors=len(scan_result.errors),
            duration_ms=scan_result.scan_duration,
        )
        return scan_result

    def scan_file(self, file_path: str | Path) -> FileScanOutcome:
        """Scan one file. Never raises; failures land on the outcome."""
        path = Path(file_path)
        outcome = FileScanOutcome(file_path=str(file_path))

        if self.is_binary_file(path):
            outcome.skipped = "binary file"
            return outcome

        try:
            if not path.exists():
                outcome.error = f"File not found: {file_path}"
                return outcome
            if not path.is_file():
                outcome.error = f"Not a file: {file_path}"
                return outcome
            content = read_text(path)
        except OSError as e:
            outcome.error = f"Error reading {file_path}: {e}"
            logger.warning(outcome.error)
            return outcome

        outcome.findings = self.scan_content(content, str(file_path))
        outcome.line_count = len(content.split("\n"))
        outcome.scanned = True
        return outcome

    def scan_content(self, content: str, file_path: str) -> list[Finding]:
        """Run both engines on ``content`` and drop allowlisted matches."""
        findings = self.pattern_engine.detect(content, file_path)
        findings.extend(self.entropy_engine.detect(content, file_path))
        return [f for f in findings if not self.is_allowed(f.match)]

    def is_allowed(self, value: str) -> bool:
        return self.allowlist.is_allowed(value)

    def should_ignore_file(self, file_path: str | Path) -> bool:
        """Check ignore rules: basename glob, directory name, extension.

        A directory entry matches when it occurs anywhere in the normalized
        path, so ``dist`` also skips ``distiller/app.js``. With
        ``ignore.match_whole_directories`` set, an entry must instead equal
        whole path segments (``vendor/cache`` matches that run of segments).
        """
        normalized = os.path.normpath(str(file_path))
        file_name = os.path.basename(normalized)
        ignore = self.config.ignore

        if any(fnmatch.fnmatchcase(file_name, pattern) for pattern in ignore.files):
            return True

        entries = [os.path.normpath(d).strip(os.sep) for d in ignore.directories if d]
        entries = [e for e in entries if e and e != "."]
        if ignore.match_whole_directories:
            wrapped = os.sep + os.sep.join(normalized.split(os.sep)[:-1]) + os.sep
            if any(f"{os.sep}{entry}{os.sep}" in wrapped for entry in entries):
                return True
        elif any(entry in normalized for entry in entries):
            return True

        return any(ext and file_name.endswith(ext) for ext in ignore.extensions)

    @staticmethod
    def is_binary_file(file_path: str | Path) -> bool:
        return Path(file_path).suffix.lower() in BINARY_EXTENSIONS

    def get_stats(self) -> dict[str, Any]:
        """Describe the scanner's configuration."""
        return {
            "max_concurrency": self.max_concurrency,
            "pattern_engine": {
                "builtin_patterns": self.pattern_engine.builtin_count,
                "custom_patterns": len(self.pattern_engine.custom_patterns),
                "categories": self.pattern_engine.get_categories(),
            },
            "entropy_engine": self.entropy_engine.get_config(),
            "allowlist_entries": len(self.allowlist),
        }


def scan_files(
    file_paths: Iterable[str | Path],
    config: SealConfig | dict[str, Any] | None = None,
) -> ScanResult:
    """Scan files with a one-off SecretScanner."""
    return SecretScanner(config).scan_files(file_paths)
