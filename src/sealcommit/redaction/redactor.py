"""In-place redaction of detected secrets.

Redaction works on the raw file text, bottom-up and right-to-left, so
replacing one span never shifts the offsets of spans still to be processed.
Each finding is re-validated against the current file content before it is
masked; content that drifted since the scan is searched for on the original
line, and a finding that cannot be located is reported as a warning rather
than masking something else.

Backups are written as ``<path><suffix>`` next to the file and are the only
recovery state.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sealcommit.audit import (
    BACKUP_REMOVED,
    BACKUP_RESTORED,
    REDACTION_COMPLETED,
    LoggingNotifier,
    Notifier,
    emit,
)
from sealcommit.config import DEFAULT_MAX_CONCURRENCY, RedactionConfig
from sealcommit.errors import ErrorCode, RedactionError
from sealcommit.scanner.base import FileError, Finding, ScanResult, redact_secret

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedactionWarning:
    """A finding that could not be located in the current file content."""

    file_path: str
    line_number: int
    preview: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "match": self.preview,
            "reason": self.reason,
        }


@dataclass
class FileRedaction:
    """Outcome of redacting one file."""

    file_path: str
    secrets_redacted: int = 0
    backup_path: str | None = None
    written: bool = False
    warnings: list[RedactionWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "secretsRedacted": self.secrets_redacted,
            "backupPath": self.backup_path,
            "written": self.written,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class RedactionReport:
    """Aggregated outcome of one redaction run."""

    files_processed: int = 0
    secrets_redacted: int = 0
    backups_created: int = 0
    errors: list[FileError] = field(default_factory=list)
    processed_files: list[FileRedaction] = field(default_factory=list)
    dry_run: bool = False

    @property
    def warnings(self) -> list[RedactionWarning]:
        return [w for detail in self.processed_files for w in detail.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "filesProcessed": self.files_processed,
            "secretsRedacted": self.secrets_redacted,
            "backupsCreated": self.backups_created,
            "errors": [e.to_dict() for e in self.errors],
            "processedFiles": [d.to_dict() for d in self.processed_files],
        }


@dataclass
class RestoreReport:
    files_restored: int = 0
    errors: list[FileError] = field(default_factory=list)


@dataclass
class CleanupReport:
    backups_removed: int = 0
    errors: list[FileError] = field(default_factory=list)


def _line_offsets(content: str) -> list[int]:
    """Absolute offset of the start of each ``\\n``-separated line."""
    offsets = [0]
    position = content.find("\n")
    while position != -1:
        offsets.append(position + 1)
        position = content.find("\n", position + 1)
    return offsets


def locate_finding(content: str, finding: Finding, offsets: list[int] | None = None) -> int | None:
    """Find where ``finding.match`` currently sits in ``content``.

    The recorded position is tried first. Failing that, the first occurrence
    of the match that starts on the recorded line is used.

    Returns:
        Absolute start offset, or None if the match is not on that line.
    """
    offsets = offsets if offsets is not None else _line_offsets(content)
    line_index = finding.line_number - 1
    if line_index >= len(offsets):
        return None

    line_start = offsets[line_index]
    line_end = offsets[line_index + 1] - 1 if line_index + 1 < len(offsets) else len(content)

    start = line_start + finding.column_start
    if content[start : start + len(finding.match)] == finding.match:
        return start

    fallback = content.find(finding.match, line_start)
    if fallback != -1 and fallback < line_end:
        return fallback
    return None


def drop_nested_findings(content: str, findings: Iterable[Finding]) -> list[Finding]:
    """Remove findings whose recorded span lies inside another finding's span.

    Entropy findings on the body lines of a private key block are covered by
    the block itself; masking them first would leave the block unlocatable.
    """
    offsets = _line_offsets(content)
    spans = []
    for finding in findings:
        line_index = finding.line_number - 1
        start = offsets[line_index] + finding.column_start if line_index < len(offsets) else len(content)
        spans.append((start, start + len(finding.match), finding))

    kept: list[Finding] = []
    covered_until = -1
    for start, end, finding in sorted(spans, key=lambda s: (s[0], -(s[1] - s[0]))):
        if end <= covered_until:
            continue
        kept.append(finding)
        covered_until = max(covered_until, end)
    return kept


class SecretRedactor:
    """Replace detected secrets in files with a mask token.

    Example:
        redactor = SecretRedactor(RedactionConfig(redaction_mask="***"))
        report = redactor.redact_secrets(scan_result)
        print(f"Redacted {report.secrets_redacted} secrets")
    """

    def __init__(
        self,
        config: RedactionConfig | None = None,
        notifier: Notifier | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.config = config or RedactionConfig()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.max_concurrency = max(1, max_concurrency)

    def backup_path_for(self, file_path: str | Path) -> Path:
        return Path(f"{file_path}{self.config.backup_suffix}")

    def redact_secrets(
        self,
        scan_result: ScanResult,
        create_backups: bool | None = None,
        redaction_mask: str | None = None,
        dry_run: bool | None = None,
    ) -> RedactionReport:
        """Redact every finding of ``scan_result`` in place.

        Options left as None fall back to the redactor's configuration.
        Failures are recorded on the report; this method does not raise for
        file problems.

        Args:
            scan_result: Findings to redact.
            create_backups: Back up each file before rewriting it.
            redaction_mask: Replacement token.
            dry_run: Compute the report without touching any file.

        Returns:
            RedactionReport describing what was (or would be) done.

        Raises:
            ValueError: If the mask is empty.
        """
        create_backups = self.config.create_backups if create_backups is None else create_backups
        mask = self.config.redaction_mask if redaction_mask is None else redaction_mask
        dry_run = self.config.dry_run if dry_run is None else dry_run
        if not mask:
            raise ValueError("Redaction mask must not be empty")

        report = RedactionReport(dry_run=dry_run)
        grouped = scan_result.group_by_file()
        if not grouped:
            return report

        def _run(item: tuple[str, list[Finding]]) -> FileRedaction | FileError:
            path, findings = item
            try:
                return self.redact_file(path, findings, mask=mask, create_backup=create_backups, dry_run=dry_run)
            except RedactionError as e:
                logger.warning("Redaction failed for %s: %s", path, e)
                return FileError(file_path=path, message=str(e))

        with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
            outcomes = list(executor.map(_run, grouped.items()))

        for outcome in outcomes:
            if isinstance(outcome, FileError):
                report.errors.append(outcome)
                continue
            report.files_processed += 1
            report.secrets_redacted += outcome.secrets_redacted
            if outcome.backup_path:
                report.backups_created += 1
            report.processed_files.append(outcome)

        emit(
            self.notifier,
            REDACTION_COMPLETED,
            files_processed=report.files_processed,
            secrets_redacted=report.secrets_redacted,
            backups_created=report.backups_created,
            errors=len(report.errors),
            dry_run=dry_run,
        )
        return report

    def redact_file(
        self,
        file_path: str | Path,
        findings: Iterable[Finding],
        mask: str | None = None,
        create_backup: bool | None = None,
        dry_run: bool | None = None,
    ) -> FileRedaction:
        """Redact the given findings in one file.

        The backup is written only when at least one finding was located, so
        running the same redaction twice never overwrites the first backup
        with already-redacted content.

        Raises:
            RedactionError: If the file is missing or cannot be read, backed
                up or written.
        """
        mask = mask or self.config.redaction_mask
        create_backup = self.config.create_backups if create_backup is None else create_backup
        dry_run = self.config.dry_run if dry_run is None else dry_run

        path = Path(file_path)
        outcome = FileRedaction(file_path=str(file_path))

        if not path.exists():
            raise RedactionError(f"File not found: {file_path}", ErrorCode.FILE_NOT_FOUND, str(file_path))
        if not path.is_file():
            raise RedactionError(f"Not a file: {file_path}", ErrorCode.NOT_A_FILE, str(file_path))
        try:
            content = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RedactionError(
                f"Failed to read {file_path}: {e}", ErrorCode.FILE_READ_ERROR, str(file_path)
            ) from e

        ordered = sorted(
            drop_nested_findings(content, findings),
            key=lambda f: (f.line_number, f.column_start),
            reverse=True,
        )
        for finding in ordered:
            # Replacing a multi-line match removes line breaks, so offsets are recomputed.
            start = locate_finding(content, finding)
            if start is None:
                warning = RedactionWarning(
                    file_path=str(file_path),
                    line_number=finding.line_number,
                    preview=redact_secret(finding.match),
                    reason="match not found at recorded line",
                )
                logger.warning(
                    "Could not redact %s at %s:%d, content changed since scan",
                    warning.preview,
                    file_path,
                    finding.line_number,
                )
                outcome.warnings.append(warning)
                continue
            content = content[:start] + mask + content[start + len(finding.match) :]
            outcome.secrets_redacted += 1

        if outcome.secrets_redacted == 0 or dry_run:
            return outcome

        if create_backup:
            backup = self.backup_path_for(file_path)
            try:
                shutil.copy2(path, backup)
            except OSError as e:
                raise RedactionError(
                    f"Failed to create backup {backup}: {e}",
                    ErrorCode.BACKUP_CREATION_ERROR,
                    str(file_path),
                ) from e
            outcome.backup_path = str(backup)

        try:
            path.write_bytes(content.encode("utf-8"))
        except OSError as e:
            raise RedactionError(
                f"Failed to write {file_path}: {e}", ErrorCode.FILE_WRITE_ERROR, str(file_path)
            ) from e
        outcome.written = True
        logger.debug("Redacted %d secret(s) in %s", outcome.secrets_redacted, file_path)
        return outcome

    def restore_from_backups(self, file_paths: Iterable[str | Path]) -> RestoreReport:
        """Copy each file's backup over it and delete the backup."""
        report = RestoreReport()
        for file_path in file_paths:
            backup = self.backup_path_for(file_path)
            if not backup.is_file():
                report.errors.append(
                    FileError(str(file_path), f"[{ErrorCode.BACKUP_NOT_FOUND.value}] Backup file not found: {backup}")
                )
                continue
            try:
                shutil.copy2(backup, file_path)
                backup.unlink()
            except OSError as e:
                report.errors.append(
                    FileError(str(file_path), f"[{ErrorCode.RESTORE_ERROR.value}] Failed to restore from backup: {e}")
                )
                continue
            report.files_restored += 1
            emit(self.notifier, BACKUP_RESTORED, file_path=str(file_path), backup_path=str(backup))
        return report

    def cleanup_backups(self, paths: Iterable[str | Path]) -> CleanupReport:
        """Delete backups without restoring.

        Each path may name either a backup file or the file it backs up.
        Missing backups are not an error.
        """
        report = CleanupReport()
        suffix = self.config.backup_suffix
        for raw in paths:
            backup = Path(raw) if str(raw).endswith(suffix) else self.backup_path_for(raw)
            if not backup.exists():
                continue
            try:
                backup.unlink()
            except OSError as e:
                report.errors.append(FileError(str(backup), f"Failed to remove backup: {e}"))
                continue
            report.backups_removed += 1
            emit(self.notifier, BACKUP_REMOVED, backup_path=str(backup))
        return report

    def find_backups(self, directory: str | Path) -> list[Path]:
        """List backup files under ``directory``, sorted."""
        return sorted(p for p in Path(directory).rglob(f"*{self.config.backup_suffix}") if p.is_file())

    @staticmethod
    def get_redaction_stats(scan_result: ScanResult | None) -> dict[str, Any]:
        """Summarize what redacting ``scan_result`` would touch."""
        if scan_result is None or not scan_result.has_secrets:
            return {"totalSecrets": 0, "affectedFiles": 0, "secretsByType": {}, "secretsByCategory": {}}
        return {
            "totalSecrets": len(scan_result.findings),
            "affectedFiles": len(scan_result.group_by_file()),
            "secretsByType": {t.value: len(f) for t, f in scan_result.group_by_type().items()},
            "secretsByCategory": {c: len(f) for c, f in scan_result.group_by_category().items()},
        }


def redact_secrets(
    scan_result: ScanResult,
    config: RedactionConfig | None = None,
    **options: Any,
) -> RedactionReport:
    """Redact with a one-off SecretRedactor."""
    return SecretRedactor(config).redact_secrets(scan_result, **options)
