"""Redaction of detected secrets and backup management."""

from sealcommit.redaction.redactor import (
    CleanupReport,
    FileRedaction,
    RedactionReport,
    RedactionWarning,
    RestoreReport,
    SecretRedactor,
    drop_nested_findings,
    locate_finding,
    redact_secrets,
)

__all__ = [
    "CleanupReport",
    "FileRedaction",
    "RedactionReport",
    "RedactionWarning",
    "RestoreReport",
    "SecretRedactor",
    "drop_nested_findings",
    "locate_finding",
    "redact_secrets",
]
