"""Detect and redact secrets before they are committed.

seal-commit helps you:
- Find API keys, tokens and private keys with built-in signatures
- Catch unknown credentials through entropy analysis
- Scan staged files from a pre-commit hook or whole repositories in CI
- Redact findings in place, with backups you can restore
"""

__version__ = "0.1.0"

from sealcommit.config import SealConfig, load_config
from sealcommit.errors import ConfigurationError, PatternCompileError, RedactionError, SealCommitError
from sealcommit.redaction import SecretRedactor, redact_secrets
from sealcommit.scanner import Finding, FindingType, ScanResult, SecretScanner, scan_files

__all__ = [
    "ConfigurationError",
    "Finding",
    "FindingType",
    "PatternCompileError",
    "RedactionError",
    "ScanResult",
    "SealCommitError",
    "SealConfig",
    "SecretRedactor",
    "SecretScanner",
    "__version__",
    "load_config",
    "redact_secrets",
    "scan_files",
]
