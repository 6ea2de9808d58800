"""Secret detection core.

- PatternEngine: signature matching for known credential formats
- EntropyEngine: Shannon-entropy detection of random-looking values
- SecretScanner: orchestrates both engines over many files in parallel

Findings from both engines are merged into one deduplicated ScanResult.
"""

from sealcommit.scanner.allowlist import Allowlist, LiteralEntry, RegexEntry
from sealcommit.scanner.base import FileError, Finding, FindingType, ScanResult
from sealcommit.scanner.engine import SecretScanner, scan_files
from sealcommit.scanner.entropy import CharsetFilters, EntropyEngine, calculate_entropy
from sealcommit.scanner.patterns import BUILTIN_PATTERNS, PatternEngine, SecretPattern

__all__ = [
    "Allowlist",
    "BUILTIN_PATTERNS",
    "CharsetFilters",
    "EntropyEngine",
    "FileError",
    "Finding",
    "FindingType",
    "LiteralEntry",
    "PatternEngine",
    "RegexEntry",
    "ScanResult",
    "SecretPattern",
    "SecretScanner",
    "calculate_entropy",
    "scan_files",
]
