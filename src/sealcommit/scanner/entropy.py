"""High-entropy string detection.

Signatures cannot tell an opaque-but-benign identifier from a credential,
so this engine works in stages:

1. Five line-level extractors propose secret-shaped candidates
   (assignments, quoted literals, environment assignments, base64 runs,
   generic token runs).
2. Candidates outside the length window, with too few alphanumerics, or
   matching a known non-secret shape are dropped.
3. Survivors are scored with Shannon entropy and kept when at or above
   the threshold.
4. Confidence grows with the entropy margin and with how telling the
   extraction context was.

Scanning is a pure function of (content, configuration).
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from sealcommit.errors import ConfigurationError
from sealcommit.scanner.base import Finding, FindingType, get_context

logger = logging.getLogger(__name__)

MAX_ENTROPY = 8.0

SECRET_KEYWORDS = (
    "key",
    "secret",
    "token",
    "password",
    "pass",
    "auth",
    "api",
    "credential",
    "private",
    "access",
    "session",
    "jwt",
    "bearer",
    "oauth",
    "client_secret",
    "client_id",
)

CONTEXT_BOOSTS: dict[str, float] = {
    "environment": 0.2,
    "base64": 0.15,
    "assignment": 0.1,
    "token": 0.05,
    "quoted": 0.05,
}
SECRET_KEY_BOOST = 0.2

DEFAULT_EXCLUDE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*$"),  # whitespace
    re.compile(r"^[.\-_=/+]+$"),  # separators
    re.compile(r"^[0-9]+$"),  # digits
    re.compile(r"^[a-zA-Z]+$"),  # letters
)

# Shapes that are high entropy but rarely secrets
COMMON_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[0-9.]+$"),  # version numbers
    re.compile(r"^(?:[a-fA-F0-9]{32}|[a-fA-F0-9]{40}|[a-fA-F0-9]{64})$"),  # md5/sha1/sha256
    re.compile(r"^localhost(?::[0-9]+)?"),
    re.compile(r"^https?://(?:localhost|127\.0\.0\.1|(?:www\.)?example\.(?:com|org|net))"),
    re.compile(r"^(?:test|sample|demo|example|dummy|fake)[_-]?", re.IGNORECASE),
    re.compile(r"^(?:placeholder|your[_-]|changeme|xxx)", re.IGNORECASE),
)

_ASSIGNMENT_RE = re.compile(
    r"(?:^|[\s{,(\[])[\"']?([a-zA-Z_][a-zA-Z0-9_]*)[\"']?\s*[:=]\s*[\"']([^\"']+)[\"']"
)
_QUOTED_RE = re.compile(r"[\"']([^\"'\n]*)[\"']")
_ENVIRONMENT_RE = re.compile(
    r"(?:^\s*(?:export\s+)?|process\.env\.|ENV\[[\"']?)([A-Z_][A-Z0-9_]*)[\"']?\]?\s*[:=]\s*[\"']?([^\"'\s]+)[\"']?"
)
_BASE64_RE = re.compile(r"[A-Za-z0-9+/]+={0,2}")
_BASE64_BODY_RE = re.compile(r"^[A-Za-z0-9+/]*$")
_TOKEN_RE = re.compile(r"[A-Za-z0-9._\-+=/]+")
_ALNUM_RE = re.compile(r"[A-Za-z0-9]")


def calculate_entropy(text: str) -> float:
    """Calculate Shannon entropy of a string.

    Higher entropy indicates more randomness, which is characteristic of secrets.
    Typical thresholds:
    - < 3.0: Low entropy (common words, patterns)
    - 3.0-4.0: Medium entropy
    - 4.0-5.0: High entropy (possible secrets)
    - > 5.0: Very high entropy (likely secrets)

    Args:
        text: The string to analyze.

    Returns:
        Shannon entropy value (bits per character).
    """
    if not text:
        return 0.0

    length = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        prob = count / length
        entropy -= prob * math.log2(prob)

    return entropy


def is_likely_secret_key(key: str | None) -> bool:
    """Check whether a variable/key name suggests secret content."""
    if not key:
        return False
    lowered = key.lower()
    return any(keyword in lowered for keyword in SECRET_KEYWORDS)


@dataclass(frozen=True)
class CharsetFilters:
    """Character-set admission rules for candidates.

    Attributes:
        require_alphanumeric: Enforce ``min_alphanumeric_ratio``.
        min_alphanumeric_ratio: Minimum share of [A-Za-z0-9] characters.
        exclude_patterns: Candidates matching any of these are dropped.
    """

    require_alphanumeric: bool = True
    min_alphanumeric_ratio: float = 0.5
    exclude_patterns: tuple[re.Pattern[str], ...] = DEFAULT_EXCLUDE_PATTERNS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CharsetFilters:
        patterns = data.get("exclude_patterns")
        return cls(
            require_alphanumeric=data.get("require_alphanumeric", True),
            min_alphanumeric_ratio=data.get("min_alphanumeric_ratio", 0.5),
            exclude_patterns=(
                tuple(re.compile(p) if isinstance(p, str) else p for p in patterns)
                if patterns is not None
                else DEFAULT_EXCLUDE_PATTERNS
            ),
        )


@dataclass(frozen=True)
class Candidate:
    """A substring proposed by an extractor, before entropy scoring."""

    value: str
    context: str
    line_index: int
    column_start: int
    column_end: int
    key: str | None = None


@dataclass
class EntropyEngine:
    """Statistical detector for secrets with no known signature.

    Example:
        engine = EntropyEngine(threshold=4.5)
        findings = engine.detect(content, ".env")
    """

    threshold: float = 4.0
    min_length: int = 20
    max_length: int = 100
    charset_filters: CharsetFilters = field(default_factory=CharsetFilters)

    def __post_init__(self) -> None:
        if isinstance(self.charset_filters, dict):
            self.charset_filters = CharsetFilters.from_dict(self.charset_filters)
        self._validate(self.threshold, self.min_length, self.max_length)

    @staticmethod
    def _validate(threshold: float, min_length: int, max_length: int) -> None:
        if not 0.0 <= threshold < MAX_ENTROPY:
            raise ConfigurationError(
                f"Entropy threshold must be in [0, {MAX_ENTROPY:g}), got {threshold}"
            )
        if min_length < 1:
            raise ConfigurationError(f"Entropy min_length must be at least 1, got {min_length}")
        if max_length < min_length:
            raise ConfigurationError(
                f"Entropy max_length ({max_length}) must be >= min_length ({min_length})"
            )

    def set_threshold(self, threshold: float) -> None:
        self._validate(threshold, self.min_length, self.max_length)
        self.threshold = threshold

    def set_length_filters(self, min_length: int, max_length: int) -> None:
        self._validate(self.threshold, min_length, max_length)
        self.min_length = min_length
        self.max_length = max_length

    def get_config(self) -> dict[str, Any]:
        return {
            "threshold": self.threshold,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "charset_filters": {
                "require_alphanumeric": self.charset_filters.require_alphanumeric,
                "min_alphanumeric_ratio": self.charset_filters.min_alphanumeric_ratio,
            },
        }

    # -- detection ---------------------------------------------------------

    def detect(self, content: str, file_path: str) -> list[Finding]:
        """Find high-entropy strings in ``content``.

        Args:
            content: Text to scan.
            file_path: Path reported on findings.

        Returns:
            Findings deduplicated on (line, span, match). The same value at a
            different column of the line is a separate finding.
        """
        lines = content.split("\n")
        findings: list[Finding] = []
        seen: set[tuple[int, int, int, str]] = set()

        for candidate in self.extract_candidates(content):
            dedup_key = (candidate.line_index, candidate.column_start, candidate.column_end, candidate.value)
            if dedup_key in seen or not self.passes_filters(candidate.value):
                continue

            entropy = calculate_entropy(candidate.value)
            if entropy < self.threshold:
                continue

            seen.add(dedup_key)
            findings.append(
                Finding(
                    type=FindingType.ENTROPY,
                    category="high-entropy",
                    file_path=file_path,
                    line_number=candidate.line_index + 1,
                    column_start=candidate.column_start,
                    column_end=candidate.column_end,
                    match=candidate.value,
                    confidence=self.calculate_confidence(entropy, candidate),
                    context=get_context(lines, candidate.line_index),
                    description=f"High-Entropy String Detected (entropy: {entropy:.2f})",
                    entropy=entropy,
                    context_type=candidate.context,
                    context_key=candidate.key,
                )
            )

        return findings

    def extract_candidates(self, content: str) -> list[Candidate]:
        """Run every extractor over every line, in extractor order."""
        extractors = (
            self.extract_from_assignments,
            self.extract_from_quoted_strings,
            self.extract_from_environment_vars,
            self.extract_from_base64_like,
            self.extract_from_tokens,
        )
        candidates: list[Candidate] = []
        for line_index, line in enumerate(content.split("\n")):
            for extractor in extractors:
                candidates.extend(extractor(line, line_index))
        return candidates

    def extract_from_assignments(self, line: str, line_index: int) -> list[Candidate]:
        """``key = "value"``, ``key: 'value'`` where the key looks secret."""
        return [
            Candidate(m.group(2), "assignment", line_index, m.start(2), m.end(2), key=m.group(1))
            for m in _ASSIGNMENT_RE.finditer(line)
            if is_likely_secret_key(m.group(1))
        ]

    def extract_from_quoted_strings(self, line: str, line_index: int) -> list[Candidate]:
        return [
            Candidate(m.group(1), "quoted", line_index, m.start(1), m.end(1))
            for m in _QUOTED_RE.finditer(line)
            if m.end(1) > m.start(1)
        ]

    def extract_from_environment_vars(self, line: str, line_index: int) -> list[Candidate]:
        """``export KEY=value``, ``KEY=value``, ``process.env.KEY = value``, ``ENV["KEY"] = value``."""
        return [
            Candidate(m.group(2), "environment", line_index, m.start(2), m.end(2), key=m.group(1))
            for m in _ENVIRONMENT_RE.finditer(line)
            if is_likely_secret_key(m.group(1))
        ]

    def extract_from_base64_like(self, line: str, line_index: int) -> list[Candidate]:
        return [
            Candidate(m.group(0), "base64", line_index, m.start(), m.end())
            for m in _BASE64_RE.finditer(line)
            if self.is_valid_base64_like(m.group(0))
        ]

    def extract_from_tokens(self, line: str, line_index: int) -> list[Candidate]:
        return [
            Candidate(m.group(0), "token", line_index, m.start(), m.end())
            for m in _TOKEN_RE.finditer(line)
        ]

    # -- filters -----------------------------------------------------------

    def passes_length_filter(self, value: str) -> bool:
        return self.min_length <= len(value) <= self.max_length

    def passes_charset_filter(self, value: str) -> bool:
        if any(p.search(value) for p in self.charset_filters.exclude_patterns):
            return False
        if self.charset_filters.require_alphanumeric:
            ratio = len(_ALNUM_RE.findall(value)) / len(value)
            if ratio < self.charset_filters.min_alphanumeric_ratio:
                return False
        return True

    @staticmethod
    def is_common_pattern(value: str) -> bool:
        return any(p.search(value) for p in COMMON_PATTERNS)

    def passes_filters(self, value: str) -> bool:
        """Length window, charset rules and common-pattern exclusions."""
        return (
            self.passes_length_filter(value)
            and self.passes_charset_filter(value)
            and not self.is_common_pattern(value)
        )

    @staticmethod
    def is_valid_base64_like(value: str) -> bool:
        """Base64 alphabet, at most two trailing ``=`` and >90% base64 characters."""
        padding = value.count("=")
        body = value.rstrip("=")
        if padding > 2 or len(body) + padding != len(value) or not body:
            return False
        if not _BASE64_BODY_RE.match(body):
            return False
        return len(body) / len(value) > 0.9

    # -- scoring -----------------------------------------------------------

    def calculate_confidence(self, entropy: float, candidate: Candidate) -> float:
        """Entropy margin plus context boosts, clamped to [0, 1]."""
        confidence = min((entropy - self.threshold) / (MAX_ENTROPY - self.threshold), 1.0)
        confidence += CONTEXT_BOOSTS.get(candidate.context, 0.0)
        if is_likely_secret_key(candidate.key):
            confidence += SECRET_KEY_BOOST
        return max(0.0, min(confidence, 1.0))
