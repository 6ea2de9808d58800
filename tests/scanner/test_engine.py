"""Tests for the scan orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from sealcommit.audit import SCAN_COMPLETED, SCAN_FILE_ERROR
from sealcommit.config import SealConfig
from sealcommit.errors import ConfigurationError, PatternCompileError
from sealcommit.scanner.base import FindingType
from sealcommit.scanner.engine import BINARY_EXTENSIONS, SecretScanner, scan_files

from tests.helpers import AWS_KEY, HIGH_ENTROPY_VALUE, RecordingNotifier


class TestScenarios:
    """End-to-end detection through the orchestrator."""

    def test_aws_key_in_source(self, scanner, write_file, aws_key_content):
        """Test one AWS key on line 3 gives exactly one finding."""
        path = write_file("app.js", aws_key_content)

        result = scanner.scan_files([path])

        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.category == "aws-access-key"
        assert finding.line_number == 3
        assert finding.match == AWS_KEY
        assert finding.file_path == str(path)

    def test_high_entropy_assignment(self, scanner, write_file, api_secret_content):
        """Test a random value assigned to apiSecret gives one entropy finding."""
        path = write_file("settings.js", api_secret_content)

        result = scanner.scan_files([path])

        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.type is FindingType.ENTROPY
        assert finding.context_type == "assignment"
        assert finding.match == HIGH_ENTROPY_VALUE
        assert finding.confidence > 0.5

    def test_private_key_block(self, scanner, write_file, pem_content):
        """Test a PEM block gives one multi-line finding on its first line."""
        path = write_file("deploy.yaml", pem_content)

        result = scanner.scan_files([path])

        multiline = [f for f in result.findings if f.is_multiline]
        assert len(multiline) == 1
        assert multiline[0].line_number == 5
        assert multiline[0].category == "private-key"

    def test_concurrent_matches_sequential(self, write_file, tmp_path):
        """Test a bounded pool finds the same findings as a single worker."""
        paths = []
        for i in range(25):
            key = f"AKIA{i:016d}"
            paths.append(write_file(f"src/module_{i:02d}.py", f'KEY_ID = "{key}"\nprint("ok")\n'))

        parallel = SecretScanner(SealConfig(max_concurrency=5)).scan_files(paths)
        sequential = SecretScanner(SealConfig(max_concurrency=1)).scan_files(paths)

        assert parallel.files_scanned == 25
        assert len(parallel.findings) == 25
        assert parallel.findings == sequential.findings

    def test_findings_follow_input_order(self, scanner, write_file):
        first = write_file("b.txt", f"{AWS_KEY}\n")
        second = write_file("a.txt", f"x {AWS_KEY}\n")

        result = scanner.scan_files([first, second])

        assert [f.file_path for f in result.findings] == [str(first), str(second)]


class TestScanFiles:
    """Tests for counters, errors and the empty case."""

    def test_empty_input(self, scanner):
        result = scanner.scan_files([])

        assert result.findings == []
        assert not result.has_secrets
        assert result.files_scanned == 0
        assert result.is_completed

    def test_module_level_scan_files(self, write_file, aws_key_content):
        path = write_file("app.js", aws_key_content)
        result = scan_files([path], {"maxConcurrency": 2})
        assert result.has_secrets

    def test_counts_lines_and_files(self, scanner, write_file):
        a = write_file("a.txt", "one\ntwo\nthree")
        b = write_file("b.txt", "one\n")

        result = scanner.scan_files([a, b])

        assert result.files_scanned == 2
        assert result.total_lines == 5

    def test_missing_file_recorded(self, scanner, notifier, tmp_path, write_file, aws_key_content):
        """Test a missing file is an error entry, not an exception."""
        good = write_file("app.js", aws_key_content)
        missing = tmp_path / "missing.js"

        result = scanner.scan_files([missing, good])

        assert result.files_scanned == 1
        assert len(result.findings) == 1
        assert len(result.errors) == 1
        assert result.errors[0].file_path == str(missing)
        assert "File not found" in result.errors[0].message
        assert len(notifier.of_type(SCAN_FILE_ERROR)) == 1

    def test_directory_recorded_as_error(self, scanner, tmp_path):
        result = scanner.scan_files([tmp_path])
        assert result.files_scanned == 0
        assert "Not a file" in result.errors[0].message

    def test_invalid_utf8_still_scanned(self, scanner, tmp_path):
        path = tmp_path / "mixed.txt"
        path.write_bytes(b"\xff\xfe garbage\n" + f"id: {AWS_KEY}\n".encode())

        result = scanner.scan_files([path])

        assert [f.line_number for f in result.findings] == [2]

    def test_binary_files_skipped(self, scanner, write_file):
        image = write_file("logo.png", f"{AWS_KEY}\n")

        result = scanner.scan_files([image])

        assert result.findings == []
        assert result.files_scanned == 0
        assert result.files_skipped == 1

    def test_completion_event(self, scanner, notifier, write_file, aws_key_content):
        scanner.scan_files([write_file("app.js", aws_key_content)])

        events = notifier.of_type(SCAN_COMPLETED)
        assert len(events) == 1
        assert events[0].payload["findings"] == 1
        assert events[0].payload["files_scanned"] == 1

    def test_deterministic(self, scanner, write_file, aws_key_content, api_secret_content):
        paths = [write_file("a.js", aws_key_content), write_file("b.js", api_secret_content)]
        assert scanner.scan_files(paths).findings == scanner.scan_files(paths).findings


class TestIgnoreRules:
    """Tests for ignore and binary checks."""

    @pytest.mark.parametrize(
        "path",
        [
            "dist/bundle.min.js",
            "package-lock.json",
            "project/node_modules/pkg/index.js",
            "repo/.git/config",
            "logs/server.log",
            "poetry.lock",
        ],
    )
    def test_ignored(self, scanner, path):
        assert scanner.should_ignore_file(path)

    @pytest.mark.parametrize("path", ["src/app.py", ".env", "config/settings.yaml"])
    def test_not_ignored(self, scanner, path):
        assert not scanner.should_ignore_file(path)

    def test_ignored_files_counted_as_skipped(self, scanner, write_file):
        path = write_file("node_modules/pkg/index.js", f"{AWS_KEY}\n")

        result = scanner.scan_files([path])

        assert result.findings == []
        assert result.files_skipped == 1

    def test_custom_ignore_config(self, write_file):
        scanner = SecretScanner(SealConfig.from_dict({"ignore": {"files": ["*.fixture"], "directories": [], "extensions": []}}))
        assert scanner.should_ignore_file("tests/data/keys.fixture")
        assert not scanner.should_ignore_file("node_modules/x.js")

    @pytest.mark.parametrize("name", ["a.PNG", "b.jar", "c.woff2", "d.7z"])
    def test_binary_extensions(self, name):
        assert SecretScanner.is_binary_file(name)

    def test_text_not_binary(self):
        assert not SecretScanner.is_binary_file("README.md")
        assert ".exe" in BINARY_EXTENSIONS


class TestAllowlist:
    """Tests for allowlist filtering through the scanner."""

    def test_literal_allowlist(self, write_file, aws_key_content):
        scanner = SecretScanner(SealConfig(allowlist=[AWS_KEY]))
        result = scanner.scan_files([write_file("app.js", aws_key_content)])
        assert result.findings == []

    def test_regex_allowlist(self, write_file, aws_key_content, api_secret_content):
        scanner = SecretScanner(SealConfig(allowlist=["/^AKIA/"]))
        paths = [write_file("app.js", aws_key_content), write_file("settings.js", api_secret_content)]

        result = scanner.scan_files(paths)

        assert [f.match for f in result.findings] == [HIGH_ENTROPY_VALUE]
        assert scanner.is_allowed(AWS_KEY)


class TestConstruction:
    """Tests for configuration errors and stats."""

    def test_bad_custom_pattern(self):
        with pytest.raises(PatternCompileError):
            SecretScanner(SealConfig.from_dict({"patterns": {"custom": ["[unclosed"]}}))

    def test_bad_entropy_bounds(self):
        with pytest.raises(ConfigurationError):
            SecretScanner({"entropy": {"minLength": 50, "maxLength": 10}})

    def test_disabled_builtin(self, write_file, aws_key_content):
        scanner = SecretScanner(SealConfig.from_dict({"patterns": {"disabled": ["aws-access-key"]}}))
        assert scanner.scan_files([write_file("app.js", aws_key_content)]).findings == []

    def test_default_notifier_logs(self, write_file, aws_key_content, caplog):
        import logging

        with caplog.at_level(logging.INFO, logger="sealcommit.audit"):
            SecretScanner().scan_files([write_file("app.js", aws_key_content)])
        assert "scan.completed" in caplog.text

    def test_notifier_failure_does_not_abort(self, write_file, aws_key_content):
        class Exploding(RecordingNotifier):
            def notify(self, event):
                raise RuntimeError("sink down")

        scanner = SecretScanner(notifier=Exploding())
        assert scanner.scan_files([write_file("app.js", aws_key_content)]).has_secrets

    def test_get_stats(self):
        stats = SecretScanner(SealConfig(max_concurrency=3, allowlist=["x"])).get_stats()

        assert stats["max_concurrency"] == 3
        assert stats["pattern_engine"]["custom_patterns"] == 0
        assert stats["entropy_engine"]["threshold"] == 4.0
        assert stats["allowlist_entries"] == 1

    def test_accepts_path_objects(self, scanner, write_file, aws_key_content):
        path = write_file("app.js", aws_key_content)
        assert scanner.scan_files([Path(path)]).files_scanned == 1


class TestDirectoryMatching:
    """Tests for directory ignore entries."""

    def test_substring_by_default(self, scanner):
        """Test an entry matches anywhere in the normalized path."""
        assert scanner.should_ignore_file("dist/app.js")
        assert scanner.should_ignore_file("distiller/app.js")
        assert scanner.should_ignore_file("./src/../dist/app.js")

    def test_whole_directories_opt_in(self):
        scanner = SecretScanner(
            SealConfig.from_dict({"ignore": {"directories": ["dist"], "matchWholeDirectories": True}})
        )
        assert scanner.should_ignore_file("dist/app.js")
        assert not scanner.should_ignore_file("distiller/app.js")

    def test_nested_entry(self):
        scanner = SecretScanner(
            SealConfig.from_dict(
                {"ignore": {"directories": ["vendor/cache"], "matchWholeDirectories": True}}
            )
        )
        assert scanner.should_ignore_file("repo/vendor/cache/blob.txt")
        assert not scanner.should_ignore_file("repo/vendor/src/blob.txt")
