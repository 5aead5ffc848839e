"""Severity classification rules and their precedence."""

import pytest

from logview.services.logs.classifier import (
    RULE_GROUPS,
    Severity,
    classify,
    classify_line,
)
from logview.services.logs.parser import parse_line


class TestErrorRules:
    """error group"""

    @pytest.mark.parametrize(
        "message",
        [
            "ERROR: connection refused",
            "err: disk full",
            "request failed with status 500",
            "Unhandled exception in worker",
            "uncaught error: boom",
            "Traceback follows. Stack trace:",
            "    at Object.<anonymous> (/app/index.js:10:5)",
            "[FATAL] cannot bind",
            "[error] something",
            "process crash detected",
            "critical section corrupted",
        ],
    )
    def test_error_markers(self, message):
        assert classify(message) is Severity.ERROR

    def test_error_wins_over_success(self):
        assert classify("Build failed: deployment was not completed successfully") is Severity.ERROR

    def test_failed_to_complete_successfully(self):
        assert classify("failed to complete successfully") is Severity.ERROR


class TestWarningRules:
    """warning group"""

    @pytest.mark.parametrize(
        "message",
        [
            "WARNING: low memory",
            "warn: retry budget nearly used",
            "[WARN] slow response",
            "[attention] cert expires soon",
            "this API is deprecated",
            "Notice: maintenance tonight",
            "⚠ config missing",
        ],
    )
    def test_warning_markers(self, message):
        assert classify(message) is Severity.WARNING

    def test_warning_wins_over_success(self):
        assert classify("warning: deployed with obsolete flags, ready") is Severity.WARNING


class TestSuccessRules:
    """success group"""

    @pytest.mark.parametrize(
        "message",
        [
            "Listening on port 3000",
            "Server running at 8080",
            "Successfully started worker",
            "[OK] migrations applied",
            "Connected to database",
            "✓ build",
            "Done!",
            "ready",
        ],
    )
    def test_success_markers(self, message):
        assert classify(message) is Severity.SUCCESS


class TestInfoRules:
    """info group"""

    @pytest.mark.parametrize(
        "message",
        [
            "INFO: retrying",
            "[info] cache warmed",
            "status: healthy",
            "Processing batch 4",
            "Cloning repository",
            "Downloading dependencies",
        ],
    )
    def test_info_markers(self, message):
        assert classify(message) is Severity.INFO


class TestDefaults:
    """debug fallback and purity"""

    def test_unmatched_message_is_debug(self):
        assert classify("GET /favicon.ico 204") is Severity.DEBUG

    def test_empty_message_is_debug(self):
        assert classify("") is Severity.DEBUG

    def test_classification_is_deterministic(self):
        message = "Build failed: deployment was not completed successfully"
        assert classify(message) is classify(message)

    def test_color_codes_do_not_hide_tokens(self):
        assert classify("\x1b[31mERROR\x1b[0m: disk full") is Severity.ERROR

    def test_rule_groups_are_ordered_by_precedence(self):
        assert [group.severity for group in RULE_GROUPS] == [
            Severity.ERROR,
            Severity.WARNING,
            Severity.SUCCESS,
            Severity.INFO,
        ]

    def test_classify_line_keeps_parsed_line(self):
        parsed = parse_line("2024-01-05T10:00:00Z Listening on port 3000")
        classified = classify_line(parsed)
        assert classified.parsed is parsed
        assert classified.severity is Severity.SUCCESS
