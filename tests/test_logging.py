"""Tests for logging setup."""

import pytest

from polydb.core.logging import get_logger, redact_secrets, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    def test_setup_without_errors(self):
        setup_logging()

    def test_setup_verbose(self):
        setup_logging(verbose=True)


@pytest.mark.unit
class TestGetLogger:
    def test_get_logger_without_name(self):
        setup_logging()
        assert get_logger() is not None

    def test_get_logger_with_name(self):
        setup_logging()
        assert get_logger("test_module") is not None


@pytest.mark.unit
class TestLogOutput:
    def test_log_to_stderr(self, capsys):
        """Log output goes to stderr, not stdout."""
        setup_logging(verbose=True)
        get_logger().info("test message")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "test message" in captured.err

    def test_debug_suppressed_without_verbose(self, capsys):
        setup_logging(verbose=False)
        get_logger().debug("hidden message")

        captured = capsys.readouterr()
        assert "hidden message" not in captured.err


@pytest.mark.unit
class TestRedactSecrets:
    def test_password_field_masked(self):
        event = redact_secrets(None, "info", {"event": "x", "password": "hunter2"})
        assert event["password"] == "***"

    def test_empty_password_left_alone(self):
        assert redact_secrets(None, "info", {"password": None})["password"] is None

    def test_url_credentials_masked(self):
        event = redact_secrets(
            None, "debug", {"event": "connecting", "target": "mysql://app:s3cret@db:3306/x"}
        )
        assert event["target"] == "mysql://app:***@db:3306/x"

    def test_url_without_password_unchanged(self):
        event = redact_secrets(None, "debug", {"target": "redis://db:6379/0"})
        assert event["target"] == "redis://db:6379/0"

    def test_secret_never_reaches_stderr(self, capsys):
        setup_logging(verbose=True)
        get_logger().info("connecting", dsn="postgresql://u:topsecret@h/db")

        captured = capsys.readouterr()
        assert "connecting" in captured.err
        assert "topsecret" not in captured.err
