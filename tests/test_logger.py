"""Tests for log_prefix, USE_EMOJI_LOGS and log redaction."""
import os
import sys
import unittest
from unittest.mock import patch

from loguru import logger


class TestLogPrefix(unittest.TestCase):
    """Test cases for the log_prefix helper function."""

    def test_emoji_enabled_by_default(self):
        """Emoji logs should be enabled when USE_EMOJI_LOGS is not set."""
        with patch.dict(os.environ, {}, clear=True):
            from tfpipe.utils.logger import log_prefix, use_emoji_logs
            self.assertTrue(use_emoji_logs())
            self.assertEqual(log_prefix("▶️"), "▶️")

    def test_emoji_disabled_zero(self):
        """Emoji logs should be disabled when USE_EMOJI_LOGS=0."""
        with patch.dict(os.environ, {"USE_EMOJI_LOGS": "0"}):
            from tfpipe.utils.logger import log_prefix, use_emoji_logs
            self.assertFalse(use_emoji_logs())
            self.assertEqual(log_prefix("▶️"), "[START]")
            self.assertEqual(log_prefix("⏭️"), "[SKIP]")
            self.assertEqual(log_prefix("⚠️"), "[WARN]")
            self.assertEqual(log_prefix("✅"), "[OK]")
            self.assertEqual(log_prefix("❌"), "[ERROR]")
            self.assertEqual(log_prefix("🛑"), "[CANCEL]")
            self.assertEqual(log_prefix("📦"), "[ARTIFACT]")
            self.assertEqual(log_prefix("💬"), "[COMMENT]")
            self.assertEqual(log_prefix("🧹"), "[CLEANUP]")

    def test_emoji_disabled_case_insensitive(self):
        """USE_EMOJI_LOGS should be case-insensitive."""
        with patch.dict(os.environ, {"USE_EMOJI_LOGS": "FALSE"}):
            from tfpipe.utils.logger import use_emoji_logs
            self.assertFalse(use_emoji_logs())

    def test_unknown_emoji_returns_empty_when_disabled(self):
        """Unknown emojis should return empty string when disabled."""
        with patch.dict(os.environ, {"USE_EMOJI_LOGS": "off"}):
            from tfpipe.utils.logger import log_prefix
            self.assertEqual(log_prefix("🎉"), "")


class TestSetupLogger:
    """File sink and redaction patcher."""

    def teardown_method(self):
        logger.remove()
        logger.configure(patcher=lambda record: None)
        logger.add(sys.stderr)

    def test_file_sink_redacts_secrets(self, tmp_path):
        from tfpipe.utils.logger import get_session_logger, setup_logger
        from tfpipe.utils.security import register_secrets

        log_file = tmp_path / "tfpipe.log"
        register_secrets(["s3cr3t-value"])
        setup_logger(session_id="run-1", log_file=str(log_file))

        get_session_logger("run-1").info("exporting s3cr3t-value and --token abc")
        logger.complete()

        content = log_file.read_text()
        assert "run-1" in content
        assert "s3cr3t-value" not in content
        assert "--token [REDACTED]" in content

    def test_redaction_filter_extra(self):
        from tfpipe.utils.logger import redaction_filter

        record = {"message": "--password=abc", "extra": {"args": ["--token", "--token xyz"]}}
        redaction_filter(record)

        assert record["message"] == "--password=[REDACTED]"
        assert record["extra"]["args"] == ["--token", "--token [REDACTED]"]
