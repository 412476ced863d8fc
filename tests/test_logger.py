"""
Logging Subsystem Test Suite

Coverage:
  - Singleton LogManager and get_logger
  - Format validation fallbacks
  - TerminalSafeFormatter sanitization
  - Workflow highlighter spans
"""

import logging
import os
import sys

from rich.text import Text

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govflow.constants import LOG_DATE_FORMAT, LOG_FORMAT
from govflow.logger import (
    GovflowLogHighlighter,
    LogManager,
    TerminalSafeFormatter,
    get_logger,
)


class TestLogManager:

    def test_singleton(self):
        assert LogManager() is LogManager()

    def test_configured_on_import(self):
        assert LogManager().is_configured

    def test_existing_root_handlers_kept(self, monkeypatch):
        manager = LogManager()
        root = logging.getLogger()
        host_handler = logging.NullHandler()
        monkeypatch.setattr(root, "handlers", [host_handler])
        monkeypatch.setattr(root, "level", logging.ERROR)
        monkeypatch.setattr(manager, "_configured", False)

        manager.configure(log_level="DEBUG")

        assert root.handlers == [host_handler]
        assert root.level == logging.ERROR
        assert manager.is_configured

    def test_get_logger(self):
        log = get_logger("govflow.governance.workflow")
        assert isinstance(log, logging.Logger)
        assert log.name == "govflow.governance.workflow"

    def test_valid_log_format_kept(self):
        fmt = "%(levelname)s %(message)s"
        assert LogManager.validate_log_format(fmt) == fmt

    def test_malformed_log_format_falls_back(self):
        assert LogManager.validate_log_format("(message)s") == str(LOG_FORMAT.default())

    def test_empty_log_format_falls_back(self):
        assert LogManager.validate_log_format("") == str(LOG_FORMAT.default())

    def test_date_format(self):
        assert LogManager.validate_date_format("%Y-%m-%d") == "%Y-%m-%d"
        assert LogManager.validate_date_format("today") == str(LOG_DATE_FORMAT.default())


class TestTerminalSafeFormatter:

    def test_strips_ansi_and_control(self):
        assert TerminalSafeFormatter.sanitize("\x1b[31mred\x1b[0m\r\x07") == "red"

    def test_keeps_newline_and_tab(self):
        assert TerminalSafeFormatter.sanitize("a\tb\nc") == "a\tb\nc"

    def test_format_sanitizes_message(self):
        formatter = TerminalSafeFormatter(fmt="%(message)s")
        record = logging.LogRecord(
            name="t", level=logging.INFO, pathname="", lineno=0,
            msg="comment by \x1b[2Jmallory", args=(), exc_info=None,
        )
        assert formatter.format(record) == "comment by mallory"


class TestHighlighter:

    def _styles(self, message):
        text = Text(message)
        GovflowLogHighlighter().highlight(text)
        return {str(span.style) for span in text.spans}

    def test_stage_outcomes(self):
        styles = self._styles("[ProposalWorkflow] 'X': VOTING → EXECUTED | Approved (support=60.00%)")
        assert "govflow.stage_open" in styles
        assert "govflow.stage_executed" in styles
        assert "govflow.arrow" in styles
        assert "govflow.percent" in styles
        assert "govflow.tag" in styles

    def test_rejected(self):
        assert "govflow.stage_rejected" in self._styles("TEMPERATURE_CHECK → REJECTED")
