"""
govflow Logging System
======================

A unified, thread-safe logging utility for govflow. This module integrates with
the standard Python `logging` library and the `rich` library to provide structured,
safe, and visually distinct logging outputs.

Usage:
    >>> from govflow.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Workflow initialized")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_TO_FILE,
)


# Define log file location relative to the project root
PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "govflow.log"


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    This class ensures that the logging subsystem is initialized exactly once.
    It handles the setup of the 'Rich' console handler and, when enabled, a
    rotating file handler for persistent storage.

    Attributes:
        _instance (LogManager): The singleton instance.
        _lock (threading.Lock): Thread lock for atomic initialization.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance


    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates the syntax of a logging format string.

        Checks that every `(name)x` specifier is preceded by '%' and formats a
        dummy record to catch runtime errors.

        Args:
            log_format (str): The logging format string.

        Returns:
            str: The validated format string, or the default `LOG_FORMAT` if validation fails.
        """
        try:
            if not log_format:
                return str(LOG_FORMAT.default())

            log_format = str(log_format)

            format_specifier_pattern = r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]"
            paren_pattern = re.compile(format_specifier_pattern)

            for match in paren_pattern.finditer(log_format):
                start_pos = match.start()
                if start_pos == 0 or log_format[start_pos - 1] != "%":
                    raise ValueError("Malformed format specifier.")

            formatter = logging.Formatter(fmt=log_format)
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatted_output = formatter.format(record)

            if re.search(format_specifier_pattern, formatted_output):
                raise ValueError("Format specifiers not properly processed.")

            return log_format
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime(str(LOG_DATE_FORMAT.default()))} - govflow.logger - "
                f"Validation Error: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())


    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """
        Validates a date format string against standard strftime directives.

        Args:
            date_format (str): The date format string (e.g., "%Y-%m-%d").

        Returns:
            str: The validated date format string, or default if validation fails.
        """
        if not date_format:
            return str(LOG_DATE_FORMAT.default())

        date_format = str(date_format)

        # Only strftime directives and plain separators are accepted
        date_format_pattern = re.compile(
            rf"^(?=.*%(?!%)(?:[EO])?(?:[-_0^#])*(?:[A-DF-HIM-NPR-VW-Za-hj-lm-npr-uw-z]))"
            rf"(?:%%|%(?:[EO])?(?:[-_0^#])*(?:[A-DF-HIM-NPR-VW-Za-hj-lm-npr-uw-z])|[0-9 \t:\-\/\.,TZ+])+$"
        )

        if not date_format_pattern.match(date_format):
            print(
                f"{time.strftime(str(LOG_DATE_FORMAT.default()))} - govflow.logger - "
                f"Invalid date format. Using default.",
                file=sys.stderr,
            )
            return str(LOG_DATE_FORMAT.default())

        return date_format


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Configures the root logger with console and file handlers.

        When the root logger already has handlers (an embedding application
        configured logging first) they are left untouched and nothing is added.

        Args:
            log_level (Optional[str]): Logging level (DEBUG, INFO, etc.). Defaults to env var.
            log_file (Optional[Path]): Path to log file. Defaults to `logs/govflow.log`.
            console_output (bool): Enable stdout logging. Defaults to True.
            file_output (Optional[bool]): Enable rotating file logging. Defaults to `LOG_TO_FILE`.
        """
        with self._lock:
            if self._configured:
                return

            level_str = log_level or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            root_logger = logging.getLogger()
            if root_logger.handlers:
                # Host application already owns the root logger
                self._configured = True
                return
            root_logger.setLevel(numeric_level)

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = self.validate_date_format(LOG_DATE_FORMAT)

            # UTC keeps timestamps comparable with workflow epoch times
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    govflow_theme = Theme(
                        {
                            "govflow.arrow":            "bold yellow",
                            "govflow.level_critical":   "bold red reverse",
                            "govflow.level_debug":      "bold dim",
                            "govflow.level_error":      "bold red",
                            "govflow.level_info":       "bold green",
                            "govflow.level_warning":    "bold yellow",
                            "govflow.logger_name":      "magenta",
                            "govflow.percent":          "bold cyan",
                            "govflow.stage_open":       "bold blue",
                            "govflow.stage_executed":   "bold green",
                            "govflow.stage_rejected":   "bold red",
                            "govflow.tag":              "bold magenta",
                            "govflow.timestamp":        "bold cyan",
                        }
                    )

                    console = Console(theme=govflow_theme, highlight=False)

                    rich_handler = RichHandler(
                        console=console,
                        highlighter=GovflowLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                    rich_handler.setLevel(numeric_level)
                    rich_handler.setFormatter(formatter)
                    root_logger.addHandler(rich_handler)
                else:
                    console_handler = logging.StreamHandler(sys.stdout)
                    console_handler.setLevel(numeric_level)
                    console_handler.setFormatter(formatter)
                    root_logger.addHandler(console_handler)

            if file_output is None:
                file_output = bool(LOG_TO_FILE)

            if file_output:
                log_file_path = log_file or LOG_FILE_PATH
                log_file_path.parent.mkdir(parents=True, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True


    def get_logger(self, name: str) -> logging.Logger:
        """
        Retrieves a configured logger instance for a specific module.

        Args:
            name (str): The name of the logger (typically `__name__`).

        Returns:
            logging.Logger: A configured standard Python logger.
        """
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        """Returns True if the logging system has been successfully configured."""
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter class that sanitizes log output.

    Proposal titles, comments and voter identifiers come from outside the
    engine, so ANSI escape sequences and non-printable control characters
    are stripped before anything reaches a terminal or log file (CWE-117).
    """

    # Matches ANSI CSI sequences (colors, cursor moves) and single ESC chars
    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Matches control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")


    @classmethod
    def sanitize(cls, text: str) -> str:
        """
        Removes potentially dangerous characters from the provided text.

        Args:
            text (str): The raw log message.

        Returns:
            str: The sanitized message safe for terminal output.
        """
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class GovflowLogHighlighter(RegexHighlighter):
    """
    Custom Rich Highlighter for workflow logs.

    Colors stage names by outcome, transition arrows, percentages and
    bracketed tags such as ``[ProposalWorkflow]``.
    """

    base_style = "govflow."
    highlights = [
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<percent>\b\d+(?:\.\d+)?%)",
        r"(?P<stage_open>\b(DRAFT|TEMPERATURE_CHECK|DISCUSSION|FINAL_PROPOSAL|VOTING)\b)",
        r"(?P<stage_executed>\bEXECUTED\b)",
        r"(?P<stage_rejected>\bREJECTED\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.
    Delegates to the Singleton LogManager, ensuring configuration is applied.

    Args:
        name (str): The name of the module requesting the logger.

    Returns:
        logging.Logger: The configured logger instance.
    """
    return _manager.get_logger(name)

# Auto-configure on import to ensure immediate availability
_manager.configure()
