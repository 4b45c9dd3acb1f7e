"""
Command line entry point for DevCompare.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading and command line overrides
- Running a comparison and printing the report

Exit codes follow diff(1): 0 when the inputs are identical, 1 when
they differ, 2 on trouble.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, List, TextIO

from devcompare.core.diff.formatters import SideBySideFormatter, UnifiedDiffFormatter, to_dict
from devcompare.core.diff.text_diff import TextDiffEngine
from devcompare.core.models import DiffResult
from devcompare.services.file_io import FileIOService
from devcompare.services.settings import (
    ApplicationSettings,
    ComparisonSettings,
    OutputFormat,
    SettingsManager,
)


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "devcompare"
APP_VERSION = "1.0.0"

EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, stream: Optional[TextIO] = None):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Console logs go to stderr so they never mix with the report on
    stdout.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Command Line Parsing
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    old_path: str = ""
    new_path: str = ""
    ignore_case: bool = False
    ignore_whitespace: bool = False
    no_intraline: bool = False
    max_size: Optional[int] = None
    context: Optional[int] = None
    output_format: Optional[OutputFormat] = None
    log_level: Optional[str] = None
    log_file: Optional[Path] = None
    config_file: Optional[Path] = None


def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Compare two text files line by line, with word-level detail",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s old.txt new.txt                   Unified diff
  %(prog)s -i -w old.txt new.txt             Ignore case and whitespace
  %(prog)s --format json old.txt new.txt     Machine-readable result
        """
    )

    parser.add_argument('old', help='Original file')
    parser.add_argument('new', help='Modified file')

    # Comparison options
    parser.add_argument(
        '-i', '--ignore-case',
        action='store_true',
        help='Treat lines differing only in letter case as equal'
    )
    parser.add_argument(
        '-w', '--ignore-whitespace',
        action='store_true',
        help='Treat lines differing only in whitespace as equal'
    )
    parser.add_argument(
        '--no-intraline',
        action='store_true',
        help='Skip word-level comparison of replaced lines'
    )
    parser.add_argument(
        '--max-size',
        type=int,
        metavar='BYTES',
        help='Refuse inputs larger than this many bytes'
    )

    # Output options
    parser.add_argument(
        '-U', '--context',
        type=int,
        metavar='N',
        help='Lines of context in unified output'
    )
    parser.add_argument(
        '--format',
        choices=['unified', 'side-by-side', 'summary', 'json'],
        default=None,
        help='Report format'
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Configuration file path'
    )

    # Logging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Log level'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    parsed = parser.parse_args(args)

    if parsed.context is not None and parsed.context < 0:
        parser.error("--context must not be negative")
    if parsed.max_size is not None and parsed.max_size <= 0:
        parser.error("--max-size must be positive")

    result = CommandLineArgs()
    result.old_path = parsed.old
    result.new_path = parsed.new
    result.ignore_case = parsed.ignore_case
    result.ignore_whitespace = parsed.ignore_whitespace
    result.no_intraline = parsed.no_intraline
    result.max_size = parsed.max_size
    result.context = parsed.context
    result.log_level = parsed.log_level
    result.log_file = Path(parsed.log_file) if parsed.log_file else None
    result.config_file = Path(parsed.config) if parsed.config else None

    if parsed.format:
        result.output_format = OutputFormat.from_string(parsed.format)

    return result


# =============================================================================
# Settings
# =============================================================================

def setup_settings(args: CommandLineArgs) -> ApplicationSettings:
    """Load settings and apply command line overrides."""
    manager = SettingsManager(args.config_file)
    settings = manager.settings
    comparison = settings.comparison

    overrides = {}
    if args.ignore_case:
        overrides['ignore_case'] = True
    if args.ignore_whitespace:
        overrides['ignore_whitespace'] = True
    if args.no_intraline:
        overrides['intraline'] = False
    if args.max_size is not None:
        overrides['max_comparable_size'] = args.max_size
    if args.context is not None:
        overrides['context_lines'] = args.context
    if args.output_format is not None:
        overrides['output_format'] = args.output_format

    settings.comparison = replace(comparison, **overrides)
    return settings


# =============================================================================
# Reporting
# =============================================================================

def render_report(
    result: DiffResult,
    comparison: ComparisonSettings,
    old_label: str,
    new_label: str
) -> list[str]:
    """Render a diff result in the configured output format."""
    output_format = comparison.output_format

    if output_format is OutputFormat.JSON:
        return [json.dumps(to_dict(result), indent=2, ensure_ascii=False)]

    if output_format is OutputFormat.SUMMARY:
        return _summary_lines(result, old_label, new_label)

    if output_format is OutputFormat.SIDE_BY_SIDE:
        formatter = SideBySideFormatter(tab_size=comparison.tab_size)
        return list(formatter.format_text(result))

    formatter = UnifiedDiffFormatter(context_lines=comparison.context_lines)
    return list(formatter.format(result, old_label, new_label))


def _minutes(value: Optional[float]) -> str:
    return f"{value:.1f} min" if value is not None else "-"


def _summary_lines(result: DiffResult, old_label: str, new_label: str) -> list[str]:
    stats = result.statistics
    if result.is_identical:
        verdict = "identical"
    else:
        verdict = f"{stats} ({stats.replace_groups} replaced blocks)"

    old_stats, new_stats = result.old_text_stats, result.new_text_stats
    lines = [
        f"{old_label} vs {new_label}: {verdict}",
        f"  lines:   {stats.total_lines_old} -> {stats.total_lines_new}",
        f"  words:   {old_stats.words} -> {new_stats.words} "
        f"(+{stats.tokens_added} -{stats.tokens_removed} tokens changed)",
        f"  bytes:   {old_stats.bytes} -> {new_stats.bytes}",
        f"  reading: {_minutes(old_stats.reading_minutes)} -> {_minutes(new_stats.reading_minutes)}",
        f"  similarity: {stats.similarity_ratio:.1%}",
    ]
    if result.old_line_ending is not result.new_line_ending:
        lines.append(
            f"  line endings: {result.old_line_ending.name} -> {result.new_line_ending.name}"
        )
    if result.is_binary:
        lines.append("  note: inputs contain NUL bytes")
    return lines


# =============================================================================
# Main Entry Point
# =============================================================================

def run_comparison(args: CommandLineArgs, settings: ApplicationSettings) -> int:
    """Compare the two files named on the command line and print the report."""
    options = settings.to_options()
    file_service = FileIOService(max_text_size=options.max_comparable_size)

    texts = []
    for path in (args.old_path, args.new_path):
        read_result = file_service.read_text(path)
        if not read_result.success:
            logging.error(f"main - Cannot read {path}: {read_result.error}")
            print(f"{APP_NAME}: {read_result.error}", file=sys.stderr)
            return EXIT_ERROR
        content = read_result.content
        logging.info(
            f"main - Read {path}: {content.line_count} lines, {content.encoding}"
            f"{' with BOM' if content.bom else ''}"
        )
        texts.append(content.content)

    outcome = TextDiffEngine(options).compare(texts[0], texts[1])
    if not outcome.success:
        print(f"{APP_NAME}: {outcome.error}", file=sys.stderr)
        return EXIT_ERROR

    result = outcome.result
    for line in render_report(result, settings.comparison, args.old_path, args.new_path):
        print(line)

    return EXIT_IDENTICAL if result.is_identical else EXIT_DIFFERENT


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Exit code (0 identical, 1 different, 2 error)
    """
    try:
        args = parse_arguments(argv)
    except SystemExit as e:
        # argparse exits with 2 on usage errors and 0 for --help/--version
        return e.code if isinstance(e.code, int) else EXIT_ERROR

    settings = setup_settings(args)

    level = args.log_level or settings.logging.level
    log_file = args.log_file or (Path(settings.logging.log_file) if settings.logging.log_file else None)
    logger = setup_logging(level, log_file)
    logger.debug(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        return run_comparison(args, settings)
    except (TypeError, ValueError) as e:
        # Invalid values from the configuration file
        logger.error(f"main - Invalid configuration: {e}")
        print(f"{APP_NAME}: invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
