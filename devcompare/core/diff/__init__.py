"""
Diff module for text comparison.

Provides:
- Line splitting and tokenizing
- A generic edit-script engine shared by lines and tokens
- The text diff engine that composes line and intraline results
- Statistics and export formatters
"""

from devcompare.core.diff.edit_script import (
    EditScriptEngine,
    diff_sequences,
    edit_distance,
    iter_change_blocks,
    lcs_length,
)
from devcompare.core.diff.formatters import (
    SideBySideFormatter,
    UnifiedDiffFormatter,
    to_dict,
)
from devcompare.core.diff.line_splitter import (
    detect_line_ending,
    normalize_line_endings,
    split_lines,
)
from devcompare.core.diff.statistics import (
    analyze_text,
    summarize,
)
from devcompare.core.diff.text_diff import (
    CompareOptions,
    TextDiffEngine,
    compose,
)
from devcompare.core.diff.tokenizer import tokenize

__all__ = [
    # Edit scripts
    'EditScriptEngine',
    'diff_sequences',
    'edit_distance',
    'iter_change_blocks',
    'lcs_length',
    # Text diff
    'CompareOptions',
    'TextDiffEngine',
    'compose',
    # Splitting
    'detect_line_ending',
    'normalize_line_endings',
    'split_lines',
    'tokenize',
    # Statistics
    'analyze_text',
    'summarize',
    # Export
    'SideBySideFormatter',
    'UnifiedDiffFormatter',
    'to_dict',
]
