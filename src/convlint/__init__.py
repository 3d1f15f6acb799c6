"""
convlint - Naming and Message Convention Lint Rules

Checks that import aliases are derived from their import paths and that
log and flag-help messages follow capitalization and punctuation rules.
"""

__version__ = "0.1.0"
__author__ = "convlint contributors"

from convlint.config import (
    AliasCheckConfig,
    ConfigError,
    LintConfig,
    MessageFormatConfig,
    load_config,
)
from convlint.importalias import ImportAliasChecker
from convlint.messagefmt import CallKind, MessageFormatChecker
from convlint.reporting import Category, Diagnostic, Reporter, SuggestedFix, TextEdit
from convlint.runner import default_analyzers, lint_file, lint_source, run_analyzers

__all__ = [
    # Config
    "AliasCheckConfig",
    "ConfigError",
    "LintConfig",
    "MessageFormatConfig",
    "load_config",
    # Checkers
    "ImportAliasChecker",
    "MessageFormatChecker",
    "CallKind",
    # Reporting
    "Category",
    "Diagnostic",
    "Reporter",
    "SuggestedFix",
    "TextEdit",
    # Runner
    "default_analyzers",
    "lint_file",
    "lint_source",
    "run_analyzers",
]
