"""
Analyzer Runner

Drives the checkers over a ``Pass`` and collects what they report.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from convlint.config import LintConfig
from convlint.importalias import ImportAliasChecker
from convlint.messagefmt import MessageFormatChecker
from convlint.pysource import build_pass, load_pass
from convlint.reporting import Reporter
from convlint.source import Analyzer, Pass

logger = logging.getLogger(__name__)


def default_analyzers(config: Optional[LintConfig] = None) -> List[Analyzer]:
    config = config or LintConfig()
    return [
        ImportAliasChecker(config.importalias).analyzer,
        MessageFormatChecker(config.messagefmt).analyzer,
    ]


def run_analyzers(pass_: Pass, analyzers: Iterable[Analyzer]) -> Reporter:
    for analyzer in analyzers:
        before = len(pass_.diagnostics)
        analyzer.run(pass_)
        logger.debug("%s: %d diagnostic(s) in %s", analyzer.name, len(pass_.diagnostics) - before, pass_.path)
    return pass_.reporter


def lint_source(text: str, path: str = "<string>", config: Optional[LintConfig] = None) -> Reporter:
    """Run the default analyzers over Python source text. Raises SyntaxError."""
    return run_analyzers(build_pass(text, path), default_analyzers(config))


def lint_file(path: Path, config: Optional[LintConfig] = None) -> Reporter:
    """Like lint_source, but a file that does not parse yields no diagnostics."""
    try:
        pass_ = load_pass(path)
    except SyntaxError as e:
        logger.warning("Skipping %s: %s", path, e)
        return Reporter()
    reporter = run_analyzers(pass_, default_analyzers(config))
    logger.info("Linted %s: %d diagnostic(s)", path, len(reporter.diagnostics))
    return reporter
