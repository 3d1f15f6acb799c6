"""
Message Format Checker

Log messages start lowercase and have no trailing period:

    log.Error("something failed")

Flag and command help starts uppercase and ends with a period:

    kingpin.Flag("verbose", "Verbose mode.")

All-uppercase first words (initialisms) and configured mixed-case terms
such as ``xDS`` are never flagged for case.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from convlint.config import MessageFormatConfig
from convlint.reporting import Category, Diagnostic
from convlint.source import Analyzer, CallExpr, Func, Ident, Node, Pass, Selector, StringLit, Symbol

logger = logging.getLogger(__name__)

NAME = "messagefmt"
DOC = "Check message formatting rules."


class CallKind(Enum):
    NONE = "none"
    LOGGING = "logging"
    FLAG_HELP = "flag-help"


def build_call_table(config: MessageFormatConfig) -> Dict[Tuple[str, str], CallKind]:
    """Map (declaring package, function name) to the kind of call."""
    table: Dict[Tuple[str, str], CallKind] = {}
    for pkg in config.log_packages:
        for name in config.log_names:
            for suffix in config.log_suffixes:
                table[(pkg, name + suffix)] = CallKind.LOGGING
    for pkg in config.flag_packages:
        for name in config.flag_names:
            table[(pkg, name)] = CallKind.FLAG_HELP
    return table


def func_for_call(call: CallExpr, uses: Dict[Ident, Symbol]) -> Optional[Func]:
    """Resolve the function a ``pkg.Func(...)`` call targets, if it is known."""
    fn = call.func
    if not isinstance(fn, Selector) or fn.attr is None:
        return None
    obj = uses.get(fn.attr)
    return obj if isinstance(obj, Func) else None


def string_literal_arg(call: CallExpr, n: int) -> Optional[StringLit]:
    if len(call.args) <= n:
        return None
    arg = call.args[n]
    return arg if isinstance(arg, StringLit) else None


def _first_word(lit: StringLit) -> Optional[str]:
    words = lit.text.split()
    return words[0] if words else None


def _case_exempt(first: str, exceptions: frozenset) -> bool:
    # an all-uppercase first word is an initialism
    return first == first.upper() or first in exceptions


class MessageFormatChecker:
    """Reports at most one diagnostic per call."""

    def __init__(self, config: Optional[MessageFormatConfig] = None):
        self.config = config or MessageFormatConfig()
        self.calls = build_call_table(self.config)

    @property
    def analyzer(self) -> Analyzer:
        return Analyzer(name=NAME, doc=DOC, run=self.run)

    def run(self, pass_: Pass) -> None:
        def visit(node: Node) -> None:
            diagnostic = self.check(node, pass_.uses)
            if diagnostic is not None:
                pass_.report(diagnostic)

        pass_.preorder((CallExpr,), visit)

    def classify(self, fun: Optional[Func]) -> CallKind:
        # builtins have no package
        if fun is None or fun.package is None:
            return CallKind.NONE
        return self.calls.get((fun.package, fun.name), CallKind.NONE)

    def check(self, call: CallExpr, uses: Dict[Ident, Symbol]) -> Optional[Diagnostic]:
        kind = self.classify(func_for_call(call, uses))
        if kind is CallKind.NONE:
            return None

        arg_n = 0 if kind is CallKind.LOGGING else 1
        lit = string_literal_arg(call, arg_n)
        if lit is None:
            logger.debug("No string literal at argument %d of %s call at %s", arg_n, kind.value, call.pos)
            return None

        if kind is CallKind.LOGGING:
            return self.check_initial_lower(lit) or self.check_ends_without_period(lit)
        return self.check_initial_upper(lit) or self.check_ends_with_period(lit)

    def check_initial_lower(self, lit: StringLit) -> Optional[Diagnostic]:
        first = _first_word(lit)
        if first is None or _case_exempt(first, self.config.exceptions):
            return None
        if first[0].isupper():
            return _report(lit, Category.LOWERCASE_EXPECTED, f"message starts with uppercase: {lit.raw}")
        return None

    def check_initial_upper(self, lit: StringLit) -> Optional[Diagnostic]:
        first = _first_word(lit)
        if first is None or _case_exempt(first, self.config.exceptions):
            return None
        if first[0].islower():
            return _report(lit, Category.UPPERCASE_EXPECTED, f"message starts with lowercase: {lit.raw}")
        return None

    def check_ends_without_period(self, lit: StringLit) -> Optional[Diagnostic]:
        if lit.text.endswith("."):
            return _report(lit, Category.UNEXPECTED_PERIOD, f"message must not end with a period: {lit.raw}")
        return None

    def check_ends_with_period(self, lit: StringLit) -> Optional[Diagnostic]:
        if not lit.text.endswith("."):
            return _report(lit, Category.MISSING_PERIOD, f"message must end with a period: {lit.raw}")
        return None


def _report(lit: StringLit, category: Category, message: str) -> Diagnostic:
    return Diagnostic(analyzer=NAME, category=category, line=lit.pos.line, col=lit.pos.col, message=message)
