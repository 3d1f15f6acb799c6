"""
Tests for the message format checker.
"""

import pytest

from convlint.config import KINGPIN_PACKAGE, LOGRUS_PACKAGE, MessageFormatConfig
from convlint.messagefmt import (
    CallKind,
    MessageFormatChecker,
    build_call_table,
    func_for_call,
    string_literal_arg,
)
from convlint.reporting import Category
from convlint.source import CallExpr, Func, Ident, Pass, Position


class TestClassification:
    """Call family lookup by (package, name)."""

    @pytest.mark.parametrize("name", [
        "Debug", "Error", "Fatal", "Panic", "Print", "Info", "Trace", "Warn", "Warning",
        "Errorf", "Infoln", "Warningf", "Println",
    ])
    def test_logging_names(self, name):
        """Logging names with suffixes are logging calls."""
        checker = MessageFormatChecker()
        assert checker.classify(Func(name, LOGRUS_PACKAGE)) is CallKind.LOGGING

    @pytest.mark.parametrize("name", ["Errors", "WithField", "error", "Infofln"])
    def test_other_logrus_names(self, name):
        """Other names in the logging package are ignored."""
        assert MessageFormatChecker().classify(Func(name, LOGRUS_PACKAGE)) is CallKind.NONE

    def test_flag_names(self):
        """Flag and Command are help calls."""
        checker = MessageFormatChecker()
        assert checker.classify(Func("Flag", KINGPIN_PACKAGE)) is CallKind.FLAG_HELP
        assert checker.classify(Func("Command", KINGPIN_PACKAGE)) is CallKind.FLAG_HELP

    def test_flag_names_take_no_suffix(self):
        """Help names do not take logging suffixes."""
        assert MessageFormatChecker().classify(Func("Flagf", KINGPIN_PACKAGE)) is CallKind.NONE

    def test_package_must_match(self):
        """The declaring package must match."""
        checker = MessageFormatChecker()
        assert checker.classify(Func("Error", "fmt")) is CallKind.NONE
        assert checker.classify(Func("Flag", LOGRUS_PACKAGE)) is CallKind.NONE

    def test_builtin_and_unresolved(self):
        """Calls without a package are ignored."""
        checker = MessageFormatChecker()
        assert checker.classify(Func("Print")) is CallKind.NONE
        assert checker.classify(None) is CallKind.NONE

    def test_table_is_built_from_config(self):
        """The call table comes from config."""
        config = MessageFormatConfig(
            log_packages=frozenset({"logging"}),
            log_names=("info",),
            log_suffixes=("",),
            flag_packages=frozenset({"click"}),
            flag_names=("option",),
        )
        assert build_call_table(config) == {
            ("logging", "info"): CallKind.LOGGING,
            ("click", "option"): CallKind.FLAG_HELP,
        }


class TestArguments:
    """Locating the literal argument."""

    def test_literal_at_index(self, kingpin_call):
        """The literal at the index is returned."""
        call, _ = kingpin_call("Flag", "verbose", "Verbose mode.")
        assert string_literal_arg(call, 1).text == "Verbose mode."

    def test_missing_argument(self, kingpin_call):
        """A missing argument gives None."""
        call, _ = kingpin_call("Flag", "verbose")
        assert string_literal_arg(call, 1) is None

    def test_non_literal_argument(self, logrus_call, non_literal):
        """A non-literal argument gives None."""
        call, _ = logrus_call("Error", non_literal)
        assert string_literal_arg(call, 0) is None

    def test_func_requires_selector(self):
        """Only pkg.Func calls resolve."""
        call = CallExpr(func=Ident(name="Error"), args=[])
        assert func_for_call(call, {call.func: Func("Error", LOGRUS_PACKAGE)}) is None


class TestLoggingMessages:
    """Log messages start lowercase and have no trailing period."""

    def test_uppercase_start(self, logrus_call):
        """An uppercase log message is reported."""
        call, uses = logrus_call("Error", "Something failed")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.category == Category.LOWERCASE_EXPECTED
        assert diag.message == 'message starts with uppercase: "Something failed"'
        assert diag.analyzer == "messagefmt"
        assert (diag.line, diag.col) == (call.args[0].pos.line, call.args[0].pos.col)

    def test_lowercase_start(self, logrus_call):
        """A lowercase log message passes."""
        call, uses = logrus_call("Error", "something failed")
        assert MessageFormatChecker().check(call, uses) is None

    def test_formatted_variant(self, logrus_call):
        """Formatted variants are checked too."""
        call, uses = logrus_call("Infof", "Listening on %s", "addr")
        assert MessageFormatChecker().check(call, uses).category == Category.LOWERCASE_EXPECTED

    def test_trailing_period(self, logrus_call):
        """A trailing period is reported."""
        call, uses = logrus_call("Warn", "disk almost full.")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.category == Category.UNEXPECTED_PERIOD
        assert diag.message == 'message must not end with a period: "disk almost full."'

    def test_one_diagnostic_per_call(self, logrus_call):
        """Case is reported before punctuation."""
        call, uses = logrus_call("Error", "Something failed.")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.category == Category.LOWERCASE_EXPECTED

    @pytest.mark.parametrize("message", [
        "xDS server failed",
        "gRPC stream closed",
        "HTTP listener stopped",
        "TLS",
        "404 returned",
    ])
    def test_case_exemptions(self, logrus_call, message):
        """Initialisms and exceptions keep their case."""
        call, uses = logrus_call("Error", message)
        assert MessageFormatChecker().check(call, uses) is None

    def test_exemption_list_is_configurable(self, logrus_call):
        """Extra exceptions can be configured."""
        call, uses = logrus_call("Error", "Envoy restarted")
        checker = MessageFormatChecker(MessageFormatConfig(exceptions=frozenset({"Envoy"})))
        assert checker.check(call, uses) is None

    def test_empty_message(self, logrus_call):
        """An empty log message passes."""
        call, uses = logrus_call("Info", "")
        assert MessageFormatChecker().check(call, uses) is None

    def test_message_not_literal(self, logrus_call, non_literal):
        """Non-literal messages are not checked."""
        call, uses = logrus_call("Error", non_literal)
        assert MessageFormatChecker().check(call, uses) is None

    def test_no_arguments(self, logrus_call):
        """A call without arguments is not checked."""
        call, uses = logrus_call("Error")
        assert MessageFormatChecker().check(call, uses) is None

    def test_backquoted_literal(self, logrus_call):
        """Raw string literals are checked."""
        call, uses = logrus_call("Error", "x")
        call.args[0].raw = "`Raw message`"
        assert MessageFormatChecker().check(call, uses).category == Category.LOWERCASE_EXPECTED


class TestFlagMessages:
    """Flag and command help starts uppercase and ends with a period."""

    def test_lowercase_flag_help(self, kingpin_call):
        """Lowercase flag help is reported."""
        call, uses = kingpin_call("Flag", "verbose", "verbose mode.")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.category == Category.UPPERCASE_EXPECTED
        assert diag.message == 'message starts with lowercase: "verbose mode."'

    def test_lowercase_command_help(self, kingpin_call):
        """Lowercase command help is reported."""
        call, uses = kingpin_call("Command", "delete", "delete an object.")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.message == 'message starts with lowercase: "delete an object."'

    def test_valid_help(self, kingpin_call):
        """Capitalized help with a period passes."""
        call, uses = kingpin_call("Flag", "verbose", "Verbose mode.")
        assert MessageFormatChecker().check(call, uses) is None

    def test_missing_period(self, kingpin_call):
        """Help without a period is reported."""
        call, uses = kingpin_call("Command", "delete", "Delete an object")
        diag = MessageFormatChecker().check(call, uses)
        assert diag.category == Category.MISSING_PERIOD
        assert diag.message == 'message must end with a period: "Delete an object"'

    def test_acronym_start(self, kingpin_call):
        """Help may start with an exempt term."""
        call, uses = kingpin_call("Flag", "xds-port", "xDS server port.")
        assert MessageFormatChecker().check(call, uses) is None

    def test_first_argument_not_checked(self, kingpin_call):
        """Only the help argument is checked."""
        call, uses = kingpin_call("Flag", "Verbose", "Verbose mode.")
        assert MessageFormatChecker().check(call, uses) is None

    def test_empty_help_needs_period(self, kingpin_call):
        """Case is skipped for an empty literal, punctuation is not."""
        call, uses = kingpin_call("Flag", "verbose", "")
        assert MessageFormatChecker().check(call, uses).category == Category.MISSING_PERIOD

    def test_help_missing(self, kingpin_call):
        """A call without help is not checked."""
        call, uses = kingpin_call("Flag", "verbose")
        assert MessageFormatChecker().check(call, uses) is None


class TestRunOnPass:
    """Driving the checker through a Pass."""

    def test_reports_in_order(self, logrus_call, kingpin_call):
        """Diagnostics follow node order."""
        bad_log, uses1 = logrus_call("Error", "Something failed")
        good_log, uses2 = logrus_call("Error", "something failed")
        bad_flag, uses3 = kingpin_call("Flag", "verbose", "verbose mode.")
        pass_ = Pass("b.go", [bad_log, good_log, bad_flag], {**uses1, **uses2, **uses3})
        MessageFormatChecker().analyzer.run(pass_)
        assert [d.category for d in pass_.diagnostics] == [
            Category.LOWERCASE_EXPECTED,
            Category.UPPERCASE_EXPECTED,
        ]
        assert {d.path for d in pass_.diagnostics} == {"b.go"}

    def test_analyzer_metadata(self):
        """The analyzer carries its name and doc."""
        analyzer = MessageFormatChecker().analyzer
        assert analyzer.name == "messagefmt"
        assert analyzer.doc == "Check message formatting rules."

    def test_other_nodes_ignored(self):
        """Non-call nodes are ignored."""
        ident = Ident(pos=Position(1, 1), end=Position(1, 4), name="pkg")
        pass_ = Pass("b.go", [ident])
        MessageFormatChecker().run(pass_)
        assert pass_.diagnostics == []
