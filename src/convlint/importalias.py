"""
Import Alias Checker

Checks that an import's local alias is derived from its import path: the
alias words appear in the path in the same order, and a version segment of
the path (``v1``, ``v2``...) is the last alias word.

    meta_v1 "k8s.io/apimachinery/pkg/apis/meta/v1"       ok
    meta "k8s.io/apimachinery/pkg/apis/meta/v1"          version missing
    v1_meta_x "k8s.io/apimachinery/pkg/apis/meta/v1"     version missing
    apis_pkg_v1 "k8s.io/apimachinery/pkg/apis/meta/v1"   words out of order

Violations carry a fix that renames the alias to the shortest valid form
(``<last word>`` or ``<word>_<version>``) at the import and at every use.
"""

from __future__ import annotations

import ast
import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from convlint.config import AliasCheckConfig
from convlint.reporting import Category, Diagnostic, SuggestedFix, TextEdit
from convlint.source import Analyzer, Ident, ImportSpec, Node, PackageName, Pass, Symbol

logger = logging.getLogger(__name__)

NAME = "importalias"
DOC = "Checks import aliases have consistent names"

_VERSION_ANCHORED = re.compile(r"^v[0-9]+$")
_VERSION_LOOSE = re.compile(r"v[0-9]+")

# "_" and "." become separators, "-" is dropped so hyphenated words merge
_SEPARATORS = str.maketrans({"_": "/", ".": "/", "-": None})


def _q(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _unquote(raw: str) -> str:
    """Decode a quoted literal; unquoted text is returned unchanged."""
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'`":
        if raw[0] == "`":
            return raw[1:-1]
        try:
            value = ast.literal_eval(raw)
        except (ValueError, SyntaxError):
            return ""
        return value if isinstance(value, str) else ""
    return raw


def strip_path(raw: str, anchored: bool = True) -> str:
    """Remove surrounding quotes from a raw import path."""
    if anchored:
        return _unquote(raw)
    return raw.strip("\"`")


def split_path(raw: str, anchored: bool = True) -> List[str]:
    """All path segments, domain included."""
    return strip_path(raw, anchored).translate(_SEPARATORS).split("/")


def normalize_path(raw: str, anchored: bool = True) -> List[str]:
    """The ordered path words with the leading domain segment dropped."""
    return split_path(raw, anchored)[1:]


@lru_cache(maxsize=1024)
def _word_pattern(word: str, anchored: bool) -> "re.Pattern[str]":
    body = re.escape(word) + "(s)?"
    return re.compile(f"^{body}$" if anchored else body)


def package_version(words: List[str], anchored: bool = True) -> Tuple[bool, int]:
    """Return whether a version word exists in *words* and its position."""
    pattern = _VERSION_ANCHORED if anchored else _VERSION_LOOSE
    for pos, value in enumerate(words):
        if pattern.search(value):
            return True, pos
    return False, 0


def check_version(alias_last_word: str, words: List[str], anchored: bool = True) -> bool:
    """A versioned path requires the alias to end with that exact version."""
    found, pos = package_version(words, anchored)
    if not found:
        return True
    return alias_last_word == words[pos]


def search_word(words: List[str], word: str, anchored: bool = True) -> int:
    """
    Index of the first path word matching *word* or its plural.

    Returns ``len(words)`` when nothing matches. The scan always starts at
    the beginning, so a repeated alias word finds the same index again.
    """
    pattern = _word_pattern(word, anchored)
    for pos, value in enumerate(words):
        if pattern.search(value):
            return pos
    return len(words)


@dataclass(frozen=True)
class AliasProblem:
    category: Category
    message: str


def check_alias_name(alias_words: List[str], words: List[str], anchored: bool = True) -> Optional[AliasProblem]:
    """Check alias words appear in the path in order. Returns None when valid."""
    alias = "_".join(alias_words)
    path = "/".join(words)
    last_used = -1

    for name in alias_words:
        # version words are covered by check_version
        if name.startswith("v") or name == "":
            continue
        used = search_word(words, name, anchored)

        if used == len(words):
            return AliasProblem(
                Category.WORD_NOT_FOUND,
                f"alias {_q(alias)} does not contain any words from import path {_q(path)}",
            )
        if used <= last_used:
            return AliasProblem(
                Category.WORDS_OUT_OF_ORDER,
                f"alias {_q(alias)} does not match word order from import path {_q(path)}",
            )
        last_used = used

    if last_used == -1:
        return AliasProblem(
            Category.NO_PATH_WORDS,
            f"alias {_q(alias)} uses words that are not in path {_q(path)}",
        )
    return None


def get_alias_fix(words: List[str], anchored: bool = True) -> str:
    """The canonical alias for a path: its last word, plus the version if any."""
    found, pos = package_version(words, anchored)
    if not found:
        return words[-1]
    if pos == len(words) - 1:
        if len(words) < 2:
            return words[pos]
        return f"{words[-2]}_{words[pos]}"
    return f"{words[-1]}_{words[pos]}"


def _edit(node: Node, new_text: str) -> TextEdit:
    return TextEdit(node.pos.line, node.pos.col, node.end.line, node.end.col, new_text)


def find_edits(
    spec: ImportSpec,
    uses: Dict[Ident, Symbol],
    original: str,
    required: str,
    fix_scope: str = "line",
    anchored: bool = True,
) -> List[TextEdit]:
    """Edits renaming *original* to *required* at the import and all its uses."""
    if fix_scope == "line":
        result = [_edit(spec, spec.render(required, strip_path(spec.path, anchored)))]
    else:
        result = [_edit(spec.name, required)]

    for ident, sym in sorted(uses.items(), key=lambda item: item[0].pos):
        if not isinstance(sym, PackageName):
            continue
        # identifiers bound by a different import
        if sym.decl_pos != spec.pos:
            continue
        if ident is spec.name:
            continue
        if sym.name == original:
            result.append(_edit(ident, required))
    return result


class ImportAliasChecker:
    """Reports at most one diagnostic per aliased import."""

    def __init__(self, config: Optional[AliasCheckConfig] = None):
        self.config = config or AliasCheckConfig()

    @property
    def analyzer(self) -> Analyzer:
        return Analyzer(name=NAME, doc=DOC, run=self.run)

    def run(self, pass_: Pass) -> None:
        def visit(node: Node) -> None:
            diagnostic = self.check(node, pass_.uses)
            if diagnostic is not None:
                pass_.report(diagnostic)

        pass_.preorder((ImportSpec,), visit)

    def check(self, spec: ImportSpec, uses: Optional[Dict[Ident, Symbol]] = None) -> Optional[Diagnostic]:
        alias = spec.alias
        if alias == "":
            return None
        if alias.startswith("_"):
            return None  # blank and private imports are deliberate

        anchored = self.config.anchored
        segments = split_path(spec.path, anchored)
        words = segments[1:]
        if not words:
            logger.debug("Skipping import %s at %s: no words after the domain", spec.path, spec.pos)
            return None

        alias_words = alias.split("_")
        fix = get_alias_fix(words, anchored)
        if fix == alias:
            # the rules skip v-words, so a v-word fix never validates itself
            logger.debug("Skipping import %s at %s: alias already canonical", spec.path, spec.pos)
            return None

        if not check_version(alias_words[-1], words, anchored):
            _, pos = package_version(words, anchored)
            return self._diagnostic(
                spec, uses, Category.VERSION_MISSING,
                f"version {_q(words[pos])} not specified in alias {_q(alias)} for import path "
                f"{_q('/'.join(segments))} may replace {_q(alias)} with {_q(fix)}",
                fix,
            )

        problem = check_alias_name(alias_words, words, anchored)
        if problem is not None:
            return self._diagnostic(
                spec, uses, problem.category,
                f"{problem.message}: may replace {_q(alias)} with {_q(fix)}",
                fix,
            )
        return None

    def _diagnostic(self, spec: ImportSpec, uses, category: Category, message: str, fix: str) -> Diagnostic:
        edits = find_edits(
            spec, uses or {}, spec.alias, fix,
            fix_scope=self.config.fix_scope, anchored=self.config.anchored,
        )
        return Diagnostic(
            analyzer=NAME,
            category=category,
            line=spec.pos.line,
            col=spec.pos.col,
            message=message,
            fixes=[SuggestedFix(message=f"may replace {_q(spec.alias)} with {_q(fix)}", edits=edits)],
        )
