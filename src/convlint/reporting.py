from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List
import json


class Category(str, Enum):
    VERSION_MISSING = "version-missing"
    WORD_NOT_FOUND = "word-not-found"
    WORDS_OUT_OF_ORDER = "words-out-of-order"
    NO_PATH_WORDS = "no-path-words-used"
    LOWERCASE_EXPECTED = "lowercase-expected"
    UPPERCASE_EXPECTED = "uppercase-expected"
    MISSING_PERIOD = "missing-period"
    UNEXPECTED_PERIOD = "unexpected-period"


@dataclass(frozen=True)
class TextEdit:
    line: int
    col: int
    end_line: int
    end_col: int
    new_text: str


@dataclass
class SuggestedFix:
    message: str
    edits: List[TextEdit] = field(default_factory=list)


@dataclass
class Diagnostic:
    analyzer: str
    category: Category
    line: int
    col: int
    message: str
    path: str = ""
    fixes: List[SuggestedFix] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["category"] = self.category.value
        return d


class Reporter:
    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []
    def add(self, d: Diagnostic) -> None:
        self.diagnostics.append(d)
    def extend(self, other: "Reporter") -> None:
        self.diagnostics.extend(other.diagnostics)
    def by_category(self, category: Category) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.category == category]
    def to_jsonl(self) -> str:
        return "\n".join(json.dumps(d.to_dict(), ensure_ascii=False) for d in self.diagnostics)
    def render_human(self) -> str:
        c: dict[str, int] = {}
        for d in self.diagnostics:
            c[d.analyzer] = c.get(d.analyzer, 0) + 1

        out: list[str] = []
        counts = " ".join(f"{k}={v}" for k, v in sorted(c.items()))
        out.append(f"Diagnostics: {len(self.diagnostics)}" + (f" ({counts})" if counts else ""))
        for d in self.diagnostics:
            loc = f"{d.path}:{d.line}:{d.col}"
            out.append(f"- {d.analyzer} {loc} [{d.category.value}] -- {d.message}")
            for fix in d.fixes:
                out.append(f"    fix: {fix.message} ({len(fix.edits)} edit(s))")
        return "\n".join(out)
