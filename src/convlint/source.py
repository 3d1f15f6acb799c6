"""
Source Inspection Contract

The node model and symbol table the checkers are driven by. A facility
(see ``convlint.pysource``) fills a ``Pass`` with nodes in source order and
resolves identifier occurrences to the entity that declares them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type, Union

from convlint.reporting import Diagnostic, Reporter


@dataclass(frozen=True, order=True)
class Position:
    """1-based line, 0-based column."""
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.line}:{self.col}"


NO_POS = Position(0, 0)


# Nodes compare by identity so they can key the uses table.
@dataclass(eq=False)
class Node:
    pos: Position = NO_POS
    end: Position = NO_POS


@dataclass(eq=False)
class Ident(Node):
    name: str = ""


@dataclass(eq=False)
class StringLit(Node):
    """
    A string literal. ``raw`` is its source text including quotes; ``value``
    is the decoded content when the facility knows it.
    """
    raw: str = '""'
    value: Optional[str] = None

    @property
    def text(self) -> str:
        if self.value is not None:
            return self.value
        return self.raw.strip("\"`'")


@dataclass(eq=False)
class Selector(Node):
    """``value.attr``"""
    value: Optional[Node] = None
    attr: Optional[Ident] = None


@dataclass(eq=False)
class CallExpr(Node):
    func: Optional[Node] = None
    args: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ImportSpec(Node):
    """
    One imported path with an optional local name.

    ``path`` is the raw path as spelled in source (possibly quoted).
    ``line_format`` renders the whole spec for a new alias; it receives
    ``alias`` and ``path`` (the unquoted path) as format fields.
    """
    path: str = ""
    name: Optional[Ident] = None
    line_format: str = "{alias} {quoted}"

    @property
    def alias(self) -> str:
        return self.name.name if self.name is not None else ""

    def render(self, alias: str, path: str) -> str:
        return self.line_format.format(alias=alias, path=path, quoted=json.dumps(path, ensure_ascii=False))


# --- Resolved symbols ---

@dataclass(frozen=True)
class PackageName:
    """A name bound by an import statement."""
    name: str
    path: str
    decl_pos: Position


@dataclass(frozen=True)
class Func:
    """A function; ``package`` is None for builtins."""
    name: str
    package: Optional[str] = None


Symbol = Union[PackageName, Func]


class Pass:
    """
    One unit of analysis: a source file's nodes, its symbol table and the
    reporter diagnostics go to.
    """

    def __init__(
        self,
        path: str,
        nodes: Iterable[Node],
        uses: Optional[Dict[Ident, Symbol]] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.path = path
        self.nodes: List[Node] = list(nodes)
        self.uses: Dict[Ident, Symbol] = dict(uses or {})
        self.reporter = reporter or Reporter()

    def preorder(self, kinds: Tuple[Type[Node], ...], callback: Callable[[Node], None]) -> None:
        """Call *callback* for every node that is an instance of *kinds*."""
        for node in self.nodes:
            if isinstance(node, kinds):
                callback(node)

    def report(self, diagnostic: Diagnostic) -> None:
        if not diagnostic.path:
            diagnostic.path = self.path
        self.reporter.add(diagnostic)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.reporter.diagnostics


@dataclass(frozen=True)
class Analyzer:
    name: str
    doc: str
    run: Callable[[Pass], None]
