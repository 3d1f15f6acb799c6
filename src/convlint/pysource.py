"""
Python Source Facility

Builds a ``Pass`` from Python source with the stdlib ``ast`` module:

    import a.b.c as x          -> ImportSpec(path="a.b.c", name=x)
    from a.b import c as x     -> ImportSpec(path="a.b.c", name=x)
    x.func("msg")              -> CallExpr(Selector(x, func), [StringLit])

Name occurrences are resolved through function, class, comprehension and
module scopes, so a local variable that shadows an import alias is not
treated as a use of it.
Attribute calls on an imported module resolve to ``Func(attr, module)``.
Columns are the ``ast`` offsets (UTF-8 bytes).
"""

from __future__ import annotations

import ast
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from convlint.source import (
    CallExpr,
    Func,
    Ident,
    ImportSpec,
    Node,
    PackageName,
    Pass,
    Position,
    Selector,
    StringLit,
    Symbol,
)

logger = logging.getLogger(__name__)

_FUNCTIONS = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)
_COMPREHENSIONS = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)
_SCOPE_NODES = (*_FUNCTIONS, ast.ClassDef, *_COMPREHENSIONS)
_QUOTES = "\"'`"


def _start(node: ast.AST) -> Position:
    return Position(node.lineno, node.col_offset)


def _end(node: ast.AST) -> Position:
    return Position(node.end_lineno, node.end_col_offset)


def _iter_scope(node: ast.AST) -> Iterator[ast.AST]:
    """Descendants of *node* in its own scope; nested scopes are yielded, not entered."""
    for child in ast.iter_child_nodes(node):
        yield child
        if not isinstance(child, _SCOPE_NODES):
            yield from _iter_scope(child)


def _outer_parts(node: ast.AST) -> List[ast.AST]:
    """Children of a scope node that are evaluated in the enclosing scope."""
    if isinstance(node, _FUNCTIONS):
        args = node.args
        parts = [*args.defaults, *(d for d in args.kw_defaults if d is not None)]
        if isinstance(node, ast.Lambda):
            return parts
        all_args = [*args.posonlyargs, *args.args, *args.kwonlyargs, args.vararg, args.kwarg]
        parts.extend(node.decorator_list)
        parts.extend(a.annotation for a in all_args if a is not None and a.annotation is not None)
        if node.returns is not None:
            parts.append(node.returns)
        return parts
    if isinstance(node, ast.ClassDef):
        return [*node.decorator_list, *node.bases, *node.keywords]
    if isinstance(node, _COMPREHENSIONS):
        # only the first iterable is evaluated outside
        return [node.generators[0].iter]
    return []


def _inner_parts(node: ast.AST) -> List[ast.AST]:
    """Children of a scope node that are evaluated in its own scope."""
    if isinstance(node, ast.Lambda):
        return [node.body]
    if isinstance(node, _COMPREHENSIONS):
        parts = [node.key, node.value] if isinstance(node, ast.DictComp) else [node.elt]
        for i, gen in enumerate(node.generators):
            parts.append(gen.target)
            if i:
                parts.append(gen.iter)
            parts.extend(gen.ifs)
        return parts
    return list(node.body)


@dataclass
class _Scope:
    node: ast.AST
    # None marks a plain (non-import) binding that shadows outer names
    bindings: Dict[str, Optional[Symbol]] = field(default_factory=dict)

    @property
    def is_class(self) -> bool:
        return isinstance(self.node, ast.ClassDef)


class Collector(ast.NodeVisitor):
    def __init__(self, text: str) -> None:
        self.text = text
        self.nodes: List[Node] = []
        self.uses: Dict[Ident, Symbol] = {}
        self._specs: Dict[ast.alias, ImportSpec] = {}
        self._symbols: Dict[ast.alias, PackageName] = {}
        self._idents: Dict[ast.Name, Ident] = {}
        self._scopes: List[_Scope] = []

    # --- imports ---

    def _index_imports(self, tree: ast.AST) -> None:
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    bound = alias.asname or alias.name.split(".")[0]
                    path = alias.name if alias.asname else bound
                    self._add_spec(alias, alias.name, bound, path)
            elif isinstance(node, ast.ImportFrom):
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    full = f"{node.module}.{alias.name}" if node.module else alias.name
                    self._add_spec(alias, full, alias.asname or alias.name, full)

    def _add_spec(self, alias: ast.alias, path: str, bound: str, bound_path: str) -> None:
        name = None
        if alias.asname:
            end = _end(alias)
            name = Ident(pos=Position(end.line, end.col - len(alias.asname)), end=end, name=alias.asname)
        spec = ImportSpec(
            pos=_start(alias),
            end=_end(alias),
            path=path,
            name=name,
            line_format=alias.name + " as {alias}",
        )
        self._specs[alias] = spec
        self._symbols[alias] = PackageName(name=bound, path=bound_path, decl_pos=spec.pos)

    # --- scopes ---

    def _scope_for(self, node: ast.AST) -> _Scope:
        scope = _Scope(node)
        if isinstance(node, _COMPREHENSIONS):
            for gen in node.generators:
                for child in ast.walk(gen.target):
                    if isinstance(child, ast.Name):
                        scope.bindings[child.id] = None
            return scope

        declared_outer = set()
        if isinstance(node, _FUNCTIONS):
            args = node.args
            for arg in args.posonlyargs + args.args + args.kwonlyargs:
                scope.bindings[arg.arg] = None
            for arg in (args.vararg, args.kwarg):
                if arg is not None:
                    scope.bindings[arg.arg] = None
            body = node.body if isinstance(node.body, list) else [node.body]
        else:
            body = node.body

        for stmt in body:
            children = [stmt] if isinstance(stmt, _SCOPE_NODES) else [stmt, *_iter_scope(stmt)]
            for child in children:
                if isinstance(child, ast.Name) and not isinstance(child.ctx, ast.Load):
                    scope.bindings.setdefault(child.id, None)
                elif isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                    scope.bindings.setdefault(child.name, None)
                elif isinstance(child, ast.ExceptHandler) and child.name:
                    scope.bindings.setdefault(child.name, None)
                elif isinstance(child, ast.alias) and child in self._symbols:
                    sym = self._symbols[child]
                    # an import wins over plain assignments to the same name
                    if scope.bindings.get(sym.name) is None:
                        scope.bindings[sym.name] = sym
                elif isinstance(child, (ast.Global, ast.Nonlocal)):
                    declared_outer.update(child.names)
                elif isinstance(child, _COMPREHENSIONS):
                    # walrus targets inside a comprehension bind here
                    for sub in ast.walk(child):
                        if isinstance(sub, ast.NamedExpr):
                            scope.bindings.setdefault(sub.target.id, None)
        for name in declared_outer:
            scope.bindings.pop(name, None)
        return scope

    def _resolve(self, name: str) -> Optional[Symbol]:
        innermost = len(self._scopes) - 1
        for i in range(innermost, -1, -1):
            scope = self._scopes[i]
            # class bodies are not visible from nested functions
            if scope.is_class and i != innermost:
                continue
            if name in scope.bindings:
                return scope.bindings[name]
        return None

    def _visit_scope(self, node: ast.AST) -> None:
        for part in _outer_parts(node):
            self.visit(part)
        self._scopes.append(self._scope_for(node))
        for part in _inner_parts(node):
            self.visit(part)
        self._scopes.pop()

    # --- visitors ---

    def visit_Module(self, node: ast.Module) -> None:
        self._index_imports(node)
        self._visit_scope(node)

    visit_FunctionDef = _visit_scope
    visit_AsyncFunctionDef = _visit_scope
    visit_Lambda = _visit_scope
    visit_ClassDef = _visit_scope
    visit_ListComp = _visit_scope
    visit_SetComp = _visit_scope
    visit_DictComp = _visit_scope
    visit_GeneratorExp = _visit_scope

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.nodes.append(self._specs[alias])

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            if alias in self._specs:
                self.nodes.append(self._specs[alias])

    def _ident(self, node: ast.Name) -> Ident:
        ident = self._idents.get(node)
        if ident is None:
            ident = Ident(pos=_start(node), end=_end(node), name=node.id)
            self._idents[node] = ident
        return ident

    def visit_Name(self, node: ast.Name) -> None:
        if not isinstance(node.ctx, ast.Load):
            return
        ident = self._ident(node)
        self.nodes.append(ident)
        sym = self._resolve(node.id)
        if isinstance(sym, PackageName):
            self.uses[ident] = sym

    def visit_Call(self, node: ast.Call) -> None:
        call = CallExpr(
            pos=_start(node),
            end=_end(node),
            func=self._expr(node.func),
            args=[self._expr(arg) for arg in node.args],
        )
        self.nodes.append(call)
        self.generic_visit(node)

    def _expr(self, node: ast.AST) -> Node:
        if isinstance(node, ast.Name):
            return self._ident(node)
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            return StringLit(pos=_start(node), end=_end(node), raw=self._literal_source(node), value=node.value)
        if isinstance(node, ast.Attribute):
            end = _end(node)
            attr = Ident(pos=Position(end.line, end.col - len(node.attr)), end=end, name=node.attr)
            package = self._module_path(node.value)
            if package is not None:
                self.uses[attr] = Func(name=node.attr, package=package)
            return Selector(pos=_start(node), end=end, value=self._expr(node.value), attr=attr)
        return Node(pos=_start(node), end=_end(node))

    def _module_path(self, node: ast.AST) -> Optional[str]:
        """Dotted module path of ``alias.sub.mod`` when the base is an import."""
        parts: List[str] = []
        while isinstance(node, ast.Attribute):
            parts.append(node.attr)
            node = node.value
        if not isinstance(node, ast.Name):
            return None
        sym = self._resolve(node.id)
        if not isinstance(sym, PackageName):
            return None
        return ".".join([sym.path, *reversed(parts)])

    def _literal_source(self, node: ast.Constant) -> str:
        segment = ast.get_source_segment(self.text, node)
        if segment and len(segment) >= 2 and segment[0] in _QUOTES and segment[-1] == segment[0]:
            return segment
        return json.dumps(node.value, ensure_ascii=False)


def build_pass(text: str, path: str = "<string>") -> Pass:
    """Parse *text* and return a Pass over its nodes. Raises SyntaxError."""
    tree = ast.parse(text, filename=path)
    col = Collector(text)
    col.visit(tree)
    logger.debug("Collected %d nodes and %d uses from %s", len(col.nodes), len(col.uses), path)
    return Pass(path, col.nodes, col.uses)


def load_pass(path: Path) -> Pass:
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return build_pass(text, str(path))
