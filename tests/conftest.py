"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from convlint.config import KINGPIN_PACKAGE, LOGRUS_PACKAGE
from convlint.source import CallExpr, Func, Ident, ImportSpec, Node, PackageName, Position, Selector, StringLit


# =============================================================================
# NODE BUILDERS
# =============================================================================

def make_import(path: str, alias: str = "", line: int = 3) -> ImportSpec:
    """Build an import spec spelled ``alias "path"`` starting at column 1."""
    quoted = f'"{path}"'
    name = None
    if alias:
        name = Ident(pos=Position(line, 1), end=Position(line, 1 + len(alias)), name=alias)
    end_col = 1 + len(alias) + 1 + len(quoted) if alias else 1 + len(quoted)
    return ImportSpec(pos=Position(line, 1), end=Position(line, end_col), path=quoted, name=name)


def use_of(spec: ImportSpec, line: int, col: int = 1, name: str = None):
    """An identifier referring to the package bound by *spec*."""
    name = name or spec.alias
    ident = Ident(pos=Position(line, col), end=Position(line, col + len(name)), name=name)
    return ident, PackageName(name=name, path=spec.path.strip('"'), decl_pos=spec.pos)


def make_call(package: str, func: str, *args, line: int = 10):
    """
    Build ``pkg.Func(args...)`` and the uses entry resolving Func.

    String arguments become literals; anything else is passed through.
    Returns (call, uses).
    """
    base = Ident(pos=Position(line, 1), end=Position(line, 4), name="pkg")
    attr = Ident(pos=Position(line, 5), end=Position(line, 5 + len(func)), name=func)
    col = 6 + len(func)
    nodes = []
    for arg in args:
        if isinstance(arg, str):
            raw = f'"{arg}"'
            nodes.append(StringLit(pos=Position(line, col), end=Position(line, col + len(raw)), raw=raw))
            col += len(raw) + 2
        else:
            nodes.append(arg)
    call = CallExpr(
        pos=Position(line, 1),
        end=Position(line, col),
        func=Selector(pos=Position(line, 1), end=attr.end, value=base, attr=attr),
        args=nodes,
    )
    return call, {attr: Func(name=func, package=package)}


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def logrus_call():
    """Factory for logrus.<Func>(args...) calls."""
    def factory(func: str, *args):
        return make_call(LOGRUS_PACKAGE, func, *args)
    return factory


@pytest.fixture
def kingpin_call():
    """Factory for kingpin.<Func>(args...) calls."""
    def factory(func: str, *args):
        return make_call(KINGPIN_PACKAGE, func, *args)
    return factory


@pytest.fixture
def non_literal():
    """An argument that is not a string literal."""
    return Node(pos=Position(10, 20), end=Position(10, 25))
