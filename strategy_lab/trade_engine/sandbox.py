"""Compile user strategy scripts into isolated callables.

A script is Python source that defines exactly one top-level function::

    def strategy(ctx):
        fast = ctx.indicators.ema(ctx.series, ctx.index, 8)
        if fast is not None and ctx.price > fast and ctx.state.position_size == 0:
            return {"action": "buy", "note": "close above EMA"}
        return {"action": "hold"}

The module body runs once, at compile time, in a fresh namespace whose
builtins are limited to pure helpers and whose `math` is a private copy.
Imports, underscore attribute access and attribute assignment are rejected
before anything executes, so the script can only reach the frozen context it
is handed on each bar.
"""

from __future__ import annotations

import ast
import builtins
import math
from types import SimpleNamespace
from typing import Any, Callable, Dict, Optional, Protocol

from loguru import logger

from strategy_lab.trade_engine.errors import CompileError, StrategyRuntimeError
from strategy_lab.trade_engine.types import Decision, StrategyContext

ENTRYPOINT = "strategy"

_SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "bool", "dict", "divmod", "enumerate", "filter", "float",
    "int", "isinstance", "len", "list", "map", "max", "min", "pow", "range",
    "reversed", "round", "set", "sorted", "str", "sum", "tuple", "zip",
    "None", "True", "False",
    "ArithmeticError", "Exception", "IndexError", "KeyError", "TypeError",
    "ValueError", "ZeroDivisionError",
)
SAFE_BUILTINS: Dict[str, Any] = {name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES}

# Attributes that walk from a value back to frames, code objects, or globals
# without an underscore in their name.
_BLOCKED_ATTRIBUTES = frozenset(
    {
        "ag_frame", "cr_frame", "f_back", "f_builtins", "f_globals", "f_locals",
        "format", "format_map", "gi_code", "gi_frame", "mro", "tb_frame", "tb_next",
    }
)


def _math_namespace() -> SimpleNamespace:
    """A fresh, script-owned copy of the public `math` API."""
    return SimpleNamespace(**{name: getattr(math, name) for name in dir(math) if not name.startswith("_")})


class Strategy(Protocol):
    """Anything the simulation loop can ask for a decision."""

    name: str

    def decide(self, ctx: StrategyContext) -> Decision:
        ...


class CallableStrategy:
    """Wrap a plain Python callable ``fn(ctx) -> decision-like``."""

    def __init__(self, fn: Callable[[StrategyContext], Any], name: Optional[str] = None):
        if not callable(fn):
            raise CompileError("Compiled strategy is not a function.")
        self._fn = fn
        self.name = name or getattr(fn, "__name__", ENTRYPOINT)

    def decide(self, ctx: StrategyContext) -> Decision:
        try:
            raw = self._fn(ctx)
        except Exception as exc:
            raise StrategyRuntimeError(ctx.index, ctx.bar.timestamp, f"{type(exc).__name__}: {exc}") from exc
        return Decision.coerce(raw)


class ScriptStrategy(CallableStrategy):
    """A strategy compiled from source text; keeps the text for coverage."""

    def __init__(self, fn: Callable[[StrategyContext], Any], source: str):
        super().__init__(fn, name=ENTRYPOINT)
        self.source = source


class _ContractChecker(ast.NodeVisitor):
    def visit_Import(self, node: ast.Import) -> None:
        raise CompileError("Imports are not allowed in strategy code", node.lineno)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        raise CompileError("Imports are not allowed in strategy code", node.lineno)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            raise CompileError(f"Assigning to attribute '{node.attr}' is not allowed", node.lineno)
        if node.attr.startswith("_") or node.attr in _BLOCKED_ATTRIBUTES:
            raise CompileError(f"Access to attribute '{node.attr}' is not allowed", node.lineno)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id.startswith("__"):
            raise CompileError(f"Use of name '{node.id}' is not allowed", node.lineno)


def _check_entrypoint(tree: ast.Module) -> None:
    defs = [
        node
        for node in tree.body
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == ENTRYPOINT
    ]
    if not defs:
        raise CompileError(f'Strategy code must define a function named "{ENTRYPOINT}".')
    if len(defs) > 1:
        raise CompileError(f'Strategy code defines "{ENTRYPOINT}" more than once', defs[1].lineno)
    if isinstance(defs[0], ast.AsyncFunctionDef):
        raise CompileError(f'"{ENTRYPOINT}" must be a regular function, not async', defs[0].lineno)


def compile_strategy(source: str) -> ScriptStrategy:
    """Parse, vet, and execute strategy source; return its ``strategy`` callable."""
    if not isinstance(source, str) or not source.strip():
        raise CompileError("Strategy code must be a non-empty string.")

    try:
        tree = ast.parse(source, filename="<strategy>")
    except SyntaxError as exc:
        raise CompileError(f"Unable to compile strategy: {exc.msg}", exc.lineno) from exc

    _ContractChecker().visit(tree)
    _check_entrypoint(tree)

    namespace: Dict[str, Any] = {"__builtins__": dict(SAFE_BUILTINS), "math": _math_namespace()}
    try:
        exec(compile(tree, "<strategy>", "exec"), namespace)
    except Exception as exc:
        raise CompileError(f"Failed to initialize strategy: {type(exc).__name__}: {exc}") from exc

    fn = namespace.get(ENTRYPOINT)
    if not callable(fn):
        raise CompileError("Compiled strategy is not a function.")

    logger.debug("[sandbox] compiled strategy ({} lines)", len(source.splitlines()))
    return ScriptStrategy(fn, source)
