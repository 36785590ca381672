# -----------------------------------------------------------------------------
# Safe expression compiler for catalog-defined formulas
# Purpose:
#   Turn an arithmetic expression string from a YAML catalog into a pure
#   evaluation function over named inputs.
# Safety:
#   - The expression is checked against an AST whitelist before compiling.
#   - `__builtins__` disabled; only math functions/constants and inputs are visible.
#   - Every free name must be a declared input (no hidden free variables).
# -----------------------------------------------------------------------------

from __future__ import annotations
import ast
import math
from typing import Dict, Iterable, Mapping

from sympy import Symbol, sstr
from sympy.parsing.sympy_parser import parse_expr

from .errors import CatalogError, UndeclaredInputError
from .types import EvaluateFn

# Whitelisted math functions and constants; only FUNCTIONS may be called
FUNCTIONS: Dict[str, object] = {
    "sqrt": math.sqrt, "sin": math.sin, "cos": math.cos, "tan": math.tan,
    "asin": math.asin, "acos": math.acos, "atan": math.atan,
    "log": math.log, "ln": math.log, "log10": math.log10, "exp": math.exp,
    "abs": abs,
}
CONSTANTS: Dict[str, object] = {"pi": math.pi, "e": math.e}
ALLOWED: Dict[str, object] = {**FUNCTIONS, **CONSTANTS}

_ALLOWED_NODES = (
    ast.Expression, ast.BinOp, ast.UnaryOp, ast.Call, ast.Name, ast.Load, ast.Constant,
    ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Pow, ast.Mod, ast.USub, ast.UAdd,
)


def _parse(expr: str) -> ast.Expression:
    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as e:
        raise CatalogError(f"Invalid expression {expr!r}: {e.msg}") from e
    for node in ast.walk(tree):
        if isinstance(node, ast.BitXor):
            raise CatalogError(f"Use ** for powers, not ^: {expr!r}")
        if not isinstance(node, _ALLOWED_NODES):
            raise CatalogError(f"Disallowed syntax {type(node).__name__} in {expr!r}")
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS or node.keywords:
                raise CatalogError(f"Only whitelisted math calls are allowed: {expr!r}")
        if isinstance(node, ast.Constant) and not isinstance(node.value, (int, float)):
            raise CatalogError(f"Only numeric literals are allowed: {expr!r}")
    return tree


def compile_expression(expr: str, input_ids: Iterable[str]) -> EvaluateFn:
    """
    Compile `expr` into fn(values) -> number.

    Parameters
    ----------
    expr : str
        Right-hand side only, e.g. "q * S * Cd0"
    input_ids : Iterable[str]
        Declared inputs of the owning formula. An input may shadow a constant
        of the same name (an input called "e" wins over Euler's number).
    """
    ids = set(input_ids)
    tree = _parse(expr)
    names = {n.id for n in ast.walk(tree) if isinstance(n, ast.Name)}
    unknown = names - ids - set(ALLOWED)
    if unknown:
        raise UndeclaredInputError(
            f"Expression {expr!r} uses undeclared names: {', '.join(sorted(unknown))}")
    used = tuple(sorted(names & ids))
    code = compile(tree, "<formula>", "eval")
    env = {"__builtins__": {}}
    env.update(ALLOWED)

    def fn(values: Mapping[str, float]):
        local = {k: values[k] for k in used}
        return eval(code, env, local)

    return fn


def render_expression(expr: str, input_ids: Iterable[str]) -> str:
    """Readable form of `expr` for formula_text when a catalog omits it."""
    local = {k: Symbol(k) for k in input_ids}
    try:
        return sstr(parse_expr(expr, local_dict=local, evaluate=False))
    except (SyntaxError, TypeError, ValueError) as e:
        raise CatalogError(f"Cannot render expression {expr!r}: {e}") from e
