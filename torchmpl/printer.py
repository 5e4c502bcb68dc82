"""
torchmpl.printer
~~~~~~~~~~~~~~~~

Renders formula trees as ASCII, LaTeX and Unicode text.

The ASCII form is canonical: every binary node is parenthesized and
operators are spaced, e.g. ``(~p -> <>(q & r))``. LaTeX and Unicode are
produced by symbol substitution over the canonical ASCII string.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Union

from torchmpl.exceptions import InvalidStructureError
from torchmpl.formula import Formula, FormulaType, from_dict

__all__ = [
    "to_ascii",
    "to_latex",
    "to_unicode",
    "ascii_to_latex",
    "ascii_to_unicode",
]

FormulaLike = Union[Formula, Dict[str, Any]]

_ASCII_SYMBOLS = {
    FormulaType.NEG: "~",
    FormulaType.NEC: "[]",
    FormulaType.POSS: "<>",
    FormulaType.CONJ: "&",
    FormulaType.DISJ: "|",
    FormulaType.IMPL: "->",
    FormulaType.EQUI: "<->",
}

LATEX_SYMBOLS = {
    "~": r"\lnot{}",
    "[]": r"\Box{}",
    "<>": r"\Diamond{}",
    "&": r"\land{}",
    "|": r"\lor{}",
    "->": r"\rightarrow{}",
    "<->": r"\leftrightarrow{}",
}

UNICODE_SYMBOLS = {
    "~": "¬",
    "[]": "□",
    "<>": "◇",
    "&": "∧",
    "|": "∨",
    "->": "→",
    "<->": "↔",
}

# "<->" must win over "->" and "<>"
_SYMBOL_RE = re.compile(r"<->|->|<>|\[\]|~|&|\|")


def _as_tree(formula: FormulaLike) -> Formula:
    if isinstance(formula, dict):
        return from_dict(formula)
    if isinstance(formula, Formula):
        return formula.validate()
    raise InvalidStructureError(
        f"Expected a formula, got {type(formula).__name__}"
    )


def _render_node(node: Formula, parts: List[str]) -> str:
    if node.ftype is FormulaType.PROP:
        return node.name
    if node.ftype is FormulaType.BOT:
        raise InvalidStructureError("Falsum has no surface syntax")
    symbol = _ASCII_SYMBOLS[node.ftype]
    if node.ftype.is_unary:
        return symbol + parts[0]
    left, right = parts
    return f"({left} {symbol} {right})"


def _render(root: Formula) -> str:
    # post-order without recursion, keyed by node identity
    done: Dict[int, str] = {}
    stack = [root]
    while stack:
        node = stack[-1]
        if id(node) in done:
            stack.pop()
            continue
        pending = [c for c in node.children if id(c) not in done]
        if pending:
            stack.extend(pending)
            continue
        stack.pop()
        done[id(node)] = _render_node(node, [done[id(c)] for c in node.children])
    return done[id(root)]


def to_ascii(formula: FormulaLike) -> str:
    """Render a formula in canonical ASCII syntax.

    Args:
        formula: A :class:`Formula` or its dict form.

    Returns:
        Fully parenthesized ASCII text that :func:`torchmpl.parse` maps
        back to the same tree.

    Raises:
        InvalidStructureError: If the tree is malformed.
    """
    return _render(_as_tree(formula))


def ascii_to_latex(text: str) -> str:
    """Substitute LaTeX commands for the ASCII operator symbols."""
    return _SYMBOL_RE.sub(lambda m: LATEX_SYMBOLS[m.group()], text)


def ascii_to_unicode(text: str) -> str:
    """Substitute Unicode logic symbols for the ASCII operator symbols."""
    return _SYMBOL_RE.sub(lambda m: UNICODE_SYMBOLS[m.group()], text)


def to_latex(formula: FormulaLike) -> str:
    r"""Render a formula as a LaTeX expression, e.g. ``\Box{}p``."""
    return ascii_to_latex(to_ascii(formula))


def to_unicode(formula: FormulaLike) -> str:
    """Render a formula with Unicode logic symbols, e.g. ``□p``."""
    return ascii_to_unicode(to_ascii(formula))
