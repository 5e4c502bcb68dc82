"""
torchmpl.parser
~~~~~~~~~~~~~~~

Parser for the compact ASCII syntax of modal propositional wffs.

The surface syntax is:

- a proposition is an alphanumeric token: ``p``, ``q2``, ``rain``
- unary prefix operators ``~`` (negation), ``[]`` (necessity) and
  ``<>`` (possibility), which bind tighter than any binary operator
- binary infix operators ``&``, ``|``, ``->`` and ``<->``, canonically
  written inside parentheses: ``(p & q)``

Unparenthesized chains are resolved with the precedence table below
(tightest first: ``&``, ``|``, ``->``, ``<->``), all right-associative,
so ``p & q -> r`` reads as ``((p & q) -> r)``.

Parsing is a tokenizer followed by precedence climbing over the
unary/binary operator tables.
"""

from __future__ import annotations

import logging
import re
from typing import List, NamedTuple

from torchmpl.exceptions import ParseError
from torchmpl.formula import Formula, FormulaType

__all__ = [
    "Token",
    "tokenize",
    "parse",
    "UNARY_OPERATORS",
    "BINARY_OPERATORS",
]

logger = logging.getLogger(__name__)

UNARY_OPERATORS = {
    "~": FormulaType.NEG,
    "[]": FormulaType.NEC,
    "<>": FormulaType.POSS,
}

# symbol -> (node tag, binding power); higher binds tighter
BINARY_OPERATORS = {
    "&": (FormulaType.CONJ, 4),
    "|": (FormulaType.DISJ, 3),
    "->": (FormulaType.IMPL, 2),
    "<->": (FormulaType.EQUI, 1),
}

# Longest operators first so "<->" is not read as "<" followed by "->".
_TOKEN_SPEC = [
    ("OP", r"<->|->|<>|\[\]|[~&|]"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("NAME", r"[A-Za-z0-9]+"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{k}>{p})" for k, p in _TOKEN_SPEC))

# Stripping whitespace would silently merge these into a single name.
_SPLIT_NAME_RE = re.compile(r"[A-Za-z0-9](\s+)[A-Za-z0-9]")


class Token(NamedTuple):
    kind: str
    text: str
    position: int


def tokenize(text: str) -> List[Token]:
    """Split formula text into tokens.

    Whitespace is stripped before matching, so it may appear anywhere,
    even inside an operator (``- >`` reads as ``->``). The one exception
    is whitespace between two alphanumeric characters, which is rejected
    rather than joining them into a single name. Token positions are
    offsets into the original ``text``.

    Args:
        text: Formula in ASCII syntax.

    Returns:
        List of tokens, terminated by an ``END`` token.

    Raises:
        ParseError: On any character that starts no token, or on
            whitespace separating two names.
    """
    split = _SPLIT_NAME_RE.search(text)
    if split is not None:
        raise ParseError("Whitespace between names", split.start(1))

    offsets = [i for i, ch in enumerate(text) if not ch.isspace()]
    stripped = "".join(text[i] for i in offsets)

    tokens = []
    pos = 0
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise ParseError(
                f"Unexpected character {stripped[pos]!r}", offsets[pos]
            )
        tokens.append(Token(match.lastgroup, match.group(), offsets[pos]))
        pos = match.end()
    tokens.append(Token("END", "", len(text)))
    return tokens


class _Parser:
    """Precedence-climbing parser over a token list."""

    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def expect(self, kind: str) -> Token:
        token = self.current
        if token.kind != kind:
            raise ParseError(_describe_expected(kind, token), token.position)
        return self.advance()

    def parse(self) -> Formula:
        result = self.parse_binary(0)
        self.expect("END")
        return result

    def parse_binary(self, min_power: int) -> Formula:
        left = self.parse_unary()
        while True:
            token = self.current
            entry = BINARY_OPERATORS.get(token.text) if token.kind == "OP" else None
            if entry is None:
                return left
            ftype, power = entry
            if power < min_power:
                return left
            self.advance()
            # same power on the right side makes the operator right-associative
            right = self.parse_binary(power)
            left = Formula(ftype, (left, right))

    def parse_unary(self) -> Formula:
        prefixes = []
        while self.current.kind == "OP" and self.current.text in UNARY_OPERATORS:
            prefixes.append(UNARY_OPERATORS[self.advance().text])
        result = self.parse_operand()
        # innermost prefix applies first
        for ftype in reversed(prefixes):
            result = Formula(ftype, (result,))
        return result

    def parse_operand(self) -> Formula:
        token = self.current
        if token.kind == "NAME":
            self.advance()
            return Formula(FormulaType.PROP, name=token.text)
        if token.kind == "LPAREN":
            self.advance()
            inner = self.parse_binary(0)
            self.expect("RPAREN")
            return inner
        raise ParseError(_describe_expected("operand", token), token.position)


def _describe_expected(expected: str, token: Token) -> str:
    found = "end of input" if token.kind == "END" else repr(token.text)
    wanted = {
        "END": "end of input",
        "RPAREN": "')'",
        "operand": "a proposition, unary operator or '('",
    }.get(expected, expected)
    return f"Expected {wanted}, found {found}"


def parse(text: str) -> Formula:
    """Parse ASCII formula text into a formula tree.

    Args:
        text: Formula such as ``"(p -> []p)"``. Whitespace is stripped
            before tokenizing, except that it may not separate two names.

    Returns:
        The root :class:`~torchmpl.formula.Formula` node.

    Raises:
        ParseError: If ``text`` is not a well-formed formula, or nests
            parentheses deeper than the interpreter's recursion limit.

    Example::

        >>> parse("~[]p")
        Formula(neg, [Formula(nec, [Formula(prop, 'p')])])
    """
    if not isinstance(text, str):
        raise ParseError(f"Expected formula text, got {type(text).__name__}")
    try:
        return _Parser(tokenize(text)).parse()
    except ParseError as exc:
        logger.debug("Rejected formula %r: %s", text, exc)
        raise
    except RecursionError:
        logger.debug("Rejected formula of length %d: nested too deeply", len(text))
        raise ParseError("Formula nested too deeply") from None
