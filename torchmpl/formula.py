"""
torchmpl.formula
~~~~~~~~~~~~~~~~

Abstract syntax of modal propositional wffs.

A formula is an immutable tree of :class:`Formula` nodes tagged with a
:class:`FormulaType`:

- **Atomic**: ``PROP`` (a named propositional variable) and ``BOT``
  (falsum, only produced internally by negation's expansion).
- **Unary**: ``NEG`` (``~A``), ``NEC`` (``[]A``), ``POSS`` (``<>A``).
- **Binary**: ``CONJ`` (``A & B``), ``DISJ`` (``A | B``),
  ``IMPL`` (``A -> B``), ``EQUI`` (``A <-> B``).

Trees compare structurally and are hashable, so they can key caches.
They also convert to and from a JSON-like dict form, e.g.
``{"conj": [{"prop": "p"}, {"neg": {"prop": "q"}}]}``.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Tuple

from torchmpl.exceptions import InvalidStructureError

__all__ = [
    "FormulaType",
    "Formula",
    "NAME_PATTERN",
    "BOT",
    "prop",
    "neg",
    "nec",
    "poss",
    "conj",
    "disj",
    "impl",
    "equi",
    "from_dict",
]

NAME_PATTERN = re.compile(r"[A-Za-z0-9]+")


class FormulaType(Enum):
    """Node tags of the formula grammar.

    The value of each member is its key in the dict form.
    """

    PROP = "prop"
    BOT = "bot"
    NEG = "neg"
    NEC = "nec"
    POSS = "poss"
    CONJ = "conj"
    DISJ = "disj"
    IMPL = "impl"
    EQUI = "equi"

    @property
    def arity(self) -> int:
        return _ARITY[self]

    @property
    def is_unary(self) -> bool:
        return _ARITY[self] == 1

    @property
    def is_binary(self) -> bool:
        return _ARITY[self] == 2


_ARITY = {
    FormulaType.PROP: 0,
    FormulaType.BOT: 0,
    FormulaType.NEG: 1,
    FormulaType.NEC: 1,
    FormulaType.POSS: 1,
    FormulaType.CONJ: 2,
    FormulaType.DISJ: 2,
    FormulaType.IMPL: 2,
    FormulaType.EQUI: 2,
}


class Formula:
    """A node of a formula tree.

    Nodes are not checked on construction; use :meth:`validate` (the
    printer and evaluator do) before trusting a tree built by hand.

    Args:
        ftype: Node tag.
        children: Sub-formulas, one for unary nodes and two for binary
            nodes.
        name: Variable name, only for ``PROP`` nodes.
    """

    __slots__ = ("ftype", "children", "name", "_hash")

    def __init__(
        self,
        ftype: FormulaType,
        children: Tuple["Formula", ...] = (),
        name: str = "",
    ) -> None:
        object.__setattr__(self, "ftype", ftype)
        object.__setattr__(self, "children", tuple(children))
        object.__setattr__(self, "name", name)
        object.__setattr__(
            self, "_hash", hash((ftype, self.children, name))
        )

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("Formula nodes are immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Formula):
            return NotImplemented
        return (
            self.ftype is other.ftype
            and self.name == other.name
            and self.children == other.children
        )

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        if self.ftype is FormulaType.PROP:
            return f"Formula(prop, '{self.name}')"
        if self.ftype is FormulaType.BOT:
            return "Formula(bot)"
        return f"Formula({self.ftype.value}, {list(self.children)})"

    @property
    def left(self) -> "Formula":
        return self.children[0]

    @property
    def right(self) -> "Formula":
        return self.children[1]

    def validate(self) -> "Formula":
        """Check the whole tree against the grammar.

        Returns:
            ``self``, so the call can be chained.

        Raises:
            InvalidStructureError: If a node has the wrong number of
                children, an unknown tag, or a malformed variable name.
        """
        for node in self.walk():
            if not isinstance(node, Formula):
                raise InvalidStructureError(
                    f"Expected a formula node, got {type(node).__name__}"
                )
            if not isinstance(node.ftype, FormulaType):
                raise InvalidStructureError(
                    f"Unknown formula tag {node.ftype!r}"
                )
            if len(node.children) != node.ftype.arity:
                raise InvalidStructureError(
                    f"'{node.ftype.value}' takes {node.ftype.arity} "
                    f"operand(s), got {len(node.children)}"
                )
            if node.ftype is FormulaType.PROP and not (
                isinstance(node.name, str) and NAME_PATTERN.fullmatch(node.name)
            ):
                raise InvalidStructureError(
                    f"Invalid proposition name {node.name!r}"
                )
        return self

    def walk(self) -> Iterator["Formula"]:
        """Yield every node of the tree, root first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Formula):
                stack.extend(reversed(node.children))

    def propositions(self) -> FrozenSet[str]:
        """Names of all variables occurring in the formula."""
        return frozenset(
            node.name for node in self.walk()
            if node.ftype is FormulaType.PROP
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-like dict form.

        Raises:
            InvalidStructureError: For ``BOT``, which has no dict form.
        """
        if self.ftype is FormulaType.PROP:
            return {"prop": self.name}
        if self.ftype is FormulaType.BOT:
            raise InvalidStructureError("Falsum has no dict representation")
        if self.ftype.is_unary:
            return {self.ftype.value: self.children[0].to_dict()}
        return {self.ftype.value: [c.to_dict() for c in self.children]}


BOT = Formula(FormulaType.BOT)


def prop(name: str) -> Formula:
    """Propositional variable ``name``."""
    return Formula(FormulaType.PROP, name=name)


def neg(a: Formula) -> Formula:
    """Negation ``~a``."""
    return Formula(FormulaType.NEG, (a,))


def nec(a: Formula) -> Formula:
    """Necessity ``[]a``."""
    return Formula(FormulaType.NEC, (a,))


def poss(a: Formula) -> Formula:
    """Possibility ``<>a``."""
    return Formula(FormulaType.POSS, (a,))


def conj(a: Formula, b: Formula) -> Formula:
    """Conjunction ``(a & b)``."""
    return Formula(FormulaType.CONJ, (a, b))


def disj(a: Formula, b: Formula) -> Formula:
    """Disjunction ``(a | b)``."""
    return Formula(FormulaType.DISJ, (a, b))


def impl(a: Formula, b: Formula) -> Formula:
    """Implication ``(a -> b)``."""
    return Formula(FormulaType.IMPL, (a, b))


def equi(a: Formula, b: Formula) -> Formula:
    """Equivalence ``(a <-> b)``."""
    return Formula(FormulaType.EQUI, (a, b))


_DICT_TAGS = {
    t.value: t for t in FormulaType if t is not FormulaType.BOT
}


def from_dict(data: Any) -> Formula:
    """Build a formula tree from its dict form.

    Args:
        data: A single-key dict such as ``{"prop": "p"}``,
            ``{"neg": {...}}`` or ``{"impl": [{...}, {...}]}``.

    Returns:
        The validated :class:`Formula`.

    Raises:
        InvalidStructureError: If ``data`` does not describe a wff.
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise InvalidStructureError(
            f"Expected a single-key formula dict, got {data!r}"
        )
    (key, value), = data.items()
    ftype = _DICT_TAGS.get(key)
    if ftype is None:
        raise InvalidStructureError(f"Unknown formula tag {key!r}")

    if ftype is FormulaType.PROP:
        if not isinstance(value, str) or not NAME_PATTERN.fullmatch(value):
            raise InvalidStructureError(
                f"Invalid proposition name {value!r}"
            )
        return prop(value)
    if ftype.is_unary:
        return Formula(ftype, (from_dict(value),))
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InvalidStructureError(
            f"'{key}' takes exactly 2 operands, got {value!r}"
        )
    return Formula(ftype, (from_dict(value[0]), from_dict(value[1])))
