"""
torchmpl.wff
~~~~~~~~~~~~

:class:`Wff` bundles a formula tree with its three rendered forms, so a
formula typed once can be displayed and evaluated repeatedly without
re-parsing or re-printing.
"""

from __future__ import annotations

from typing import Any, Dict, Union

from torchmpl.formula import Formula, from_dict
from torchmpl.parser import parse
from torchmpl.printer import ascii_to_latex, ascii_to_unicode, to_ascii

__all__ = ["Wff"]


class Wff:
    """A well-formed formula with cached renderings.

    Args:
        source: ASCII formula text, a :class:`Formula` tree, or the tree's
            dict form.

    Raises:
        ParseError: If ``source`` is text that does not parse.
        InvalidStructureError: If ``source`` is a malformed tree.

    Example::

        >>> wff = Wff("p->[]p")
        >>> wff.ascii
        '(p -> []p)'
        >>> wff.unicode
        '(p → □p)'
    """

    __slots__ = ("formula", "ascii", "latex", "unicode")

    def __init__(self, source: Union[str, Formula, Dict[str, Any]]) -> None:
        if isinstance(source, str):
            formula = parse(source)
        elif isinstance(source, dict):
            formula = from_dict(source)
        else:
            formula = source
        self.ascii = to_ascii(formula)
        self.formula = formula
        self.latex = ascii_to_latex(self.ascii)
        self.unicode = ascii_to_unicode(self.ascii)

    def to_dict(self) -> Dict[str, Any]:
        """The tree's JSON-like dict form."""
        return self.formula.to_dict()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Wff):
            return NotImplemented
        return self.formula == other.formula

    def __hash__(self) -> int:
        return hash(self.formula)

    def __str__(self) -> str:
        return self.ascii

    def __repr__(self) -> str:
        return f"Wff('{self.ascii}')"
