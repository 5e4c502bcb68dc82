"""
torchmpl.evaluation
~~~~~~~~~~~~~~~~~~~

Truth of formulas in a :class:`~torchmpl.kripke.KripkeModel`.

Evaluation is bottom-up over the formula tree and computes each
sub-formula at every state at once, as a boolean vector over state
slots. With ``≤`` the preorder closure and ``R'`` the effective relation:

- ``p``: the valuation; ``⊥``: false everywhere
- ``~A``: ``A -> ⊥`` holds at every ``w1`` with ``w ≤ w1``
  (intuitionistic negation)
- ``&``, ``|``, ``->``, ``<->``: classical, at the same state
- ``[]A``: ``A`` holds at every ``w2`` with ``w ≤ w1 R' w2``
- ``<>A``: ``A`` holds at some ``w2`` with ``w ≤ w1 R' w2``, or with the
  local-diamond rule at some ``w1`` with ``w R' w1``

:class:`Rules` selects the semantic variant: ``reflexive`` adds every
self-loop to ``R'``, ``confluent`` refuses to evaluate unless the frame
is forward confluent, ``local_diamond`` switches ``<>`` as above.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import torch
from torch import Tensor

from torchmpl import functional as F
from torchmpl.closure import is_forward_confluent
from torchmpl.exceptions import ConfluenceViolation, StateNotFoundError
from torchmpl.formula import BOT, Formula, FormulaType, from_dict, impl
from torchmpl.kripke import EdgeKind, KripkeModel
from torchmpl.parser import parse
from torchmpl.wff import Wff

__all__ = [
    "CONFLUENCE_FAILED",
    "Rules",
    "Evaluator",
    "as_formula",
    "evaluate",
    "evaluate_all",
    "truth",
]

logger = logging.getLogger(__name__)

CONFLUENCE_FAILED = "Confluence check failed!"

FormulaLike = Union[str, Wff, Formula, Dict[str, Any]]


@dataclass(frozen=True)
class Rules:
    """Semantic options for evaluation.

    Args:
        reflexive: Evaluate over the relation plus every self-loop.
        confluent: Require forward confluence of preorder and relation.
        local_diamond: Evaluate ``<>`` over the relation alone instead of
            preorder-then-relation.
    """

    reflexive: bool = False
    confluent: bool = False
    local_diamond: bool = False

    @classmethod
    def from_flags(cls, flags: Iterable[bool]) -> "Rules":
        """Build from the positional form ``[reflexive, confluent,
        local_diamond]``."""
        flags = list(flags)
        if len(flags) != 3:
            raise ValueError(f"Expected 3 rule flags, got {len(flags)}")
        return cls(*(bool(f) for f in flags))

    def to_flags(self) -> List[bool]:
        return [self.reflexive, self.confluent, self.local_diamond]


def as_formula(formula: FormulaLike) -> Formula:
    """Coerce ASCII text, a :class:`Wff`, a tree or a dict to a validated
    formula tree.

    Raises:
        TypeError: If ``formula`` is none of those.
        ParseError: If text does not parse.
        InvalidStructureError: If a tree or dict is malformed.
    """
    if isinstance(formula, str):
        return parse(formula)
    if isinstance(formula, Wff):
        return formula.formula
    if isinstance(formula, Formula):
        return formula.validate()
    if isinstance(formula, dict):
        return from_dict(formula)
    raise TypeError(f"Invalid formula! Got {type(formula).__name__}")


class Evaluator:
    """Evaluates formulas over a model under a set of rules.

    Each call to :meth:`evaluate` first refreshes the model's closures and
    builds the effective relation, so edits made between calls are always
    seen.

    Args:
        model: The model to evaluate in.
        rules: Semantic options. Default :class:`Rules` with all flags off.

    Example::

        >>> ev = Evaluator(model, Rules(reflexive=True))
        >>> ev.evaluate("[]p")   # tensor([True, False, ...])
    """

    def __init__(self, model: KripkeModel, rules: Optional[Rules] = None) -> None:
        if not isinstance(model, KripkeModel):
            raise TypeError(f"Invalid model! Got {type(model).__name__}")
        self.model = model
        self.rules = rules if rules is not None else Rules()
        self._preorder: Optional[Tensor] = None
        self._relation: Optional[Tensor] = None
        self._composed: Optional[Tensor] = None
        self._cache: Dict[Formula, Tensor] = {}

    def prepare(self) -> None:
        """Recompute closures and the effective relation.

        Raises:
            ConfluenceViolation: If the ``confluent`` rule is set and the
                frame is not forward confluent.
        """
        model = self.model
        for kind in EdgeKind:
            model.recompute_closure(kind)

        preorder = model.trans_preorders
        relation = model.adjacency(EdgeKind.RELATION)
        if self.rules.reflexive:
            relation = F.with_reflexive(relation, model.live_mask())

        if self.rules.confluent and not is_forward_confluent(preorder, relation):
            logger.debug("Forward confluence fails for %r", model)
            raise ConfluenceViolation(CONFLUENCE_FAILED)

        self._preorder = preorder
        self._relation = relation
        self._composed = F.compose(preorder, relation)
        self._cache = {}

    def evaluate(self, formula: FormulaLike) -> Tensor:
        """Truth value of ``formula`` at every state slot.

        Returns:
            Boolean vector ``(num_slots,)``. Entries of removed slots are
            meaningless.

        Raises:
            ConfluenceViolation: See :meth:`prepare`.
        """
        tree = as_formula(formula)
        self.prepare()
        return self._eval(tree)

    def _eval(self, root: Formula) -> Tensor:
        # post-order over an explicit stack, so nesting depth is unbounded
        stack = [root]
        while stack:
            node = stack[-1]
            if node in self._cache:
                stack.pop()
                continue
            operands = self._operands(node)
            pending = [child for child in operands if child not in self._cache]
            if pending:
                stack.extend(pending)
                continue
            stack.pop()
            values = [self._cache[child] for child in operands]
            self._cache[node] = self._apply(node, values)
        return self._cache[root]

    @staticmethod
    def _operands(node: Formula) -> Tuple[Formula, ...]:
        if node.ftype is FormulaType.NEG:
            # A -> ⊥ at every preorder successor
            return (impl(node.left, BOT),)
        return node.children

    def _apply(self, node: Formula, values: List[Tensor]) -> Tensor:
        ftype = node.ftype
        if ftype is FormulaType.PROP:
            return self.model.valuation_vector(node.name)
        if ftype is FormulaType.BOT:
            return torch.zeros(
                self.model.num_slots, dtype=torch.bool, device=self.model.device
            )
        if ftype is FormulaType.NEG:
            return F.necessity(values[0], self._preorder)
        if ftype is FormulaType.NEC:
            return F.necessity(values[0], self._composed)
        if ftype is FormulaType.POSS:
            access = self._relation if self.rules.local_diamond else self._composed
            return F.possibility(values[0], access)

        a, b = values
        if ftype is FormulaType.CONJ:
            return a & b
        if ftype is FormulaType.DISJ:
            return a | b
        if ftype is FormulaType.IMPL:
            return ~a | b
        return a == b


def evaluate(
    model: KripkeModel,
    formula: FormulaLike,
    rules: Optional[Rules] = None,
) -> Tensor:
    """Truth value of ``formula`` at every state slot of ``model``.

    Raises:
        ConfluenceViolation: If ``rules.confluent`` is set and fails.
    """
    return Evaluator(model, rules).evaluate(formula)


def evaluate_all(
    model: KripkeModel,
    formula: FormulaLike,
    rules: Optional[Rules] = None,
) -> Union[Dict[int, bool], str]:
    """Truth value of ``formula`` at each live state.

    Returns:
        Dict from state index to truth value, or :data:`CONFLUENCE_FAILED`
        if the ``confluent`` rule is set and fails.
    """
    try:
        values = evaluate(model, formula, rules)
    except ConfluenceViolation as exc:
        return str(exc)
    return {i: bool(values[i]) for i in model.state_indices()}


def truth(
    model: KripkeModel,
    state: int,
    formula: FormulaLike,
    rules: Optional[Rules] = None,
) -> Union[bool, str]:
    """Truth value of ``formula`` at ``state`` of ``model``.

    Args:
        model: The model.
        state: Index of a live state.
        formula: ASCII text, :class:`Wff`, formula tree or dict form.
        rules: Semantic options. Default all off.

    Returns:
        The truth value, or :data:`CONFLUENCE_FAILED` if the ``confluent``
        rule is set and the frame is not forward confluent.

    Raises:
        TypeError: If ``model`` is not a :class:`KripkeModel` or
            ``formula`` is not a formula.
        StateNotFoundError: If ``state`` is not a live state.
        ParseError: If ``formula`` is text that does not parse.
        InvalidStructureError: If ``formula`` is a malformed tree.
    """
    if not isinstance(model, KripkeModel):
        raise TypeError(f"Invalid model! Got {type(model).__name__}")
    if not model.has_state(state):
        raise StateNotFoundError(state)
    tree = as_formula(formula)
    try:
        values = Evaluator(model, rules).evaluate(tree)
    except ConfluenceViolation as exc:
        return str(exc)
    return bool(values[state])
