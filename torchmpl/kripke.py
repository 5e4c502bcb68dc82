"""
torchmpl.kripke
~~~~~~~~~~~~~~~

Kripke model with a preorder and a modal relation.

A model M = ⟨W, ≤, R, V⟩ consists of:

- W: a finite set of states (worlds), addressed by stable integer indices
- ≤: a reflexive *preorder* along which valuations may only grow
- R: an independent accessibility *relation* for □ and ◇
- V: a valuation giving the set of variables true at each state

This module provides :class:`KripkeModel`, which owns states, both edge
sets and their transitive closures, and keeps the model invariants:

- **Monotonicity**: a variable true at ``s`` is true at every ``t`` with
  ``s ≤ t``. Edge insertions and valuation edits that would break it are
  rejected and leave the model unchanged.
- **Reflexivity**: every live state carries a preorder self-loop.
- **Closure freshness**: closures are recomputed after each structural
  mutation.
- **Tombstones**: a removed state keeps its slot (indices are never
  reused) but has no valuation and no incident edges.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple, Union

import torch
from torch import Tensor

from torchmpl import codec
from torchmpl import functional as F
from torchmpl.closure import is_forward_confluent, transitive_closure
from torchmpl.exceptions import ModelStringError, StateNotFoundError
from torchmpl.formula import NAME_PATTERN

__all__ = [
    "EdgeKind",
    "KripkeModel",
]

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]


class EdgeKind(Enum):
    """The two edge sets of a model."""

    PREORDER = "preorder"
    RELATION = "relation"


class _Slot:
    """Storage for one state index; ``removed`` marks a tombstone."""

    __slots__ = ("assignment", "removed")

    def __init__(self, assignment: FrozenSet[str]) -> None:
        self.assignment = assignment
        self.removed = False


def _true_variables(assignment: Optional[Mapping[str, bool]]) -> Set[str]:
    if assignment is None:
        return set()
    names = set()
    for name, value in assignment.items():
        _check_name(name)
        if isinstance(value, bool) and value:
            names.add(name)
    return names


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
        raise ValueError(f"Invalid propositional variable name {name!r}")


class KripkeModel:
    """Finite Kripke model with a monotonic preorder and a relation.

    States are created with :meth:`add_state` and addressed by the index
    it returns. Edges live in two ordered sets selected by
    :class:`EdgeKind`. Mutations that would break monotonicity return
    ``False`` instead of raising, since rejected edits are a normal part
    of interactive model building.

    Args:
        device: Device for the closure tensors. Default CPU.

    Example::

        >>> model = KripkeModel()
        >>> s0 = model.add_state({"p": False})
        >>> s1 = model.add_state({"p": True})
        >>> model.add_edge(s0, s1, "preorder")
        True
        >>> model.add_edge(s1, s0, "preorder")  # p would be lost
        False
        >>> model.export_string()
        'AP0,1R;ApP1R;'
    """

    def __init__(self, device: torch.device = torch.device("cpu")) -> None:
        self.device = device
        self._slots: List[_Slot] = []
        # dicts used as insertion-ordered sets of (source, target)
        self._edges: Dict[EdgeKind, Dict[Edge, None]] = {
            EdgeKind.PREORDER: {},
            EdgeKind.RELATION: {},
        }
        self._closures: Dict[EdgeKind, Tensor] = {}
        self._refresh()

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    @property
    def num_slots(self) -> int:
        """Number of indices handed out so far, removed ones included."""
        return len(self._slots)

    @property
    def num_states(self) -> int:
        """Number of live states."""
        return sum(not slot.removed for slot in self._slots)

    def has_state(self, index: object) -> bool:
        """Whether ``index`` names a live state."""
        return (
            isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < len(self._slots)
            and not self._slots[index].removed
        )

    def _require(self, index: object) -> _Slot:
        if not self.has_state(index):
            raise StateNotFoundError(index)
        return self._slots[index]

    def state_indices(self) -> List[int]:
        """Indices of the live states, ascending."""
        return [i for i, slot in enumerate(self._slots) if not slot.removed]

    def states(self) -> List[Optional[FrozenSet[str]]]:
        """True variables of every slot, ``None`` for removed slots."""
        return [
            None if slot.removed else slot.assignment for slot in self._slots
        ]

    def add_state(self, assignment: Optional[Mapping[str, bool]] = None) -> int:
        """Add a state and return its index.

        Args:
            assignment: Mapping from variable name to truth value. Only
                ``True`` entries are stored; non-boolean values are
                ignored.

        Returns:
            The new state's index.

        Raises:
            ValueError: If a variable name is not alphanumeric.
        """
        slot = _Slot(frozenset(_true_variables(assignment)))
        index = len(self._slots)
        self._slots.append(slot)
        self._edges[EdgeKind.PREORDER][(index, index)] = None
        self._refresh()
        return index

    def remove_state(self, index: int) -> None:
        """Remove a state and every edge touching it.

        The index becomes a tombstone and is never reused. Does nothing
        if ``index`` is not a live state.
        """
        if not self.has_state(index):
            return
        slot = self._slots[index]
        slot.removed = True
        slot.assignment = frozenset()
        for edges in self._edges.values():
            for edge in [e for e in edges if index in e]:
                del edges[edge]
        self._refresh()

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def valuation(self, variable: str, index: int) -> bool:
        """Truth value of ``variable`` at state ``index``.

        Raises:
            StateNotFoundError: If ``index`` is not a live state.
        """
        return variable in self._require(index).assignment

    def assignment(self, index: int) -> FrozenSet[str]:
        """Variables true at state ``index``.

        Raises:
            StateNotFoundError: If ``index`` is not a live state.
        """
        return self._require(index).assignment

    def variables(self) -> List[str]:
        """Sorted names of all variables true somewhere in the model."""
        names: Set[str] = set()
        for slot in self._slots:
            names |= slot.assignment
        return sorted(names)

    def valuation_vector(self, variable: str) -> Tensor:
        """Boolean vector ``(num_slots,)`` of ``variable`` per slot."""
        return torch.tensor(
            [variable in slot.assignment for slot in self._slots],
            dtype=torch.bool,
            device=self.device,
        )

    def live_mask(self) -> Tensor:
        """Boolean vector ``(num_slots,)``, ``True`` for live states."""
        return torch.tensor(
            [not slot.removed for slot in self._slots],
            dtype=torch.bool,
            device=self.device,
        )

    def edit_valuation(self, index: int, assignment: Mapping[str, bool]) -> bool:
        """Apply ``(variable, value)`` updates to a state, all or nothing.

        The edit is rejected if it would make a variable true while some
        preorder successor has it false, or false while some preorder
        predecessor has it true.

        Args:
            index: State to edit.
            assignment: Partial mapping from variable name to truth value;
                non-boolean values are ignored.

        Returns:
            ``True`` if the edit was applied, ``False`` if it was rejected
            or ``index`` is not a live state.

        Raises:
            ValueError: If a variable name is not alphanumeric.
        """
        if not self.has_state(index):
            return False
        updated = set(self._slots[index].assignment)
        for name, value in assignment.items():
            _check_name(name)
            if not isinstance(value, bool):
                continue
            if value:
                updated.add(name)
            else:
                updated.discard(name)

        for succ in self.successors(index, EdgeKind.PREORDER):
            if succ != index and not updated <= self._slots[succ].assignment:
                logger.debug(
                    "Rejected edit of state %d: successor %d lacks %s",
                    index, succ,
                    sorted(updated - self._slots[succ].assignment),
                )
                return False
        for pred in self.predecessors(index, EdgeKind.PREORDER):
            if pred != index and not self._slots[pred].assignment <= updated:
                logger.debug(
                    "Rejected edit of state %d: predecessor %d requires %s",
                    index, pred,
                    sorted(self._slots[pred].assignment - updated),
                )
                return False

        self._slots[index].assignment = frozenset(updated)
        return True

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    @property
    def preorders(self) -> List[Edge]:
        """Preorder edges in insertion order."""
        return list(self._edges[EdgeKind.PREORDER])

    @property
    def relations(self) -> List[Edge]:
        """Relation edges in insertion order."""
        return list(self._edges[EdgeKind.RELATION])

    def edges(self, kind: Union[EdgeKind, str]) -> List[Edge]:
        """Edges of the given kind in insertion order."""
        return list(self._edges[EdgeKind(kind)])

    def successors(self, index: int, kind: Union[EdgeKind, str]) -> List[int]:
        """Direct successors of ``index`` (not the closure), in edge order.

        Raises:
            StateNotFoundError: If ``index`` is not a live state.
        """
        self._require(index)
        return [t for s, t in self._edges[EdgeKind(kind)] if s == index]

    def predecessors(self, index: int, kind: Union[EdgeKind, str]) -> List[int]:
        """Direct predecessors of ``index``, in edge order.

        Raises:
            StateNotFoundError: If ``index`` is not a live state.
        """
        self._require(index)
        return [s for s, t in self._edges[EdgeKind(kind)] if t == index]

    def add_edge(
        self,
        source: int,
        target: int,
        kind: Union[EdgeKind, str] = EdgeKind.RELATION,
    ) -> bool:
        """Add ``(source, target)`` to an edge set.

        A preorder edge is rejected if some variable true at ``source`` is
        false at ``target``. Adding an existing edge is a no-op.

        Args:
            source: Source state index.
            target: Target state index.
            kind: Edge set to add to. Default relation.

        Returns:
            ``True`` if the edge is present afterwards, ``False`` if it was
            rejected or an endpoint is not a live state.
        """
        kind = EdgeKind(kind)
        if not (self.has_state(source) and self.has_state(target)):
            logger.debug(
                "Rejected %s edge (%r, %r): no such state",
                kind.value, source, target,
            )
            return False
        edges = self._edges[kind]
        if (source, target) in edges:
            return True
        if kind is EdgeKind.PREORDER:
            missing = self._slots[source].assignment - self._slots[target].assignment
            if missing:
                logger.debug(
                    "Rejected preorder edge (%d, %d): target lacks %s",
                    source, target, sorted(missing),
                )
                return False
        edges[(source, target)] = None
        self.recompute_closure(kind)
        return True

    def remove_edge(
        self,
        source: int,
        target: int,
        kind: Union[EdgeKind, str] = EdgeKind.RELATION,
    ) -> bool:
        """Remove ``(source, target)`` from an edge set.

        The preorder self-loop of a live state cannot be removed.

        Returns:
            ``True`` if an edge was removed.
        """
        kind = EdgeKind(kind)
        if kind is EdgeKind.PREORDER and source == target and self.has_state(source):
            logger.debug("Rejected removal of reflexive preorder edge at %d", source)
            return False
        edges = self._edges[kind]
        if (source, target) not in edges:
            return False
        del edges[(source, target)]
        self.recompute_closure(kind)
        return True

    def adjacency(self, kind: Union[EdgeKind, str]) -> Tensor:
        """Boolean matrix ``(num_slots, num_slots)`` of the direct edges."""
        return F.adjacency(
            self._edges[EdgeKind(kind)], len(self._slots), device=self.device
        )

    # ------------------------------------------------------------------
    # Closures
    # ------------------------------------------------------------------

    def recompute_closure(self, kind: Union[EdgeKind, str]) -> Tensor:
        """Recompute and store the transitive closure of an edge set.

        Returns:
            Boolean matrix ``(num_slots, num_slots)``.
        """
        kind = EdgeKind(kind)
        self._closures[kind] = transitive_closure(self.adjacency(kind))
        return self._closures[kind]

    def _refresh(self) -> None:
        for kind in EdgeKind:
            self.recompute_closure(kind)

    @property
    def trans_preorders(self) -> Tensor:
        """Transitive closure of the preorder, ``(num_slots, num_slots)``."""
        return self._closures[EdgeKind.PREORDER]

    @property
    def trans_relations(self) -> Tensor:
        """Transitive closure of the relation, ``(num_slots, num_slots)``."""
        return self._closures[EdgeKind.RELATION]

    def closure(self, kind: Union[EdgeKind, str]) -> Set[Edge]:
        """Pairs in the current transitive closure of an edge set."""
        return F.to_pairs(self._closures[EdgeKind(kind)])

    def check_forward_confluence(self) -> bool:
        """Whether the preorder closure and the relation are forward
        confluent. Computed fresh on every call."""
        return is_forward_confluent(
            self.trans_preorders, self.adjacency(EdgeKind.RELATION)
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export_string(self) -> str:
        """Encode the model as a compact model string (see
        :mod:`torchmpl.codec`)."""
        records: List[Optional[codec.StateRecord]] = []
        for index, slot in enumerate(self._slots):
            if slot.removed:
                records.append(None)
                continue
            records.append(codec.StateRecord(
                sorted(slot.assignment),
                self.successors(index, EdgeKind.PREORDER),
                self.successors(index, EdgeKind.RELATION),
            ))
        return codec.encode(records)

    @classmethod
    def from_string(
        cls, text: str, device: torch.device = torch.device("cpu")
    ) -> "KripkeModel":
        """Build a model from a model string.

        Every live state gets its reflexive preorder edge whether or not
        the string lists it.

        Raises:
            ModelStringError: If ``text`` is malformed, an edge names a
                missing or removed state, or a preorder edge breaks
                monotonicity.
        """
        records = codec.decode(text)
        model = cls(device=device)
        for record in records:
            slot = _Slot(frozenset())
            if record is None:
                slot.removed = True
            else:
                slot.assignment = frozenset(record.assignment)
            model._slots.append(slot)

        for source, record in enumerate(records):
            if record is None:
                continue
            for target in record.preorders:
                model._load_edge(source, target, EdgeKind.PREORDER)
            model._edges[EdgeKind.PREORDER].setdefault((source, source), None)
            for target in record.relations:
                model._load_edge(source, target, EdgeKind.RELATION)

        model._refresh()
        return model

    def _load_edge(self, source: int, target: int, kind: EdgeKind) -> None:
        if not self.has_state(target):
            raise ModelStringError(
                f"{kind.value} edge ({source}, {target}) names a missing state"
            )
        if kind is EdgeKind.PREORDER and not (
            self._slots[source].assignment <= self._slots[target].assignment
        ):
            raise ModelStringError(
                f"preorder edge ({source}, {target}) breaks monotonicity"
            )
        self._edges[kind][(source, target)] = None

    def import_string(self, text: str) -> bool:
        """Replace this model's contents with a decoded model string.

        Returns:
            ``True`` on success. On any decoding error the model is left
            exactly as it was and ``False`` is returned.
        """
        try:
            loaded = type(self).from_string(text, device=self.device)
        except ModelStringError as exc:
            logger.debug("Rejected model string import: %s", exc)
            return False
        self._slots = loaded._slots
        self._edges = loaded._edges
        self._closures = loaded._closures
        return True

    def __repr__(self) -> str:
        return (
            f"KripkeModel(num_states={self.num_states}, "
            f"num_slots={self.num_slots}, "
            f"preorders={len(self._edges[EdgeKind.PREORDER])}, "
            f"relations={len(self._edges[EdgeKind.RELATION])})"
        )
