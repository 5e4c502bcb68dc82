"""
torchmpl.functional
~~~~~~~~~~~~~~~~~~~

Functional API for crisp (two-valued) Kripke semantics.

Truth values of a formula across the worlds of a model are a boolean
vector ``(|W|,)``; an accessibility relation is a boolean matrix
``(|W|, |W|)`` with ``A[w, w']`` set when ``w'`` is accessible from
``w``. All functions are stateless and evaluate every world at once.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import torch
from torch import Tensor

__all__ = [
    # Relations
    "adjacency",
    "to_pairs",
    "compose",
    "with_reflexive",
    # Modal operators
    "necessity",
    "possibility",
]

# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


def adjacency(
    pairs: Iterable[Tuple[int, int]],
    num_worlds: int,
    device: torch.device = torch.device("cpu"),
) -> Tensor:
    """Build a boolean accessibility matrix from ``(source, target)`` pairs.

    Args:
        pairs: Edges of the relation.
        num_worlds: Number of worlds |W|; every index must be below it.
        device: Target device.

    Returns:
        Boolean matrix ``(num_worlds, num_worlds)``.
    """
    A = torch.zeros(num_worlds, num_worlds, dtype=torch.bool, device=device)
    pairs = list(pairs)
    if pairs:
        idx = torch.tensor(pairs, dtype=torch.long, device=device)
        A[idx[:, 0], idx[:, 1]] = True
    return A


def to_pairs(A: Tensor) -> set:
    """Set of ``(source, target)`` index pairs of a boolean matrix."""
    return {(int(i), int(j)) for i, j in A.nonzero().tolist()}


def compose(A: Tensor, B: Tensor) -> Tensor:
    r"""Relational composition ``A ; B``.

    .. math::
        (A ; B)_{w, w''} = \exists w'.\; A_{w, w'} \wedge B_{w', w''}

    Args:
        A: First relation ``(|W|, |W|)``.
        B: Second relation ``(|W|, |W|)``.

    Returns:
        Boolean matrix ``(|W|, |W|)``.
    """
    return (A.float() @ B.float()) > 0


def with_reflexive(A: Tensor, live: Optional[Tensor] = None) -> Tensor:
    """Union of a relation with the identity on the live worlds.

    Args:
        A: Relation ``(|W|, |W|)``.
        live: Optional boolean mask ``(|W|,)``; removed worlds get no
            self-loop. All worlds are live if omitted.

    Returns:
        Boolean matrix ``(|W|, |W|)``.
    """
    eye = torch.eye(A.shape[0], dtype=torch.bool, device=A.device)
    if live is not None:
        eye = eye & live.unsqueeze(0)
    return A | eye


# ---------------------------------------------------------------------------
# Modal operators
# ---------------------------------------------------------------------------


def necessity(values: Tensor, accessibility: Tensor) -> Tensor:
    r"""Necessity (Box / □): true where ``values`` holds at every
    accessible world.

    .. math::
        (\Box\phi)_w = \forall w'.\; A_{w, w'} \to \phi_{w'}

    Worlds with no successors satisfy □ϕ vacuously.

    Args:
        values: Boolean truth values ``(|W|,)`` of ϕ.
        accessibility: Boolean matrix ``(|W|, |W|)``.

    Returns:
        Boolean truth values ``(|W|,)`` of □ϕ.
    """
    counterexample = accessibility & ~values.unsqueeze(0)
    return ~counterexample.any(dim=1)


def possibility(values: Tensor, accessibility: Tensor) -> Tensor:
    r"""Possibility (Diamond / ◇): true where ``values`` holds at some
    accessible world.

    .. math::
        (\Diamond\phi)_w = \exists w'.\; A_{w, w'} \wedge \phi_{w'}

    Args:
        values: Boolean truth values ``(|W|,)`` of ϕ.
        accessibility: Boolean matrix ``(|W|, |W|)``.

    Returns:
        Boolean truth values ``(|W|,)`` of ◇ϕ.
    """
    witness = accessibility & values.unsqueeze(0)
    return witness.any(dim=1)
