"""
torchmpl.closure
~~~~~~~~~~~~~~~~

Closure and confluence checks over boolean accessibility matrices.

- :func:`transitive_closure` derives the reachability relation of an edge
  set (Warshall's all-pairs algorithm).
- :func:`is_forward_confluent` checks the diamond property linking the
  preorder and the modal relation of an intuitionistic modal frame.

Both are read-only: they return new tensors and never modify their inputs.
"""

from __future__ import annotations

from torch import Tensor

from torchmpl import functional as F

__all__ = [
    "transitive_closure",
    "is_transitive",
    "confluence_violations",
    "is_forward_confluent",
]


def transitive_closure(adjacency: Tensor) -> Tensor:
    r"""Transitive closure of a relation.

    For every intermediate world *k* (one pass, in index order) and every
    pair *(i, j)*, adds ``(i, j)`` whenever ``(i, k)`` and ``(k, j)`` are
    present:

    .. math::
        C_{i,j} \leftarrow C_{i,j} \vee (C_{i,k} \wedge C_{k,j})

    Cubic in |W|, vectorized over *(i, j)*.

    Args:
        adjacency: Boolean matrix ``(|W|, |W|)``.

    Returns:
        Boolean matrix ``(|W|, |W|)`` of the closure. Self-loops are only
        present where the input has them or a cycle passes through.
    """
    C = adjacency.clone().bool()
    for k in range(C.shape[0]):
        C |= C[:, k:k + 1] & C[k:k + 1, :]
    return C


def is_transitive(adjacency: Tensor) -> bool:
    """Whether ``A ; A`` is contained in ``A``."""
    A = adjacency.bool()
    return not bool((F.compose(A, A) & ~A).any())


def confluence_violations(preorder: Tensor, relation: Tensor) -> Tensor:
    r"""Pairs *(j, k)* that break forward confluence.

    *(j, k)* is a violation when some *i* has ``i ≤ k`` and ``i R j`` but
    no *m* has ``j ≤ m`` and ``k R m``:

    .. math::
        V = (R^\top ; \le) \wedge \neg(\le ; R^\top)

    Args:
        preorder: Boolean matrix ``(|W|, |W|)`` of ``≤``.
        relation: Boolean matrix ``(|W|, |W|)`` of ``R``.

    Returns:
        Boolean matrix ``(|W|, |W|)`` indexed by ``[j, k]``.
    """
    P = preorder.bool()
    R = relation.bool()
    premise = F.compose(R.t(), P)      # exists i: i R j and i <= k
    conclusion = F.compose(P, R.t())   # exists m: j <= m and k R m
    return premise & ~conclusion


def is_forward_confluent(preorder: Tensor, relation: Tensor) -> bool:
    """Whether every ``i ≤ k``, ``i R j`` closes with some ``j ≤ m``,
    ``k R m``.

    Evaluated from scratch on every call.

    Args:
        preorder: Boolean matrix ``(|W|, |W|)`` of the preorder.
        relation: Boolean matrix ``(|W|, |W|)`` of the relation.

    Returns:
        ``True`` if the frame is forward confluent.
    """
    return not bool(confluence_violations(preorder, relation).any())
