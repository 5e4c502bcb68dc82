"""Tests for torchmpl.functional and torchmpl.closure."""

import torch
import pytest

from torchmpl import functional as F
from torchmpl.closure import (
    confluence_violations,
    is_forward_confluent,
    is_transitive,
    transitive_closure,
)


def rel(pairs, n):
    return F.adjacency(pairs, n)


class TestRelations:
    def test_adjacency(self):
        A = rel([(0, 1), (2, 2)], 3)
        assert A.dtype == torch.bool
        assert A.shape == (3, 3)
        assert F.to_pairs(A) == {(0, 1), (2, 2)}

    def test_empty(self):
        A = rel([], 0)
        assert A.shape == (0, 0)
        assert F.to_pairs(transitive_closure(A)) == set()

    def test_compose(self):
        A = rel([(0, 1)], 3)
        B = rel([(1, 2)], 3)
        assert F.to_pairs(F.compose(A, B)) == {(0, 2)}
        assert F.to_pairs(F.compose(B, A)) == set()

    def test_with_reflexive_skips_removed(self):
        A = rel([(0, 1)], 3)
        live = torch.tensor([True, False, True])
        assert F.to_pairs(F.with_reflexive(A, live)) == {(0, 1), (0, 0), (2, 2)}
        assert torch.all(F.with_reflexive(A).diagonal())


class TestModalOperators:
    def test_necessity(self):
        A = rel([(0, 1), (0, 2), (1, 2)], 3)
        x = torch.tensor([False, True, False])
        # world 0 sees a false world, 1 sees only false, 2 sees nothing
        assert F.necessity(x, A).tolist() == [False, False, True]

    def test_possibility(self):
        A = rel([(0, 1), (0, 2), (1, 2)], 3)
        x = torch.tensor([False, True, False])
        assert F.possibility(x, A).tolist() == [True, False, False]

    def test_duality(self):
        """□ϕ ≡ ¬◇¬ϕ."""
        A = rel([(0, 0), (0, 1), (1, 2), (2, 0)], 3)
        x = torch.tensor([True, False, True])
        assert torch.equal(F.necessity(x, A), ~F.possibility(~x, A))


class TestTransitiveClosure:
    def test_chain(self):
        P = rel([(0, 0), (1, 1), (2, 2), (0, 1), (1, 2)], 3)
        C = transitive_closure(P)
        assert F.to_pairs(C) == {
            (0, 0), (1, 1), (2, 2), (0, 1), (1, 2), (0, 2)
        }

    def test_no_self_loops_added_without_cycle(self):
        C = transitive_closure(rel([(0, 1), (1, 2)], 3))
        assert not C.diagonal().any()

    def test_cycle(self):
        C = transitive_closure(rel([(0, 1), (1, 2), (2, 0)], 3))
        assert C.all()

    def test_idempotent_and_transitive(self):
        A = rel([(3, 1), (1, 4), (4, 0), (2, 3)], 5)
        C = transitive_closure(A)
        assert is_transitive(C)
        assert torch.equal(transitive_closure(C), C)

    def test_does_not_modify_input(self):
        A = rel([(0, 1), (1, 2)], 3)
        before = A.clone()
        transitive_closure(A)
        assert torch.equal(A, before)


class TestForwardConfluence:
    def test_counterexample(self):
        P = rel([(0, 0), (1, 1), (2, 2), (0, 1)], 3)
        R = rel([(0, 2)], 3)
        assert not is_forward_confluent(P, R)
        # i=0 relates to j=2 and precedes k=1; nothing closes (2, 1)
        assert F.to_pairs(confluence_violations(P, R)) == {(2, 1)}

    def test_diamond_closes(self):
        # 0 ≤ 1, 0 R 2, 2 ≤ 3, 1 R 3
        P = rel([(0, 0), (1, 1), (2, 2), (3, 3), (0, 1), (2, 3)], 4)
        R = rel([(0, 2), (1, 3)], 4)
        assert is_forward_confluent(P, R)

    def test_discrete_preorder_always_confluent(self):
        P = rel([(0, 0), (1, 1), (2, 2)], 3)
        R = rel([(0, 1), (1, 2), (2, 0)], 3)
        assert is_forward_confluent(P, R)

    def test_empty_relation(self):
        P = rel([(0, 0), (1, 1), (0, 1)], 2)
        assert is_forward_confluent(P, rel([], 2))
