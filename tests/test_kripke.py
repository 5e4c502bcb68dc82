"""Tests for torchmpl.kripke."""

import torch
import pytest

from torchmpl import EdgeKind, KripkeModel, StateNotFoundError

PRE = EdgeKind.PREORDER
REL = EdgeKind.RELATION


@pytest.fixture
def chain():
    """0 ≤ 1 ≤ 2 with p true from state 1 on and q only at 2."""
    model = KripkeModel()
    model.add_state({})
    model.add_state({"p": True})
    model.add_state({"p": True, "q": True})
    assert model.add_edge(0, 1, PRE)
    assert model.add_edge(1, 2, PRE)
    return model


class TestStates:
    def test_add_state_indices(self):
        model = KripkeModel()
        assert model.add_state() == 0
        assert model.add_state({"p": True}) == 1
        assert model.num_states == 2

    def test_only_true_entries_stored(self):
        model = KripkeModel()
        s = model.add_state({"p": True, "q": False, "r": "yes"})
        assert model.assignment(s) == {"p"}
        assert model.valuation("p", s)
        assert not model.valuation("q", s)
        assert not model.valuation("unknown", s)

    def test_reflexive_preorder_on_creation(self):
        model = KripkeModel()
        s = model.add_state()
        assert model.successors(s, PRE) == [s]
        assert model.preorders == [(0, 0)]
        assert model.relations == []

    def test_invalid_variable_name(self):
        model = KripkeModel()
        with pytest.raises(ValueError):
            model.add_state({"not ok": True})

    def test_valuation_missing_state(self):
        model = KripkeModel()
        with pytest.raises(StateNotFoundError):
            model.valuation("p", 0)
        with pytest.raises(LookupError):
            model.valuation("p", -1)

    def test_remove_state_purges_edges(self, chain):
        chain.add_edge(0, 1, REL)
        chain.add_edge(1, 2, REL)
        chain.add_edge(2, 1, REL)
        chain.remove_state(1)

        assert not chain.has_state(1)
        assert chain.num_states == 2
        assert chain.num_slots == 3
        assert all(1 not in e for e in chain.preorders + chain.relations)
        assert chain.states() == [frozenset(), None, frozenset({"p", "q"})]
        with pytest.raises(StateNotFoundError):
            chain.valuation("p", 1)

    def test_remove_state_noop_when_absent(self, chain):
        chain.remove_state(1)
        chain.remove_state(1)
        chain.remove_state(42)
        assert chain.state_indices() == [0, 2]

    def test_indices_never_reused(self):
        model = KripkeModel()
        model.add_state()
        model.remove_state(0)
        assert model.add_state() == 1
        assert not model.has_state(0)

    def test_variables(self, chain):
        assert chain.variables() == ["p", "q"]


class TestEdges:
    def test_successors_in_insertion_order(self):
        model = KripkeModel()
        for _ in range(4):
            model.add_state()
        model.add_edge(0, 3, REL)
        model.add_edge(0, 1, REL)
        model.add_edge(0, 2, REL)
        assert model.successors(0, REL) == [3, 1, 2]
        assert model.successors(0, "relation") == [3, 1, 2]
        assert model.predecessors(2, REL) == [0]

    def test_add_edge_idempotent(self):
        model = KripkeModel()
        model.add_state()
        model.add_state()
        assert model.add_edge(0, 1, REL)
        assert model.add_edge(0, 1, REL)
        assert model.relations == [(0, 1)]

    def test_add_edge_missing_state(self):
        model = KripkeModel()
        model.add_state()
        assert not model.add_edge(0, 5, REL)
        assert not model.add_edge(5, 0, PRE)
        assert model.relations == []

    def test_preorder_monotonicity(self):
        model = KripkeModel()
        model.add_state({"p": True})
        model.add_state({})
        assert not model.add_edge(0, 1, PRE)
        assert model.add_edge(1, 0, PRE)
        assert model.preorders == [(0, 0), (1, 1), (1, 0)]

    def test_rejected_preorder_leaves_edges(self):
        model = KripkeModel()
        model.add_state({"p": True})
        model.add_state({"p": True})
        model.add_state({})
        assert model.add_edge(0, 1, PRE)
        before = model.preorders
        closure_before = model.trans_preorders.clone()
        assert not model.add_edge(1, 2, PRE)
        assert model.preorders == before
        assert torch.equal(model.trans_preorders, closure_before)

    def test_relation_ignores_monotonicity(self):
        model = KripkeModel()
        model.add_state({"p": True})
        model.add_state({})
        assert model.add_edge(0, 1, REL)

    def test_remove_edge(self):
        model = KripkeModel()
        model.add_state()
        model.add_state()
        model.add_edge(0, 1, REL)
        assert model.remove_edge(0, 1, REL)
        assert not model.remove_edge(0, 1, REL)
        assert model.relations == []

    def test_reflexive_preorder_not_removable(self):
        model = KripkeModel()
        model.add_state()
        assert not model.remove_edge(0, 0, PRE)
        assert model.preorders == [(0, 0)]

    def test_adjacency(self, chain):
        A = chain.adjacency(PRE)
        assert A.dtype == torch.bool
        assert A.shape == (3, 3)
        assert not A[0, 2]


class TestEditValuation:
    def test_apply(self):
        model = KripkeModel()
        model.add_state({"p": True})
        assert model.edit_valuation(0, {"p": False, "q": True})
        assert model.assignment(0) == {"q"}

    def test_reject_false_below_true_predecessor(self):
        model = KripkeModel()
        model.add_state({"p": True})
        model.add_state({"p": True})
        model.add_edge(0, 1, PRE)
        assert not model.edit_valuation(1, {"p": False})
        assert model.valuation("p", 1)

    def test_reject_true_above_false_successor(self, chain):
        assert not chain.edit_valuation(1, {"r": True})
        assert chain.assignment(1) == {"p"}

    def test_atomic(self, chain):
        # q is fine at 1 (2 has it) but r is not, so neither is applied
        assert not chain.edit_valuation(1, {"q": True, "r": True})
        assert chain.assignment(1) == {"p"}

    def test_consistent_update_accepted(self, chain):
        assert chain.edit_valuation(1, {"q": True})
        assert chain.edit_valuation(0, {"p": True, "q": True})
        assert chain.assignment(0) == {"p", "q"}

    def test_self_loop_does_not_block(self):
        model = KripkeModel()
        model.add_state()
        assert model.edit_valuation(0, {"p": True})
        assert model.edit_valuation(0, {"p": False})

    def test_missing_state(self):
        model = KripkeModel()
        assert not model.edit_valuation(3, {"p": True})


class TestClosure:
    def test_preorder_closure(self, chain):
        assert chain.closure(PRE) == {
            (0, 0), (1, 1), (2, 2), (0, 1), (1, 2), (0, 2)
        }
        assert bool(chain.trans_preorders[0, 2])

    def test_closure_follows_edits(self, chain):
        chain.remove_edge(1, 2, PRE)
        assert (0, 2) not in chain.closure(PRE)
        chain.add_edge(1, 2, PRE)
        assert (0, 2) in chain.closure(PRE)

    def test_relation_closure(self):
        model = KripkeModel()
        for _ in range(3):
            model.add_state()
        model.add_edge(0, 1, REL)
        model.add_edge(1, 2, REL)
        assert model.closure(REL) == {(0, 1), (1, 2), (0, 2)}
        assert model.trans_relations.shape == (3, 3)

    def test_closure_after_removal(self, chain):
        chain.remove_state(1)
        assert chain.closure(PRE) == {(0, 0), (2, 2)}

    def test_forward_confluence(self):
        model = KripkeModel()
        for _ in range(3):
            model.add_state()
        model.add_edge(0, 1, PRE)
        model.add_edge(0, 2, REL)
        assert model.preorders == [(0, 0), (1, 1), (2, 2), (0, 1)]
        assert not model.check_forward_confluence()
        model.add_edge(1, 2, REL)
        assert model.check_forward_confluence()
