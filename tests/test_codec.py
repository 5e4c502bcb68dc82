"""Tests for torchmpl.codec and model string import/export."""

import pytest

from torchmpl import EdgeKind, KripkeModel, ModelStringError
from torchmpl import codec
from torchmpl.codec import StateRecord

PRE = EdgeKind.PREORDER
REL = EdgeKind.RELATION


def snapshot(model):
    return (
        model.states(),
        set(model.preorders),
        set(model.relations),
    )


class TestCodec:
    def test_encode(self):
        records = [
            StateRecord(["p", "q"], [0, 2], [2]),
            None,
            StateRecord([], [2], []),
        ]
        assert codec.encode(records) == "Ap,qP0,2R2;;AP2R;"

    def test_decode(self):
        assert codec.decode("Ap,qP0,2R2;;AP2R;") == [
            StateRecord(["p", "q"], [0, 2], [2]),
            None,
            StateRecord([], [2], []),
        ]

    def test_empty_model(self):
        assert codec.encode([]) == ""
        assert codec.decode("") == []

    @pytest.mark.parametrize(
        "text",
        ["A", "AP;", "APR", "ApP0R0", "Ap,P0R;", "AP0,R;", "AP R;",
         "Ap-qP0R;", "PR;", "APxR;", "AS0;"],
    )
    def test_decode_rejects(self, text):
        with pytest.raises(ModelStringError):
            codec.decode(text)


class TestExport:
    def test_export(self):
        model = KripkeModel()
        model.add_state({"q": True, "p": True})
        model.add_state({})
        model.add_state({"p": True, "q": True, "r": True})
        model.add_edge(0, 2, PRE)
        model.add_edge(0, 2, REL)
        model.add_edge(2, 0, REL)
        model.remove_state(1)
        assert model.export_string() == "Ap,qP0,2R2;;Ap,q,rP2R0;"

    def test_round_trip(self):
        model = KripkeModel()
        for assignment in [{}, {"p": True}, {"p": True, "q": True}, {"r": True}]:
            model.add_state(assignment)
        model.add_edge(0, 1, PRE)
        model.add_edge(1, 2, PRE)
        model.add_edge(0, 3, PRE)
        model.add_edge(1, 1, REL)
        model.add_edge(3, 0, REL)
        model.remove_state(2)

        restored = KripkeModel.from_string(model.export_string())
        assert snapshot(restored) == snapshot(model)
        assert restored.closure(PRE) == model.closure(PRE)
        assert restored.export_string() == model.export_string()


class TestImport:
    def test_reasserts_reflexivity(self):
        model = KripkeModel()
        assert model.import_string("ApPR;AP0R0;")
        assert set(model.preorders) == {(0, 0), (1, 1), (1, 0)}
        assert model.relations == [(1, 0)]
        assert model.valuation("p", 0)

    def test_tombstones(self):
        model = KripkeModel.from_string(";AP1R;;")
        assert model.num_slots == 3
        assert model.state_indices() == [1]
        assert model.add_state() == 3

    @pytest.mark.parametrize(
        "text",
        [
            "not a model",
            "AP5R;",        # edge to a missing slot
            "AP1R;;",       # edge to a removed slot
            "AR;APR0;",     # unknown segment order
            "ApP1R;AP1R;",  # preorder edge loses p
        ],
    )
    def test_rejected_import_keeps_model(self, text):
        model = KripkeModel()
        model.add_state({"p": True})
        model.add_state({"p": True})
        model.add_edge(0, 1, PRE)
        model.add_edge(1, 0, REL)
        before = snapshot(model)
        exported = model.export_string()

        assert not model.import_string(text)
        assert snapshot(model) == before
        assert model.export_string() == exported

    def test_from_string_raises(self):
        with pytest.raises(ModelStringError):
            KripkeModel.from_string("AP1R;")

    def test_import_replaces_contents(self):
        model = KripkeModel()
        model.add_state({"q": True})
        assert model.import_string("ApP0R0;")
        assert model.states() == [frozenset({"p"})]
        assert model.closure(REL) == {(0, 0)}
