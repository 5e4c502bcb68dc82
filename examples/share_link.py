"""
Model Sharing Round Trip
========================

Edits a model interactively (including edits the monotonicity invariant
rejects), encodes it as a model string for a ``?model=`` URL parameter,
and restores it into a fresh model.

Uses:
  - torchmpl.KripkeModel (add/remove states and edges, edit valuations)
  - torchmpl.KripkeModel.export_string / import_string
"""

from urllib.parse import quote

from torchmpl import EdgeKind, KripkeModel

BASE_URL = "https://example.org/modallogic/"


def main():
    model = KripkeModel()
    s0 = model.add_state({"p": True})
    s1 = model.add_state({"p": True, "q": True})
    s2 = model.add_state({})

    print(f"{'Action':<32} | Accepted")
    print("-" * 45)
    actions = [
        ("preorder s0 -> s1", lambda: model.add_edge(s0, s1, EdgeKind.PREORDER)),
        ("preorder s1 -> s2", lambda: model.add_edge(s1, s2, EdgeKind.PREORDER)),
        ("relation s2 -> s0", lambda: model.add_edge(s2, s0, EdgeKind.RELATION)),
        ("set q at s0", lambda: model.edit_valuation(s0, {"q": True})),
        ("unset q at s1", lambda: model.edit_valuation(s1, {"q": False})),
        ("set p at s2", lambda: model.edit_valuation(s2, {"p": True})),
    ]
    for name, action in actions:
        print(f"{name:<32} | {action()}")

    encoded = model.export_string()
    print(f"\nModel string: {encoded}")
    print(f"Share link:   {BASE_URL}?model={quote(encoded)}")

    restored = KripkeModel()
    assert restored.import_string(encoded)
    print(f"Restored:     {restored!r}")
    print(f"Same string:  {restored.export_string() == encoded}")


if __name__ == "__main__":
    main()
