"""
Semantic Rule Comparison
========================

Builds a small intuitionistic modal model and prints the truth table of
a handful of formulas at every state under each combination of the
three evaluation rules (reflexive relation, required confluence, local
diamond).

Uses:
  - torchmpl.KripkeModel
  - torchmpl.Rules
  - torchmpl.evaluate_all
  - torchmpl.Wff
"""

import itertools

import torchmpl
from torchmpl import EdgeKind, KripkeModel, Rules, Wff

FORMULAS = ["~p", "(p | ~p)", "[]p", "<>p", "(<>p -> []<>p)"]


def build_model():
    """0 ≤ 1, 0 ≤ 2; 0 R 1, 2 R 1; p holds at 1 and 2."""
    model = KripkeModel()
    model.add_state({})
    model.add_state({"p": True})
    model.add_state({"p": True})
    model.add_edge(0, 1, EdgeKind.PREORDER)
    model.add_edge(0, 2, EdgeKind.PREORDER)
    model.add_edge(0, 1, EdgeKind.RELATION)
    model.add_edge(2, 1, EdgeKind.RELATION)
    return model


def main():
    model = build_model()
    print(f"Model: {model.export_string()}")
    print(f"Forward confluent: {model.check_forward_confluence()}")

    for flags in itertools.product([False, True], repeat=3):
        rules = Rules.from_flags(flags)
        print(f"\n{'='*50}")
        print(f"  reflexive={rules.reflexive} confluent={rules.confluent} "
              f"local_diamond={rules.local_diamond}")
        print(f"{'='*50}")
        for text in FORMULAS:
            wff = Wff(text)
            result = torchmpl.evaluate_all(model, wff, rules)
            if isinstance(result, str):
                print(f"{wff.unicode:<20} | {result}")
                continue
            row = " ".join(
                f"w{i}:{'T' if v else 'F'}" for i, v in result.items()
            )
            print(f"{wff.unicode:<20} | {row}")

    print("\nDone.")


if __name__ == "__main__":
    main()
