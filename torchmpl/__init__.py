"""
torchmpl — Modal Propositional Logic on Kripke Models
======================================================

A small toolkit for modal and intuitionistic propositional logic built on
boolean PyTorch tensors.

The library provides:

- **Formulas**: a grammar of wffs over propositional variables with
  ``~``, ``[]``, ``<>``, ``&``, ``|``, ``->`` and ``<->``, and four
  interchangeable views of each formula (ASCII text, LaTeX, Unicode and
  a tree / JSON-like dict).

- **Kripke models**: finite models with a monotonic *preorder* and an
  independent accessibility *relation*, kept consistent under editing
  (monotonicity, reflexivity, fresh transitive closures).

- **Closure and confluence**: transitive closure and forward-confluence
  checks over accessibility matrices.

- **Evaluation**: truth of a formula at every state at once, under
  togglable rules (reflexive relation, required confluence, local
  diamond).

- **Model strings**: a compact encoding of a model for sharing as a URL
  parameter.

Quick Start::

    import torchmpl
    from torchmpl import KripkeModel, Rules

    model = KripkeModel()
    s0 = model.add_state({"p": True})
    model.add_edge(s0, s0, "relation")

    torchmpl.truth(model, s0, "(p -> []p)")        # True
    torchmpl.truth(model, s0, "<>p")               # True

    wff = torchmpl.Wff("p -> []p")
    wff.unicode                                    # '(p → □p)'

    model.export_string()                          # 'ApP0R0;'
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Functional API
from torchmpl import functional

# Formulas
from torchmpl.formula import (
    BOT,
    Formula,
    FormulaType,
    conj,
    disj,
    equi,
    from_dict,
    impl,
    nec,
    neg,
    poss,
    prop,
)
from torchmpl.parser import parse
from torchmpl.printer import to_ascii, to_latex, to_unicode
from torchmpl.wff import Wff

# Models
from torchmpl.kripke import EdgeKind, KripkeModel
from torchmpl.closure import (
    is_forward_confluent,
    transitive_closure,
)

# Evaluation
from torchmpl.evaluation import (
    CONFLUENCE_FAILED,
    Evaluator,
    Rules,
    evaluate,
    evaluate_all,
    truth,
)

# Errors
from torchmpl.exceptions import (
    ConfluenceViolation,
    InvalidStructureError,
    ModelStringError,
    MPLError,
    ParseError,
    StateNotFoundError,
)

__all__ = [
    # Version
    "__version__",
    # Subpackages
    "functional",
    # Formulas
    "BOT",
    "Formula",
    "FormulaType",
    "conj",
    "disj",
    "equi",
    "from_dict",
    "impl",
    "nec",
    "neg",
    "poss",
    "prop",
    "parse",
    "to_ascii",
    "to_latex",
    "to_unicode",
    "Wff",
    # Models
    "EdgeKind",
    "KripkeModel",
    "is_forward_confluent",
    "transitive_closure",
    # Evaluation
    "CONFLUENCE_FAILED",
    "Evaluator",
    "Rules",
    "evaluate",
    "evaluate_all",
    "truth",
    # Errors
    "ConfluenceViolation",
    "InvalidStructureError",
    "ModelStringError",
    "MPLError",
    "ParseError",
    "StateNotFoundError",
]
