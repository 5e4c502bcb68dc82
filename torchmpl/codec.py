"""
torchmpl.codec
~~~~~~~~~~~~~~

Compact text encoding of a Kripke model, short enough for a URL parameter.

Each state slot contributes one ``;``-terminated record::

    A<true variables>P<preorder successors>R<relation successors>;

with comma-joined lists that may be empty. A removed slot is a bare ``;``.
For example a live state 0 where nothing holds, a removed slot 1 and a
live state 2 where ``p`` holds, with 0 below 2 in the preorder and 0
related to 2::

    AP0,2R2;;ApP2R;

This module only converts between text and per-slot records; the model
validates edges and invariants when it is rebuilt from them.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Sequence

from torchmpl.exceptions import ModelStringError

__all__ = [
    "StateRecord",
    "encode",
    "decode",
]

_NAMES = r"(?:[A-Za-z0-9]+(?:,[A-Za-z0-9]+)*)?"
_INDICES = r"(?:\d+(?:,\d+)*)?"
_RECORD = rf"A({_NAMES})P({_INDICES})R({_INDICES})"

_RECORD_RE = re.compile(_RECORD)
_MODEL_RE = re.compile(rf"(?:(?:{_RECORD})?;)*")


class StateRecord(NamedTuple):
    """Encoded content of one live state slot."""

    assignment: List[str]
    preorders: List[int]
    relations: List[int]


def _split(segment: str) -> List[str]:
    return segment.split(",") if segment else []


def encode(records: Sequence[Optional[StateRecord]]) -> str:
    """Encode per-slot records, ``None`` marking a removed slot.

    Args:
        records: One entry per state slot, in index order.

    Returns:
        The model string.
    """
    output = []
    for record in records:
        if record is not None:
            output.append(
                "A" + ",".join(record.assignment)
                + "P" + ",".join(str(i) for i in record.preorders)
                + "R" + ",".join(str(i) for i in record.relations)
            )
        output.append(";")
    return "".join(output)


def decode(text: str) -> List[Optional[StateRecord]]:
    """Decode a model string into per-slot records.

    Args:
        text: Model string produced by :func:`encode`.

    Returns:
        One :class:`StateRecord` (or ``None`` for a removed slot) per
        ``;``-terminated record.

    Raises:
        ModelStringError: If ``text`` does not follow the record grammar.
    """
    if not isinstance(text, str) or not _MODEL_RE.fullmatch(text):
        raise ModelStringError(f"Malformed model string: {text!r}")

    records: List[Optional[StateRecord]] = []
    for chunk in text.split(";")[:-1]:
        if not chunk:
            records.append(None)
            continue
        assignment, preorders, relations = _RECORD_RE.fullmatch(chunk).groups()
        records.append(StateRecord(
            _split(assignment),
            [int(i) for i in _split(preorders)],
            [int(i) for i in _split(relations)],
        ))
    return records
