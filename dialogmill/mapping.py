"""Identifier assignment and payload serialization for dialogs."""

from __future__ import annotations

import json
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from .structures import AssociatedDialog, Dialog

QUOTE = '"'

AssociationMap = Dict[str, Tuple[str, AssociatedDialog]]


class IdentifierStrategy(str, Enum):
    """How join keys are derived for a translation call."""

    CONTENT = "content"
    SEQUENCE = "sequence"

    @classmethod
    def parse(cls, value: "str | IdentifierStrategy | None") -> "IdentifierStrategy":
        if isinstance(value, cls):
            return value
        normalized = (value or cls.CONTENT.value).strip().lower()
        if normalized in {"hash", "content-hash", "content_hash"}:
            normalized = cls.CONTENT.value
        if normalized in {"seq", "counter", "index"}:
            normalized = cls.SEQUENCE.value
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(
                f"Unknown identifier strategy '{value}'. Choose 'content' or 'sequence'."
            ) from exc


def encode(text: str) -> str:
    """Wrap text in quotes so a translator stripping them cannot eat the payload."""

    return f"{QUOTE}{text}{QUOTE}"


def decode(text: str) -> str:
    """Strip one layer of quoting: keep what lies between the first and last quote."""

    start = text.find(QUOTE)
    remainder = text[start + 1 :] if start != -1 else text
    end = remainder.rfind(QUOTE)
    return remainder[:end] if end != -1 else remainder


def serialize(identifier: str, text: str) -> str:
    return json.dumps([identifier, text], ensure_ascii=False, separators=(",", ":"))


def build_payload(identifier: str, text: str) -> str:
    return encode(serialize(identifier, text))


def identifiers_for(
    dialogs: Sequence[Dialog],
    strategy: IdentifierStrategy = IdentifierStrategy.CONTENT,
) -> List[str]:
    """The identifier of every dialog, in input order."""

    if strategy is IdentifierStrategy.SEQUENCE:
        return [str(index) for index in range(len(dialogs))]
    return [str(hash(dialog)) for dialog in dialogs]


def build_map(
    dialogs: Sequence[Dialog],
    strategy: IdentifierStrategy = IdentifierStrategy.CONTENT,
) -> AssociationMap:
    """Associate every dialog with an identifier and its serialized payload.

    With the content strategy two dialogs with identical content share an
    identifier; the later one overwrites the earlier entry.
    """

    mapping: AssociationMap = {}
    for dialog, identifier in zip(dialogs, identifiers_for(dialogs, strategy)):
        payload = build_payload(identifier, dialog.text)
        mapping[identifier] = (identifier, AssociatedDialog(identifier, payload, dialog))
    return mapping


def payloads(mapping: AssociationMap) -> List[str]:
    return [entry.payload for _, entry in mapping.values()]
