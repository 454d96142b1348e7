"""Recovery of dialog identity from translated batches."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .mapping import QUOTE, AssociationMap, decode, encode
from .structures import RecoveredPair, ReconciliationReport

# Translators tend to keep numerals and commas intact even when they mangle
# the quoting around them, so the identifier and the text boundary survive.
TRANSLATOR_EXTRACT_PATTERN = re.compile(r'"?(-?\d+)(\\?")?,((\\?")?([^(\])]+))')

ESCAPED_QUOTE = '\\"'


@dataclass(frozen=True)
class ParseOutcome:
    """Tagged result of one parsing stage."""

    stage: str
    pair: Optional[RecoveredPair] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.pair is not None

    @classmethod
    def failure(cls, stage: str, reason: str) -> "ParseOutcome":
        return cls(stage=stage, reason=reason)


def strict_parse(token: str) -> ParseOutcome:
    """Decode the token as the JSON list it was sent as."""

    try:
        values = json.loads(decode(token))
    except ValueError as exc:
        return ParseOutcome.failure("strict", f"invalid JSON: {exc}")

    if not isinstance(values, list) or len(values) < 2:
        return ParseOutcome.failure("strict", "expected a list with two or more values")
    if not all(isinstance(value, str) for value in values):
        return ParseOutcome.failure("strict", "expected string values only")

    # Extra elements show up when the translator splits the text; the
    # identifier and the text stay at the two ends.
    return ParseOutcome(pair=RecoveredPair(values[0], values[-1]), stage="strict")


def _unquote(text: str) -> str:
    for marker in (ESCAPED_QUOTE, QUOTE):
        if text.startswith(marker):
            text = text[len(marker) :]
            break
    for marker in (ESCAPED_QUOTE, QUOTE):
        if text.endswith(marker):
            text = text[: -len(marker)]
            break
    return text


def fallback_parse(token: str) -> ParseOutcome:
    """Pull the identifier and text out of a token whose JSON is broken."""

    matches = list(TRANSLATOR_EXTRACT_PATTERN.finditer(token))
    if not matches:
        return ParseOutcome.failure("fallback", "no identifier pattern found")

    identifier = matches[0].group(1)
    text = matches[-1].group(3)
    if not text.startswith(QUOTE):
        text = encode(text)
    # Same shape as the strict path from here on: one quoted string.
    if len(text) > 1 and text.endswith(QUOTE):
        text = text[1:-1]
    else:
        text = text[1:]
    return ParseOutcome(pair=RecoveredPair(identifier, _unquote(text)), stage="fallback")


def reconcile_token(token: str) -> ParseOutcome:
    if not token.strip():
        return ParseOutcome.failure("blank", "empty token")
    outcome = strict_parse(token)
    if outcome.ok:
        return outcome
    return fallback_parse(token)


DropHandler = Callable[[str, ParseOutcome], None]


def reconcile(tokens: Iterable[str], on_drop: Optional[DropHandler] = None) -> List[RecoveredPair]:
    """Recover every pair that either parsing stage accepts; drop the rest.

    ``on_drop`` is called with each dropped token and the failed outcome
    explaining why it was dropped.
    """

    pairs: List[RecoveredPair] = []
    for token in tokens:
        outcome = reconcile_token(token)
        if outcome.pair is not None:
            pairs.append(outcome.pair)
        elif on_drop is not None:
            on_drop(token, outcome)
    return pairs


def assemble(pairs: Iterable[RecoveredPair], mapping: AssociationMap) -> ReconciliationReport:
    """Replace the text of every dialog whose identifier came back."""

    report = ReconciliationReport()
    for pair in pairs:
        entry = mapping.get(pair.identifier)
        if entry is None:
            continue
        _, associated = entry
        report.translated[pair.identifier] = associated.dialog.replace_text(pair.text)

    report.missing = [
        identifier for identifier in mapping if identifier not in report.translated
    ]
    return report
