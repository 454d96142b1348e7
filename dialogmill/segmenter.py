"""Packing of serialized dialog payloads into capacity-bound batches."""

from __future__ import annotations

from typing import List, Sequence

DELIMITER = "¦"


class BatchBuilder:
    """Aggregates payloads into delimiter-joined batches within a character budget.

    A payload longer than the budget is not split; it is sent on its own as an
    oversized batch and the translator decides what to do with it.
    """

    def __init__(self, capacity: int, delimiter: str = DELIMITER) -> None:
        if not delimiter:
            raise ValueError("Batch delimiter must not be empty.")
        self.capacity = max(1, capacity)
        self.delimiter = delimiter

    def build(self, payloads: Sequence[str]) -> List[str]:
        batches: List[str] = []
        current: List[str] = []
        running_total = 0

        for payload in payloads:
            if running_total + len(payload) + len(self.delimiter) > self.capacity and current:
                batches.append(self.delimiter.join(current))
                current = []
                running_total = 0

            if current:
                running_total += len(self.delimiter)
            current.append(payload)
            running_total += len(payload)

        if current:
            batches.append(self.delimiter.join(current))

        return batches

    def split(self, translated: str) -> List[str]:
        """Split a translated batch back into per-dialog tokens."""

        return translated.split(self.delimiter)
