"""Error handling and missing translation policies."""

from __future__ import annotations

import sys
from enum import Enum
from typing import List, Optional

from .errors import (
    ErrorCategory,
    ErrorRecord,
    ErrorTracker,
    NonInteractiveAbort,
)


class MissingTranslationPolicy(str, Enum):
    """What to do with dialogs whose translation could not be recovered."""

    KEEP_ORIGINAL = "keep_original"
    OMIT = "omit"
    FAIL = "fail"

    @classmethod
    def parse(cls, value: "str | MissingTranslationPolicy | None") -> "MissingTranslationPolicy":
        if isinstance(value, cls):
            return value
        normalized = (value or cls.KEEP_ORIGINAL.value).strip().lower().replace("-", "_")
        synonyms = {
            "keep": "keep_original",
            "original": "keep_original",
            "drop": "omit",
            "skip": "omit",
            "error": "fail",
            "raise": "fail",
        }
        normalized = synonyms.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown missing translation policy '{value}'. Choose one of: {choices}."
            ) from exc


class ErrorPolicy:
    """Records handled problems and stops a strict run once limits are hit."""

    def __init__(self, *, strict: bool = False, verbose: bool = False) -> None:
        self.strict = strict
        self.verbose = verbose
        self.records: List[ErrorRecord] = []
        self.tracker = ErrorTracker()

    def record_success(self) -> None:
        """Reset consecutive counters after successful work."""

        self.tracker.reset_consecutive()

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> str:
        """Record an error and decide whether processing may continue."""

        self.records.append(ErrorRecord(category=category, message=message, details=details))
        consecutive, _total, threshold = self.tracker.register(category)

        if self.verbose:
            print(message, file=sys.stderr)
            if details:
                print(f"  {details}", file=sys.stderr)

        if not threshold or not self.strict:
            return "continue"

        reason = (
            f"Repeated errors detected ({consecutive} in a row)."
            if consecutive >= self.tracker.CONSECUTIVE_LIMIT
            else f"More than {self.tracker.TOTAL_LIMIT - 1} errors encountered."
        )
        raise NonInteractiveAbort(f"{reason} Stopping safely in strict mode.")

    @property
    def messages(self) -> List[str]:
        return [record.message for record in self.records]
