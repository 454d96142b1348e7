"""Error definitions and policy helpers for the dialogue translator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence


class ErrorCategory(Enum):
    """Categorises runtime errors to apply policy thresholds."""

    TRANSLATION = auto()
    RECONCILIATION = auto()


class DialogmillError(Exception):
    """Base exception for all custom errors."""


class NonInteractiveAbort(DialogmillError):
    """Raised when strict policy dictates termination."""


class OverwriteRefusedError(DialogmillError):
    """Raised when attempting to overwrite an output without consent."""


class TranslationProviderConfigurationError(DialogmillError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(DialogmillError):
    """Raised when the translation provider fails permanently."""


class UntranslatedDialogError(DialogmillError):
    """Raised when dialogs could not be recovered and the policy forbids it."""

    def __init__(self, identifiers: Sequence[str]) -> None:
        self.identifiers = list(identifiers)
        super().__init__(
            f"{len(self.identifiers)} dialog(s) came back without a usable "
            "translation: " + ", ".join(self.identifiers)
        )


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None


class ErrorTracker:
    """Tracks consecutive and aggregate errors to satisfy policy rules."""

    CONSECUTIVE_LIMIT = 3
    TOTAL_LIMIT = 10

    def __init__(self) -> None:
        self.last_category: Optional[ErrorCategory] = None
        self.consecutive: int = 0
        self.total: int = 0

    def register(self, category: ErrorCategory) -> tuple[int, int, bool]:
        """Register a new error and return counters."""

        if self.last_category == category:
            self.consecutive += 1
        else:
            self.last_category = category
            self.consecutive = 1

        self.total += 1

        threshold_reached = (
            self.consecutive >= self.CONSECUTIVE_LIMIT
            or self.total >= self.TOTAL_LIMIT
        )

        return self.consecutive, self.total, threshold_reached

    def reset_consecutive(self) -> None:
        """Reset the consecutive counter after successful work."""

        self.consecutive = 0
        self.last_category = None
