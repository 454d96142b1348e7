"""Batch translation of page dialogs with identity-preserving reconciliation."""

from .mapping import IdentifierStrategy
from .policy import MissingTranslationPolicy
from .providers import EchoTranslator, TranslatorEngine, build_provider
from .structures import Dialog, LanguageSetting, ReconciliationReport
from .translator import DialogueTranslator, TranslationResult

__all__ = [
    "Dialog",
    "DialogueTranslator",
    "EchoTranslator",
    "IdentifierStrategy",
    "LanguageSetting",
    "MissingTranslationPolicy",
    "ReconciliationReport",
    "TranslationResult",
    "TranslatorEngine",
    "build_provider",
]
