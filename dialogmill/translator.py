"""High-level orchestration for dialogue translation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Sequence

from .errors import ErrorCategory, UntranslatedDialogError
from .mapping import IdentifierStrategy, build_map, identifiers_for, payloads
from .policy import ErrorPolicy, MissingTranslationPolicy
from .providers import TranslatorEngine
from .reconciler import ParseOutcome, assemble, reconcile
from .segmenter import DELIMITER, BatchBuilder
from .structures import Dialog, LanguageSetting, ReconciliationReport


@dataclass
class TranslationResult:
    """Report returned after translating the dialogs of one page."""

    dialogs: List[Dialog]
    total_dialogs: int
    translated_dialogs: int
    untranslated_dialogs: int
    total_batches: int
    translator_calls: int
    elapsed_seconds: float
    missing_identifiers: List[str] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)


class DialogueTranslator:
    """Coordinates batching, translation and reconciliation of dialogs."""

    def __init__(
        self,
        language: LanguageSetting,
        translator: TranslatorEngine,
        *,
        policy: MissingTranslationPolicy | str = MissingTranslationPolicy.KEEP_ORIGINAL,
        identifier_strategy: IdentifierStrategy | str = IdentifierStrategy.CONTENT,
        delimiter: str = DELIMITER,
        strict: bool = False,
        verbose: bool = False,
    ) -> None:
        self.language = language
        self.translator = translator
        self.policy = MissingTranslationPolicy.parse(policy)
        self.identifier_strategy = IdentifierStrategy.parse(identifier_strategy)
        self.delimiter = delimiter
        self.verbose = verbose
        self.error_policy = ErrorPolicy(strict=strict, verbose=verbose)
        self.dropped_tokens: List[str] = []

    def translate(self, dialogs: Sequence[Dialog]) -> TranslationResult:
        start_time = time.time()
        dialogs = list(dialogs)
        self.dropped_tokens = []

        if self.language.is_noop or not dialogs:
            return self._result(dialogs, dialogs, 0, batches=0, start_time=start_time)

        if self.language.disable_translation_optimization:
            return self._translate_one_by_one(dialogs, start_time)

        mapping = build_map(dialogs, self.identifier_strategy)
        builder = BatchBuilder(self.translator.capacity, self.delimiter)
        batches = builder.build(payloads(mapping))
        if self.verbose:
            print(
                f"Prepared {len(dialogs)} dialogs, "
                f"{len(mapping)} payloads, {len(batches)} batches."
            )

        tokens: List[str] = []
        for index, batch in enumerate(batches, start=1):
            response = self.translator.translate(
                self.language.origin, self.language.target, batch
            )
            tokens.extend(builder.split(response))
            if self.verbose:
                print(f"Processed batch {index} ({len(batch)} chars).")

        report = assemble(reconcile(tokens, on_drop=self._note_dropped_token), mapping)
        identifiers = identifiers_for(dialogs, self.identifier_strategy)
        output = self._apply_policy(dialogs, identifiers, report)
        translated_count = sum(1 for identifier in identifiers if identifier in report.translated)
        return self._result(
            dialogs,
            output,
            translated_count,
            batches=len(batches),
            start_time=start_time,
            missing=report.missing,
        )

    def _translate_one_by_one(self, dialogs: List[Dialog], start_time: float) -> TranslationResult:
        translated = [
            dialog.replace_text(
                self.translator.translate(self.language.origin, self.language.target, dialog.text)
            )
            for dialog in dialogs
        ]
        return self._result(
            dialogs, translated, len(translated), batches=len(dialogs), start_time=start_time
        )

    def _note_dropped_token(self, token: str, outcome: ParseOutcome) -> None:
        self.dropped_tokens.append(f"{outcome.stage}: {outcome.reason}")
        if self.verbose:
            print(f"Dropped unreadable token ({outcome.stage}: {outcome.reason}): {token!r}")

    def _apply_policy(
        self,
        dialogs: Sequence[Dialog],
        identifiers: Sequence[str],
        report: ReconciliationReport,
    ) -> List[Dialog]:
        details = "; ".join(self.dropped_tokens) or None
        for identifier in report.missing:
            self.error_policy.handle_error(
                ErrorCategory.RECONCILIATION,
                f"Translation missing for dialog {identifier}.",
                details=details,
            )
        if report.translated:
            self.error_policy.record_success()

        if self.policy is MissingTranslationPolicy.FAIL and report.missing:
            raise UntranslatedDialogError(report.missing)
        if self.policy is MissingTranslationPolicy.OMIT:
            return report.dialogs

        # Walk the input so the page keeps its balloon order.
        return [
            report.translated.get(identifier, dialog)
            for identifier, dialog in zip(identifiers, dialogs)
        ]

    def _result(
        self,
        original: Sequence[Dialog],
        output: List[Dialog],
        translated_count: int,
        *,
        batches: int,
        start_time: float,
        missing: Sequence[str] = (),
    ) -> TranslationResult:
        return TranslationResult(
            dialogs=output,
            total_dialogs=len(original),
            translated_dialogs=translated_count,
            untranslated_dialogs=len(original) - translated_count if batches else 0,
            total_batches=batches,
            translator_calls=batches,
            elapsed_seconds=time.time() - start_time,
            missing_identifiers=list(missing),
            error_messages=self.error_policy.messages,
        )
