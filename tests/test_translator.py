"""Tests for the dialogue translation driver."""

import pytest

from dialogmill.errors import NonInteractiveAbort, UntranslatedDialogError
from dialogmill.providers import EchoTranslator
from dialogmill.structures import Dialog, LanguageSetting
from dialogmill.translator import DialogueTranslator

SPANISH = {"Hi": "Hola", "There": "Ahí", "Friend": "Amigo"}


def translate_token(token):
    for source, target in SPANISH.items():
        token = token.replace(f'"{source}"', f'"{target}"')
    return token


def test_identity_translator_reproduces_texts(page_dialogs, language):
    translator = EchoTranslator()

    result = DialogueTranslator(language, translator).translate(page_dialogs)

    assert result.dialogs == page_dialogs
    assert len(translator.calls) == 1
    assert result.translated_dialogs == 3
    assert result.untranslated_dialogs == 0


def test_three_dialogs_one_call(page_dialogs, language, scripted):
    translator = scripted(capacity=2000, token_fn=translate_token)

    result = DialogueTranslator(language, translator).translate(page_dialogs)

    assert len(translator.calls) == 1
    assert result.total_batches == 1
    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Ahí", "Amigo"]
    assert [(dialog.x, dialog.y) for dialog in result.dialogs] == [
        (dialog.x, dialog.y) for dialog in page_dialogs
    ]


def test_capacity_forces_two_calls(page_dialogs, language, scripted):
    translator = scripted(capacity=30, token_fn=translate_token)

    result = DialogueTranslator(
        language, translator, identifier_strategy="sequence"
    ).translate(page_dialogs)

    assert len(translator.calls) == 2
    assert all(len(call) <= 30 for call in translator.calls)
    assert result.translator_calls == 2
    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Ahí", "Amigo"]


def mangle(token):
    if '"Hi"' in token:
        return "0,Hola)"
    if '"Friend"' in token:
        return "sin sentido"
    return translate_token(token)


def test_malformed_tokens_fall_back_or_stay_untranslated(page_dialogs, language, scripted):
    translator = scripted(token_fn=mangle)

    result = DialogueTranslator(
        language, translator, identifier_strategy="sequence"
    ).translate(page_dialogs)

    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Ahí", "Friend"]
    assert result.translated_dialogs == 2
    assert result.untranslated_dialogs == 1
    assert result.missing_identifiers == ["2"]
    assert result.error_messages == ["Translation missing for dialog 2."]


def test_omit_policy_returns_only_translated(page_dialogs, language, scripted):
    translator = scripted(token_fn=mangle)

    result = DialogueTranslator(
        language, translator, policy="omit", identifier_strategy="sequence"
    ).translate(page_dialogs)

    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Ahí"]


def test_fail_policy_raises_with_missing_identifiers(page_dialogs, language, scripted):
    translator = scripted(token_fn=mangle)
    runner = DialogueTranslator(
        language, translator, policy="fail", identifier_strategy="sequence"
    )

    with pytest.raises(UntranslatedDialogError) as excinfo:
        runner.translate(page_dialogs)

    assert excinfo.value.identifiers == ["2"]


def test_strict_mode_stops_after_repeated_misses(page_dialogs, language, scripted):
    translator = scripted(token_fn=lambda token: "???")
    runner = DialogueTranslator(language, translator, strict=True)

    with pytest.raises(NonInteractiveAbort):
        runner.translate(page_dialogs)


def test_same_language_skips_translator(page_dialogs, scripted):
    translator = scripted()

    result = DialogueTranslator(LanguageSetting("en", "EN"), translator).translate(page_dialogs)

    assert translator.calls == []
    assert result.dialogs == page_dialogs
    assert result.translator_calls == 0


def test_empty_page_skips_translator(language, scripted):
    translator = scripted()

    result = DialogueTranslator(language, translator).translate([])

    assert translator.calls == []
    assert result.dialogs == []


def test_disabled_optimization_translates_each_dialog(page_dialogs, scripted):
    language = LanguageSetting("en", "es", disable_translation_optimization=True)
    translator = scripted(token_fn=lambda token: SPANISH[token])

    result = DialogueTranslator(language, translator).translate(page_dialogs)

    assert translator.calls == ["Hi", "There", "Friend"]
    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Ahí", "Amigo"]
    assert result.translator_calls == 3


def test_duplicate_dialogs_share_one_translation(language, scripted):
    dialogs = [Dialog(text="Hi", x=1.0), Dialog(text="Hi", x=1.0)]
    translator = scripted(token_fn=translate_token)

    result = DialogueTranslator(language, translator).translate(dialogs)

    assert translator.calls[0].count('"Hi"') == 1
    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Hola"]
    assert result.translated_dialogs == 2


def drop_second(token):
    if token.startswith('"["1"'):
        return ""
    return translate_token(token)


def test_identical_dialogs_counted_per_identifier(language, scripted):
    dialogs = [Dialog(text="Hi", x=1.0), Dialog(text="Hi", x=1.0)]
    translator = scripted(token_fn=drop_second)

    result = DialogueTranslator(
        language, translator, identifier_strategy="sequence"
    ).translate(dialogs)

    assert [dialog.text for dialog in result.dialogs] == ["Hola", "Hi"]
    assert result.translated_dialogs == 1
    assert result.untranslated_dialogs == 1
    assert result.missing_identifiers == ["1"]


def test_identical_dialogs_fail_policy_names_the_missing_one(language, scripted):
    dialogs = [Dialog(text="Hi", x=1.0), Dialog(text="Hi", x=1.0)]
    runner = DialogueTranslator(
        language, scripted(token_fn=drop_second), policy="fail", identifier_strategy="sequence"
    )

    with pytest.raises(UntranslatedDialogError) as excinfo:
        runner.translate(dialogs)

    assert excinfo.value.identifiers == ["1"]


def test_dropped_token_reasons_recorded(page_dialogs, language, scripted, capsys):
    runner = DialogueTranslator(
        language, scripted(token_fn=mangle), identifier_strategy="sequence", verbose=True
    )

    runner.translate(page_dialogs)

    assert runner.dropped_tokens == ["fallback: no identifier pattern found"]
    record = runner.error_policy.records[0]
    assert record.message == "Translation missing for dialog 2."
    assert record.details == "fallback: no identifier pattern found"
    assert "Dropped unreadable token (fallback: no identifier pattern found)" in capsys.readouterr().out
