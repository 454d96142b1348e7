"""Tests for page URL rewriting."""

import json

from dialogmill.interceptor import PageTranslator, dump_dialogs, parse_dialogs
from dialogmill.structures import Dialog, LanguageSetting

PAGE_URL = "https://cdn.example.com/chapter/12/pages/003.jpg"


def test_rewrite_translates_dialogs_in_fragment(page_dialogs, language, scripted):
    translator = scripted(token_fn=str.upper)
    url = f"{PAGE_URL}#{dump_dialogs(page_dialogs)}"

    rewritten = PageTranslator(language, translator).rewrite(url)

    base, _, fragment = rewritten.partition("#")
    assert base == PAGE_URL
    assert [dialog.text for dialog in parse_dialogs(fragment)] == ["HI", "THERE", "FRIEND"]
    assert len(translator.calls) == 1


def test_rewrite_passes_options_to_the_driver(page_dialogs, language, scripted):
    translator = scripted(token_fn=lambda token: "garbage")
    page = PageTranslator(language, translator, policy="omit")

    rewritten = page.rewrite(f"{PAGE_URL}#{dump_dialogs(page_dialogs)}")

    assert json.loads(rewritten.partition("#")[2]) == []
    assert page.last_result.untranslated_dialogs == 3


def test_non_page_urls_are_untouched(page_dialogs, language, scripted):
    translator = scripted()
    url = f"https://example.com/api/chapters#{dump_dialogs(page_dialogs)}"

    assert PageTranslator(language, translator).rewrite(url) == url
    assert translator.calls == []


def test_same_language_is_untouched(page_dialogs, scripted):
    translator = scripted()
    url = f"{PAGE_URL}#{dump_dialogs(page_dialogs)}"

    assert PageTranslator(LanguageSetting("ja", "ja"), translator).rewrite(url) == url
    assert translator.calls == []


def test_fragment_without_dialogs_is_untouched(language, scripted):
    translator = scripted()

    for url in (f"{PAGE_URL}#not-json", f"{PAGE_URL}#" + '{"a": 1}', PAGE_URL + "?v=2#"):
        assert PageTranslator(language, translator).rewrite(url) == url
    assert translator.calls == []


def test_rewrite_reads_percent_encoded_fragment(language, scripted):
    translator = scripted(token_fn=str.upper)
    fragment = "%5B%7B%22textByLanguage%22%3A%7B%22text%22%3A%22Yo%22%7D%2C%22x%22%3A4%7D%5D"

    rewritten = PageTranslator(language, translator).rewrite(f"{PAGE_URL}#{fragment}")

    assert parse_dialogs(rewritten.partition("#")[2]) == [Dialog(text="YO", x=4.0)]


def test_parse_dialogs_leaves_percent_sequences_alone():
    dialogs = [Dialog(text="50%25 off"), Dialog(text="100%41"), Dialog(text="say %22hi%22")]

    assert parse_dialogs(dump_dialogs(dialogs)) == dialogs


def test_dialog_json_round_trip_keeps_layout(page_dialogs):
    assert parse_dialogs(dump_dialogs(page_dialogs)) == page_dialogs
