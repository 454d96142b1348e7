"""Rewriting of page image URLs that carry dialogs in their fragment."""

from __future__ import annotations

import json
import re
from typing import List, Optional
from urllib.parse import unquote

from .providers import TranslatorEngine
from .structures import Dialog, LanguageSetting
from .translator import DialogueTranslator, TranslationResult

PAGE_REGEX = re.compile(r"\.(?:jpe?g|png|webp|gif|avif)(?:\?[^#]*)?#", re.IGNORECASE)


def parse_dialogs(raw: str) -> Optional[List[Dialog]]:
    """Decode a JSON list of dialogs, or return ``None`` if it holds none."""

    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    try:
        return [Dialog.from_dict(item) for item in data if isinstance(item, dict)]
    except (TypeError, ValueError):
        return None


def dump_dialogs(dialogs: List[Dialog]) -> str:
    return json.dumps([dialog.to_dict() for dialog in dialogs], ensure_ascii=False)


class PageTranslator:
    """Translates the dialogs embedded in a page URL and rebuilds the URL."""

    def __init__(self, language: LanguageSetting, translator: TranslatorEngine, **options) -> None:
        self.language = language
        self.translator = translator
        self.options = options
        self.last_result: Optional[TranslationResult] = None

    def rewrite(self, url: str) -> str:
        if not PAGE_REGEX.search(url) or self.language.is_noop:
            return url

        base, _, fragment = url.partition("#")
        dialogs = parse_dialogs(unquote(fragment)) if fragment else None
        if dialogs is None:
            return url

        runner = DialogueTranslator(self.language, self.translator, **self.options)
        self.last_result = runner.translate(dialogs)
        return f"{base}#{dump_dialogs(self.last_result.dialogs)}"
