"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from dialogmill.providers import TranslatorEngine
from dialogmill.segmenter import DELIMITER
from dialogmill.structures import Dialog, LanguageSetting


class ScriptedTranslator(TranslatorEngine):
    """Translator that rewrites each delimiter-separated token with a function."""

    def __init__(self, capacity=2000, token_fn=None):
        self.capacity = capacity
        self.token_fn = token_fn or (lambda token: token)
        self.calls = []

    def translate(self, source_language, target_language, text):
        self.calls.append(text)
        return DELIMITER.join(self.token_fn(token) for token in text.split(DELIMITER))


@pytest.fixture
def page_dialogs():
    """Three balloons on one page."""
    return [
        Dialog(text="Hi", x=10.0, y=20.0, width=80.0, height=30.0),
        Dialog(text="There", x=10.0, y=60.0, width=80.0, height=30.0, is_bold=True),
        Dialog(text="Friend", x=120.0, y=20.0, width=90.0, height=40.0, fg_color=(0, 0, 0)),
    ]


@pytest.fixture
def language():
    return LanguageSetting(origin="en", target="es")


@pytest.fixture
def scripted():
    """Factory for scripted translators."""
    return ScriptedTranslator
