"""Core data structures for the dialogue translator."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Tuple


TEXT_KEY = "text"


@dataclass(frozen=True)
class Dialog:
    """A single dialogue balloon on a page.

    Only ``text`` is meant to change during translation; the layout fields
    stay as extracted. Equality and hashing cover every field.
    """

    text: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    angle: float = 0.0
    is_bold: bool = False
    is_new_api: bool = False
    type: str = "sub"
    fg_color: Tuple[int, ...] = ()
    bg_color: Tuple[int, ...] = ()

    def replace_text(self, value: str) -> "Dialog":
        return replace(self, text=value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Dialog":
        """Build a dialog from the page host's JSON representation."""

        by_language = data.get("textByLanguage")
        if isinstance(by_language, Mapping):
            text = by_language.get(TEXT_KEY, "")
        else:
            text = data.get(TEXT_KEY, "")
        if not isinstance(text, str):
            raise ValueError("Dialog text must be a string.")
        return cls(
            text=text,
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            width=float(data.get("width", 0.0)),
            height=float(data.get("height", 0.0)),
            angle=float(data.get("angle", 0.0)),
            is_bold=bool(data.get("isBold", False)),
            is_new_api=bool(data.get("isNewApi", False)),
            type=str(data.get("type", "sub")),
            fg_color=tuple(int(value) for value in data.get("fgColor") or ()),
            bg_color=tuple(int(value) for value in data.get("bgColor") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "angle": self.angle,
            "isBold": self.is_bold,
            "isNewApi": self.is_new_api,
            "textByLanguage": {TEXT_KEY: self.text},
            "type": self.type,
            "fgColor": list(self.fg_color),
            "bgColor": list(self.bg_color),
        }


@dataclass(frozen=True)
class LanguageSetting:
    """Source/target language pair used for a translation run."""

    origin: str
    target: str
    disable_translation_optimization: bool = False

    @property
    def is_noop(self) -> bool:
        return self.origin.strip().lower() == self.target.strip().lower()


@dataclass(frozen=True)
class AssociatedDialog:
    """Links a dialog to its identifier and serialized payload."""

    identifier: str
    payload: str
    dialog: Dialog


@dataclass(frozen=True)
class RecoveredPair:
    """An identifier and text pulled back out of a translated batch."""

    identifier: str
    text: str


@dataclass
class ReconciliationReport:
    """Outcome of joining recovered pairs back onto their dialogs."""

    translated: Dict[str, Dialog] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)

    @property
    def dialogs(self) -> List[Dialog]:
        return list(self.translated.values())

    @property
    def complete(self) -> bool:
        return not self.missing
