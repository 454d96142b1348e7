"""Translator adapters consumed by the batching pipeline."""

from __future__ import annotations

import json
import os
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Tuple

from .errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)

DEFAULT_CAPACITY = 2000

REQUIRED_CREDENTIALS: Dict[str, Tuple[str, ...]] = {
    "echo": (),
    "openai": ("OPENAI_API_KEY",),
    "azure_openai": (
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_API_VERSION",
        "AZURE_OPENAI_DEPLOYMENT_NAME",
    ),
}

PROVIDER_SYNONYMS = {
    "noop": "echo",
    "mock": "echo",
    "identity": "echo",
    "gpt": "openai",
    "default": "openai",
    "azure": "azure_openai",
    "azureopenai": "azure_openai",
    "azure_open_ai": "azure_openai",
}


def normalise_provider_name(name: str | None) -> str:
    normalized = (name or "openai").strip().lower().replace("-", "_")
    return PROVIDER_SYNONYMS.get(normalized, normalized)


def missing_credentials(provider: str, credentials: Mapping[str, str | None]) -> List[str]:
    """Names of the credentials ``provider`` needs that are absent or empty."""

    return [
        name
        for name in REQUIRED_CREDENTIALS.get(normalise_provider_name(provider), ())
        if not credentials.get(name)
    ]


class TranslatorEngine(ABC):
    """Abstract adapter for translation services.

    ``capacity`` is the maximum number of characters accepted per call.
    """

    capacity: int = DEFAULT_CAPACITY

    @abstractmethod
    def translate(self, source_language: str, target_language: str, text: str) -> str:
        """Translate ``text`` and return the translated string."""


class EchoTranslator(TranslatorEngine):
    """A translator that returns its input unchanged (useful for testing)."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = capacity
        self.calls: List[str] = []

    def translate(self, source_language: str, target_language: str, text: str) -> str:
        self.calls.append(text)
        return text


class OpenAITranslator(TranslatorEngine):
    """Translator that uses OpenAI (or Azure OpenAI) chat models.

    Credentials come from ``credentials`` (normally the loaded settings) and
    fall back to the process environment for any key left unset there.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    SYSTEM_PROMPT = (
        "You are a professional translator of comic and manga dialogue. "
        "Translate only the natural-language text. The input is a sequence of "
        "JSON arrays wrapped in double quotes and separated by the character "
        "'{delimiter}'. Keep every '{delimiter}' separator, every number, every "
        "quote, comma and bracket exactly where it is. Do not add commentary. "
        "Do not wrap the answer in markdown code fences."
    )

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        model: str | None = None,
        provider_kind: str = "openai",
        credentials: Mapping[str, str | None] | None = None,
        delimiter: str = "¦",
        debug: bool = False,
    ) -> None:
        self.capacity = capacity
        self.delimiter = delimiter
        self.debug = debug
        self.provider_kind = normalise_provider_name(provider_kind)
        if self.provider_kind not in {"openai", "azure_openai"}:
            raise TranslationProviderConfigurationError(
                f"OpenAI translator cannot serve provider '{provider_kind}'."
            )

        supplied = credentials or {}
        self.credentials = {
            name: supplied.get(name) or os.getenv(name)
            for name in REQUIRED_CREDENTIALS[self.provider_kind]
        }
        missing = missing_credentials(self.provider_kind, self.credentials)
        if missing:
            raise TranslationProviderConfigurationError(
                f"{self.provider_kind} configuration incomplete. Please set: "
                + ", ".join(missing)
                + "."
            )
        self._client, default_model = self._build_client()
        self.model = model or default_model

    def _build_client(self) -> tuple[Any, str]:
        if self.provider_kind == "azure_openai":
            from openai import AzureOpenAI

            client = AzureOpenAI(
                api_key=self.credentials["AZURE_OPENAI_API_KEY"],
                api_version=self.credentials["AZURE_OPENAI_API_VERSION"],
                azure_endpoint=self.credentials["AZURE_OPENAI_ENDPOINT"],
            )
            return client, self.credentials["AZURE_OPENAI_DEPLOYMENT_NAME"]  # type: ignore[return-value]

        from openai import OpenAI

        return OpenAI(api_key=self.credentials["OPENAI_API_KEY"]), self.DEFAULT_MODEL

    def translate(self, source_language: str, target_language: str, text: str) -> str:
        if not text.strip():
            return text

        system_prompt = self.SYSTEM_PROMPT.format(delimiter=self.delimiter)
        user_prompt = (
            f"Source language: {source_language}\n"
            f"Target language: {target_language}\n\n"
            f"{text}"
        )
        self._log_debug("provider.request.system_prompt", system_prompt)
        self._log_debug("provider.request.payload", user_prompt)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                temperature=0,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as exc:  # pragma: no cover - network call
            raise TranslationProviderError(
                f"Translation service temporarily unavailable: {exc}"
            ) from exc
        self._log_debug("provider.response.raw", self._safe_dump_response(response))

        content = self._extract_content(response)
        self._log_debug("provider.response.text", content)
        return content

    def _extract_content(self, response: Any) -> str:
        """Return the first text answer of a Chat Completions result."""

        for choice in getattr(response, "choices", None) or []:
            message = getattr(choice, "message", None)
            content = getattr(message, "content", None) if message is not None else None
            if content:
                return self._strip_code_fence(str(content))
        raise TranslationProviderError(
            "Translation provider response empty or unrecognised."
        )

    def _log_debug(self, label: str, payload: Any) -> None:
        """Emit request/response dumps when provider debugging is enabled."""

        if not self.debug:
            return
        if isinstance(payload, (dict, list)):
            message = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
        else:
            message = str(payload)
        print(f"[dialogmill][provider-debug] {label}:\n{message}", file=sys.stderr)

    def _safe_dump_response(self, response: Any) -> Any:
        dump = getattr(response, "model_dump", None)
        if dump is not None:
            return dump()
        return str(response)

    def _strip_code_fence(self, text: str) -> str:
        """Remove leading/trailing markdown code fences if present."""

        stripped = text.strip()
        if not stripped.startswith("```"):
            return stripped

        first_newline = stripped.find("\n")
        if first_newline == -1:
            return stripped
        body = stripped[first_newline + 1 :]
        closing_index = body.rfind("```")
        if closing_index != -1:
            body = body[:closing_index]
        return body.strip()



def build_provider(
    name: str | None,
    *,
    capacity: int = DEFAULT_CAPACITY,
    model: str | None = None,
    credentials: Mapping[str, str | None] | None = None,
    debug: bool = False,
) -> TranslatorEngine:
    """Factory to create translators by name."""

    normalized = normalise_provider_name(name)
    if normalized == "echo":
        return EchoTranslator(capacity=capacity)
    if normalized in {"openai", "azure_openai"}:
        return OpenAITranslator(
            capacity=capacity,
            model=model,
            provider_kind=normalized,
            credentials=credentials,
            debug=debug,
        )
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )
