"""Layered settings for dialogmill: YAML files, then .env, then the process environment."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, Literal, Mapping, Sequence, Tuple

from dotenv import dotenv_values
from prepper import (
    ConfigNotFound,
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import TranslationProviderConfigurationError
from .mapping import IdentifierStrategy
from .policy import MissingTranslationPolicy
from .providers import REQUIRED_CREDENTIALS, missing_credentials, normalise_provider_name

APP_NAME = "Dialogmill"


class DialogmillConfig(SchemaModel):
    """Every setting a translation run can take from files or the environment."""

    TRANSLATOR_PROVIDER: Literal["echo", "openai", "azure_openai"] = Field(
        default="openai",
        description="Translator used for dialog batches.",
    )
    OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    OPENAI_MODEL: str | None = Field(default=None)
    AZURE_OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    AZURE_OPENAI_ENDPOINT: str | None = Field(default=None)
    AZURE_OPENAI_API_VERSION: str | None = Field(default=None)
    AZURE_OPENAI_DEPLOYMENT_NAME: str | None = Field(default=None)
    DIALOGMILL_CAPACITY: int = Field(
        default=2000,
        description="Maximum characters sent to the translator per call.",
    )
    DIALOGMILL_SOURCE_LANGUAGE: str = Field(default="auto")
    DIALOGMILL_TARGET_LANGUAGE: str | None = Field(default=None)
    DIALOGMILL_DISABLE_OPTIMIZATION: bool = Field(default=False)
    DIALOGMILL_MISSING_POLICY: Literal["keep_original", "omit", "fail"] = Field(
        default="keep_original",
    )
    DIALOGMILL_IDENTIFIER_STRATEGY: Literal["content", "sequence"] = Field(
        default="content",
    )
    DIALOGMILL_PROVIDER_DEBUG: bool = Field(default=False)

    @model_validator(mode="before")
    def _normalise_choices(data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if isinstance(data.get("TRANSLATOR_PROVIDER"), str):
            data["TRANSLATOR_PROVIDER"] = normalise_provider_name(data["TRANSLATOR_PROVIDER"])
        if isinstance(data.get("DIALOGMILL_MISSING_POLICY"), str):
            data["DIALOGMILL_MISSING_POLICY"] = MissingTranslationPolicy.parse(
                data["DIALOGMILL_MISSING_POLICY"]
            ).value
        if isinstance(data.get("DIALOGMILL_IDENTIFIER_STRATEGY"), str):
            data["DIALOGMILL_IDENTIFIER_STRATEGY"] = IdentifierStrategy.parse(
                data["DIALOGMILL_IDENTIFIER_STRATEGY"]
            ).value
        return data


def provider_credentials(settings: Any, provider: str | None = None) -> Dict[str, str | None]:
    """Credential values a translator needs, read from ``settings``.

    ``provider`` defaults to the one the settings select.
    """

    provider = normalise_provider_name(provider or getattr(settings, "TRANSLATOR_PROVIDER", None))
    return {
        name: getattr(settings, name, None)
        for name in REQUIRED_CREDENTIALS.get(provider, ())
    }


def _file_layers(app_dir: Path) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    for path, label in discover_file_paths(APP_NAME, "yaml", app_dir=app_dir, extra_paths=None):
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(f"Invalid configuration file {path}: expected a mapping at the root.")
        yield _path_to_source(label, "yaml", path), parsed


def _env_layers(app_dir: Path, allowed: set[str]) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    dotenv_path = app_dir / ".env"
    sources = []
    if dotenv_path.exists():
        sources.append((".env", dotenv_values(dotenv_path)))
    sources.append(("process", dict(os.environ)))

    for prefix, values in sources:
        for key in sorted(allowed.intersection(values)):
            if values[key] is not None:
                yield f"env:{prefix}:{key}", {key: values[key]}


def _check_settings(settings: DialogmillConfig) -> None:
    problems: list[str] = []
    if settings.DIALOGMILL_CAPACITY < 1:
        problems.append("DIALOGMILL_CAPACITY must be a positive number of characters.")
    missing = missing_credentials(settings.TRANSLATOR_PROVIDER, provider_credentials(settings))
    if missing:
        problems.append(
            f"TRANSLATOR_PROVIDER '{settings.TRANSLATOR_PROVIDER}' needs: {', '.join(missing)}."
        )
    if problems:
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n"
            + "\n".join(f"- {problem}" for problem in problems)
        )


def _describe_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        location = ".".join(str(part) for part in path if part) if isinstance(path, (list, tuple)) else str(path)
        message = entry.get("message") or entry.get("msg") or "Invalid value"
        source = f" (source: {entry['source']})" if entry.get("source") else ""
        details.append(f"- {location + ': ' if location else ''}{message}{source}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


@lru_cache(maxsize=1)
def get_settings(app_dir: Path | None = None) -> DialogmillConfig:
    """Load, validate and cache the settings for this process."""

    base_dir = app_dir or Path.cwd()
    provenance = ProvenanceRecorder()
    combined: dict[str, Any] = {}
    allowed = set(DialogmillConfig.__field_infos__.keys())
    try:
        for source, layer in _file_layers(base_dir):
            merge_layer(combined, layer, provenance=provenance, source=source, layer="file")
        for source, layer in _env_layers(base_dir, allowed):
            merge_layer(combined, layer, provenance=provenance, source=source, layer="env")
        if not combined:
            raise ConfigNotFound("No configuration sources were found.")
        settings = DialogmillConfig.validate(combined, provenance=provenance)
    except ConfigNotFound as exc:
        raise TranslationProviderConfigurationError(
            "No configuration sources were found. Provide settings via a YAML "
            "file, a .env file, or environment variables."
        ) from exc
    except (IoError, SchemaError) as exc:
        raise TranslationProviderConfigurationError(f"Configuration could not be loaded: {exc}") from exc
    except ValidationError as exc:
        raise TranslationProviderConfigurationError(_describe_validation_errors(exc.to_dict())) from exc

    _check_settings(settings)
    return settings
