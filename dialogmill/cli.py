"""Command line interface for the dialogue translator."""

from __future__ import annotations

import argparse
import json
import pathlib
import re
import sys
from typing import Any, Dict, Iterable, Optional

from .configuration import get_settings, provider_credentials
from .errors import (
    DialogmillError,
    NonInteractiveAbort,
    OverwriteRefusedError,
    TranslationProviderConfigurationError,
    TranslationProviderError,
    UntranslatedDialogError,
)
from .interceptor import PageTranslator, parse_dialogs
from .providers import DEFAULT_CAPACITY, TranslatorEngine, build_provider
from .structures import LanguageSetting
from .translator import DialogueTranslator, TranslationResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dialogmill",
        description=(
            "Translate page dialogs in as few translator calls as the capacity allows."
        ),
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        help="Path to a JSON file holding a list of dialogs.",
    )
    parser.add_argument(
        "--url",
        help="Translate the dialogs carried in the fragment of a page URL instead.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help="Destination language code.",
    )
    parser.add_argument(
        "-s",
        "--source-language",
        help="Source language code (default: auto).",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending the target language code.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translator identifier: echo, openai or azure_openai.",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Provider-specific model or deployment identifier.",
    )
    parser.add_argument(
        "-c",
        "--capacity",
        type=int,
        help=f"Maximum characters per translator call (default: {DEFAULT_CAPACITY}).",
    )
    parser.add_argument(
        "--no-optimization",
        action="store_true",
        help="Translate every dialog with its own call instead of batching.",
    )
    parser.add_argument(
        "--missing-policy",
        choices=["keep_original", "omit", "fail"],
        help="What to do with dialogs whose translation cannot be recovered.",
    )
    parser.add_argument(
        "--identifiers",
        choices=["content", "sequence"],
        help="How dialogs are keyed inside a batch.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop once repeated reconciliation errors pile up.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete translator requests and responses for troubleshooting.",
    )
    return parser


def sanitise_language_for_filename(language: str) -> str:
    """Generate a filesystem-friendly suffix from a language descriptor."""

    collapsed = re.sub(r"\s+", "-", language.strip())
    ascii_only = collapsed.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9\-]+", "", ascii_only)
    return cleaned or "translated"


def derive_output_path(input_path: pathlib.Path, language: str) -> pathlib.Path:
    addition = sanitise_language_for_filename(language)
    return input_path.with_name(f"{input_path.stem}_{addition}{input_path.suffix}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input file not found. Please provide a readable JSON list of dialogs."
        )
    if not input_path.is_file():
        raise DialogmillError("Input path must be a file.")
    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input file. Refusing to overwrite the source."
        )
    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists. Rename it or use the overwrite flag."
        )


def load_settings(provider: str | None) -> tuple[Any, str | None]:
    """Load configuration; an echo run may proceed without any."""

    try:
        return get_settings(), None
    except TranslationProviderConfigurationError as exc:
        if (provider or "").strip().lower() == "echo":
            return None, None
        return None, str(exc)


def _setting(settings: Any, name: str, default: Any = None) -> Any:
    if settings is None:
        return default
    value = getattr(settings, name, None)
    return default if value is None else value


def execute_translation(args: argparse.Namespace, settings: Any) -> tuple[int, TranslationResult | None, str | None]:
    """Run one translation and return the exit code, result, and message."""

    target_language = args.target_language or _setting(settings, "DIALOGMILL_TARGET_LANGUAGE")
    if not target_language:
        return 1, None, "A target language is required (-t/--target-language)."
    language = LanguageSetting(
        origin=args.source_language or _setting(settings, "DIALOGMILL_SOURCE_LANGUAGE", "auto"),
        target=target_language,
        disable_translation_optimization=bool(
            args.no_optimization or _setting(settings, "DIALOGMILL_DISABLE_OPTIMIZATION", False)
        ),
    )
    debug = bool(args.debug_provider or _setting(settings, "DIALOGMILL_PROVIDER_DEBUG", False))
    options = {
        "policy": args.missing_policy or _setting(settings, "DIALOGMILL_MISSING_POLICY", "keep_original"),
        "identifier_strategy": args.identifiers
        or _setting(settings, "DIALOGMILL_IDENTIFIER_STRATEGY", "content"),
        "strict": args.strict,
        "verbose": args.verbose,
    }

    provider = args.provider or _setting(settings, "TRANSLATOR_PROVIDER", "openai")

    try:
        translator = build_provider(
            provider,
            capacity=args.capacity or _setting(settings, "DIALOGMILL_CAPACITY", DEFAULT_CAPACITY),
            model=args.model or _setting(settings, "OPENAI_MODEL"),
            credentials=provider_credentials(settings, provider) if settings is not None else None,
            debug=debug,
        )
        if args.url:
            page = PageTranslator(language, translator, **options)
            print(page.rewrite(args.url))
            return 0, page.last_result, None
        return _translate_file(args, language, translator, options, target_language)
    except (FileNotFoundError, OverwriteRefusedError) as exc:
        return 1, None, str(exc)
    except TranslationProviderConfigurationError as exc:
        return 1, None, str(exc)
    except TranslationProviderError as exc:
        return 1, None, f"The translator failed: {exc}"
    except UntranslatedDialogError as exc:
        return 1, None, str(exc)
    except NonInteractiveAbort as exc:
        return 2, None, str(exc)
    except DialogmillError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."


def _translate_file(
    args: argparse.Namespace,
    language: LanguageSetting,
    translator: TranslatorEngine,
    options: Dict[str, Any],
    target_language: str,
) -> tuple[int, TranslationResult | None, str | None]:
    input_path = pathlib.Path(args.input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(args.output).expanduser().resolve()
        if args.output
        else derive_output_path(input_path, target_language)
    )
    validate_paths(input_path, output_path, force_overwrite=args.force)

    dialogs = parse_dialogs(input_path.read_text(encoding="utf-8"))
    if dialogs is None:
        raise DialogmillError(f"{input_path} does not contain a JSON list of dialogs.")

    result = DialogueTranslator(language, translator, **options).translate(dialogs)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps([dialog.to_dict() for dialog in result.dialogs], ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return 0, result, None


def print_summary(result: TranslationResult) -> None:
    """Output a short report once processing completes."""

    print("\nTranslation complete.", file=sys.stderr)
    print(
        "  Dialogs:         "
        f"{result.translated_dialogs} translated / {result.total_dialogs} total "
        f"({result.untranslated_dialogs} untranslated)",
        file=sys.stderr,
    )
    print(
        f"  Translator:      {result.translator_calls} calls "
        f"for {result.total_batches} batches",
        file=sys.stderr,
    )
    print(f"  Elapsed time:    {result.elapsed_seconds:.2f} seconds", file=sys.stderr)
    if result.error_messages:
        print("  Notes:", file=sys.stderr)
        for message in result.error_messages:
            print(f"    - {message}", file=sys.stderr)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.input_file is None and not args.url:
        parser.error("either input_file or --url is required")

    settings, problem = load_settings(args.provider)
    if problem:
        print(problem)
        return 1

    exit_code, result, message = execute_translation(args, settings)
    if message:
        print(message)
    if result:
        print_summary(result)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
