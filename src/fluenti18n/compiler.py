import logging
import re
from dataclasses import dataclass
from pathlib import Path

import polib

from fluenti18n.classes import CompilationError, CompilationResult
from fluenti18n.config import FluentConfig
from fluenti18n.hashing import HashGenerator
from fluenti18n.parser import parse_po_file, po_file_name
from fluenti18n.writers import OutputFormat, OutputWriter, create_writer

logger = logging.getLogger(__name__)

PLACEHOLDER_REGEX = re.compile(r"\{[0-9]+\}|\{\}")


class CompilationFailed(Exception):
    def __init__(self, result: CompilationResult) -> None:
        self.result = result
        super().__init__(
            "Translation compilation failed: " + "; ".join(str(error) for error in result.errors)
        )


class TranslationCompiler:
    def __init__(self, config: FluentConfig, hash_generator: HashGenerator | None = None) -> None:
        self.config = config
        self.hash_generator = hash_generator
        self.writers: dict[OutputFormat, OutputWriter] = {
            output_format: create_writer(
                output_format,
                include_metadata=config.include_metadata,
                minify=config.minify,
                compress=config.compress,
            )
            for output_format in config.output_formats
        }

    def compile(self, strict: bool = False) -> CompilationResult:
        """Compile messages_<locale>.po of every supported locale into the output formats.

        Raises:
            CompilationFailed: In strict mode, when any locale failed to compile.
        """
        result = CompilationResult()

        for locale in self.config.supported_locales:
            po_file = self.config.po_directory / po_file_name(locale)
            if not po_file.is_file():
                logger.warning(f"PO file not found for locale {locale}: {po_file}")
                result.missing_po_files.append(f"{locale}: {po_file}")
                continue

            try:
                data = parse_po_file(po_file, self.hash_generator)
                result.add_translation_stats(locale, data)
                for output_format, writer in self.writers.items():
                    output_file = writer.write(data, locale, self.config.output_directory)
                    result.add_generated_file(locale, output_format.name, output_file)
            except (OSError, ValueError) as ex:
                logger.error(f"Failed to compile {po_file}: {ex}")
                result.errors.append(CompilationError(locale, f"Failed to compile {po_file}", ex))
                continue

            result.processed_locales[locale] = data.entry_count
            logger.info(result.summary(locale))

        if strict and not result.successful:
            raise CompilationFailed(result)
        return result


@dataclass
class ValidationIssue:
    locale: str
    message: str
    line: int | None = None

    def __str__(self) -> str:
        where = f" at line {self.line}" if self.line else ""
        return f"{self.locale}: {self.message}{where}"


def count_placeholders(text: str) -> int:
    return len(PLACEHOLDER_REGEX.findall(text))


def validate_po_files(
    config: FluentConfig,
    check_missing_translations: bool = True,
    check_placeholders: bool = True,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    for locale in config.supported_locales:
        po_path = config.po_directory / po_file_name(locale)
        if not po_path.is_file():
            issues.append(ValidationIssue(locale, f"PO file not found: {po_path}"))
            continue
        try:
            po = polib.pofile(str(po_path), encoding="utf-8")
        except (OSError, ValueError) as ex:
            issues.append(ValidationIssue(locale, f"Failed to read PO file: {ex}"))
            continue

        for entry in po:
            if entry.obsolete or not entry.msgid:
                continue
            translations = (
                list(entry.msgstr_plural.values()) if entry.msgid_plural else [entry.msgstr]
            )
            if check_missing_translations and (
                not any(translations) or translations == [entry.msgid]
            ):
                issues.append(
                    ValidationIssue(locale, f"Missing translation: {entry.msgid}", entry.linenum)
                )
                continue
            if check_placeholders:
                expected = count_placeholders(entry.msgid)
                for translation in translations:
                    if not translation:
                        continue
                    found = count_placeholders(translation)
                    if found != expected:
                        issues.append(
                            ValidationIssue(
                                locale,
                                f"Placeholder mismatch: original has {expected}, "
                                f"translation has {found} ({entry.msgid})",
                                entry.linenum,
                            )
                        )

        logger.debug(f"Validated {po_path}")

    return issues


def clean_outputs(config: FluentConfig) -> list[Path]:
    """Delete compiled catalogs of the configured locales. Returns the deleted paths."""
    deleted = []
    for locale in config.supported_locales:
        for output_format in OutputFormat:
            path = config.output_directory / output_format.file_name(locale)
            if not path.is_file():
                continue
            try:
                path.unlink()
            except OSError as ex:
                logger.warning(f"Failed to delete {path}: {ex}")
                continue
            logger.debug(f"Deleted {path}")
            deleted.append(path)
    return deleted
