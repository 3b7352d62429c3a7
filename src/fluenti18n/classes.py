from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class TranslationEntry:
    original_text: str
    translation: str | None = None
    source_location: str | None = None
    plural_form: str | None = None
    plural_forms: dict[int, str] | None = None
    is_plural: bool = False

    @classmethod
    def singular(
        cls, original_text: str, translation: str | None, source_location: str | None = None
    ) -> "TranslationEntry":
        return cls(original_text, translation, source_location)

    @classmethod
    def plural(
        cls,
        original_text: str,
        plural_form: str,
        plural_forms: dict[int, str],
        source_location: str | None = None,
    ) -> "TranslationEntry":
        return cls(
            original_text,
            None,
            source_location,
            plural_form=plural_form,
            plural_forms=dict(plural_forms),
            is_plural=True,
        )

    def has_translation(self) -> bool:
        # Plural entries may be sparse, one non-blank form is enough
        if self.is_plural:
            return any(form and form.strip() for form in (self.plural_forms or {}).values())
        return bool(self.translation and self.translation.strip())


@dataclass
class PoMetadata:
    project_version: str | None = None
    language: str | None = None
    creation_date: datetime | None = None
    revision_date: datetime | None = None
    content_type: str = "text/plain; charset=UTF-8"


@dataclass(frozen=True)
class TranslationData:
    entries: dict[str, TranslationEntry]
    metadata: PoMetadata = field(default_factory=PoMetadata)

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    def has_translation(self, hash: str) -> bool:
        entry = self.entries.get(hash)
        return entry is not None and entry.has_translation()


@dataclass(frozen=True)
class TranslationResult:
    translation: str | None
    found: bool
    fallback: str | None = None

    @classmethod
    def of(cls, translation: str) -> "TranslationResult":
        return cls(translation, True)

    @classmethod
    def not_found(cls, fallback: str | None) -> "TranslationResult":
        return cls(None, False, fallback)

    @property
    def text(self) -> str | None:
        """The translation when found, otherwise the natural-text fallback."""
        return self.translation if self.found else self.fallback


@dataclass(frozen=True)
class MessageDescriptor:
    """Deferred translation handle, resolved against an I18n instance later."""

    hash: str
    natural_text: str
    args: tuple[Any, ...] = ()

    def with_args(self, *additional_args: Any) -> "MessageDescriptor":
        return MessageDescriptor(self.hash, self.natural_text, self.args + additional_args)

    def resolve(self, i18n, locale: str | None = None) -> str:
        return i18n.resolve(self, locale)

    def has_translation(self, i18n, locale: str | None = None) -> bool:
        return i18n.message_source.exists(self.hash, locale or i18n.current_locale)

    def __str__(self) -> str:
        return self.natural_text


@dataclass
class CompilationError:
    locale: str
    message: str
    cause: Exception | None = None

    def __str__(self) -> str:
        suffix = f" ({self.cause})" if self.cause is not None else ""
        return f"{self.locale}: {self.message}{suffix}"


@dataclass(frozen=True)
class TranslationStats:
    total_strings: int
    translated_strings: int

    @property
    def missing_strings(self) -> int:
        return self.total_strings - self.translated_strings

    @property
    def completion_percentage(self) -> float:
        if self.total_strings <= 0:
            return 0.0
        return self.translated_strings / self.total_strings * 100.0


@dataclass
class CompilationResult:
    processed_locales: dict[str, int] = field(default_factory=dict)
    generated_files: dict[str, list[Path]] = field(default_factory=dict)
    errors: list[CompilationError] = field(default_factory=list)
    missing_po_files: list[str] = field(default_factory=list)
    translation_stats: dict[str, TranslationStats] = field(default_factory=dict)

    @property
    def successful(self) -> bool:
        return not self.errors

    @property
    def total_generated_files(self) -> int:
        return sum(len(files) for files in self.generated_files.values())

    def add_generated_file(self, locale: str, format_name: str, path: Path) -> None:
        self.generated_files.setdefault(f"{locale}:{format_name}", []).append(path)

    def add_translation_stats(self, locale: str, data: TranslationData) -> None:
        translated = sum(1 for entry in data.entries.values() if entry.has_translation())
        self.translation_stats[locale] = TranslationStats(data.entry_count, translated)

    def summary(self, locale: str) -> str:
        stats = self.translation_stats.get(locale)
        if stats is None:
            return f"{locale}: No translation data available"
        return (
            f"{locale}: {stats.translated_strings}/{stats.total_strings} translations "
            f"({stats.completion_percentage:.1f}% complete, {stats.missing_strings} missing)"
        )

    def overall_summary(self) -> str:
        total = len(self.translation_stats)
        completed = sum(
            1
            for stats in self.translation_stats.values()
            if stats.translated_strings == stats.total_strings
        )
        average = (
            sum(s.completion_percentage for s in self.translation_stats.values()) / total
            if total
            else 0.0
        )
        return f"Overall: {completed}/{total} locales complete ({average:.1f}% average completion)"
