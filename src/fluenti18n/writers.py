import json
import logging
from enum import Enum
from pathlib import Path

from fluenti18n import binary, properties
from fluenti18n.classes import TranslationData, TranslationEntry
from fluenti18n.plural import PluralForm, build_icu_plural

logger = logging.getLogger(__name__)


class OutputFormat(Enum):
    JSON = "json"
    PROPERTIES = "properties"
    BINARY = "bin"

    @property
    def extension(self) -> str:
        return self.value

    def file_name(self, locale: str) -> str:
        return f"messages_{locale}.{self.extension}"

    @classmethod
    def parse(cls, name: str) -> "OutputFormat":
        normalized = name.strip().lower()
        if normalized == "binary":
            return cls.BINARY
        for output_format in cls:
            if normalized in (output_format.name.lower(), output_format.value):
                return output_format
        raise ValueError(f"Unknown output format: {name}")


def compiled_translation(entry: TranslationEntry) -> str:
    """Text stored in compiled catalogs for an entry.

    Plural entries are stored as their canonical ICU plural string so the
    runtime can pick a form per count.
    """
    if not entry.is_plural:
        return entry.translation or ""
    forms = {
        PluralForm.from_index(index): text
        for index, text in (entry.plural_forms or {}).items()
        if text and text.strip()
    }
    if not forms:
        return ""
    return build_icu_plural(forms)


class OutputWriter:
    output_format: OutputFormat

    def __init__(self, include_metadata: bool = True) -> None:
        self.include_metadata = include_metadata

    def render(self, data: TranslationData, locale: str) -> bytes:
        raise NotImplementedError

    def write(self, data: TranslationData, locale: str, output_directory: Path) -> Path:
        output_directory.mkdir(parents=True, exist_ok=True)
        output_file = output_directory / self.output_format.file_name(locale)
        output_file.write_bytes(self.render(data, locale))
        logger.debug(f"Wrote {data.entry_count} entries to {output_file}")
        return output_file


class JsonOutputWriter(OutputWriter):
    output_format = OutputFormat.JSON

    def __init__(self, include_metadata: bool = True, minify: bool = False) -> None:
        super().__init__(include_metadata)
        self.minify = minify

    def render(self, data: TranslationData, locale: str) -> bytes:
        root: dict[str, dict] = {}
        for hash, entry in data.entries.items():
            node = {
                "original": entry.original_text,
                "translation": compiled_translation(entry),
            }
            if self.include_metadata and entry.source_location is not None:
                node["source"] = entry.source_location
            root[hash] = node

        if self.include_metadata:
            metadata: dict[str, object] = {"locale": locale, "entryCount": data.entry_count}
            if data.metadata.revision_date is not None:
                metadata["lastModified"] = data.metadata.revision_date.isoformat()
            root["_metadata"] = metadata

        if self.minify:
            text = json.dumps(root, ensure_ascii=False, separators=(",", ":"))
        else:
            text = json.dumps(root, ensure_ascii=False, indent=2)
        return text.encode("utf-8")


class PropertiesOutputWriter(OutputWriter):
    output_format = OutputFormat.PROPERTIES

    def render(self, data: TranslationData, locale: str) -> bytes:
        lines = []
        if self.include_metadata:
            lines.append(f"# Translation file for locale: {locale}")
            lines.append("# Generated from PO file")
            lines.append(f"# Entry count: {data.entry_count}")
            lines.append("")

        for hash, entry in data.entries.items():
            if self.include_metadata and entry.source_location is not None:
                lines.append(f"# Source: {entry.source_location}")
            lines.append(
                f"{properties.escape(hash, key=True)}={properties.escape(compiled_translation(entry))}"
            )
            if self.include_metadata:
                lines.append("")

        return ("\n".join(lines) + "\n").encode("utf-8")


class BinaryOutputWriter(OutputWriter):
    output_format = OutputFormat.BINARY

    def __init__(self, include_metadata: bool = True, compress: bool = True) -> None:
        super().__init__(include_metadata)
        self.compress = compress

    def render(self, data: TranslationData, locale: str) -> bytes:
        translations = {
            hash: compiled_translation(entry) for hash, entry in data.entries.items()
        }
        return binary.encode_catalog(translations, locale, compress=self.compress)


def create_writer(
    output_format: OutputFormat,
    include_metadata: bool = True,
    minify: bool = False,
    compress: bool = True,
) -> OutputWriter:
    if output_format is OutputFormat.JSON:
        return JsonOutputWriter(include_metadata, minify)
    if output_format is OutputFormat.PROPERTIES:
        return PropertiesOutputWriter(include_metadata)
    return BinaryOutputWriter(include_metadata, compress)
