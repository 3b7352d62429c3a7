import json

import pytest

from fluenti18n.binary import decode_catalog
from fluenti18n.compiler import (
    CompilationFailed,
    TranslationCompiler,
    clean_outputs,
    count_placeholders,
    validate_po_files,
)
from fluenti18n.config import FluentConfig
from fluenti18n.writers import OutputFormat


@pytest.fixture
def config(po_directory, tmp_path) -> FluentConfig:
    return FluentConfig(
        supported_locales=["fr", "de"],
        po_directory=po_directory,
        output_directory=tmp_path / "out",
        output_formats=[OutputFormat.JSON, OutputFormat.PROPERTIES, OutputFormat.BINARY],
    )


def test_compile(config):
    result = TranslationCompiler(config).compile()

    assert result.successful
    assert result.processed_locales == {"fr": 6}
    assert result.total_generated_files == 3
    assert result.missing_po_files == [f"de: {config.po_directory / 'messages_de.po'}"]
    assert result.generated_files["fr:BINARY"] == [config.output_directory / "messages_fr.bin"]

    stats = result.translation_stats["fr"]
    assert stats.total_strings == 6
    assert stats.translated_strings == 5
    assert stats.missing_strings == 1
    assert result.summary("fr") == "fr: 5/6 translations (83.3% complete, 1 missing)"
    assert result.summary("de") == "de: No translation data available"
    assert result.overall_summary() == "Overall: 0/1 locales complete (83.3% average completion)"

    catalog = decode_catalog((config.output_directory / "messages_fr.bin").read_bytes())
    assert catalog.entries["h1"] == "Bonjour"
    assert catalog.entries["pl"] == "{0, plural, one {{} fichier} other {{} fichiers}}"

    root = json.loads((config.output_directory / "messages_fr.json").read_text("utf-8"))
    assert root["h1"]["translation"] == "Bonjour"
    assert root["_metadata"]["entryCount"] == 6


def test_compile_records_broken_po_files(config):
    (config.po_directory / "messages_de.po").write_text(
        'msgid "a"\nmsgstr "b"\nthis is not po\n', encoding="utf-8"
    )
    result = TranslationCompiler(config).compile()
    assert not result.successful
    assert [error.locale for error in result.errors] == ["de"]
    assert "fr" in result.processed_locales

    with pytest.raises(CompilationFailed) as excinfo:
        TranslationCompiler(config).compile(strict=True)
    assert excinfo.value.result.errors[0].locale == "de"


def test_count_placeholders():
    assert count_placeholders("Hello {0}, you have {1} and {}") == 3
    assert count_placeholders("{name} is not positional") == 0


def test_validate_po_files(config, po_directory):
    (po_directory / "messages_de.po").write_text(
        'msgid "Hello {}"\nmsgstr "Hallo"\n\nmsgid "OK"\nmsgstr "OK"\n', encoding="utf-8"
    )
    issues = validate_po_files(config)
    messages = [str(issue) for issue in issues]

    assert any(m.startswith("fr: Missing translation: Not yet") for m in messages)
    assert any("de: Placeholder mismatch: original has 1, translation has 0" in m for m in messages)
    assert any(m.startswith("de: Missing translation: OK") for m in messages)
    assert len(issues) == 3


def test_validate_reports_missing_po_files(config):
    config.supported_locales = ["sv"]
    issues = validate_po_files(config)
    assert len(issues) == 1
    assert "PO file not found" in issues[0].message


def test_clean_outputs(config):
    TranslationCompiler(config).compile()
    (config.output_directory / "keep.txt").write_text("x")

    deleted = clean_outputs(config)

    assert sorted(path.name for path in deleted) == [
        "messages_fr.bin",
        "messages_fr.json",
        "messages_fr.properties",
    ]
    assert (config.output_directory / "keep.txt").exists()
    assert clean_outputs(config) == []
