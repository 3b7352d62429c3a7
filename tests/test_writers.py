import json
from datetime import datetime

import pytest

from fluenti18n import properties
from fluenti18n.binary import decode_catalog
from fluenti18n.classes import PoMetadata, TranslationData, TranslationEntry
from fluenti18n.plural import PluralForm
from fluenti18n.sources import PropertiesMessageSource
from fluenti18n.writers import (
    BinaryOutputWriter,
    JsonOutputWriter,
    OutputFormat,
    PropertiesOutputWriter,
    compiled_translation,
    create_writer,
)


@pytest.fixture
def data() -> TranslationData:
    return TranslationData(
        {
            "h1": TranslationEntry.singular("Hello", "Bonjour", "app.py:10"),
            "h2": TranslationEntry.singular("Path: a=b", "Chemin : a=b\tfin\n", None),
            "h3": TranslationEntry.plural(
                "# file",
                "# files",
                {PluralForm.ONE.index: "# fichier", PluralForm.OTHER.index: "# fichiers"},
            ),
            "h4": TranslationEntry.singular("Untranslated", None),
        },
        PoMetadata(language="fr", revision_date=datetime(2024, 5, 1, 12, 30)),
    )


def test_output_format_names():
    assert OutputFormat.BINARY.file_name("fr") == "messages_fr.bin"
    assert OutputFormat.JSON.file_name("en-US") == "messages_en-US.json"
    assert OutputFormat.parse("binary") is OutputFormat.BINARY
    assert OutputFormat.parse("BIN") is OutputFormat.BINARY
    assert OutputFormat.parse(" Properties ") is OutputFormat.PROPERTIES
    with pytest.raises(ValueError):
        OutputFormat.parse("yaml")


def test_compiled_translation(data):
    assert compiled_translation(data.entries["h1"]) == "Bonjour"
    assert compiled_translation(data.entries["h4"]) == ""
    assert compiled_translation(data.entries["h3"]) == (
        "{0, plural, one {# fichier} other {# fichiers}}"
    )
    sparse = TranslationEntry.plural("a", "b", {PluralForm.ONE.index: "  "})
    assert compiled_translation(sparse) == ""


def test_json_writer(data, tmp_path):
    path = JsonOutputWriter().write(data, "fr", tmp_path / "out")
    assert path == tmp_path / "out" / "messages_fr.json"

    root = json.loads(path.read_text("utf-8"))
    assert root["h1"] == {"original": "Hello", "translation": "Bonjour", "source": "app.py:10"}
    assert "source" not in root["h2"]
    assert root["h4"]["translation"] == ""
    assert root["_metadata"] == {
        "locale": "fr",
        "entryCount": 4,
        "lastModified": "2024-05-01T12:30:00",
    }


def test_json_writer_without_metadata_minified(data):
    text = JsonOutputWriter(include_metadata=False, minify=True).render(data, "fr").decode("utf-8")
    assert "\n" not in text
    root = json.loads(text)
    assert "_metadata" not in root
    assert "source" not in root["h1"]


def test_properties_writer(data, tmp_path):
    path = PropertiesOutputWriter().write(data, "fr", tmp_path)
    text = path.read_text("utf-8")
    assert text.startswith("# Translation file for locale: fr\n")
    assert "# Entry count: 4\n" in text
    assert "# Source: app.py:10\nh1=Bonjour\n" in text
    assert "h2=Chemin \\: a\\=b\\tfin\\n\n" in text

    assert properties.loads(text) == {
        "h1": "Bonjour",
        "h2": "Chemin : a=b\tfin\n",
        "h3": "{0, plural, one {# fichier} other {# fichiers}}",
        "h4": "",
    }


def test_properties_writer_without_metadata(data):
    text = PropertiesOutputWriter(include_metadata=False).render(data, "fr").decode("utf-8")
    assert not text.startswith("#")
    assert text.splitlines()[0] == "h1=Bonjour"


def test_binary_writer(data, tmp_path):
    path = BinaryOutputWriter(compress=True).write(data, "fr", tmp_path)
    assert path.name == "messages_fr.bin"
    raw = path.read_bytes()
    assert raw[:2] == b"\x1f\x8b"

    catalog = decode_catalog(raw)
    assert catalog.locale == "fr"
    assert catalog.entries["h1"] == "Bonjour"
    assert catalog.entries["h3"].startswith("{0, plural,")
    assert catalog.entries["h4"] == ""


def test_create_writer():
    assert isinstance(create_writer(OutputFormat.JSON), JsonOutputWriter)
    assert isinstance(create_writer(OutputFormat.PROPERTIES), PropertiesOutputWriter)
    writer = create_writer(OutputFormat.BINARY, compress=False)
    assert isinstance(writer, BinaryOutputWriter)
    assert writer.compress is False


@pytest.mark.parametrize(
    "text,expected",
    [
        ("key=value", {"key": "value"}),
        ("key = value with spaces", {"key": "value with spaces"}),
        ("key:value", {"key": "value"}),
        ("key value", {"key": "value"}),
        ("# comment\n! other\n\nkey=v", {"key": "v"}),
        ("key=line one \\\n    continues", {"key": "line one continues"}),
        ("key=caf\\u00e9", {"key": "café"}),
        ("a\\=b=c", {"a=b": "c"}),
        ("empty=", {"empty": ""}),
    ],
)
def test_properties_loads(text, expected):
    assert properties.loads(text) == expected


def test_properties_escape():
    assert properties.escape("a\\b\nc\rd\te=f:g") == "a\\\\b\\nc\\rd\\te\\=f\\:g"
    assert properties.unescape(properties.escape("a\\b\nc=d:e")) == "a\\b\nc=d:e"


@pytest.mark.parametrize(
    "translation",
    [
        "Ligne 1\u2028Ligne 2",
        "Para 1\u2029Para 2",
        "page\x0cbreak",
        "a\x85b",
        "fs\x1cgs\x1drs\x1e",
        "  leading spaces",
        "\x0cleading form feed",
    ],
)
def test_properties_round_trip_keeps_unusual_characters(translation, tmp_path):
    data = TranslationData(
        {
            "h1": TranslationEntry.singular("src", translation),
            "h2": TranslationEntry.singular("ok", "ok"),
        }
    )
    PropertiesOutputWriter(include_metadata=False).write(data, "fr", tmp_path)

    source = PropertiesMessageSource(tmp_path, default_locale="fr")
    assert dict(source.translations("fr")) == {"h1": translation, "h2": "ok"}


def test_properties_keys_are_escaped():
    data = TranslationData(
        {
            "menu:open": TranslationEntry.singular("Open", "Ouvrir"),
            "a=b c": TranslationEntry.singular("x", "y"),
            "#tag": TranslationEntry.singular("t", "étiquette"),
        }
    )
    text = PropertiesOutputWriter(include_metadata=False).render(data, "fr").decode("utf-8")
    assert "menu\\:open=Ouvrir\n" in text
    assert properties.loads(text) == {"menu:open": "Ouvrir", "a=b c": "y", "#tag": "étiquette"}


def test_properties_escape_form_feed_and_leading_space():
    assert properties.escape("a\fb") == "a\\fb"
    assert properties.escape(" x") == "\\ x"
    assert properties.escape("a b", key=True) == "a\\ b"
