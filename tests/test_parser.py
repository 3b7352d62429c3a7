from datetime import datetime, timezone

from fluenti18n.hashing import generate_hash
from fluenti18n.parser import locale_from_file_name, parse_po_file
from fluenti18n.plural import PluralForm


def test_parse_po_file(po_directory):
    data = parse_po_file(po_directory / "messages_fr.po")

    assert data.entries["h1"].original_text == "Hello"
    assert data.entries["h1"].translation == "Bonjour"
    assert data.entries["h1"].source_location == "app.py:10"
    assert data.entries["h2"].translation == "Au revoir {}"
    assert data.entries["h3"].translation == ""
    assert not data.has_translation("h3")
    assert data.has_translation("h1")
    assert not data.has_translation("missing")


def test_gettext_plural_entry(po_directory):
    entry = parse_po_file(po_directory / "messages_fr.po").entries["pl"]
    assert entry.is_plural
    assert entry.original_text == "{} file"
    assert entry.plural_form == "{} files"
    assert entry.plural_forms == {
        PluralForm.ONE.index: "{} fichier",
        PluralForm.OTHER.index: "{} fichiers",
    }
    assert entry.source_location == "files.py:3"
    assert entry.has_translation()


def test_icu_plural_entry_is_keyed_by_hash_of_msgid(po_directory):
    data = parse_po_file(po_directory / "messages_fr.po")
    entry = data.entries["ru92EpcM-ol"]
    assert entry.is_plural
    assert entry.original_text == "# file"
    assert entry.plural_forms == {
        PluralForm.ONE.index: "# fichier",
        PluralForm.OTHER.index: "# fichiers",
    }


def test_context_and_obsolete_entries(po_directory):
    data = parse_po_file(po_directory / "messages_fr.po")
    assert data.entries[generate_hash("Open", "menu")].translation == "Ouvrir"
    assert all(entry.original_text != "Old" for entry in data.entries.values())
    assert data.entry_count == 6


def test_metadata(po_directory):
    metadata = parse_po_file(po_directory / "messages_fr.po").metadata
    assert metadata.project_version == "demo 1.0"
    assert metadata.language == "fr"
    assert metadata.revision_date == datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    assert metadata.content_type == "text/plain; charset=UTF-8"


def test_language_falls_back_to_file_name(tmp_path):
    path = tmp_path / "messages_nb.po"
    path.write_text('msgid "Yes"\nmsgstr "Ja"\n', encoding="utf-8")
    data = parse_po_file(path)
    assert data.metadata.language == "nb"
    assert data.entries[generate_hash("Yes")].translation == "Ja"


def test_locale_from_file_name():
    assert locale_from_file_name("messages_en-US.po") == "en-US"
    assert locale_from_file_name("other.po") is None
