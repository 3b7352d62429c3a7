import logging
import re
from datetime import datetime
from pathlib import Path

import polib

from fluenti18n.classes import PoMetadata, TranslationData, TranslationEntry
from fluenti18n.hashing import HashGenerator, Sha256HashGenerator
from fluenti18n.plural import PluralForm, build_icu_plural, extract_all_plural_forms, is_icu_plural

logger = logging.getLogger(__name__)

HASH_COMMENT = re.compile(r"^hash:\s*(\S+)\s*$", re.MULTILINE)
PO_FILE_NAME = re.compile(r"^messages_(?P<locale>.+)\.po$")
PO_DATE_FORMATS = ("%Y-%m-%d %H:%M%z", "%Y-%m-%d %H:%M")

# msgstr[n] index -> category, by number of forms in the entry
GETTEXT_PLURAL_FORMS = {
    1: (PluralForm.OTHER,),
    2: (PluralForm.ONE, PluralForm.OTHER),
    3: (PluralForm.ZERO, PluralForm.ONE, PluralForm.OTHER),
    4: (PluralForm.ZERO, PluralForm.ONE, PluralForm.TWO, PluralForm.OTHER),
}


def po_file_name(locale: str) -> str:
    return f"messages_{locale}.po"


def locale_from_file_name(file_name: str) -> str | None:
    match = PO_FILE_NAME.match(file_name)
    return match.group("locale") if match else None


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    for fmt in PO_DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    logger.debug(f"Unrecognised PO date {value!r}")
    return None


def _metadata(po: polib.POFile, path: Path) -> PoMetadata:
    header = po.metadata
    return PoMetadata(
        project_version=header.get("Project-Id-Version"),
        language=header.get("Language") or locale_from_file_name(path.name),
        creation_date=_parse_date(header.get("POT-Creation-Date")),
        revision_date=_parse_date(header.get("PO-Revision-Date")),
        content_type=header.get("Content-Type", "text/plain; charset=UTF-8"),
    )


def _source_location(entry: polib.POEntry) -> str | None:
    if not entry.occurrences:
        return None
    return " ".join(f"{file}:{line}" if line else file for file, line in entry.occurrences)


def _gettext_forms(msgstr_plural: dict[int, str]) -> dict[int, str]:
    layout = GETTEXT_PLURAL_FORMS.get(len(msgstr_plural))
    forms = {}
    for index, text in sorted(msgstr_plural.items()):
        index = int(index)
        if layout is not None and index < len(layout):
            form = layout[index]
        elif index < len(PluralForm):
            form = PluralForm.from_index(index)
        else:
            logger.warning(f"Ignoring plural translation index {index}")
            continue
        forms[form.index] = text
    return forms


def _icu_forms(icu_string: str) -> dict[int, str]:
    return {form.index: text for form, text in extract_all_plural_forms(icu_string).items()}


def parse_entry(
    entry: polib.POEntry, hash_generator: HashGenerator
) -> tuple[str, TranslationEntry]:
    source_location = _source_location(entry)
    match = HASH_COMMENT.search(entry.comment or "")

    if entry.msgid_plural:
        icu_source = build_icu_plural(
            {PluralForm.ONE: entry.msgid, PluralForm.OTHER: entry.msgid_plural}
        )
        hash = match.group(1) if match else hash_generator.generate_hash(icu_source, entry.msgctxt)
        translation = TranslationEntry.plural(
            entry.msgid, entry.msgid_plural, _gettext_forms(entry.msgstr_plural), source_location
        )
    elif is_icu_plural(entry.msgid):
        source_forms = extract_all_plural_forms(entry.msgid)
        hash = match.group(1) if match else hash_generator.generate_hash(entry.msgid, entry.msgctxt)
        translation = TranslationEntry.plural(
            source_forms.get(PluralForm.ONE, entry.msgid),
            source_forms.get(PluralForm.OTHER, entry.msgid),
            _icu_forms(entry.msgstr),
            source_location,
        )
    else:
        hash = match.group(1) if match else hash_generator.generate_hash(entry.msgid, entry.msgctxt)
        translation = TranslationEntry.singular(entry.msgid, entry.msgstr, source_location)

    return hash, translation


def parse_po_file(path: Path, hash_generator: HashGenerator | None = None) -> TranslationData:
    """Parse a PO file into hash-keyed translation data.

    The key of each entry is its ``#. hash: <key>`` extracted comment, or the
    hash of its msgid (with msgctxt as context) when the comment is missing.
    Obsolete entries and the header entry are skipped.
    """
    hash_generator = hash_generator or Sha256HashGenerator()
    logger.debug(f"Parsing {path}")
    po = polib.pofile(str(path), encoding="utf-8")

    entries: dict[str, TranslationEntry] = {}
    for entry in po:
        if entry.obsolete or not entry.msgid:
            continue
        hash, translation = parse_entry(entry, hash_generator)
        if hash in entries:
            logger.warning(f"Duplicate hash {hash} in {path.name}, keeping the last entry")
        entries[hash] = translation

    logger.debug(f"Parsed {len(entries)} translations from {path}")
    return TranslationData(entries, _metadata(po, path))
