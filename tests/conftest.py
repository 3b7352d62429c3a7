from pathlib import Path

import pytest

FRENCH_PO = '''\
msgid ""
msgstr ""
"Project-Id-Version: demo 1.0\\n"
"Language: fr\\n"
"PO-Revision-Date: 2024-05-01 12:30+0000\\n"
"Content-Type: text/plain; charset=UTF-8\\n"

#. hash: h1
#: app.py:10
msgid "Hello"
msgstr "Bonjour"

#. hash: h2
msgid "Goodbye {}"
msgstr "Au revoir {}"

#. hash: h3
msgid "Not yet"
msgstr ""

#. hash: pl
#: files.py:3
msgid "{} file"
msgid_plural "{} files"
msgstr[0] "{} fichier"
msgstr[1] "{} fichiers"

msgid "{0, plural, one {# file} other {# files}}"
msgstr "{0, plural, one {# fichier} other {# fichiers}}"

msgctxt "menu"
msgid "Open"
msgstr "Ouvrir"

#~ msgid "Old"
#~ msgstr "Vieux"
'''


@pytest.fixture
def po_directory(tmp_path: Path) -> Path:
    directory = tmp_path / "po"
    directory.mkdir()
    (directory / "messages_fr.po").write_text(FRENCH_PO, encoding="utf-8")
    return directory
