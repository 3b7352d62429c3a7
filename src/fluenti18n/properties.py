"""Minimal reader/writer for ``key=value`` properties catalogs."""

import re

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
}
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "f": "\f"}

# Only these separate lines and keys; other Unicode breaks are ordinary text
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_WHITESPACE = " \t\f"


def escape(value: str, key: bool = False) -> str:
    escaped = "".join(_ESCAPES.get(char, char) for char in value)
    if key:
        escaped = escaped.replace(" ", "\\ ")
        if escaped[:1] in ("#", "!"):
            escaped = "\\" + escaped
    elif escaped[:1] == " ":
        escaped = "\\" + escaped
    return escaped


def unescape(value: str) -> str:
    chars = []
    it = iter(value)
    for char in it:
        if char != "\\":
            chars.append(char)
            continue
        nxt = next(it, "")
        if nxt == "u":
            code = "".join(next(it, "") for _ in range(4))
            try:
                chars.append(chr(int(code, 16)))
            except ValueError:
                chars.append("\\u" + code)
        else:
            chars.append(_UNESCAPES.get(nxt, nxt))
    return "".join(chars)


def _split(line: str) -> tuple[str, str]:
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in "=:":
            return line[:index].rstrip(_WHITESPACE), line[index + 1 :].lstrip(_WHITESPACE)
        elif char in _WHITESPACE:
            rest = line[index:].lstrip(_WHITESPACE)
            if rest[:1] in ("=", ":"):
                rest = rest[1:].lstrip(_WHITESPACE)
            return line[:index], rest
    return line, ""


def loads(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    logical = ""
    for raw_line in _LINE_BREAK.split(text):
        line = raw_line.lstrip(_WHITESPACE)
        if not logical and (not line or line[0] in "#!"):
            continue
        # An odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            logical += line[:-1]
            continue
        logical += line
        key, value = _split(logical)
        values[unescape(key)] = unescape(value)
        logical = ""
    if logical:
        key, value = _split(logical)
        values[unescape(key)] = unescape(value)
    return values
