"""Plural categories, ICU plural strings and the plural message builder.

A pluralized message is one translatable unit: all of its forms are
rendered into a canonical ICU string, and that string is what gets hashed
and stored in the catalogs. For example::

    {0, plural, one {# file} other {# files}}

Plural rule selection is deliberately simple (zero/one/two/other by count,
for every locale). Rules only pick which form is shown, they never change
the canonical string or its hash.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

from fluenti18n.hashing import HashGenerator, Sha256HashGenerator

if TYPE_CHECKING:
    from fluenti18n.sources import MessageSource

logger = logging.getLogger(__name__)

ICU_PLURAL_PREFIX = "{0, plural,"

_ICU_CONTENT_PATTERN = re.compile(r"^\{\s*\d+\s*,\s*plural\s*,\s*(.*)\}$", re.DOTALL | re.IGNORECASE)
# One level of nested braces is allowed inside a form, e.g. a nested select
_PLURAL_FORM_PATTERN = re.compile(r"(\w+)\s*\{([^{}]*(?:\{[^{}]*\}[^{}]*)*)\}")


class PluralForm(Enum):
    ZERO = "zero"
    ONE = "one"
    TWO = "two"
    FEW = "few"
    MANY = "many"
    OTHER = "other"

    @property
    def index(self) -> int:
        return _FORM_ORDER.index(self)

    @classmethod
    def from_index(cls, index: int) -> PluralForm:
        return _FORM_ORDER[index]

    @classmethod
    def parse(cls, name: str) -> PluralForm | None:
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None


_FORM_ORDER = list(PluralForm)


def determine_plural_form(count: int | float, locale: str | None = None) -> PluralForm:
    # TODO: per-language CLDR tables keyed by locale (few/many are never selected yet)
    n = int(count)
    if n == 0:
        return PluralForm.ZERO
    if n == 1:
        return PluralForm.ONE
    if n == 2:
        return PluralForm.TWO
    return PluralForm.OTHER


def build_icu_plural(forms: dict[PluralForm, str | None]) -> str:
    """Render forms as a canonical ICU plural string.

    Forms are always emitted in ZERO..OTHER order and empty forms are
    dropped, so the result (and its hash) does not depend on the order
    in which forms were supplied.
    """
    parts = [
        f"{form.value} {{{forms[form]}}}"
        for form in _FORM_ORDER
        if forms.get(form)
    ]
    return "{0, plural, " + " ".join(parts) + "}"


def extract_all_plural_forms(icu_string: str) -> dict[PluralForm, str]:
    """Parse an ICU plural string into its forms.

    Returns an empty dict when the string is not an ICU plural at all.
    Unknown form names are skipped.
    """
    forms: dict[PluralForm, str] = {}
    match = _ICU_CONTENT_PATTERN.match(icu_string.strip())
    if match is None:
        return forms

    for form_match in _PLURAL_FORM_PATTERN.finditer(match.group(1)):
        name, content = form_match.group(1), form_match.group(2).strip()
        form = PluralForm.parse(name)
        if form is None:
            logger.warning(f"Unknown plural form {name!r} in {icu_string!r}")
            continue
        forms[form] = content
    return forms


def extract_plural_form(icu_string: str, form: PluralForm, count: int | float = 0) -> str:
    forms = extract_all_plural_forms(icu_string)
    return select_form(forms, form, count)


def select_form(forms: dict[PluralForm, str], form: PluralForm, count: int | float) -> str:
    if form in forms:
        return forms[form]
    if PluralForm.OTHER in forms:
        return forms[PluralForm.OTHER]
    return str(count)


def is_icu_plural(text: str | None) -> bool:
    return bool(text) and text.startswith(ICU_PLURAL_PREFIX)


def substitute_count(text: str, count: int | float) -> str:
    value = str(count)
    return text.replace("{0}", value).replace("{}", value).replace("#", value)


class PluralBuilder:
    """Collects the plural forms of one message and formats it for a count.

    Example:
        i18n.plural(3).one("{} file").other("{} files").format()
    """

    def __init__(
        self,
        count: int | float,
        locale: str | None = None,
        message_source: MessageSource | None = None,
        hash_generator: HashGenerator | None = None,
    ) -> None:
        self.count = count
        self.locale = locale
        self.message_source = message_source
        self.hash_generator = hash_generator or Sha256HashGenerator()
        self.forms: dict[PluralForm, str] = {}

    def form(self, form: PluralForm, natural_text: str) -> PluralBuilder:
        self.forms[form] = natural_text
        return self

    def zero(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.ZERO, natural_text)

    def one(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.ONE, natural_text)

    def two(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.TWO, natural_text)

    def few(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.FEW, natural_text)

    def many(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.MANY, natural_text)

    def other(self, natural_text: str) -> PluralBuilder:
        return self.form(PluralForm.OTHER, natural_text)

    def icu_string(self) -> str:
        return build_icu_plural(self.forms)

    def hash(self) -> str:
        return self.hash_generator.generate_hash(self.icu_string())

    def format(self) -> str:
        form = determine_plural_form(self.count, self.locale)
        natural_text = self.forms.get(form) or self.forms.get(PluralForm.OTHER)
        if natural_text is None:
            return str(self.count)

        text = natural_text
        if self.message_source is not None and self.locale is not None:
            result = self.message_source.resolve(self.hash(), natural_text, self.locale)
            text = result.text or natural_text
            if is_icu_plural(text):
                text = self._extract(text, form)

        return substitute_count(text, self.count)

    def _extract(self, icu_string: str, form: PluralForm) -> str:
        forms = extract_all_plural_forms(icu_string)
        if not forms:
            logger.debug(f"Could not parse plural translation {icu_string!r}, using natural text")
            return select_form(self.forms, form, self.count)
        return select_form(forms, form, self.count)

    def __str__(self) -> str:
        return self.format()
