import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from fluenti18n.classes import MessageDescriptor
from fluenti18n.config import FluentConfig, load_config
from fluenti18n.formatting import format_message
from fluenti18n.hashing import HashGenerator, Sha256HashGenerator
from fluenti18n.plural import PluralBuilder
from fluenti18n.sources import MessageSource, create_message_source

logger = logging.getLogger(__name__)

# Per-context locale of every I18n instance
_current_locales: contextvars.ContextVar[Mapping[object, str | None]] = contextvars.ContextVar(
    "fluenti18n_current_locales", default=MappingProxyType({})
)


class I18n:
    """Translation entry point bound to one configuration and message source.

    Example:
        i18n = I18n.from_config_file(Path("config/config.yml"))
        with i18n.locale("fr"):
            i18n.t("Hello {}", name)
            i18n.plural(count).one("{} file").other("{} files").format()
    """

    def __init__(
        self,
        config: FluentConfig | None = None,
        message_source: MessageSource | None = None,
        hash_generator: HashGenerator | None = None,
    ) -> None:
        self.config = config or FluentConfig()
        self.message_source = message_source or create_message_source(self.config)
        self.hash_generator = hash_generator or Sha256HashGenerator()
        self._hashes: dict[str, str] = {}
        self._locale_key = object()

    @classmethod
    def from_config_file(cls, path: Path) -> "I18n":
        return cls(load_config(path))

    @property
    def current_locale(self) -> str:
        return _current_locales.get().get(self._locale_key) or self.config.default_locale

    def _with_locale(self, locale: str | None) -> Mapping[object, str | None]:
        return MappingProxyType({**_current_locales.get(), self._locale_key: locale})

    def set_locale(self, locale: str | None) -> None:
        _current_locales.set(self._with_locale(locale))

    @contextmanager
    def locale(self, locale: str) -> Iterator[None]:
        token = _current_locales.set(self._with_locale(locale))
        try:
            yield
        finally:
            _current_locales.reset(token)

    def hash(self, natural_text: str) -> str:
        hash = self._hashes.get(natural_text)
        if hash is None:
            hash = self.hash_generator.generate_hash(natural_text)
            self._hashes[natural_text] = hash
        return hash

    @property
    def message_hashes(self) -> dict[str, str]:
        return dict(self._hashes)

    def translate(self, natural_text: str | None, *args: Any) -> str | None:
        if natural_text is None:
            return None
        result = self.message_source.resolve(self.hash(natural_text), natural_text, self.current_locale)
        return format_message(result.text or natural_text, args)

    t = translate

    def describe(self, natural_text: str, *args: Any) -> MessageDescriptor:
        return MessageDescriptor(self.hash(natural_text), natural_text, args)

    variable = describe

    def resolve(
        self, descriptor: MessageDescriptor | None, locale: str | None = None, *args: Any
    ) -> str | None:
        if descriptor is None:
            return None
        locale = locale or self.current_locale
        args = descriptor.args + args
        result = self.message_source.resolve(descriptor.hash, descriptor.natural_text, locale)
        return format_message(result.text or descriptor.natural_text, args)

    def resolve_key(self, hash: str, *args: Any) -> str:
        """Resolve a bare hash; falls back to the default locale and then to the hash itself."""
        for locale in (self.current_locale, self.config.default_locale):
            if self.message_source.exists(hash, locale):
                result = self.message_source.resolve(hash, hash, locale)
                if result.found:
                    return format_message(result.translation, args)
        return format_message(hash, args)

    def plural(self, count: int | float) -> PluralBuilder:
        return PluralBuilder(count, self.current_locale, self.message_source, self.hash_generator)

    def context(self, context_key: str) -> "ContextBuilder":
        return ContextBuilder(self, context_key)

    def reload(self) -> None:
        self.message_source.reload()

    def warm_up(self) -> None:
        self.message_source.warm_up(self.config.supported_locales)


class ContextBuilder:
    """Translations whose hash includes a disambiguating context key."""

    def __init__(self, i18n: I18n, context_key: str, description: str | None = None) -> None:
        self.i18n = i18n
        self.context_key = context_key
        self.description_text = description or context_key

    def description(self, text: str) -> "ContextBuilder":
        self.description_text = text
        return self

    def hash(self, natural_text: str) -> str:
        return self.i18n.hash_generator.generate_hash(natural_text, self.context_key)

    def translate(self, natural_text: str, *args: Any) -> str:
        result = self.i18n.message_source.resolve(
            self.hash(natural_text), natural_text, self.i18n.current_locale
        )
        return format_message(result.text or natural_text, args)

    t = translate

    def describe(self, natural_text: str, *args: Any) -> MessageDescriptor:
        return MessageDescriptor(self.hash(natural_text), natural_text, args)
