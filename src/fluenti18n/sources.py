"""Runtime lookup of compiled catalogs.

A message source maps ``(hash, locale)`` to a translation. Catalogs are read
lazily into a per-source cache; each cached catalog is an immutable mapping
that is replaced as a whole on expiry or reload, so concurrent readers never
see a half-loaded catalog. Missing or corrupt catalog files only ever mean
"no translations for this locale".
"""

import json
import logging
import threading
import time
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from fluenti18n import binary, properties
from fluenti18n.classes import TranslationResult
from fluenti18n.config import FluentConfig, MessageSourceType
from fluenti18n.writers import OutputFormat

logger = logging.getLogger(__name__)

EMPTY_CATALOG: Mapping[str, str] = MappingProxyType({})


def locale_candidates(locale: str) -> list[str]:
    """File-name candidates for a locale: the full tag first, then the language."""
    candidates = [locale]
    for separator in ("-", "_"):
        if separator in locale:
            other = locale.replace(separator, "_" if separator == "-" else "-")
            candidates.append(other)
            language = locale.split(separator, 1)[0]
            if language not in candidates:
                candidates.append(language)
            break
    return candidates


class TranslationCache:
    """Read-through cache of locale -> catalog with a fixed time-to-live."""

    def __init__(
        self,
        loader: Callable[[str], Mapping[str, str]],
        ttl_seconds: float | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Mapping[str, str]]] = {}
        self._lock = threading.Lock()

    def _fresh(self, locale: str) -> Mapping[str, str] | None:
        cached = self._entries.get(locale)
        if cached is None:
            return None
        loaded_at, catalog = cached
        if self._ttl is not None and self._clock() - loaded_at >= self._ttl:
            return None
        return catalog

    def get(self, locale: str) -> Mapping[str, str]:
        catalog = self._fresh(locale)
        if catalog is not None:
            return catalog
        with self._lock:
            # Another thread may have loaded it while we waited
            catalog = self._fresh(locale)
            if catalog is None:
                catalog = MappingProxyType(dict(self._loader(locale)))
                self._entries[locale] = (self._clock(), catalog)
            return catalog

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def __contains__(self, locale: str) -> bool:
        return self._fresh(locale) is not None


class MessageSource:
    def resolve(self, hash: str, natural_text: str, locale: str) -> TranslationResult:
        raise NotImplementedError

    def exists(self, hash: str, locale: str) -> bool:
        raise NotImplementedError

    def supported_locales(self) -> Iterable[str]:
        raise NotImplementedError

    def reload(self) -> None:
        pass

    def warm_up(self, locales: Iterable[str] | None = None) -> None:
        pass


class FallbackMessageSource(MessageSource):
    """Used when no catalogs are available: every lookup returns the natural text."""

    def __init__(self, locales: Iterable[str] = ()) -> None:
        self._locales = list(locales)

    def resolve(self, hash: str, natural_text: str, locale: str) -> TranslationResult:
        return TranslationResult.not_found(natural_text)

    def exists(self, hash: str, locale: str) -> bool:
        return False

    def supported_locales(self) -> Iterable[str]:
        return list(self._locales)


class CatalogMessageSource(MessageSource):
    """Cached, locale-falling-back lookup over one catalog per locale."""

    def __init__(
        self,
        default_locale: str = "en",
        supported_locales: Iterable[str] | None = None,
        cache_timeout_seconds: float | None = 30 * 60,
        enable_fallback: bool = True,
        log_missing_translations: bool = False,
    ) -> None:
        self.default_locale = default_locale
        self._supported = list(supported_locales or [default_locale])
        self.enable_fallback = enable_fallback
        self.log_missing_translations = log_missing_translations
        self._cache = TranslationCache(self._load_locale, cache_timeout_seconds)

    def load_catalog(self, locale: str) -> Mapping[str, str] | None:
        """Return the raw catalog for exactly this locale tag, or None if absent."""
        raise NotImplementedError

    def _load_locale(self, locale: str) -> Mapping[str, str]:
        for candidate in locale_candidates(locale):
            try:
                catalog = self.load_catalog(candidate)
            except Exception as ex:
                logger.warning(f"Failed to load translations for locale '{candidate}': {ex}")
                continue
            if catalog:
                logger.debug(f"Loaded {len(catalog)} translations for locale '{locale}'")
                return catalog
        return EMPTY_CATALOG

    def translations(self, locale: str) -> Mapping[str, str]:
        return self._cache.get(locale)

    def _lookup(self, hash: str, locale: str) -> str | None:
        translation = self.translations(locale).get(hash)
        if translation and translation.strip():
            return translation
        return None

    def resolve(self, hash: str, natural_text: str, locale: str) -> TranslationResult:
        translation = self._lookup(hash, locale)
        if translation is None and self.enable_fallback and locale != self.default_locale:
            translation = self._lookup(hash, self.default_locale)
        if translation is not None:
            return TranslationResult.of(translation)

        if self.log_missing_translations:
            logger.debug(
                f"No translation found for hash '{hash}' (text: '{natural_text}') in locale '{locale}'"
            )
        return TranslationResult.not_found(natural_text)

    def exists(self, hash: str, locale: str) -> bool:
        return self._lookup(hash, locale) is not None

    def supported_locales(self) -> Iterable[str]:
        return list(self._supported)

    def reload(self) -> None:
        self._cache.clear()
        logger.info(f"{type(self).__name__} translation cache cleared")

    def warm_up(self, locales: Iterable[str] | None = None) -> None:
        locales = list(self._supported if locales is None else locales)
        if not locales:
            logger.warning("No locales provided for warm-up, skipping")
            return
        count = 0
        for locale in locales:
            try:
                self.translations(locale)
                count += 1
            except Exception as ex:
                logger.warning(f"Failed to warm up translations for locale '{locale}': {ex}")
        logger.info(f"Translation cache warmed up for {count} locales")


class StaticMessageSource(CatalogMessageSource):
    """In-memory catalogs, mostly useful for tests and embedding."""

    def __init__(self, catalogs: Mapping[str, Mapping[str, str]], **kwargs) -> None:
        kwargs.setdefault("supported_locales", list(catalogs))
        super().__init__(**kwargs)
        self._catalogs = {locale: dict(catalog) for locale, catalog in catalogs.items()}

    def load_catalog(self, locale: str) -> Mapping[str, str] | None:
        return self._catalogs.get(locale)


class FileMessageSource(CatalogMessageSource):
    output_format: OutputFormat

    def __init__(self, base_path: Path, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_path = Path(base_path)

    def catalog_path(self, locale: str) -> Path:
        return self.base_path / self.output_format.file_name(locale)

    def load_catalog(self, locale: str) -> Mapping[str, str] | None:
        path = self.catalog_path(locale)
        if not path.is_file():
            logger.debug(f"Catalog not found: {path}")
            return None
        return self.parse(path.read_bytes(), path)

    def parse(self, data: bytes, path: Path) -> Mapping[str, str]:
        raise NotImplementedError


class BinaryMessageSource(FileMessageSource):
    output_format = OutputFormat.BINARY

    def parse(self, data: bytes, path: Path) -> Mapping[str, str]:
        return binary.decode_catalog(data, str(path)).entries


class JsonMessageSource(FileMessageSource):
    output_format = OutputFormat.JSON

    def parse(self, data: bytes, path: Path) -> Mapping[str, str]:
        try:
            root = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as ex:
            logger.warning(f"Invalid JSON catalog {path}: {ex}")
            return {}
        if not isinstance(root, dict):
            logger.warning(f"JSON catalog {path} is not an object")
            return {}

        translations = {}
        for key, value in root.items():
            if key.startswith("_metadata"):
                continue
            if isinstance(value, dict):
                value = value.get("translation")
            if isinstance(value, str):
                translations[key] = value
        return translations


class PropertiesMessageSource(FileMessageSource):
    output_format = OutputFormat.PROPERTIES

    def parse(self, data: bytes, path: Path) -> Mapping[str, str]:
        return properties.loads(data.decode("utf-8", errors="replace"))


FILE_SOURCES: dict[MessageSourceType, type[FileMessageSource]] = {
    MessageSourceType.BINARY: BinaryMessageSource,
    MessageSourceType.JSON: JsonMessageSource,
    MessageSourceType.PROPERTIES: PropertiesMessageSource,
}


def _has_catalogs(source_class: type[FileMessageSource], config: FluentConfig) -> bool:
    return any(
        (config.base_path / source_class.output_format.file_name(candidate)).is_file()
        for locale in config.supported_locales
        for candidate in locale_candidates(locale)
    )


def create_message_source(config: FluentConfig) -> MessageSource:
    """Pick a message source for the configured catalogs.

    With ``auto`` the first format that has files wins, in the order
    binary, json, properties. Without any catalogs a fallback source that
    always returns the natural text is used.
    """
    if config.message_source_type is MessageSourceType.AUTO:
        candidates = list(FILE_SOURCES.values())
    else:
        candidates = [FILE_SOURCES[config.message_source_type]]

    for source_class in candidates:
        if _has_catalogs(source_class, config):
            logger.debug(f"Creating {source_class.__name__} for {config.base_path}")
            return source_class(
                config.base_path,
                default_locale=config.default_locale,
                supported_locales=config.supported_locales,
                cache_timeout_seconds=config.cache_timeout_seconds if config.enable_caching else 0,
                enable_fallback=config.enable_fallback,
                log_missing_translations=config.log_missing_translations,
            )

    logger.warning(f"No suitable message source found for base path: {config.base_path}. Using fallback.")
    return FallbackMessageSource(config.supported_locales)
