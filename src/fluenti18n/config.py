import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from fluenti18n.writers import OutputFormat

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config/config.yml")
DEFAULT_CACHE_TIMEOUT_SECONDS = 30 * 60

DEFAULT_LOGGING = {
    "level": "INFO",
    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "datefmt": "%Y-%m-%d %H:%M:%S",
}


class MessageSourceType(Enum):
    AUTO = "auto"
    BINARY = "binary"
    JSON = "json"
    PROPERTIES = "properties"

    @classmethod
    def parse(cls, name: str) -> "MessageSourceType":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown message source type: {name}") from None


@dataclass
class FluentConfig:
    base_path: Path = Path("i18n")
    supported_locales: list[str] = field(default_factory=lambda: ["en"])
    default_locale: str = "en"
    encoding: str = "utf-8"
    message_source_type: MessageSourceType = MessageSourceType.AUTO
    enable_caching: bool = True
    cache_timeout_seconds: float = DEFAULT_CACHE_TIMEOUT_SECONDS
    enable_fallback: bool = True
    log_missing_translations: bool = False

    po_directory: Path = Path("i18n/po")
    output_directory: Path = Path("i18n")
    output_formats: list[OutputFormat] = field(default_factory=lambda: [OutputFormat.JSON])
    compress: bool = True
    include_metadata: bool = True
    minify: bool = False

    logging: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LOGGING))

    def copy(self) -> "FluentConfig":
        return copy.deepcopy(self)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f'Configuration section "{name}" must be a mapping')
    return value


def parse_config(raw: dict[str, Any] | None) -> FluentConfig:
    """Build a FluentConfig from the mapping loaded out of config.yml.

    Raises:
        ValueError: On unknown output formats or message source types.
    """
    config = FluentConfig()
    raw = raw or {}

    config.logging.update(_section(raw, "logging"))

    i18n = _section(raw, "i18n")
    if "basePath" in i18n:
        config.base_path = Path(i18n["basePath"])
    if "supportedLocales" in i18n:
        config.supported_locales = [str(locale) for locale in i18n["supportedLocales"]]
    if "defaultLocale" in i18n:
        config.default_locale = str(i18n["defaultLocale"])
    if "encoding" in i18n:
        config.encoding = str(i18n["encoding"])
    if "messageSourceType" in i18n:
        config.message_source_type = MessageSourceType.parse(str(i18n["messageSourceType"]))
    caching = i18n.get("caching") or {}
    if "enabled" in caching:
        config.enable_caching = bool(caching["enabled"])
    if "timeoutSeconds" in caching:
        config.cache_timeout_seconds = float(caching["timeoutSeconds"])
    if "fallback" in i18n:
        config.enable_fallback = bool(i18n["fallback"])
    if "logMissingTranslations" in i18n:
        config.log_missing_translations = bool(i18n["logMissingTranslations"])

    compiler = _section(raw, "compiler")
    if "poDirectory" in compiler:
        config.po_directory = Path(compiler["poDirectory"])
    if "outputDirectory" in compiler:
        config.output_directory = Path(compiler["outputDirectory"])
    if "outputFormats" in compiler:
        config.output_formats = [OutputFormat.parse(str(name)) for name in compiler["outputFormats"]]
    if "compress" in compiler:
        config.compress = bool(compiler["compress"])
    if "includeMetadata" in compiler:
        config.include_metadata = bool(compiler["includeMetadata"])
    if "minify" in compiler:
        config.minify = bool(compiler["minify"])

    return config


def read_config_file(path: Path) -> dict[str, Any]:
    """Read raw YAML. Raises FileNotFoundError and yaml.YAMLError."""
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


def load_config(path: Path = DEFAULT_CONFIG_FILE) -> FluentConfig:
    """Load configuration leniently, falling back to defaults on any problem."""
    try:
        return parse_config(read_config_file(path))
    except FileNotFoundError:
        logger.debug(f"Configuration file not found: {path}")
    except (yaml.YAMLError, ValueError) as exc:
        logger.warning(f"Failed to load configuration from {path}: {exc}")
    return FluentConfig()


def config_to_dict(config: FluentConfig) -> dict[str, Any]:
    return {
        "logging": dict(config.logging),
        "i18n": {
            "basePath": str(config.base_path),
            "supportedLocales": list(config.supported_locales),
            "defaultLocale": config.default_locale,
            "encoding": config.encoding,
            "messageSourceType": config.message_source_type.value,
            "caching": {
                "enabled": config.enable_caching,
                "timeoutSeconds": config.cache_timeout_seconds,
            },
            "fallback": config.enable_fallback,
            "logMissingTranslations": config.log_missing_translations,
        },
        "compiler": {
            "poDirectory": str(config.po_directory),
            "outputDirectory": str(config.output_directory),
            "outputFormats": [f.name.lower() for f in config.output_formats],
            "compress": config.compress,
            "includeMetadata": config.include_metadata,
            "minify": config.minify,
        },
    }


def save_config(config: FluentConfig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as file:
        yaml.safe_dump(config_to_dict(config), file, sort_keys=False)


def create_default_config(path: Path) -> bool:
    """Write a default config.yml unless one exists. Returns True if written."""
    if path.exists():
        return False
    save_config(FluentConfig(log_missing_translations=True), path)
    return True


def configure_logging(config: FluentConfig) -> None:
    logging.basicConfig(
        level=logging.getLevelName(config.logging.get("level", DEFAULT_LOGGING["level"])),
        format=config.logging.get("format", DEFAULT_LOGGING["format"]),
        datefmt=config.logging.get("datefmt", DEFAULT_LOGGING["datefmt"]),
    )
