"""Binary translation catalog format.

Current layout (version 2), all strings UTF-8::

    magic        4 bytes  b"FL18"
    version      1 byte   2
    flags        1 byte   bit0 compressed, bit1 fixed hash length
    locale       VLQ length + bytes
    hash length  1 byte, only when the fixed hash length flag is set
    entry count  VLQ
    entries      [hash length VLQ, omitted when fixed][hash][translation length VLQ][translation]

Legacy layout (version 1), little-endian fixed widths::

    magic        4 bytes  b"FL18"
    version      2 bytes  1
    locale       2 byte length + bytes
    entry count  4 bytes
    entries      [2 byte hash length][hash][4 byte translation length][translation]

A compressed catalog is the complete byte sequence above wrapped in a
single gzip stream. Readers detect it by the gzip magic, not by the flag.

Decoding never raises: corrupt input yields whatever entries were read
before the corruption, so a broken catalog only means missing translations.
"""

from __future__ import annotations

import gzip
import logging
import struct
import zlib
from dataclasses import dataclass, field
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

MAGIC = b"FL18"
VERSION = 2
LEGACY_VERSION = 1

FLAG_COMPRESSED = 0x01
FLAG_FIXED_HASH_LENGTH = 0x02

GZIP_MAGIC = b"\x1f\x8b"

# Decoding gives up once this many bits have been accumulated
MAX_VLQ_SHIFT = 32


class CatalogFormatError(ValueError):
    pass


class _Truncated(Exception):
    """Internal signal: the buffer ended or a field is out of bounds."""


@dataclass
class DecodedCatalog:
    locale: str | None = None
    version: int | None = None
    flags: int = 0
    entries: dict[str, str] = field(default_factory=dict)

    @property
    def entry_count(self) -> int:
        return len(self.entries)


def write_vlq(value: int, out: bytearray) -> None:
    if value < 0:
        raise CatalogFormatError(f"VLQ cannot encode negative value {value}")
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)


def encode_vlq(value: int) -> bytes:
    out = bytearray()
    write_vlq(value, out)
    return bytes(out)


def fixed_hash_length(hashes: Iterable[str]) -> int | None:
    """Common UTF-8 byte length of all hashes, or None if they differ or there are none."""
    length = None
    for hash in hashes:
        size = len(hash.encode("utf-8"))
        if length is None:
            length = size
        elif size != length:
            return None
    return length


def encode_catalog(
    translations: Mapping[str, str | None], locale: str, compress: bool = False
) -> bytes:
    """Serialize hash -> translation pairs, in mapping order.

    A None translation is written as an empty string.
    """
    hash_length = fixed_hash_length(translations.keys())
    if hash_length is not None and hash_length > 0xFF:
        hash_length = None

    flags = 0
    if compress:
        flags |= FLAG_COMPRESSED
    if hash_length is not None:
        flags |= FLAG_FIXED_HASH_LENGTH

    out = bytearray(MAGIC)
    out.append(VERSION)
    out.append(flags)
    locale_bytes = locale.encode("utf-8")
    write_vlq(len(locale_bytes), out)
    out += locale_bytes
    if hash_length is not None:
        out.append(hash_length)
    write_vlq(len(translations), out)

    for hash, translation in translations.items():
        if not hash:
            raise CatalogFormatError("Catalog entries need a non-empty hash")
        hash_bytes = hash.encode("utf-8")
        translation_bytes = (translation or "").encode("utf-8")
        if hash_length is None:
            write_vlq(len(hash_bytes), out)
        out += hash_bytes
        write_vlq(len(translation_bytes), out)
        out += translation_bytes

    data = bytes(out)
    if compress:
        # mtime=0 keeps compressed output reproducible for the same input
        data = gzip.compress(data, mtime=0)
    return data


def encode_legacy_catalog(translations: Mapping[str, str | None], locale: str) -> bytes:
    """Serialize in the version 1 layout, for migration tooling and tests."""
    locale_bytes = locale.encode("utf-8")
    out = bytearray(MAGIC)
    out += struct.pack("<HH", LEGACY_VERSION, len(locale_bytes))
    out += locale_bytes
    out += struct.pack("<I", len(translations))
    for hash, translation in translations.items():
        hash_bytes = hash.encode("utf-8")
        translation_bytes = (translation or "").encode("utf-8")
        out += struct.pack("<H", len(hash_bytes)) + hash_bytes
        out += struct.pack("<I", len(translation_bytes)) + translation_bytes
    return bytes(out)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def read(self, size: int) -> bytes:
        if size < 0 or size > self.remaining:
            raise _Truncated(f"need {size} bytes at offset {self.pos}, {self.remaining} left")
        chunk = self.data[self.pos : self.pos + size]
        self.pos += size
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def unpack(self, fmt: str) -> int:
        (value,) = struct.unpack(fmt, self.read(struct.calcsize(fmt)))
        return value

    def vlq(self) -> int:
        result = 0
        shift = 0
        while True:
            b = self.byte()
            result |= (b & 0x7F) << shift
            if not b & 0x80:
                return result
            shift += 7
            if shift >= MAX_VLQ_SHIFT:
                raise _Truncated("VLQ value too large")

    def text(self, size: int) -> str:
        return self.read(size).decode("utf-8")


def decode_vlq(data: bytes) -> int:
    try:
        return _Reader(data).vlq()
    except _Truncated as ex:
        raise CatalogFormatError(f"Invalid VLQ {data!r}: {ex}") from None


def decode_catalog(data: bytes, source: str = "<bytes>") -> DecodedCatalog:
    """Decode a catalog of either version, transparently gunzipping it."""
    catalog = DecodedCatalog()

    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as ex:
            logger.warning(f"Failed to decompress binary catalog {source}: {ex}")
            return catalog

    reader = _Reader(data)
    try:
        magic = reader.read(len(MAGIC))
        version = reader.byte()
    except _Truncated:
        logger.warning(f"Binary catalog too small: {source}")
        return catalog

    if magic != MAGIC:
        logger.warning(f"Invalid magic number in binary catalog: {source}")
        return catalog

    catalog.version = version
    if version == LEGACY_VERSION:
        decode = _decode_legacy
    elif version == VERSION:
        decode = _decode_v2
    else:
        logger.warning(f"Unsupported binary catalog version {version}: {source}")
        return catalog

    try:
        decode(reader, catalog)
    except (_Truncated, UnicodeDecodeError) as ex:
        logger.warning(
            f"Corrupt binary catalog {source}, kept {catalog.entry_count} entries: {ex}"
        )
    return catalog


def _decode_v2(reader: _Reader, catalog: DecodedCatalog) -> None:
    catalog.flags = reader.byte()
    catalog.locale = reader.text(reader.vlq())
    hash_length = reader.byte() if catalog.flags & FLAG_FIXED_HASH_LENGTH else None
    entry_count = reader.vlq()

    for _ in range(entry_count):
        length = hash_length if hash_length is not None else reader.vlq()
        if length <= 0:
            raise _Truncated(f"invalid hash length {length}")
        hash = reader.text(length)
        translation = reader.text(reader.vlq())
        catalog.entries[hash] = translation


def _decode_legacy(reader: _Reader, catalog: DecodedCatalog) -> None:
    # The version field is two bytes wide here, its low byte was already consumed
    if reader.byte() != 0:
        raise _Truncated("invalid legacy version field")
    catalog.locale = reader.text(reader.unpack("<H"))
    entry_count = reader.unpack("<I")

    for _ in range(entry_count):
        hash = reader.text(reader.unpack("<H"))
        translation = reader.text(reader.unpack("<I"))
        if not hash:
            logger.debug("Skipping legacy catalog entry with an empty hash")
            continue
        catalog.entries[hash] = translation
