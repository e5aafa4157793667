"""Byte compression codecs for snapshot payloads."""

from __future__ import annotations

from dataclasses import dataclass
import gzip
from typing import ClassVar, Protocol
import zlib

import zstandard as zstd

from rewindpack.snapshot.exceptions import SnapshotCodecError


class SnapshotCodec(Protocol):
    name: str

    def compress(self, data: bytes) -> bytes:
        ...

    def decompress(self, data: bytes) -> bytes:
        ...


@dataclass(frozen=True, slots=True)
class ZstdCodec:
    """Zstandard codec; frames embed their content size."""

    name: ClassVar[str] = "zstd"
    level: int = 3

    def compress(self, data: bytes) -> bytes:
        try:
            return zstd.ZstdCompressor(level=self.level).compress(data)
        except zstd.ZstdError as error:
            raise SnapshotCodecError(f"zstd compression failed: {error}") from error

    def decompress(self, data: bytes) -> bytes:
        try:
            return zstd.ZstdDecompressor().decompress(data)
        except zstd.ZstdError as error:
            raise SnapshotCodecError(f"zstd decompression failed: {error}") from error


@dataclass(frozen=True, slots=True)
class GzipCodec:
    """Gzip codec with a zeroed mtime so output is reproducible."""

    name: ClassVar[str] = "gzip"
    level: int = 6

    def compress(self, data: bytes) -> bytes:
        return gzip.compress(data, compresslevel=self.level, mtime=0)

    def decompress(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as error:
            raise SnapshotCodecError(f"gzip decompression failed: {error}") from error


_BUILTIN_CODECS: dict[str, SnapshotCodec] = {
    ZstdCodec.name: ZstdCodec(),
    GzipCodec.name: GzipCodec(),
}


def resolve_codec(name: str | None) -> SnapshotCodec:
    """Built-in codec registered under ``name``."""
    codec = _BUILTIN_CODECS.get(name or "")
    if codec is None:
        raise SnapshotCodecError(f"Unknown snapshot codec: {name!r}")
    return codec
