"""
Minimal PNG chunk editor for embedding text metadata.

Walks the length-prefixed chunk stream of a PNG and inserts/extracts
tEXt chunks (keyword + NUL + text). No other chunk type is interpreted:
unknown chunks pass through byte-for-byte, which keeps the image renderable.

Chunk layout:
    length  u32 big-endian (byte count of data)
    type    4 ASCII bytes
    data    `length` bytes
    crc     u32 big-endian, CRC-32 over type + data

NOTE: Social platforms and image editors often strip ancillary chunks.
Embedded metadata is for archived "vault" files, not for re-posted images.
"""

from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass
from typing import Iterator, List, Optional

from ibvault.errors import FormatError


logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
TEXT_CHUNK = b"tEXt"
END_CHUNK = b"IEND"

_HEADER = struct.Struct(">I4s")
_CRC = struct.Struct(">I")


@dataclass(frozen=True)
class Chunk:
    """
    One chunk located in a PNG byte stream.

    Properties:
        offset: Byte offset of the length field
        length: Declared data length
        type: 4-byte chunk type (e.g. b"IHDR", b"tEXt")
        data: Chunk payload bytes
        crc: Stored CRC value (not checked by the walker)
    """

    offset: int
    length: int
    type: bytes
    data: bytes
    crc: int

    @property
    def end(self) -> int:
        return self.offset + 12 + self.length

    @property
    def type_name(self) -> str:
        return self.type.decode("latin-1")


@dataclass(frozen=True)
class TextEntry:
    key: str
    value: str


def is_png(data: bytes) -> bool:
    """True if the buffer starts with the 8-byte PNG signature."""
    return len(data) >= len(PNG_SIGNATURE) and data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


def chunk_crc(chunk_type: bytes, data: bytes) -> int:
    """PNG CRC-32 (reflected 0xEDB88320, init/final XOR 0xFFFFFFFF) over type + data."""
    return zlib.crc32(data, zlib.crc32(chunk_type)) & 0xFFFFFFFF


def crc_ok(chunk: Chunk) -> bool:
    return chunk_crc(chunk.type, chunk.data) == chunk.crc


def build_chunk(chunk_type: bytes, data: bytes) -> bytes:
    """Serialize a complete chunk: length, type, data, CRC."""
    if len(chunk_type) != 4:
        raise ValueError(f"Chunk type must be 4 bytes, got {chunk_type!r}")
    return _HEADER.pack(len(data), chunk_type) + data + _CRC.pack(chunk_crc(chunk_type, data))


def build_text_chunk(key: str, value: str) -> bytes:
    """tEXt chunk carrying `key` NUL `value`, both UTF-8 encoded."""
    return build_chunk(TEXT_CHUNK, key.encode("utf-8") + b"\x00" + value.encode("utf-8"))


def iter_chunks(data: bytes) -> Iterator[Chunk]:
    """
    Lazily yield chunks after the signature.

    Stops without error when fewer than 8 bytes remain or when a chunk's
    declared length (plus CRC) would run past the end of the buffer.
    Does not check the signature; callers do.
    """
    offset = len(PNG_SIGNATURE)
    size = len(data)
    while offset + _HEADER.size <= size:
        length, chunk_type = _HEADER.unpack_from(data, offset)
        data_start = offset + _HEADER.size
        data_end = data_start + length
        if data_end + _CRC.size > size:
            return
        (crc,) = _CRC.unpack_from(data, data_end)
        yield Chunk(offset=offset, length=length, type=chunk_type, data=bytes(data[data_start:data_end]), crc=crc)
        offset = data_end + _CRC.size


def _find_end(data: bytes) -> Chunk:
    for chunk in iter_chunks(data):
        if chunk.type == END_CHUNK:
            return chunk
    raise FormatError("no terminal chunk found")


def insert_text_chunk(data: bytes, key: str, value: str) -> bytes:
    """
    Insert a tEXt chunk immediately before IEND.

    All other bytes are preserved exactly.

    Raises:
        FormatError: "not a recognized container" or "no terminal chunk found"
    """
    if not is_png(data):
        raise FormatError("not a recognized container")
    end = _find_end(data)
    chunk = build_text_chunk(key, value)
    logger.debug("Inserting %d-byte tEXt chunk %r at offset %d", len(chunk), key, end.offset)
    return bytes(data[:end.offset]) + chunk + bytes(data[end.offset:])


def _split_text(chunk: Chunk) -> Optional[TextEntry]:
    sep = chunk.data.find(b"\x00")
    if sep <= 0:
        return None
    key = chunk.data[:sep].decode("utf-8", errors="replace")
    value = chunk.data[sep + 1:].decode("utf-8", errors="replace")
    return TextEntry(key=key, value=value)


def extract_text_chunks(data: bytes) -> List[TextEntry]:
    """
    Return every tEXt entry with a non-empty keyword, in file order.

    Raises:
        FormatError: if the buffer is not a PNG
    """
    if not is_png(data):
        raise FormatError("not a recognized container")
    found: List[TextEntry] = []
    for chunk in iter_chunks(data):
        if chunk.type != TEXT_CHUNK:
            continue
        entry = _split_text(chunk)
        if entry is not None:
            found.append(entry)
    return found


def find_text(data: bytes, key: str) -> Optional[str]:
    """Value of the first tEXt entry with `key`, or None."""
    for entry in extract_text_chunks(data):
        if entry.key == key:
            return entry.value
    return None


def strip_text_chunks(data: bytes, key: str) -> bytes:
    """
    Remove every tEXt chunk whose keyword is `key`.

    Raises:
        FormatError: if not a PNG or no IEND chunk is present
    """
    if not is_png(data):
        raise FormatError("not a recognized container")
    end = _find_end(data)
    parts = [bytes(data[:len(PNG_SIGNATURE)])]
    removed = 0
    for chunk in iter_chunks(data):
        if chunk.type == TEXT_CHUNK:
            entry = _split_text(chunk)
            if entry is not None and entry.key == key:
                removed += 1
                continue
        parts.append(bytes(data[chunk.offset:chunk.end]))
        if chunk.offset == end.offset:
            break
    parts.append(bytes(data[end.end:]))
    if removed:
        logger.debug("Removed %d tEXt chunk(s) with key %r", removed, key)
    return b"".join(parts)
