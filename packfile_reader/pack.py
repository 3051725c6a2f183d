# pack.py -- Reading objects out of git packfiles without an index
# Copyright (C) 2026 packfile_reader contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# packfile_reader is dual-licensed under the Apache License, Version 2.0 and
# the GNU General Public License as published by the Free Software Foundation;
# version 2.0 or (at your option) any later version. You can redistribute it
# and/or modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Reading objects out of git packfiles.

A pack is a 12 byte header followed by the packed objects, back to back.
Each object starts with a small variable-width header carrying its type
and uncompressed size, followed by its zlib-compressed contents. Delta
objects carry a reference to their base object between the two.

Normally the companion ``.idx`` file tells a reader where each object
starts. This module works without it: the start of an object's compressed
data is found by looking for a zlib stream header, and its end by feeding
the data to a decompressor until the zlib stream is complete. The object
id is then recomputed from the decompressed contents.

Delta objects are reported as they are found but not resolved, so they
have no object id.
"""

__all__ = [
    "DEFAULT_WINDOW_SIZE",
    "PACK_HEADER_SIZE",
    "PACK_SIGNATURE",
    "PACK_TRAILER_SIZE",
    "ZLIB_HEADERS",
    "ContinuationByte",
    "EntryHeader",
    "FirstByte",
    "PackfileEntry",
    "PackfileHeader",
    "PackfileReader",
    "decode_continuation_byte",
    "decode_first_byte",
    "find_zlib_header",
    "iter_entries",
    "next_entry",
    "read_entry_header",
    "read_pack_header",
    "read_zlib_payload",
]

import zlib
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from os import SEEK_CUR, SEEK_END
from struct import unpack_from
from typing import BinaryIO, NamedTuple

from .errors import FormatError, InvalidArgument, UnexpectedEndOfStream
from .log_utils import getLogger
from .objects import ObjectType, compute_object_id, valid_hexsha

logger = getLogger(__name__)

PACK_SIGNATURE = b"PACK"
PACK_HEADER_SIZE = 12
# SHA-1 checksum of everything before it, written after the last entry.
PACK_TRAILER_SIZE = 20
SUPPORTED_PACK_VERSIONS = (2, 3)

# Valid first two bytes of a zlib stream (RFC 1950), read big-endian.
ZLIB_HEADERS = frozenset(
    [
        0x7801,  # no compression / low
        0x789C,  # default
        0x78DA,  # best
    ]
)

# Number of bytes read at a time while looking for the end of a zlib stream.
DEFAULT_WINDOW_SIZE = 4096

Sink = Callable[[bytes, bytes | None, str | None], None]


@dataclass(frozen=True)
class PackfileHeader:
    """The header at the start of every packfile."""

    signature: bytes
    version: int
    entry_count: int

    def __str__(self) -> str:
        return (
            "Packfile Headers\n"
            f"- Signature: {self.signature.decode('ascii')}\n"
            f"- Version: {self.version}\n"
            f"- Entries: {self.entry_count}"
        )


def read_pack_header(f: BinaryIO) -> PackfileHeader:
    """Read the header of a pack file.

    The stream is rewound first, so this can be called whatever the current
    position is. On success the stream is left just after the header.

    Args:
      f: Seekable binary stream containing a packfile
    Returns: The parsed PackfileHeader
    Raises:
      FormatError: if the header is truncated, does not start with
        ``PACK`` or has an unsupported version
    """
    f.seek(0)
    header = f.read(PACK_HEADER_SIZE)
    if len(header) < PACK_HEADER_SIZE:
        raise FormatError(f"Invalid packfile. Cannot parse header {header!r}")
    signature = header[:4]
    if signature != PACK_SIGNATURE:
        raise FormatError(
            f"Invalid signature. Got {signature!r} expected {PACK_SIGNATURE!r}"
        )
    version, entry_count = unpack_from(">LL", header, 4)
    if version not in SUPPORTED_PACK_VERSIONS:
        raise FormatError(f"Unsupported pack version {version}")
    return PackfileHeader(signature, version, entry_count)


class FirstByte(NamedTuple):
    """Decoded first byte of a pack entry header."""

    continuation: bool
    object_type: ObjectType
    size: int
    bits: int


class ContinuationByte(NamedTuple):
    """Decoded continuation byte of a pack entry header."""

    continuation: bool
    size: int
    bits: int


@dataclass(frozen=True)
class EntryHeader:
    """Type and declared size of a pack entry.

    ``declared_size`` is the uncompressed size recorded by whoever wrote the
    pack. It is a Python int, so it has no width limit; git itself never
    writes sizes that do not fit in 64 bits.
    """

    object_type: ObjectType
    declared_size: int
    header_length: int


def _read_byte(f: BinaryIO, expected: str) -> int:
    b = f.read(1)
    if not b:
        raise UnexpectedEndOfStream(f.tell(), expected)
    return b[0]


def decode_first_byte(f: BinaryIO) -> FirstByte:
    """Decode the first byte of a pack entry header.

    The byte is laid out as ``<continuation:1><type:3><size:4>``.

    Raises:
      UnexpectedEndOfStream: if the stream is exhausted
      FormatError: if the type code is not a known object type
    """
    byte = _read_byte(f, "pack entry header")
    type_num = (byte >> 4) & 0x07
    try:
        object_type = ObjectType(type_num)
    except ValueError:
        raise FormatError(
            f"Unknown object type {type_num} at offset {f.tell() - 1}"
        ) from None
    return FirstByte(bool(byte & 0x80), object_type, byte & 0x0F, 4)


def decode_continuation_byte(f: BinaryIO) -> ContinuationByte:
    """Decode a continuation byte of a pack entry header.

    The byte is laid out as ``<continuation:1><size:7>``; it has no type.
    """
    byte = _read_byte(f, "pack entry header continuation byte")
    return ContinuationByte(bool(byte & 0x80), byte & 0x7F, 7)


def read_entry_header(f: BinaryIO) -> EntryHeader:
    """Read the variable-width type and size header of a pack entry.

    The size is stored little-endian: the first byte holds the lowest four
    bits and every continuation byte the next seven.
    """
    first = decode_first_byte(f)
    size = first.size
    shift = first.bits
    length = 1
    continuation = first.continuation
    while continuation:
        hunk = decode_continuation_byte(f)
        size |= hunk.size << shift
        shift += hunk.bits
        length += 1
        continuation = hunk.continuation
    return EntryHeader(first.object_type, size, length)


def find_zlib_header(f: BinaryIO) -> bytes:
    """Skip forward to the start of the next zlib stream.

    Delta entries keep their base reference between the entry header and the
    compressed data. Rather than parsing it, the stream is scanned one byte
    at a time until two bytes form a zlib header.

    Returns: The two header bytes; the stream is left just after them.
    Raises:
      UnexpectedEndOfStream: if no zlib header is found
    """
    start = f.tell()
    header = f.read(2)
    while len(header) == 2 and unpack_from(">H", header)[0] not in ZLIB_HEADERS:
        f.seek(-1, SEEK_CUR)
        header = f.read(2)
    if len(header) < 2:
        raise UnexpectedEndOfStream(f.tell(), "zlib stream header")
    skipped = f.tell() - 2 - start
    if skipped:
        logger.debug(
            "Skipped %d bytes before zlib stream at offset %d", skipped, start
        )
    return header


def _rejects(data: bytes) -> bool:
    try:
        zlib.decompressobj().decompress(data)
    except zlib.error:
        return True
    return False


def _shortest_rejected_prefix(data: bytes) -> int:
    """Find the length of the shortest prefix of data zlib refuses.

    Once zlib has rejected a byte, every longer prefix is rejected too, so
    the boundary can be bisected. ``data`` itself must be rejected.
    """
    lo, hi = 1, len(data)
    while lo < hi:
        mid = (lo + hi) // 2
        if _rejects(data[:mid]):
            hi = mid
        else:
            lo = mid + 1
    return hi


def read_zlib_payload(
    f: BinaryIO, header: bytes, window_size: int = DEFAULT_WINDOW_SIZE
) -> tuple[bytes, bytes | None]:
    """Read a zlib stream of unknown length.

    Data is read ``window_size`` bytes at a time and fed to a decompressor
    until the zlib stream is complete. Whatever was read past its end is
    given back by seeking the stream backwards, so the stream is left at the
    first byte after the compressed data.

    If zlib rejects the data, the compressed data is taken to end at the
    first byte zlib refused. The stream is left just after that byte and no
    decompressed data is returned.

    Args:
      f: Stream positioned just after ``header``
      header: The two zlib header bytes found by find_zlib_header
      window_size: Number of bytes to read at a time
    Returns: Tuple of (compressed data, decompressed data or None if the
      data is corrupt)
    Raises:
      UnexpectedEndOfStream: if the stream ends before the zlib stream does
    """
    decomp_obj = zlib.decompressobj()
    comp_chunks = [header]
    decomp_chunks: list[bytes] = []
    add = header
    try:
        while True:
            decomp_chunks.append(decomp_obj.decompress(add))
            if decomp_obj.eof:
                break
            add = f.read(window_size)
            if not add:
                raise UnexpectedEndOfStream(f.tell(), "end of zlib stream")
            comp_chunks.append(add)
    except zlib.error as e:
        data = b"".join(comp_chunks)
        start = f.tell() - len(data)
        length = _shortest_rejected_prefix(data)
        f.seek(start + length)
        logger.warning(
            "Corrupt zlib stream at offset %d (%d bytes): %s", start, length, e
        )
        return data[:length], None

    unused = decomp_obj.unused_data
    if unused:
        f.seek(-len(unused), SEEK_CUR)
        comp_chunks[-1] = comp_chunks[-1][: -len(unused)]
    return b"".join(comp_chunks), b"".join(decomp_chunks)


@dataclass(frozen=True)
class PackfileEntry:
    """An object found in a packfile.

    Attributes:
      object_type: Type of the object, or ObjectType.CORRUPTED if its
        contents could not be decompressed
      pack_type: Type recorded in the entry header, even for corrupt entries
      declared_size: Uncompressed size recorded in the entry header. For
        delta objects this is the size of the delta, not of the object.
      object_id: Lowercase hex object id, or None for delta and corrupt
        entries
      offset: Offset of the entry header in the stream
    """

    object_type: ObjectType
    pack_type: ObjectType
    declared_size: int
    object_id: str | None
    offset: int

    @property
    def corrupted(self) -> bool:
        return self.object_type is ObjectType.CORRUPTED


def _check_object_ids(object_ids: Iterable[str] | None) -> frozenset[str] | None:
    if object_ids is None:
        return None
    if isinstance(object_ids, (str, bytes)):
        raise InvalidArgument(
            f"Expected a collection of object ids, got {object_ids!r}"
        )
    try:
        wanted = frozenset(object_ids)
    except TypeError as e:
        raise InvalidArgument(f"Invalid object ids {object_ids!r}: {e}") from e
    for object_id in wanted:
        if not valid_hexsha(object_id):
            raise InvalidArgument(f"Invalid object id {object_id!r}")
    return wanted


def _check_window_size(window_size: int) -> None:
    if (
        isinstance(window_size, bool)
        or not isinstance(window_size, int)
        or window_size < 1
    ):
        raise InvalidArgument(f"Invalid window size {window_size!r}")


def _at_trailer(f: BinaryIO, offset: int) -> bool:
    """Check whether offset is where the pack checksum would start."""
    pos = f.tell()
    end = f.seek(0, SEEK_END)
    f.seek(pos)
    return end - offset == PACK_TRAILER_SIZE


def _read_entry(
    f: BinaryIO, window_size: int
) -> tuple[PackfileEntry, bytes, bytes | None] | None:
    """Read a single entry.

    Returns None at the end of the stream, or when only the 20 byte pack
    checksum is left and it does not decode as an entry.
    """
    offset = f.tell()
    if not f.read(1):
        return None
    f.seek(offset)

    try:
        header = read_entry_header(f)
        zlib_header = find_zlib_header(f)
        compressed, decompressed = read_zlib_payload(f, zlib_header, window_size)
    except FormatError:
        if not _at_trailer(f, offset):
            raise
        decompressed = None
    if decompressed is None and _at_trailer(f, offset):
        # The pack checksum does not decode as an entry.
        logger.debug("Pack checksum at offset %d, no more entries", offset)
        f.seek(offset)
        return None

    if decompressed is None:
        object_type = ObjectType.CORRUPTED
    else:
        object_type = header.object_type
    object_id = compute_object_id(object_type, header.declared_size, decompressed)
    logger.debug(
        "Read %s entry at offset %d: declared size %d, %d compressed bytes, id %s",
        header.object_type.name,
        offset,
        header.declared_size,
        len(compressed),
        object_id,
    )
    entry = PackfileEntry(
        object_type=object_type,
        pack_type=header.object_type,
        declared_size=header.declared_size,
        object_id=object_id,
        offset=offset,
    )
    return entry, compressed, decompressed


def next_entry(
    f: BinaryIO,
    object_ids: Iterable[str] | None = None,
    window_size: int = DEFAULT_WINDOW_SIZE,
    sink: Sink | None = None,
) -> PackfileEntry | None:
    """Read entries until one matches.

    Args:
      f: Stream positioned at the start of a pack entry
      object_ids: Object ids to look for, or None to accept any entry.
        Entries that do not match are read and skipped.
      window_size: Number of bytes to read at a time while looking for the
        end of a compressed object
      sink: Optional callable invoked for the returned entry with the
        compressed data, the decompressed data (None for corrupt entries)
        and the object id
    Returns: The first matching entry, or None if the stream (or everything
      before the pack checksum) ran out first
    Raises:
      InvalidArgument: if object_ids or window_size is invalid; nothing has
        been read from the stream at that point
      FormatError: if an entry is malformed or truncated
    """
    wanted = _check_object_ids(object_ids)
    _check_window_size(window_size)
    while True:
        result = _read_entry(f, window_size)
        if result is None:
            return None
        entry, compressed, decompressed = result
        if wanted is None or entry.object_id in wanted:
            if sink is not None:
                sink(compressed, decompressed, entry.object_id)
            return entry


def iter_entries(
    f: BinaryIO,
    object_ids: Iterable[str] | None = None,
    window_size: int = DEFAULT_WINDOW_SIZE,
    sink: Sink | None = None,
) -> Iterator[PackfileEntry]:
    """Iterate over the matching entries in a stream.

    When object_ids is given, iteration stops once all of them have been
    found rather than reading to the end of the stream.
    """
    wanted = _check_object_ids(object_ids)
    _check_window_size(window_size)
    remaining = set(wanted) if wanted is not None else None
    while remaining is None or remaining:
        entry = next_entry(f, remaining, window_size=window_size, sink=sink)
        if entry is None:
            return
        if remaining is not None:
            remaining.discard(entry.object_id)
        yield entry


class PackfileReader:
    """Reader for the objects in a packfile stream.

    The header is read when the reader is created. Iterating reads exactly
    as many entries as the header announces, so the checksum at the end of
    the pack is never mistaken for an entry.

    The reader does not own the stream; closing it is up to the caller.
    """

    def __init__(self, f: BinaryIO, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        """Create a reader and read the pack header.

        Args:
          f: Seekable binary stream containing a packfile
          window_size: Number of bytes to read at a time while looking for
            the end of a compressed object
        """
        _check_window_size(window_size)
        self._file = f
        self.window_size = window_size
        self.header = read_pack_header(f)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._file!r})"

    def __len__(self) -> int:
        """Return the number of entries announced by the header."""
        return self.header.entry_count

    def rewind(self) -> None:
        """Go back to the first entry."""
        self._file.seek(PACK_HEADER_SIZE)

    def next_entry(
        self, object_ids: Iterable[str] | None = None, sink: Sink | None = None
    ) -> PackfileEntry | None:
        """Read entries from the current position until one matches.

        See the module-level next_entry.
        """
        return next_entry(
            self._file, object_ids, window_size=self.window_size, sink=sink
        )

    def iter_entries(
        self, object_ids: Iterable[str] | None = None, sink: Sink | None = None
    ) -> Iterator[PackfileEntry]:
        """Iterate over the matching entries, starting from the first one.

        Args:
          object_ids: Object ids to look for, or None for all entries
          sink: Optional callable invoked for every yielded entry, see
            next_entry
        """
        wanted = _check_object_ids(object_ids)
        remaining = set(wanted) if wanted is not None else None
        self.rewind()
        for _ in range(len(self)):
            if remaining is not None and not remaining:
                return
            result = _read_entry(self._file, self.window_size)
            if result is None:
                logger.warning(
                    "Pack announces %d entries but the stream ended early", len(self)
                )
                return
            entry, compressed, decompressed = result
            if remaining is not None:
                if entry.object_id not in remaining:
                    continue
                remaining.discard(entry.object_id)
            if sink is not None:
                sink(compressed, decompressed, entry.object_id)
            yield entry

    def __iter__(self) -> Iterator[PackfileEntry]:
        return self.iter_entries()

    def find(self, object_id: str) -> PackfileEntry:
        """Find the entry with the given object id.

        Raises:
          InvalidArgument: if object_id is not a valid object id
          KeyError: if the pack does not contain the object
        """
        for entry in self.iter_entries([object_id]):
            return entry
        raise KeyError(object_id)
