# utils.py -- Test utilities for packfile_reader
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

"""Utility functions common to packfile_reader tests."""

import struct
import zlib
from hashlib import sha1
from io import BytesIO

from packfile_reader.objects import ObjectType

BLOB_DATA = b"# test-git"
BLOB_ID = "5297f8f21ad868d9eb6a9c01ad09a9d186177047"
# As written by git for BLOB_DATA.
BLOB_COMPRESSED = bytes(
    [120, 156, 83, 86, 40, 73, 45, 46, 209, 77, 207, 44, 1, 0, 17, 16, 3, 117]
)

TREE_DATA = b"100644 README.md\0" + bytes.fromhex(BLOB_ID)
TREE_ID = "bf195faf9d23ce0615cdefd2b746a077ef82f03f"

COMMIT_DATA = (
    b"tree bf195faf9d23ce0615cdefd2b746a077ef82f03f\n"
    b"author Test Author <test@example.com> 1600000000 +0000\n"
    b"committer Test Author <test@example.com> 1600000000 +0000\n"
    b"\n"
    b"Initial commit\n"
)
COMMIT_ID = "1ab4815904e926ad4d4031cf9fbe06d50ec6f3c2"

TAG_DATA = (
    b"object 5297f8f21ad868d9eb6a9c01ad09a9d186177047\n"
    b"type blob\n"
    b"tag v1.0\n"
    b"tagger Test Author <test@example.com> 1600000000 +0000\n"
    b"\n"
    b"Release 1.0\n"
)
TAG_ID = "fe07008a95689e7d7b340f2ec01629d3687e83cb"


def encode_entry_header(type_num: int, size: int) -> bytes:
    """Encode the type and size header of a pack entry."""
    header = []
    c = (type_num << 4) | (size & 0x0F)
    size >>= 4
    while size:
        header.append(c | 0x80)
        c = size & 0x7F
        size >>= 7
    header.append(c)
    return bytes(header)


def encode_ofs_delta_base(offset: int) -> bytes:
    """Encode the base offset of an OFS_DELTA entry."""
    ret = [offset & 0x7F]
    offset >>= 7
    while offset:
        offset -= 1
        ret.insert(0, 0x80 | (offset & 0x7F))
        offset >>= 7
    return bytes(ret)


def pack_entry(
    type_num: int,
    data: bytes,
    size: int | None = None,
    delta_base: bytes | int | None = None,
    compressed: bytes | None = None,
) -> bytes:
    """Build a single pack entry.

    Args:
      type_num: Type number to write in the entry header
      data: Uncompressed contents
      size: Size to declare, defaults to len(data)
      delta_base: Base offset (OFS_DELTA) or binary base id (REF_DELTA)
      compressed: Compressed payload to use instead of compressing data
    """
    if size is None:
        size = len(data)
    if compressed is None:
        compressed = zlib.compress(data)
    prefix = b""
    if type_num == ObjectType.OFS_DELTA:
        assert isinstance(delta_base, int)
        prefix = encode_ofs_delta_base(delta_base)
    elif type_num == ObjectType.REF_DELTA:
        assert isinstance(delta_base, bytes) and len(delta_base) == 20
        prefix = delta_base
    return encode_entry_header(type_num, size) + prefix + compressed


def pack_header(num_objects: int, version: int = 2) -> bytes:
    return b"PACK" + struct.pack(">LL", version, num_objects)


def build_pack(
    entries: list[bytes],
    num_objects: int | None = None,
    trailer: bool = False,
) -> BytesIO:
    """Build an in-memory pack from already encoded entries.

    Args:
      entries: Encoded entries, see pack_entry
      num_objects: Entry count to write in the header, defaults to
        len(entries)
      trailer: Whether to append the SHA-1 checksum git writes at the end
    Returns: A BytesIO positioned at the start of the pack
    """
    if num_objects is None:
        num_objects = len(entries)
    contents = pack_header(num_objects) + b"".join(entries)
    if trailer:
        contents += sha1(contents).digest()
    return BytesIO(contents)


def sample_entries() -> list[bytes]:
    """Entries of the sample pack: a commit, a blob and a tree."""
    return [
        pack_entry(ObjectType.COMMIT, COMMIT_DATA),
        pack_entry(ObjectType.BLOB, BLOB_DATA, compressed=BLOB_COMPRESSED),
        pack_entry(ObjectType.TREE, TREE_DATA),
    ]


def build_sample_pack(trailer: bool = False) -> BytesIO:
    return build_pack(sample_entries(), trailer=trailer)


class RecordingSink:
    """Sink that remembers everything it is given."""

    def __init__(self) -> None:
        self.calls: list[tuple[bytes, bytes | None, str | None]] = []

    def __call__(
        self, compressed: bytes, decompressed: bytes | None, object_id: str | None
    ) -> None:
        self.calls.append((compressed, decompressed, object_id))
