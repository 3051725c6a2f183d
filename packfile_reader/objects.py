# objects.py -- Git object types and object ids
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

"""Git object types and the computation of object ids."""

__all__ = [
    "HEX_ID_LENGTH",
    "ObjectType",
    "compute_object_id",
    "object_header",
    "valid_hexsha",
]

from collections.abc import Callable
from enum import IntEnum
from hashlib import sha1
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from _hashlib import HASH as HashObject

HEX_ID_LENGTH = 40

_HEX_DIGITS = frozenset("0123456789abcdef")


class ObjectType(IntEnum):
    """Type of a pack entry, numbered as in the pack entry header."""

    COMMIT = 1
    TREE = 2
    BLOB = 3
    TAG = 4
    OFS_DELTA = 6
    REF_DELTA = 7
    # Never read from a pack; marks an entry whose payload did not inflate.
    CORRUPTED = -1

    @property
    def type_name(self) -> str | None:
        """Name used in the object header, or None if there is none."""
        return _TYPE_NAMES.get(self)

    @property
    def is_delta(self) -> bool:
        return self in (ObjectType.OFS_DELTA, ObjectType.REF_DELTA)


_TYPE_NAMES = {
    ObjectType.COMMIT: "commit",
    ObjectType.TREE: "tree",
    ObjectType.BLOB: "blob",
    ObjectType.TAG: "tag",
}


def valid_hexsha(hex: object) -> bool:
    """Check whether a value is a 40 character lowercase hex object id."""
    if not isinstance(hex, str) or len(hex) != HEX_ID_LENGTH:
        return False
    return all(c in _HEX_DIGITS for c in hex)


def object_header(type_name: str, length: int) -> bytes:
    """Return an object header for the given type name and content length."""
    return f"{type_name} {length}\0".encode("ascii")


def compute_object_id(
    object_type: ObjectType,
    size: int,
    data: bytes | None,
    hash_func: Callable[[], "HashObject"] = sha1,
) -> str | None:
    """Compute the id of an object as git would.

    The id is the hex digest of ``"<type> <size>\\0"`` followed by the
    object contents.

    Args:
      object_type: Type of the object
      size: Size declared for the object
      data: Decompressed object contents, or None if they are unavailable
      hash_func: Hash function to use (defaults to sha1)
    Returns: Lowercase hex object id, or None for delta and corrupted
      entries, which have no id of their own.
    """
    type_name = object_type.type_name
    if type_name is None or data is None:
        return None
    sha = hash_func()
    sha.update(object_header(type_name, size))
    sha.update(data)
    return sha.hexdigest()
