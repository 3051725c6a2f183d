# errors.py -- errors for packfile_reader
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

"""Exception classes raised while reading packfiles."""

__all__ = [
    "FileFormatException",
    "FormatError",
    "InvalidArgument",
    "UnexpectedEndOfStream",
]


class FileFormatException(Exception):
    """Base class for exceptions relating to reading git file formats."""


class FormatError(FileFormatException):
    """The packfile does not follow the pack format."""


class UnexpectedEndOfStream(FormatError):
    """The stream ended in the middle of a pack entry."""

    def __init__(self, offset: int, expected: str) -> None:
        """Initialize an UnexpectedEndOfStream exception.

        Args:
            offset: Stream offset at which the data ran out.
            expected: Description of what was being read.
        """
        self.offset = offset
        self.expected = expected
        super().__init__(
            f"Unexpected end of stream at offset {offset}: expected {expected}"
        )


class InvalidArgument(ValueError):
    """A caller supplied an argument that can not be used for scanning."""
