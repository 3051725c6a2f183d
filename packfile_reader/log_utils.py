# log_utils.py -- Logging utilities for packfile_reader
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

"""Logging utilities for packfile_reader.

packfile_reader is a library, so by default nothing is printed: a no-op
handler is attached to the ``packfile_reader`` logger at import time.
Applications configure logging as usual (``logging.basicConfig`` or their
own handlers) to see the debug and warning messages the reader emits.

Modules only need :func:`getLogger`, which is re-exported here.
"""

import logging

getLogger = logging.getLogger


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_PACKFILE_READER_LOGGER = getLogger("packfile_reader")
_PACKFILE_READER_LOGGER.addHandler(_NULL_HANDLER)
