# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or
# implied.
# See the License for the specific language governing permissions and
# limitations under the License.


class ExceptionBase(Exception):

    msg_format = ''

    def __init__(self, **kwargs):
        msg = self.msg_format.format(**kwargs)
        super(ExceptionBase, self).__init__(msg)


class NotConnected(ExceptionBase):
    """Raised when an operation is attempted without a live client."""

    msg_format = 'DB is not connected'


class DoesNotExist(ExceptionBase):
    """No document matched the given filter."""

    msg_format = 'Document is not found in collection {collection}'

    def __init__(self, collection):
        super(DoesNotExist, self).__init__(collection=collection)
        self.collection = collection


class InvalidArgument(ExceptionBase):
    """An argument handed to a bulk helper is not usable."""


class NotASequence(InvalidArgument):

    msg_format = '{name} is not a sequence, got {type}'

    def __init__(self, name, value):
        super(NotASequence, self).__init__(name=name,
                                           type=type(value).__name__)


class IsNone(InvalidArgument):

    msg_format = '{name} is None'

    def __init__(self, name):
        super(IsNone, self).__init__(name=name)


class IsEmpty(InvalidArgument):

    msg_format = '{name} must not be empty'

    def __init__(self, name):
        super(IsEmpty, self).__init__(name=name)


class InvalidTimeout(InvalidArgument):

    msg_format = '{name} must not be negative, got {value}'

    def __init__(self, name, value):
        super(InvalidTimeout, self).__init__(name=name, value=value)


class LengthMismatch(InvalidArgument):

    msg_format = ('Query is not valid: {left} has {left_len} items '
                  'but {right} has {right_len}')

    def __init__(self, left, left_len, right, right_len):
        super(LengthMismatch, self).__init__(left=left, left_len=left_len,
                                             right=right, right_len=right_len)


class InvalidDocument(InvalidArgument):

    msg_format = 'Item {index} of {name} is not a document, got {type}'

    def __init__(self, name, index, value):
        super(InvalidDocument, self).__init__(name=name, index=index,
                                              type=type(value).__name__)


class DriverError(ExceptionBase):
    """Opaque wrapper around any failure reported by pymongo.

    The original driver exception is available as ``__cause__`` and
    as the ``error`` attribute.
    """

    msg_format = '{error}'

    def __init__(self, error=None):
        super(DriverError, self).__init__(error=error)
        self.error = error


class ConnectionError(DriverError):
    """Raised when the connection with the database was lost or refused."""


class DuplicateKey(DriverError):
    """A write violated a unique index."""
