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

"""utils: helpers shared by the connection handle."""

import collections.abc
import contextlib
import datetime
import functools
import threading

from oslo_log import log as logging
import pymongo
from pymongo import errors

from mongoglue import errors as glue_errors


LOG = logging.getLogger(__name__)

# NOTE: 11001 and 12582 are legacy duplicate key codes still reported
# by some mongos versions.
DUPLICATE_KEY_CODES = (11000, 11001, 12582)


def to_seconds(value):
    """Normalizes a duration to a float number of seconds.

    :param value: number of seconds or a `datetime.timedelta`
    :returns: float, or None if value is None
    """
    if value is None:
        return None

    if isinstance(value, datetime.timedelta):
        return value.total_seconds()

    return float(value)


def to_sort(sort):
    """Normalizes a sort specification for pymongo.

    A bare key sorts ascending on that key; anything else is handed to
    pymongo unchanged.
    """
    if isinstance(sort, str):
        return [(sort, pymongo.ASCENDING)]

    return sort


def to_list(value, name):
    """Validates that value is a sequence and returns it as a list.

    Strings, bytes and mappings are sequences (or iterables) in the
    Python sense but never a sequence of items for the purpose of
    a bulk operation, so they are rejected too.

    :param value: the argument to validate
    :param name: argument name, used in the error message
    :raises IsNone: if value is None
    :raises NotASequence: if value is not a list-like sequence
    :returns: list
    """
    if value is None:
        raise glue_errors.IsNone(name)

    if (isinstance(value, (str, bytes, bytearray, collections.abc.Mapping))
            or not isinstance(value, collections.abc.Sequence)):
        raise glue_errors.NotASequence(name, value)

    return list(value)


def to_documents(value, name='documents'):
    """Validates a non-empty, homogeneous sequence of documents.

    :raises InvalidArgument: if value is not a sequence of mappings
    :returns: list of documents
    """
    docs = to_list(value, name)

    if not docs:
        raise glue_errors.IsEmpty(name)

    return check_documents(docs, name)


def check_documents(docs, name='documents'):
    """Checks that every item of a list is a document.

    :raises InvalidDocument: on the first item that is not a mapping
    :returns: docs
    """
    for index, doc in enumerate(docs):
        if not isinstance(doc, collections.abc.Mapping):
            raise glue_errors.InvalidDocument(name, index, doc)

    return docs


def to_timeout(value, name='timeout'):
    """Normalizes a timeout, rejecting negative durations.

    :param value: seconds, a `datetime.timedelta`, or None for no limit
    :raises InvalidTimeout: if value is negative
    :returns: float, or None
    """
    seconds = to_seconds(value)
    if seconds is not None and seconds < 0:
        raise glue_errors.InvalidTimeout(name, value)

    return seconds


def is_duplicate_key(ex):
    """Returns True if a pymongo error was caused by a unique index."""
    if isinstance(ex, errors.DuplicateKeyError):
        return True

    if isinstance(ex, errors.BulkWriteError):
        write_errors = (ex.details or {}).get('writeErrors', [])
        return any(err.get('code') in DUPLICATE_KEY_CODES
                   for err in write_errors)

    return False


def raises_driver_error(func):
    """Translates pymongo errors into mongoglue errors.

    Duplicate key violations become DuplicateKey, a lost or refused
    connection becomes ConnectionError and any other PyMongoError
    becomes DriverError. The pymongo exception is chained as the cause.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except errors.PyMongoError as ex:
            if is_duplicate_key(ex):
                LOG.debug(u'Duplicate key in %(func)s: %(ex)s',
                          {'func': func.__name__, 'ex': ex})
                raise glue_errors.DuplicateKey(ex) from ex

            if isinstance(ex, errors.ConnectionFailure):
                LOG.exception(ex)
                raise glue_errors.ConnectionError(ex) from ex

            LOG.debug(u'Driver error in %(func)s: %(ex)s',
                      {'func': func.__name__, 'ex': ex})
            raise glue_errors.DriverError(ex) from ex

    return wrapper


def requires_connection(func):
    """Fails fast with NotConnected unless the handle is connected.

    .. Note::
       Assumes the decorated method belongs to an object that defines
       `is_connected()`.
    """

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_connected():
            raise glue_errors.NotConnected()

        return func(self, *args, **kwargs)

    return wrapper


class ReaderWriterLock(object):
    """A lock held by any number of readers or by a single writer.

    Waiting writers take precedence over new readers, so a steady
    stream of readers cannot starve a writer.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._pending_writers = 0

    @contextlib.contextmanager
    def read_lock(self):
        with self._cond:
            while self._writer or self._pending_writers:
                self._cond.wait()
            self._readers += 1

        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write_lock(self):
        with self._cond:
            self._pending_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._pending_writers -= 1
            self._writer = True

        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()
