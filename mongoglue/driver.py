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

"""MongoDB connection handle."""

import contextlib

from oslo_log import log as logging
import pymongo
import pymongo.errors

from mongoglue.conf import mongodb as mongodb_conf
from mongoglue import errors
from mongoglue import options as glue_options
from mongoglue import utils


DEFAULT_QUERY_TIMEOUT = 30.0

# NOTE: used by open_connection() when the caller asks for a connect
# timeout under one second.
FALLBACK_CONNECT_TIMEOUT = 15.0
OPEN_CONNECTION_POOL_SIZE = 20

LOG = logging.getLogger(__name__)


def _identity(doc):
    return doc


class Connection(object):
    """A handle owning a MongoClient and the per-query timeout.

    The handle starts out without a client. `connect()` dials the
    deployment; `disconnect()` closes and drops the client again. Every
    operation checks `is_connected()` first and raises
    `errors.NotConnected` without calling the driver when it is False,
    whether the handle was never connected or has been disconnected.

    Each operation runs inside `pymongo.timeout()` using the current
    query timeout, which may be changed at any time from any thread
    with `set_query_timeout()`.

    Read operations accept an optional ``decode`` callable that is
    applied to every raw document before it is returned.

    :param options: `mongoglue.options.Options` to dial with; the
        defaults are used when omitted
    :param query_timeout: seconds, or a `datetime.timedelta`
    """

    def __init__(self, options=None, query_timeout=DEFAULT_QUERY_TIMEOUT):
        self._options = options or glue_options.combine()
        self._client = None
        self._lock = utils.ReaderWriterLock()
        self._query_timeout = utils.to_timeout(query_timeout, 'query_timeout')

    @classmethod
    def from_conf(cls, conf):
        """Creates and connects a handle from oslo.config options."""
        group = conf[mongodb_conf.GROUP_NAME]
        conn = cls(glue_options.from_conf(conf),
                   query_timeout=group.query_timeout)
        return conn.connect()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    @property
    def options(self):
        return self._options

    @property
    def database_name(self):
        return self._options.database

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    def connect(self):
        """Dials the deployment and checks that it answers a ping.

        :raises ConnectionError: if the client cannot be created or
            no server could be reached within the connect timeout
        :returns: self
        """
        if self._client is not None:
            return self

        try:
            client = pymongo.MongoClient(**self._options.client_kwargs())
        except pymongo.errors.PyMongoError as ex:
            LOG.exception(ex)
            raise errors.ConnectionError(ex) from ex

        try:
            client.admin.command('ping')
        except pymongo.errors.PyMongoError as ex:
            LOG.error(u'Unable to reach MongoDB at %(uri)s: %(ex)s',
                      {'uri': self._options.uri, 'ex': ex})
            client.close()
            raise errors.ConnectionError(ex) from ex

        self._client = client
        LOG.info(u'Connected to MongoDB, database %s',
                 self._options.database)
        return self

    def disconnect(self):
        """Closes the client. Does nothing if there is none."""
        client, self._client = self._client, None
        if client is None:
            return

        client.close()
        LOG.info(u'Disconnected from MongoDB')

    def is_connected(self):
        """Probes the deployment with a ping.

        :returns: False when there is no client, or when the ping fails
        """
        client = self._client
        if client is None:
            return False

        try:
            with pymongo.timeout(self.query_timeout):
                return 'ok' in client.admin.command('ping')
        except pymongo.errors.PyMongoError as ex:
            LOG.debug(u'MongoDB ping failed: %s', ex)
            return False

    @property
    def query_timeout(self):
        """Seconds each operation is allowed to run."""
        with self._lock.read_lock():
            return self._query_timeout

    def set_query_timeout(self, timeout):
        """Changes the per-operation timeout.

        :param timeout: seconds, or a `datetime.timedelta`
        :raises InvalidTimeout: if timeout is negative
        """
        seconds = utils.to_timeout(timeout)
        with self._lock.write_lock():
            self._query_timeout = seconds

    # ----------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------

    def _database(self):
        client = self._client
        if client is None:
            raise errors.NotConnected()
        return client[self._options.database]

    def _collection(self, name):
        return self._database()[name]

    def _bounded(self, factor=1, timeout=None):
        if timeout is None:
            timeout = self.query_timeout
        if timeout is None:
            return pymongo.timeout(None)
        return pymongo.timeout(timeout * factor)

    def _find_one(self, collection, query, sort=None, decode=None):
        decode = decode or _identity
        with self._bounded():
            doc = self._collection(collection).find_one(
                query, sort=utils.to_sort(sort))

        if doc is None:
            raise errors.DoesNotExist(collection)

        return decode(doc)

    def _first(self, collection, cursor, decode):
        with contextlib.closing(cursor):
            doc = next(cursor, None)

        if doc is None:
            raise errors.DoesNotExist(collection)

        return (decode or _identity)(doc)

    # ----------------------------------------------------------------
    # Indexes and collections
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def create_index_keys(self, collection, *keys):
        """Creates an ascending, single-field index for each key.

        :returns: list of index names
        """
        col = self._collection(collection)
        with self._bounded():
            return [col.create_index([(key, pymongo.ASCENDING)])
                    for key in keys]

    @utils.requires_connection
    @utils.raises_driver_error
    def collection_names(self):
        with self._bounded():
            return self._database().list_collection_names()

    @utils.requires_connection
    @utils.raises_driver_error
    def drop_database(self):
        """Drops the database this handle operates on."""
        with self._bounded():
            self._client.drop_database(self._options.database)

    # ----------------------------------------------------------------
    # Inserts
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def insert_one(self, collection, doc):
        """Inserts a single document.

        :returns: `pymongo.results.InsertOneResult`
        """
        with self._bounded():
            return self._collection(collection).insert_one(doc)

    @utils.requires_connection
    @utils.raises_driver_error
    def insert_many(self, collection, docs):
        """Inserts a sequence of documents.

        :param docs: a non-empty list or tuple of mappings
        :raises InvalidArgument: if docs is not such a sequence; nothing
            is written in that case
        :returns: `pymongo.results.InsertManyResult`
        """
        docs = utils.to_documents(docs, 'docs')
        with self._bounded():
            return self._collection(collection).insert_many(docs)

    def insert(self, collection, *docs):
        """Inserts the documents given as positional arguments."""
        return self.insert_many(collection, docs)

    @utils.requires_connection
    @utils.raises_driver_error
    def insert_bulk(self, collection, docs):
        """Inserts documents with a single unordered bulk write.

        Documents that fail (e.g. on a duplicate key) do not prevent
        the others from being written; the failure is reported as a
        DriverError whose cause carries the bulk write details.

        :returns: `pymongo.results.BulkWriteResult`
        """
        docs = utils.to_documents(docs, 'docs')
        requests = [pymongo.InsertOne(doc) for doc in docs]
        with self._bounded():
            return self._collection(collection).bulk_write(requests,
                                                           ordered=False)

    @utils.requires_connection
    @utils.raises_driver_error
    def insert_with_check_is_dup(self, collection, *docs):
        """Inserts documents, reporting unique index violations.

        :returns: True if the insert was rejected because of a
            duplicate key, False if every document was written
        """
        docs = utils.to_documents(docs, 'docs')
        try:
            with self._bounded():
                self._collection(collection).insert_many(docs)
        except pymongo.errors.PyMongoError as ex:
            if utils.is_duplicate_key(ex):
                LOG.debug(u'Duplicate key inserting into %s', collection)
                return True
            raise

        return False

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def find_one(self, collection, query, decode=None):
        """Returns the first document matching query.

        :raises DoesNotExist: if no document matches
        """
        return self._find_one(collection, query, decode=decode)

    @utils.requires_connection
    @utils.raises_driver_error
    def find_by_id(self, collection, doc_id, decode=None):
        """Returns the document whose _id is doc_id.

        :raises DoesNotExist: if there is no such document
        """
        return self._find_one(collection, {'_id': doc_id}, decode=decode)

    @utils.requires_connection
    @utils.raises_driver_error
    def find_first(self, collection, query, sort=None, decode=None):
        """Returns the first document matching query in sort order.

        :param sort: a key, or a list of (key, direction) pairs
        :raises DoesNotExist: if no document matches
        """
        return self._find_one(collection, query, sort=sort, decode=decode)

    @utils.requires_connection
    @utils.raises_driver_error
    def find(self, collection, query, iter_func):
        """Hands a cursor over the matching documents to iter_func.

        The cursor is closed when iter_func returns or raises; it must
        not be used after that.

        :param iter_func: callable taking a `pymongo.cursor.Cursor`
        :returns: whatever iter_func returns
        """
        with self._bounded():
            cursor = self._collection(collection).find(
                query, allow_disk_use=True)
            with contextlib.closing(cursor):
                return iter_func(cursor)

    @utils.requires_connection
    @utils.raises_driver_error
    def find_all(self, collection, query=None, sort=None, limit=0, skip=0,
                 decode=None):
        """Returns every document matching query as a list.

        :param query: filter; all documents when omitted
        :param sort: a key, or a list of (key, direction) pairs
        :param limit: maximum number of documents, 0 for no limit
        :param skip: number of documents to skip
        """
        decode = decode or _identity
        with self._bounded():
            cursor = self._collection(collection).find(
                query or {}, sort=utils.to_sort(sort), limit=limit,
                skip=skip, allow_disk_use=True)
            with contextlib.closing(cursor):
                return [decode(doc) for doc in cursor]

    @utils.requires_connection
    @utils.raises_driver_error
    def find_page(self, collection, query, sort=None, limit=0, offset=0,
                  decode=None):
        """Counts the matching documents and fetches one page of them.

        The count and the fetch share a single timeout of twice the
        query timeout.

        :returns: (documents, total)
        """
        decode = decode or _identity
        query = query or {}
        col = self._collection(collection)
        with self._bounded(factor=2):
            total = col.count_documents(query)
            cursor = col.find(query, sort=utils.to_sort(sort), limit=limit,
                              skip=offset, allow_disk_use=True)
            with contextlib.closing(cursor):
                return [decode(doc) for doc in cursor], total

    @utils.requires_connection
    @utils.raises_driver_error
    def count(self, collection, query=None):
        with self._bounded():
            return self._collection(collection).count_documents(query or {})

    # ----------------------------------------------------------------
    # Aggregation
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def aggregate(self, collection, pipeline, iter_func):
        """Runs pipeline and hands the result cursor to iter_func.

        The cursor is closed when iter_func returns or raises.

        :returns: whatever iter_func returns
        """
        pipeline = utils.to_list(pipeline, 'pipeline')
        with self._bounded():
            cursor = self._collection(collection).aggregate(
                pipeline, allowDiskUse=True)
            with contextlib.closing(cursor):
                return iter_func(cursor)

    @utils.requires_connection
    @utils.raises_driver_error
    def aggregate_all(self, collection, pipeline, decode=None,
                      max_time=None):
        """Runs pipeline and returns every result as a list.

        :param max_time: overrides the query timeout for this call;
            seconds, or a `datetime.timedelta`
        """
        pipeline = utils.to_list(pipeline, 'pipeline')
        decode = decode or _identity
        with self._bounded(timeout=utils.to_seconds(max_time)):
            cursor = self._collection(collection).aggregate(
                pipeline, allowDiskUse=True)
            with contextlib.closing(cursor):
                return [decode(doc) for doc in cursor]

    @utils.requires_connection
    @utils.raises_driver_error
    def aggregate_one(self, collection, pipeline, decode=None):
        """Runs pipeline and returns its first result.

        :raises DoesNotExist: if the pipeline yields nothing
        """
        pipeline = utils.to_list(pipeline, 'pipeline')
        with self._bounded():
            cursor = self._collection(collection).aggregate(
                pipeline, allowDiskUse=True)
            return self._first(collection, cursor, decode)

    # ----------------------------------------------------------------
    # Updates
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def update(self, collection, doc_id, fields):
        """Sets fields on the document whose _id is doc_id.

        :returns: `pymongo.results.UpdateResult`
        """
        with self._bounded():
            return self._collection(collection).update_one(
                {'_id': doc_id}, {'$set': fields})

    @utils.requires_connection
    @utils.raises_driver_error
    def update_with_query(self, collection, query, update):
        """Applies update to the first document matching query."""
        with self._bounded():
            return self._collection(collection).update_one(query, update)

    @utils.requires_connection
    @utils.raises_driver_error
    def update_with_query_all(self, collection, query, update):
        """Applies update to every document matching query."""
        with self._bounded():
            return self._collection(collection).update_many(query, update)

    @utils.requires_connection
    @utils.raises_driver_error
    def upsert(self, collection, doc_id, fields):
        with self._bounded():
            return self._collection(collection).update_one(
                {'_id': doc_id}, {'$set': fields}, upsert=True)

    @utils.requires_connection
    @utils.raises_driver_error
    def upsert_with_query(self, collection, query, update):
        with self._bounded():
            return self._collection(collection).update_one(
                query, update, upsert=True)

    @utils.requires_connection
    @utils.raises_driver_error
    def upsert_multi(self, collection, ids, docs):
        """Upserts docs[i] as the document whose _id is ids[i].

        Both sequences are validated before anything is written. The
        upserts run one by one and stop at the first failure.

        :raises InvalidArgument: if ids or docs is not a sequence, their
            lengths differ, or an item of docs is not a document
        :returns: list of `pymongo.results.UpdateResult`
        """
        ids = utils.to_list(ids, 'ids')
        docs = utils.to_list(docs, 'docs')
        if len(ids) != len(docs):
            raise errors.LengthMismatch('ids', len(ids), 'docs', len(docs))
        utils.check_documents(docs, 'docs')

        col = self._collection(collection)
        with self._bounded():
            return [col.update_one({'_id': doc_id}, {'$set': doc},
                                   upsert=True)
                    for doc_id, doc in zip(ids, docs)]

    # ----------------------------------------------------------------
    # Deletes
    # ----------------------------------------------------------------

    @utils.requires_connection
    @utils.raises_driver_error
    def delete_one(self, collection, query):
        """Deletes the first document matching query.

        :returns: `pymongo.results.DeleteResult`
        """
        with self._bounded():
            return self._collection(collection).delete_one(query)

    @utils.requires_connection
    @utils.raises_driver_error
    def remove(self, collection, doc_id):
        """Deletes the document whose _id is doc_id."""
        with self._bounded():
            return self._collection(collection).delete_one({'_id': doc_id})

    @utils.requires_connection
    @utils.raises_driver_error
    def remove_all(self, collection):
        with self._bounded():
            return self._collection(collection).delete_many({})

    @utils.requires_connection
    @utils.raises_driver_error
    def remove_with_query(self, collection, query):
        with self._bounded():
            return self._collection(collection).delete_many(query)

    @utils.requires_connection
    @utils.raises_driver_error
    def remove_with_ids(self, collection, ids):
        """Deletes every document whose _id is in ids.

        :raises InvalidArgument: if ids is not a sequence
        """
        ids = utils.to_list(ids, 'ids')
        with self._bounded():
            return self._collection(collection).delete_many(
                {'_id': {'$in': ids}})


def connect(options=None, query_timeout=DEFAULT_QUERY_TIMEOUT):
    """Creates a handle and connects it.

    :param options: `mongoglue.options.Options`, e.g. the result of
        `mongoglue.options.combine()`
    :raises ConnectionError: if the deployment cannot be reached
    :returns: Connection
    """
    return Connection(options, query_timeout=query_timeout).connect()


def open_connection(uri, read_preference=None, timeout=None):
    """Connects to uri with a fixed pool of 20 connections.

    :param read_preference: read preference mode; secondaryPreferred
        when omitted or invalid
    :param timeout: connect timeout, seconds or a `datetime.timedelta`.
        When omitted the default query timeout is used; values under
        one second fall back to 15 seconds.
    :returns: Connection
    """
    if timeout is None:
        seconds = DEFAULT_QUERY_TIMEOUT
    else:
        seconds = utils.to_seconds(timeout)
        if seconds < 1:
            seconds = FALLBACK_CONNECT_TIMEOUT

    opts = [glue_options.set_uri(uri),
            glue_options.set_timeout(seconds),
            glue_options.set_max_pool_size(OPEN_CONNECTION_POOL_SIZE)]
    if read_preference is not None:
        opts.append(glue_options.set_preferred(read_preference))

    return connect(glue_options.combine(*opts))
