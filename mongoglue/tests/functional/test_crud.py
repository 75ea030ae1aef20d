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

import uuid

import mongoglue
from mongoglue import errors
from mongoglue import options
from mongoglue import tests as testing


COLLECTION = 'coll'


def _doc(value):
    return {'_id': uuid.uuid4().hex, 'data': value}


@testing.requires_mongodb
class CrudTest(testing.TestBase):

    def setUp(self):
        super(CrudTest, self).setUp()

        self.conn = mongoglue.connect(options.combine(
            options.set_uri(self.mongodb_url),
            options.set_timeout(20),
            options.set_max_pool_size(20),
            options.set_db_name('mongoglue_test_' + uuid.uuid4().hex),
            options.set_preferred('primary')))

        self.addCleanup(self._drop_database)

    def _drop_database(self):
        if self.conn.is_connected():
            self.conn.drop_database()
        self.conn.disconnect()

    def test_insert_find_delete(self):
        doc = _doc(1)
        self.conn.insert_one(COLLECTION, doc)

        found = self.conn.find_one(COLLECTION, {'_id': doc['_id']})
        self.assertEqual(doc, found)

        self.conn.delete_one(COLLECTION, {'_id': doc['_id']})
        self.assertRaises(errors.DoesNotExist, self.conn.find_by_id,
                          COLLECTION, doc['_id'])

    def test_insert_many_then_filtered_find(self):
        docs = [_doc(i) for i in range(1, 11)]
        self.conn.insert_many(COLLECTION, list(reversed(docs)))

        def collect(cursor):
            return sorted(d['data'] for d in cursor)

        found = self.conn.find(COLLECTION, {'data': {'$gte': 3}}, collect)
        self.assertEqual(list(range(3, 11)), found)

        found = self.conn.find_all(COLLECTION, {'data': {'$lt': 3}},
                                   sort='data', decode=lambda d: d['_id'])
        self.assertEqual([docs[0]['_id'], docs[1]['_id']], found)

    def test_updates(self):
        doc = _doc(1)
        self.conn.insert_one(COLLECTION, doc)

        self.conn.update(COLLECTION, doc['_id'], {'data': 2})
        self.assertEqual(2, self.conn.find_by_id(COLLECTION,
                                                 doc['_id'])['data'])

        self.conn.update_with_query(COLLECTION, {'_id': doc['_id']},
                                    {'$set': {'data': 3}})
        self.assertEqual(3, self.conn.find_by_id(COLLECTION,
                                                 doc['_id'])['data'])

        self.conn.upsert(COLLECTION, doc['_id'], {'data': 4})
        self.assertEqual(4, self.conn.find_by_id(COLLECTION,
                                                 doc['_id'])['data'])

    def test_upsert_multi_and_remove_with_ids(self):
        ids = [uuid.uuid4().hex for _ in range(3)]
        self.conn.upsert_multi(COLLECTION, ids,
                               [{'data': i} for i in range(3)])
        self.assertEqual(3, self.conn.count(COLLECTION))

        self.assertRaises(errors.NotASequence, self.conn.remove_with_ids,
                          COLLECTION, ids[0])
        self.assertEqual(3, self.conn.count(COLLECTION))

        self.conn.remove_with_ids(COLLECTION, ids[:2])
        self.assertEqual(1, self.conn.count(COLLECTION))

    def test_invalid_bulk_argument_mutates_nothing(self):
        with testing.expect(errors.InvalidArgument):
            self.conn.insert_many(COLLECTION, _doc(1))

        self.assertEqual(0, self.conn.count(COLLECTION))

    def test_find_page(self):
        self.conn.insert_many(COLLECTION, [_doc(i) for i in range(10)])

        docs, total = self.conn.find_page(COLLECTION, {'data': {'$gte': 2}},
                                          sort='data', limit=3, offset=1)

        self.assertEqual(8, total)
        self.assertEqual([3, 4, 5], [d['data'] for d in docs])

    def test_aggregate(self):
        self.conn.insert_many(COLLECTION, [_doc(i) for i in range(5)])
        pipeline = [{'$group': {'_id': None, 'total': {'$sum': '$data'}}}]

        self.assertEqual(10, self.conn.aggregate_one(COLLECTION,
                                                     pipeline)['total'])
        self.assertRaises(errors.DoesNotExist, self.conn.aggregate_one,
                          COLLECTION, [{'$match': {'data': -1}}])

    def test_duplicates(self):
        doc = _doc(1)
        self.conn.insert_one(COLLECTION, doc)

        self.assertRaises(errors.DuplicateKey, self.conn.insert_one,
                          COLLECTION, doc)
        self.assertTrue(self.conn.insert_with_check_is_dup(COLLECTION, doc))
        self.assertFalse(self.conn.insert_with_check_is_dup(COLLECTION,
                                                            _doc(2)))

    def test_indexes_and_collections(self):
        self.conn.create_index_keys(COLLECTION, 'data')
        self.assertIn(COLLECTION, self.conn.collection_names())

    def test_disconnect(self):
        self.conn.disconnect()

        self.assertFalse(self.conn.is_connected())
        self.assertRaises(errors.NotConnected, self.conn.count, COLLECTION)
