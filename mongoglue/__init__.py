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

"""Convenience layer over pymongo.

Typical use::

    from mongoglue import options

    opts = options.combine(options.set_uri('mongodb://localhost:27017'),
                           options.set_db_name('inventory'),
                           options.set_preferred('primary'))

    with mongoglue.connect(opts) as conn:
        conn.insert_one('items', {'_id': 'a1', 'qty': 3})
        item = conn.find_by_id('items', 'a1')
"""

from mongoglue import driver
from mongoglue import errors  # NOQA
from mongoglue import options  # NOQA

# Hoist classes into package namespace
Connection = driver.Connection
connect = driver.connect
open_connection = driver.open_connection

DEFAULT_QUERY_TIMEOUT = driver.DEFAULT_QUERY_TIMEOUT
