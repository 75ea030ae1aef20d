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

from oslo_config import cfg


uri = cfg.StrOpt(
    'uri',
    secret=True,
    help='Mongodb Connection URI. When unset the driver default '
         '(a local mongod on the standard port) is used.')


database = cfg.StrOpt(
    'database', default='test',
    help='Database name.')


connect_timeout = cfg.FloatOpt(
    'connect_timeout', min=0, default=30.0,
    help=('Number of seconds to wait for a connection to a server '
          'to be established, and for a suitable server to be '
          'selected.'))


max_pool_size = cfg.IntOpt(
    'max_pool_size', min=0,
    help=('Maximum number of concurrent connections to each server. '
          'When unset the driver default is used.'))


read_preference = cfg.StrOpt(
    'read_preference', default='secondaryPreferred',
    choices=[
        ('primary',
         'Read from the primary only'),
        ('primaryPreferred',
         'Read from the primary, or a secondary if none is available'),
        ('secondary',
         'Read from secondaries only'),
        ('secondaryPreferred',
         'Read from a secondary, or the primary if none is available'),
        ('nearest',
         'Read from the member with the lowest latency')
    ],
    help='Which replica set members may serve read operations.')


query_timeout = cfg.FloatOpt(
    'query_timeout', min=0, default=30.0,
    help=('Number of seconds a single operation may run before it is '
          'aborted. It can be changed at runtime on a connection.'))


GROUP_NAME = 'mongodb'
ALL_OPTS = [
    uri,
    database,
    connect_timeout,
    max_pool_size,
    read_preference,
    query_timeout
]


def register_opts(conf):
    conf.register_opts(ALL_OPTS, group=GROUP_NAME)


def list_opts():
    return {GROUP_NAME: ALL_OPTS}
