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

"""mongoglue-check: verifies that the configured deployment is reachable.

Reads the [mongodb] group from the usual oslo.config files (or
--config-file), connects, and prints the collections of the configured
database. Exits non-zero when the connection cannot be made.
"""

import sys

from oslo_config import cfg
from oslo_log import log as logging

from mongoglue.common import cli
from mongoglue import conf as glue_conf
from mongoglue import driver


LOG = logging.getLogger(__name__)

_CLI_OPTIONS = (
    cfg.BoolOpt('list-collections', default=True,
                help='Print the collections of the configured database.'),
)


@cli.runnable
def run(argv=None):
    conf = cli.CONF
    glue_conf.configure(conf)
    conf.register_cli_opts(_CLI_OPTIONS)
    conf(args=sys.argv[1:] if argv is None else argv,
         project='mongoglue', prog='mongoglue-check')
    glue_conf.setup_logging(conf)

    with driver.Connection.from_conf(conf) as conn:
        alive = conn.is_connected()
        print('%s: %s' % (conn.database_name,
                          'reachable' if alive else 'unreachable'))

        if alive and conf.list_collections:
            for name in sorted(conn.collection_names()):
                print('  %s' % name)

    return 0 if alive else 1


def main():
    sys.exit(run())
