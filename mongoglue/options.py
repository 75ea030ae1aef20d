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

"""Connection options.

Options are built by folding option functions over a default value::

    opts = options.combine(options.set_uri('mongodb://db1,db2/'),
                           options.set_db_name('inventory'),
                           options.set_preferred('primary'))

Each option function takes an `Options` and returns a new one. They are
applied in the order they are given, so when two of them set the same
field the last one wins.
"""

import collections
import functools

from oslo_log import log as logging
from pymongo import read_preferences

from mongoglue.conf import mongodb as mongodb_conf
from mongoglue import utils


DEFAULT_DATABASE = 'test'
DEFAULT_CONNECT_TIMEOUT = 30.0

LOG = logging.getLogger(__name__)

_ReadPreference = read_preferences.ReadPreference

# NOTE: keys are normalized with _mode_key(), so 'secondary_preferred',
# 'SecondaryPreferred' and 'secondaryPreferred' are all accepted.
_MODES = {
    'primary': _ReadPreference.PRIMARY,
    'primarypreferred': _ReadPreference.PRIMARY_PREFERRED,
    'secondary': _ReadPreference.SECONDARY,
    'secondarypreferred': _ReadPreference.SECONDARY_PREFERRED,
    'nearest': _ReadPreference.NEAREST,
}

# Indexed by the integer modes defined in pymongo.read_preferences
_MODES_BY_NUMBER = (
    _ReadPreference.PRIMARY,
    _ReadPreference.PRIMARY_PREFERRED,
    _ReadPreference.SECONDARY,
    _ReadPreference.SECONDARY_PREFERRED,
    _ReadPreference.NEAREST,
)

_READ_PREFERENCE_TYPES = (
    read_preferences.Primary,
    read_preferences.PrimaryPreferred,
    read_preferences.Secondary,
    read_preferences.SecondaryPreferred,
    read_preferences.Nearest,
)


class Options(collections.namedtuple('Options', ['uri',
                                                 'connect_timeout',
                                                 'max_pool_size',
                                                 'database',
                                                 'read_preference'])):
    """Immutable set of parameters used to dial a MongoClient.

    :param uri: connection string, or None for the driver default
    :param connect_timeout: seconds allowed to connect and to select
        a server
    :param max_pool_size: maximum connections per server, or None for
        the driver default
    :param database: name of the database operations run against
    :param read_preference: a pymongo read preference instance
    """

    __slots__ = ()

    def client_kwargs(self):
        """Returns the keyword arguments for `pymongo.MongoClient`."""
        timeout_ms = int(self.connect_timeout * 1000)
        kwargs = {
            'host': self.uri,
            'connectTimeoutMS': timeout_ms,
            'serverSelectionTimeoutMS': timeout_ms,
            'read_preference': self.read_preference,
        }

        if self.max_pool_size is not None:
            kwargs['maxPoolSize'] = self.max_pool_size

        return kwargs


def defaults():
    """Returns the base options every combination starts from."""
    return Options(uri=None,
                   connect_timeout=DEFAULT_CONNECT_TIMEOUT,
                   max_pool_size=None,
                   database=DEFAULT_DATABASE,
                   read_preference=_ReadPreference.SECONDARY_PREFERRED)


def combine(*opts):
    """Applies option functions, in order, to the default options.

    :param opts: callables taking and returning an `Options`
    :returns: Options
    """
    return functools.reduce(lambda options, opt: opt(options),
                            opts, defaults())


def _mode_key(mode):
    return mode.replace('_', '').replace('-', '').lower()


def parse_read_preference(mode):
    """Converts a read preference mode to a pymongo read preference.

    :param mode: a mode name such as 'secondaryPreferred', one of the
        integer modes from `pymongo.read_preferences`, or a read
        preference instance
    :returns: the read preference, or None if mode is not valid
    """
    if isinstance(mode, _READ_PREFERENCE_TYPES):
        return mode

    if isinstance(mode, bool):
        return None

    if isinstance(mode, int):
        if 0 <= mode < len(_MODES_BY_NUMBER):
            return _MODES_BY_NUMBER[mode]
        return None

    if isinstance(mode, str):
        return _MODES.get(_mode_key(mode))

    return None


def set_uri(uri):
    """Sets the connection string."""

    def apply(options):
        return options._replace(uri=uri)

    return apply


def set_timeout(timeout):
    """Sets the connect and server selection timeout.

    :param timeout: seconds, or a `datetime.timedelta`. Values that are
        not positive leave the current timeout in place.
    """

    def apply(options):
        seconds = utils.to_seconds(timeout)
        if seconds is None or seconds <= 0:
            return options
        return options._replace(connect_timeout=seconds)

    return apply


def set_max_pool_size(size):
    """Sets the maximum size of the per-server connection pool."""

    def apply(options):
        return options._replace(max_pool_size=size)

    return apply


def set_db_name(name):
    """Sets the database operations run against.

    An empty name leaves the current database in place.
    """

    def apply(options):
        if not name:
            return options
        return options._replace(database=name)

    return apply


def set_preferred(mode):
    """Sets which replica set members may serve reads.

    The default is secondaryPreferred: reads go to secondaries, or to
    the primary when no secondary is available. Invalid modes are
    ignored and the current read preference is kept.
    """

    def apply(options):
        pref = parse_read_preference(mode)
        if pref is None:
            LOG.warning(u'Ignoring invalid read preference %r', mode)
            return options
        return options._replace(read_preference=pref)

    return apply


def from_conf(conf):
    """Builds options from the [mongodb] group of an oslo.config object.

    :param conf: `oslo_config.cfg.ConfigOpts` with the mongodb options
        registered
    :returns: Options
    """
    group = conf[mongodb_conf.GROUP_NAME]
    return combine(set_uri(group.uri),
                   set_timeout(group.connect_timeout),
                   set_max_pool_size(group.max_pool_size),
                   set_db_name(group.database),
                   set_preferred(group.read_preference))
