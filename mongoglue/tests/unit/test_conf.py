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

from mongoglue import conf as glue_conf
from mongoglue.conf import mongodb
from mongoglue import tests as testing


class ConfTest(testing.TestBase):

    def test_defaults(self):
        group = self.conf[mongodb.GROUP_NAME]

        self.assertIsNone(group.uri)
        self.assertEqual('test', group.database)
        self.assertEqual(30.0, group.connect_timeout)
        self.assertEqual(30.0, group.query_timeout)
        self.assertIsNone(group.max_pool_size)
        self.assertEqual('secondaryPreferred', group.read_preference)

    def test_read_preference_choices(self):
        self.assertRaises(ValueError, self.conf.set_override,
                          'read_preference', 'bogus', mongodb.GROUP_NAME)

    def test_configure_is_repeatable(self):
        conf = cfg.ConfigOpts()
        glue_conf.configure(conf)
        glue_conf.configure(conf)

        self.assertIn(mongodb.GROUP_NAME, conf)

    def test_list_opts(self):
        opts = dict(glue_conf.list_opts())

        self.assertEqual([mongodb.GROUP_NAME], list(opts))
        names = [opt.name for opt in opts[mongodb.GROUP_NAME]]
        self.assertIn('uri', names)
        self.assertIn('query_timeout', names)
        self.assertTrue(mongodb.uri.secret)
