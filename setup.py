#!/usr/bin/env python
# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

import setuptools

requires = [
    'pymongo>=4.2',
    'oslo.config>=6.8.0',
    'oslo.log>=3.36.0',
]

test_requires = [
    'fixtures>=3.0.0',
    'testtools>=2.2.0',
]

setuptools.setup(
    name='mongoglue',
    version='1.0.0',
    description='Convenience layer over pymongo',
    license="Apache License (2.0)",
    packages=setuptools.find_packages(include=['mongoglue', 'mongoglue.*']),
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=requires,
    extras_require={'test': test_requires},
    entry_points={
        'console_scripts':
            ['mongoglue-check = mongoglue.cmd.check:main'],
        'oslo.config.opts':
            ['mongoglue = mongoglue.conf:list_opts'],
    }
)
