#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import os
import re
import sys

from setuptools import setup, find_packages

if sys.version_info[:3] < (3, 9, 0):
    sys.exit("Error: walletstore requires Python version >= 3.9.0...")

with open('contrib/requirements/requirements.txt') as f:
    requirements = [ line for line in f.read().splitlines() if line.strip() ]

with open('contrib/requirements/requirements-pytest.txt') as f:
    requirements_pytest = [ line for line in f.read().splitlines() if line.strip() ]

with open(os.path.join('walletstore', 'version.py')) as f:
    version = re.search(r"^PACKAGE_VERSION = '([^']+)'", f.read(), re.MULTILINE).group(1)

setup(
    name="walletstore",
    version=version,
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        'test': requirements_pytest,
    },
    packages=find_packages(include=[ 'walletstore', 'walletstore.*' ]),
    description="Local wallet credential storage and migration",
    license="MIT Licence",
    long_description="""Local wallet credential storage and migration"""
)
