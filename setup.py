#!/usr/bin/env python

import os

from setuptools import setup

packages = [
    "migration_analysis",
    "migration_analysis.support",
]

requires = [
    "pytest>=6.2.5",
    "google-api-python-client>=1.12.0",
    "oauth2client>=4.1.3",
    "httplib2>=0.18.0",
]

try:
    long_description = open(
        os.path.join(os.path.dirname(__file__), 'README.md')).read()
except IOError:
    long_description = None

setup(
    name="migration_traffic_analysis",
    version="0.1",
    description="Find the busiest pages still to be migrated to a new platform",
    long_description=long_description,
    packages=packages,
    package_dir={"migration_analysis": "migration_analysis"},
    include_package_data=True,
    install_requires=requires,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Natural Language :: English",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ]
)
